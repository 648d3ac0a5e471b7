"""Command line interface for wsrun."""
