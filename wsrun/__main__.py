"""Entry point for running wsrun as a module: ``python -m wsrun``."""

from __future__ import annotations


def main() -> None:
    """Main entry point for module execution."""
    from wsrun.cli.main import main as cli_main

    cli_main()


if __name__ == "__main__":
    main()
