"""Concrete implementations of wsrun ports."""

from wsrun.drivers.subprocess_runner import SubprocessRunner, build_command

__all__ = ["SubprocessRunner", "build_command"]
