"""Port interfaces consumed by the orchestration core."""

from wsrun.ports.process import ProcessRunner

__all__ = ["ProcessRunner"]
