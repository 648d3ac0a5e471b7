"""Simple event data classes emitted by the execution engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path


@dataclass(slots=True)
class Event:
    """Base class for all events - provides timestamp."""

    timestamp: datetime = field(default_factory=datetime.now, init=False)

    def log_message(self) -> str:
        """Get a formatted log message for this event."""
        return f"{self.__class__.__name__} at {self.timestamp.isoformat()}"


# Tier events
@dataclass(slots=True)
class TierStarted(Event):
    """A tier of runnable packages is about to start.

    ``tier_index`` is one-based, matching the printed plan.
    """

    tier_index: int
    packages: tuple[str, ...]
    workers: int

    def log_message(self) -> str:
        return (
            f"Tier {self.tier_index}: {len(self.packages)} package(s) "
            f"on {self.workers} worker(s)"
        )


@dataclass(slots=True)
class TierCompleted(Event):
    """Every task of a tier has finished, successfully or not."""

    tier_index: int
    duration_ms: float
    failed: tuple[str, ...] = ()

    def log_message(self) -> str:
        status = f"{len(self.failed)} failed" if self.failed else "ok"
        return f"Tier {self.tier_index} finished in {self.duration_ms / 1000:.2f}s ({status})"


# Task events
@dataclass(slots=True)
class TaskStarted(Event):
    """A package script is about to be started."""

    name: str
    directory: Path
    command: tuple[str, ...]

    def log_message(self) -> str:
        return f"▶ {self.directory}: {' '.join(self.command)}"


@dataclass(slots=True)
class TaskCompleted(Event):
    """A package script exited with code 0."""

    name: str
    directory: Path
    exit_code: int
    duration_ms: float

    def log_message(self) -> str:
        return (
            f"✔ {self.name} finished with exit code {self.exit_code} "
            f"in {self.duration_ms / 1000:.2f}s"
        )


@dataclass(slots=True)
class TaskFailed(Event):
    """A package script exited with a non-zero code."""

    name: str
    directory: Path
    exit_code: int
    duration_ms: float

    def log_message(self) -> str:
        return f"✖ Failed in {self.directory} with exit code {self.exit_code}"


@dataclass(slots=True)
class TaskSkipped(Event):
    """A selected package has no command for the requested script."""

    name: str
    script: str

    def log_message(self) -> str:
        return f"- {self.name} has no '{self.script}' script, skipping"
