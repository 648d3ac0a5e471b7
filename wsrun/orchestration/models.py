"""Execution modes, task states and run results."""

from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path


class ExecutionMode(StrEnum):
    """How the engine walks the plan.

    Attributes
    ----------
    PARALLEL : str
        Tier by tier, each tier on a bounded worker pool (default)
    SEQUENTIAL : str
        One package at a time in the flattened tier order
    """

    PARALLEL = "parallel-by-tier"
    SEQUENTIAL = "sequential"


class TaskState(StrEnum):
    """Lifecycle of one package task.

    ``PENDING -> RUNNING -> SUCCEEDED | FAILED``; a package without the
    requested script goes straight from ``PENDING`` to ``SKIPPED``.
    """

    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True, slots=True)
class TaskOutcome:
    """Result of running the script for one package."""

    name: str
    directory: Path
    exit_code: int
    duration_ms: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0


@dataclass(slots=True)
class RunReport:
    """What happened during one engine run.

    Attributes
    ----------
    mode : ExecutionMode
        Mode the run used
    outcomes : list[TaskOutcome]
        One entry per attempted package, in completion order
    skipped : list[str]
        Selected packages without the requested script
    states : dict[str, TaskState]
        Final state per planned package; packages never started stay ``PENDING``
    """

    mode: ExecutionMode
    outcomes: list[TaskOutcome] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    states: dict[str, TaskState] = field(default_factory=dict)

    @property
    def failures(self) -> list[TaskOutcome]:
        return [o for o in self.outcomes if not o.succeeded]

    @property
    def succeeded(self) -> bool:
        return not self.failures

    def outcome(self, name: str) -> TaskOutcome | None:
        return next((o for o in self.outcomes if o.name == name), None)
