"""Execution engine, events and observers."""

from wsrun.orchestration.engine import DEFAULT_RUNNER, ExecutionEngine
from wsrun.orchestration.events import (
    Event,
    TaskCompleted,
    TaskFailed,
    TaskSkipped,
    TaskStarted,
    TierCompleted,
    TierStarted,
)
from wsrun.orchestration.models import ExecutionMode, RunReport, TaskOutcome, TaskState
from wsrun.orchestration.observers import (
    CompositeObserver,
    LoggingObserver,
    Observer,
    RecordingObserver,
)

__all__ = [
    "DEFAULT_RUNNER",
    "CompositeObserver",
    "Event",
    "ExecutionEngine",
    "ExecutionMode",
    "LoggingObserver",
    "Observer",
    "RecordingObserver",
    "RunReport",
    "TaskCompleted",
    "TaskFailed",
    "TaskOutcome",
    "TaskSkipped",
    "TaskStarted",
    "TaskState",
    "TierCompleted",
    "TierStarted",
]
