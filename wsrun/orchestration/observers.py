"""Observers that react to engine events.

An observer is any callable taking an :class:`Event`. Observers are called
synchronously from the engine's event loop and must not block.
"""

from collections.abc import Callable, Iterable

from wsrun.logging import get_logger
from wsrun.orchestration.events import (
    Event,
    TaskFailed,
    TaskSkipped,
    TierCompleted,
    TierStarted,
)

logger = get_logger(__name__)

Observer = Callable[[Event], None]


class LoggingObserver:
    """Writes every event's log message through loguru."""

    def __call__(self, event: Event) -> None:
        message = event.log_message()
        if isinstance(event, TaskFailed):
            logger.error(message)
        elif isinstance(event, (TierStarted, TierCompleted, TaskSkipped)):
            logger.debug(message)
        else:
            logger.info(message)


class RecordingObserver:
    """Keeps every event in memory, in emission order."""

    def __init__(self) -> None:
        self.events: list[Event] = []

    def __call__(self, event: Event) -> None:
        self.events.append(event)

    def of_type(self, event_type: type[Event]) -> list[Event]:
        return [e for e in self.events if isinstance(e, event_type)]


class CompositeObserver:
    """Fans an event out to several observers."""

    def __init__(self, observers: Iterable[Observer]) -> None:
        self.observers = list(observers)

    def __call__(self, event: Event) -> None:
        for observer in self.observers:
            observer(event)
