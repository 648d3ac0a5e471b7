"""Logging setup for wsrun, built on Loguru.

Every sink writes to stderr; stdout belongs to the scripts being run.
Modules get a bound logger with ``get_logger(__name__)``. The first such
call configures logging from ``WSRUN_LOG_LEVEL`` and ``WSRUN_LOG_FORMAT``
unless :func:`configure_logging` already ran.

Examples
--------
>>> from wsrun.logging import get_logger
>>> log = get_logger("wsrun.example")
>>> log.debug("Resolved {count} workspace directories", count=3)

The CLI reconfigures once settings are known::

    configure_logging(level="DEBUG", format="rich", force_reconfigure=True)
"""

import os
import sys
from collections.abc import Callable
from contextlib import suppress
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal, get_args

from loguru import logger
from rich.console import Console
from rich.logging import RichHandler

if TYPE_CHECKING:
    from loguru import Logger

LogLevel = Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
LogFormat = Literal["console", "json", "structured", "rich"]

LOG_FORMATS: tuple[str, ...] = ("console", "json", "structured", "rich")

_TIME = "{time:YYYY-MM-DD HH:mm:ss}"
_LOGURU_DEFAULT_HANDLER = 0


@dataclass(frozen=True)
class _LogSetup:
    level: str
    format: str
    output_file: str | None
    use_color: bool
    include_timestamp: bool


_active: _LogSetup | None = None
_sink_ids: list[int] = []


def _rich_sink(setup: _LogSetup) -> dict[str, Any]:
    handler = RichHandler(
        console=Console(stderr=True),
        markup=False,
        rich_tracebacks=True,
        show_path=False,
        show_time=setup.include_timestamp,
    )
    return {"sink": handler, "format": "{message}"}


def _json_sink(setup: _LogSetup) -> dict[str, Any]:
    return {"sink": sys.stderr, "serialize": True}


def _structured_sink(setup: _LogSetup) -> dict[str, Any]:
    colorize = setup.use_color and sys.stderr.isatty()
    stamp = f"<green>{_TIME}</green> " if setup.include_timestamp else ""
    level = "<level>{level: <8}</level>" if colorize else "{level: <8}"
    return {
        "sink": sys.stderr,
        "colorize": colorize,
        "format": (
            f"{stamp}[{level}]<cyan>{{name}}:{{function}}:{{line}}</cyan> "
            "| <level>{message}</level>"
        ),
    }


def _console_sink(setup: _LogSetup) -> dict[str, Any]:
    stamp = f"{_TIME} " if setup.include_timestamp else ""
    return {
        "sink": sys.stderr,
        "colorize": False,
        "format": f"{stamp}{{level: <8}} | {{message}}",
    }


_SINKS: dict[str, Callable[[_LogSetup], dict[str, Any]]] = {
    "rich": _rich_sink,
    "json": _json_sink,
    "structured": _structured_sink,
    "console": _console_sink,
}


def configure_logging(
    level: LogLevel = "INFO",
    format: LogFormat = "structured",
    output_file: str | Path | None = None,
    use_color: bool = True,
    include_timestamp: bool = True,
    force_reconfigure: bool = False,
) -> None:
    """Install wsrun's log sinks, replacing the ones installed previously.

    Repeating a call with identical settings does nothing unless
    ``force_reconfigure`` is set. Sinks added by other code are left alone.

    Parameters
    ----------
    level : LogLevel, default="INFO"
        Minimum level for every sink
    format : LogFormat, default="structured"
        ``structured`` (module, function and line, colored on a TTY),
        ``console`` (plain), ``json`` (one serialized record per line) or
        ``rich`` (RichHandler)
    output_file : str | Path | None, default=None
        Also write serialized JSON records to this file
    use_color : bool, default=True
        Allow ANSI colors in the structured format
    include_timestamp : bool, default=True
        Prefix records with the local time
    force_reconfigure : bool, default=False
        Rebuild the sinks even when the settings are unchanged

    Raises
    ------
    ValueError
        If ``format`` is not one of :data:`LOG_FORMATS`
    """
    global _active

    setup = _LogSetup(
        level=level,
        format=format,
        output_file=str(output_file) if output_file else None,
        use_color=use_color,
        include_timestamp=include_timestamp,
    )
    if setup == _active and not force_reconfigure:
        return
    if format not in _SINKS:
        raise ValueError(f"Unknown log format {format!r}, expected one of {LOG_FORMATS}")

    if _active is None:
        # Loguru's stock handler logs DEBUG to stderr
        with suppress(ValueError):
            logger.remove(_LOGURU_DEFAULT_HANDLER)
    while _sink_ids:
        with suppress(ValueError):
            logger.remove(_sink_ids.pop())

    _sink_ids.append(logger.add(level=level, **_SINKS[format](setup)))
    if setup.output_file:
        path = Path(setup.output_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        _sink_ids.append(logger.add(path, level=level, serialize=True))

    _active = setup


@lru_cache(maxsize=256)
def get_logger(name: str) -> "Logger":
    """Loguru logger bound with ``module=name``; configures logging on first use."""
    if _active is None:
        _configure_from_env()
    return logger.bind(module=name)


def _configure_from_env() -> None:
    level = os.getenv("WSRUN_LOG_LEVEL", "INFO").upper()
    if level not in get_args(LogLevel):
        level = "INFO"
    format_name = os.getenv("WSRUN_LOG_FORMAT", "structured").lower()
    if format_name not in LOG_FORMATS:
        format_name = "structured"
    configure_logging(level=level, format=format_name)  # type: ignore[arg-type]
