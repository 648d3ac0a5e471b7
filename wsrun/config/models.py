"""Configuration data models for wsrun."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

from wsrun.domain.package import EdgeOptions, SelectionCriteria
from wsrun.exceptions import ValidationError
from wsrun.orchestration.engine import DEFAULT_RUNNER
from wsrun.orchestration.models import ExecutionMode


def detect_cpu_count() -> int:
    """Logical CPUs available to this process, at least 1."""
    # process_cpu_count honours CPU affinity; new in Python 3.13
    counter = getattr(os, "process_cpu_count", os.cpu_count)
    return max(1, counter() or 1)


def parse_jobs(value: str | int) -> int:
    """Parse a worker count, rejecting non-integers and values below 1.

    Examples
    --------
    >>> parse_jobs("4")
    4
    >>> parse_jobs("0")
    Traceback (most recent call last):
    ...
    wsrun.exceptions.ValidationError: Validation failed for 'jobs': must be at least 1 (got '0')
    """
    if isinstance(value, bool):
        raise ValidationError("jobs", "must be a positive integer", value=value)
    if isinstance(value, int):
        jobs = value
    else:
        try:
            jobs = int(str(value).strip())
        except ValueError:
            raise ValidationError("jobs", "must be a positive integer", value=value) from None
    if jobs < 1:
        raise ValidationError("jobs", "must be at least 1", value=value)
    return jobs


@dataclass(frozen=True, slots=True)
class LoggingConfig:
    """Logging configuration for wsrun.

    Attributes
    ----------
    level : str, default="INFO"
        Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    format : str, default="structured"
        Output format (console, json, structured, rich)
    output_file : str | None, default=None
        Optional file path to write JSON logs to

    Examples
    --------
    TOML configuration (``wsrun.toml``):

    ```toml
    [logging]
    level = "DEBUG"
    format = "rich"
    ```

    Environment variable overrides:

    ```bash
    export WSRUN_LOG_LEVEL=DEBUG
    export WSRUN_LOG_FORMAT=json
    ```
    """

    level: Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["console", "json", "structured", "rich"] = "structured"
    output_file: str | None = None

    def __post_init__(self) -> None:
        level = str(self.level).upper()
        if level not in ("TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValidationError("logging.level", "unknown log level", value=self.level)
        if self.format not in ("console", "json", "structured", "rich"):
            raise ValidationError("logging.format", "unknown log format", value=self.format)
        object.__setattr__(self, "level", level)


@dataclass(frozen=True, slots=True)
class RunSettings:
    """Fully resolved settings for one wsrun invocation.

    Attributes
    ----------
    root : Path
        Workspace root holding the root ``package.json``
    script : str
        Script to run in each package (default ``build``)
    jobs : int
        Worker pool size per tier, defaults to the logical CPU count
    include_dev, include_peer : bool
        Whether dev/peer dependencies create ordering edges
    only, exclude : tuple[str, ...]
        Selection globs matched against package name or directory
    mode : ExecutionMode
        Parallel-by-tier (default) or sequential
    print_only : bool
        Print the plan and stop before running anything
    debug : bool
        Print configuration, plan and command preview
    runner : str
        Command prefix the script name is appended to
    logging : LoggingConfig
        Logging setup
    """

    root: Path = field(default_factory=Path.cwd)
    script: str = "build"
    jobs: int = field(default_factory=detect_cpu_count)
    include_dev: bool = True
    include_peer: bool = True
    only: tuple[str, ...] = ()
    exclude: tuple[str, ...] = ()
    mode: ExecutionMode = ExecutionMode.PARALLEL
    print_only: bool = False
    debug: bool = False
    runner: str = DEFAULT_RUNNER
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def __post_init__(self) -> None:
        if not self.script or not self.script.strip():
            raise ValidationError("script", "must not be empty")
        if not self.runner or not self.runner.strip():
            raise ValidationError("runner", "must not be empty")
        object.__setattr__(self, "jobs", parse_jobs(self.jobs))
        object.__setattr__(self, "root", Path(self.root).resolve())
        object.__setattr__(self, "only", tuple(self.only))
        object.__setattr__(self, "exclude", tuple(self.exclude))
        object.__setattr__(self, "mode", ExecutionMode(self.mode))

    @property
    def sequential(self) -> bool:
        return self.mode is ExecutionMode.SEQUENTIAL

    @property
    def edge_options(self) -> EdgeOptions:
        return EdgeOptions(include_dev=self.include_dev, include_peer=self.include_peer)

    @property
    def selection(self) -> SelectionCriteria:
        return SelectionCriteria(only=self.only, exclude=self.exclude)

    def describe_mode(self) -> str:
        if self.sequential:
            return "sequential"
        return f"parallel by tier (jobs={self.jobs})"

    def to_dict(self) -> dict[str, Any]:
        """Plain representation for ``--debug`` output."""
        return {
            "root": str(self.root),
            "script": self.script,
            "mode": str(self.mode),
            "jobs": self.jobs,
            "edges": self.edge_options.describe(),
            "only": list(self.only),
            "exclude": list(self.exclude),
            "runner": self.runner,
            "print_only": self.print_only,
            "log_level": self.logging.level,
        }
