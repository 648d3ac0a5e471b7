"""Exception hierarchy for wsrun.

Every error raised on purpose by wsrun inherits from WsrunError, so callers
(and the CLI) can catch a single base class.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path

    from wsrun.orchestration.models import RunReport, TaskOutcome

# ============================================================================
# Base Exception
# ============================================================================


class WsrunError(Exception):
    """Base exception for all wsrun errors."""

    pass


# ============================================================================
# Configuration & Validation Errors
# ============================================================================


class ConfigurationError(WsrunError):
    """Raised when configuration is invalid or missing.

    Examples
    --------
    Example usage::

        raise ConfigurationError("package.json", "workspaces field must be a list")
    """

    def __init__(self, component: str, reason: str) -> None:
        super().__init__(f"Configuration error in '{component}': {reason}")
        self.component = component
        self.reason = reason


class ValidationError(WsrunError):
    """A single setting holds a value wsrun cannot use.

    ``value`` is echoed in the message when given.

    Examples
    --------
    Example usage::

        raise ValidationError("jobs", "must be a positive integer", value="abc")
    """

    def __init__(self, field: str, constraint: str, value: object = None) -> None:
        if value is not None:
            msg = f"Validation failed for '{field}': {constraint} (got {value!r})"
        else:
            msg = f"Validation failed for '{field}': {constraint}"
        super().__init__(msg)
        self.field = field
        self.constraint = constraint
        self.value = value


class ManifestError(WsrunError):
    """Raised when a package manifest cannot be read or is malformed."""

    def __init__(self, path: Path | str, reason: str) -> None:
        super().__init__(f"Failed to read manifest at {path}: {reason}")
        self.path = path
        self.reason = reason


# ============================================================================
# Discovery Errors
# ============================================================================


class DiscoveryError(WsrunError):
    """Raised when the run cannot produce a non-empty set of packages."""

    pass


class WorkspaceNotFoundError(DiscoveryError):
    """Raised when no workspace directory matched the root manifest patterns."""

    def __init__(self, manifest: Path | str) -> None:
        super().__init__(f"No workspaces found in {manifest}")
        self.manifest = manifest


class NoPackagesSelectedError(DiscoveryError):
    """Raised when the selection filter leaves no package to schedule."""

    def __init__(self, only: tuple[str, ...] = (), exclude: tuple[str, ...] = ()) -> None:
        msg = "No packages matched selection."
        if only:
            msg += f" only={list(only)}"
        if exclude:
            msg += f" exclude={list(exclude)}"
        super().__init__(msg)
        self.only = only
        self.exclude = exclude


# ============================================================================
# Execution Errors
# ============================================================================


class TaskFailedError(WsrunError):
    """Raised when a package script exits non-zero and the run is aborted.

    ``outcome`` is the first failure recorded; ``failures`` holds every
    failure collected before the abort (more than one only in tiered mode).
    ``report`` is the engine's report up to the abort, when available.
    """

    def __init__(
        self,
        outcome: TaskOutcome,
        failures: list[TaskOutcome] | None = None,
        report: RunReport | None = None,
    ) -> None:
        super().__init__(f"Failed in {outcome.directory} with exit code {outcome.exit_code}")
        self.outcome = outcome
        self.failures = failures if failures is not None else [outcome]
        self.report = report
