"""wsrun - dependency-ordered script runner for JavaScript workspaces.

Reads the ``workspaces`` globs of a root ``package.json``, orders the
member packages by their declared dependencies and runs one script in each
of them, tier by tier on a bounded worker pool or strictly one at a time.
"""

# Version is defined in pyproject.toml and read dynamically
try:
    from importlib.metadata import version

    __version__ = version("wsrun")
except Exception:
    __version__ = "0.0.0.dev0"  # Fallback for development installs

from wsrun.config import RunSettings, load_settings
from wsrun.domain import (
    DependencyGraph,
    EdgeOptions,
    ExecutionPlan,
    PackageRecord,
    SelectionCriteria,
    build_dependency_graph,
    compute_tiers,
)
from wsrun.exceptions import (
    ConfigurationError,
    NoPackagesSelectedError,
    TaskFailedError,
    WorkspaceNotFoundError,
    WsrunError,
)
from wsrun.orchestration import ExecutionEngine, ExecutionMode, RunReport
from wsrun.pipeline import WorkspacePlan, build_workspace_plan, execute_plan, run_workspace
from wsrun.workspace import WorkspaceResolver

__all__ = [
    "__version__",
    # Configuration
    "RunSettings",
    "load_settings",
    # Domain
    "DependencyGraph",
    "EdgeOptions",
    "ExecutionPlan",
    "PackageRecord",
    "SelectionCriteria",
    "build_dependency_graph",
    "compute_tiers",
    # Execution
    "ExecutionEngine",
    "ExecutionMode",
    "RunReport",
    # Pipeline
    "WorkspacePlan",
    "WorkspaceResolver",
    "build_workspace_plan",
    "execute_plan",
    "run_workspace",
    # Errors
    "ConfigurationError",
    "NoPackagesSelectedError",
    "TaskFailedError",
    "WorkspaceNotFoundError",
    "WsrunError",
]
