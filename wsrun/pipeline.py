"""Top-level run pipeline: resolve, load, select, graph, plan, execute.

Data only flows forward through these stages; nothing is cached between
runs.
"""

import asyncio
from dataclasses import dataclass

from wsrun.config.models import RunSettings
from wsrun.domain.graph import DependencyGraph, ExecutionPlan, build_dependency_graph, compute_tiers
from wsrun.drivers.subprocess_runner import SubprocessRunner
from wsrun.exceptions import WorkspaceNotFoundError
from wsrun.logging import get_logger
from wsrun.orchestration.engine import ExecutionEngine
from wsrun.orchestration.models import RunReport
from wsrun.orchestration.observers import Observer
from wsrun.ports.process import ProcessRunner
from wsrun.workspace.catalog import PackageCatalog
from wsrun.workspace.manifest import manifest_path
from wsrun.workspace.resolver import WorkspaceResolver

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class WorkspacePlan:
    """Everything computed before execution starts.

    Attributes
    ----------
    settings : RunSettings
        Settings the plan was built with
    packages : PackageCatalog
        Selected packages only
    graph : DependencyGraph
        Ordering edges between selected packages
    plan : ExecutionPlan
        Tiers partitioning the selected packages
    """

    settings: RunSettings
    packages: PackageCatalog
    graph: DependencyGraph
    plan: ExecutionPlan

    def runnable(self, name: str) -> bool:
        return self.packages[name].has_script(self.settings.script)


def build_workspace_plan(
    settings: RunSettings, resolver: WorkspaceResolver | None = None
) -> WorkspacePlan:
    """Resolve the workspace and compute the execution plan.

    Raises
    ------
    ConfigurationError
        If the root manifest cannot be read
    WorkspaceNotFoundError
        If no workspace directory holds a loadable manifest
    NoPackagesSelectedError
        If the selection filter leaves nothing to schedule
    """
    resolver = resolver or WorkspaceResolver(settings.root)
    manifest = resolver.root_manifest()
    directories = resolver.resolve(resolver.patterns(manifest))
    if not directories:
        raise WorkspaceNotFoundError(manifest_path(resolver.root))

    catalog = PackageCatalog.load(directories, root=resolver.root)
    if not catalog:
        raise WorkspaceNotFoundError(manifest_path(resolver.root))
    logger.debug("Loaded {count} workspace packages", count=len(catalog))

    # Selection happens before any edge exists so excluded packages never become nodes
    selected = catalog.select(settings.selection)
    graph = build_dependency_graph(selected.values(), settings.edge_options)
    plan = compute_tiers(graph)

    return WorkspacePlan(settings=settings, packages=selected, graph=graph, plan=plan)


def create_engine(
    settings: RunSettings,
    runner: ProcessRunner | None = None,
    observer: Observer | None = None,
) -> ExecutionEngine:
    return ExecutionEngine(
        runner or SubprocessRunner(),
        settings.script,
        jobs=settings.jobs,
        runner_command=settings.runner,
        observer=observer,
    )


async def execute_plan(
    workspace_plan: WorkspacePlan,
    runner: ProcessRunner | None = None,
    observer: Observer | None = None,
) -> RunReport:
    """Run the script for every runnable package of ``workspace_plan``.

    Raises
    ------
    TaskFailedError
        When a package script fails (see :class:`ExecutionEngine`)
    """
    settings = workspace_plan.settings
    engine = create_engine(settings, runner, observer)
    return await engine.run(workspace_plan.plan, workspace_plan.packages, settings.mode)


def run_workspace(
    settings: RunSettings,
    runner: ProcessRunner | None = None,
    observer: Observer | None = None,
) -> RunReport:
    """Build the plan and execute it, blocking until the run ends.

    With ``settings.print_only`` the plan is built but nothing runs and an
    empty report is returned.
    """
    workspace_plan = build_workspace_plan(settings)
    if settings.print_only:
        return RunReport(mode=settings.mode)
    return asyncio.run(execute_plan(workspace_plan, runner, observer))
