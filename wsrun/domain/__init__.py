"""Domain layer exports: package records, dependency graph and execution plan."""

from wsrun.domain.graph import (
    DependencyGraph,
    ExecutionPlan,
    build_dependency_graph,
    compute_tiers,
    find_cycle,
)
from wsrun.domain.package import (
    DependencyDeclarations,
    EdgeOptions,
    PackageRecord,
    SelectionCriteria,
)

__all__ = [
    # Package model
    "DependencyDeclarations",
    "EdgeOptions",
    "PackageRecord",
    "SelectionCriteria",
    # Graph and scheduling
    "DependencyGraph",
    "ExecutionPlan",
    "build_dependency_graph",
    "compute_tiers",
    "find_cycle",
]
