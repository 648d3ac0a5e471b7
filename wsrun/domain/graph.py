"""Dependency graph construction and tiered (level-order) scheduling.

The graph is kept as flat maps keyed by package name: ``edges`` maps a
dependency to the set of its dependents. Tiers are computed with Kahn's
algorithm one level at a time; when no node is free of unfinished
prerequisites, whatever remains is emitted as one final tier.
"""

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum, auto
from types import MappingProxyType

from wsrun.domain.package import EdgeOptions, PackageRecord
from wsrun.logging import get_logger

logger = get_logger(__name__)

_EMPTY_SET: frozenset[str] = frozenset()


class Color(Enum):
    """Colors for DFS cycle detection algorithm."""

    WHITE = auto()  # Unvisited
    GRAY = auto()  # Currently being processed (in recursion stack)
    BLACK = auto()  # Completely processed


@dataclass(frozen=True, slots=True)
class DependencyGraph:
    """Directed graph of ``dependency -> dependent`` edges over selected packages.

    Invariant: every edge endpoint is a member of ``nodes``.
    """

    nodes: frozenset[str]
    edges: Mapping[str, frozenset[str]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        nodes = frozenset(self.nodes)
        edges: dict[str, frozenset[str]] = {}
        for dep, dependents in self.edges.items():
            if dep not in nodes:
                raise ValueError(f"Edge source '{dep}' is not a graph node")
            outside = set(dependents) - nodes
            if outside:
                raise ValueError(f"Edge targets {sorted(outside)} of '{dep}' are not graph nodes")
            if dependents:
                edges[dep] = frozenset(dependents)
        object.__setattr__(self, "nodes", nodes)
        object.__setattr__(self, "edges", MappingProxyType(edges))

    def dependents(self, name: str) -> frozenset[str]:
        """Packages that must wait for ``name``."""
        return self.edges.get(name, _EMPTY_SET)

    def dependencies(self, name: str) -> frozenset[str]:
        """Selected packages ``name`` depends on."""
        return frozenset(dep for dep, outs in self.edges.items() if name in outs)

    def indegrees(self) -> dict[str, int]:
        """Number of selected dependencies per node."""
        indegree = dict.fromkeys(self.nodes, 0)
        for outs in self.edges.values():
            for dependent in outs:
                indegree[dependent] += 1
        return indegree

    def edge_list(self) -> list[tuple[str, str]]:
        """All edges as sorted ``(dependency, dependent)`` pairs."""
        return sorted((dep, out) for dep, outs in self.edges.items() for out in outs)

    def __len__(self) -> int:
        return len(self.nodes)

    def __contains__(self, name: object) -> bool:
        return name in self.nodes


def build_dependency_graph(
    packages: Iterable[PackageRecord], options: EdgeOptions | None = None
) -> DependencyGraph:
    """Build the graph of ordering edges between the given (selected) packages.

    Dependencies on packages outside the set are assumed satisfied and
    dropped, as are self-dependencies.

    Examples
    --------
    >>> from pathlib import Path
    >>> from wsrun.domain.package import DependencyDeclarations
    >>> a = PackageRecord("a", Path("/ws/a"))
    >>> b = PackageRecord(
    ...     "b", Path("/ws/b"),
    ...     declarations=DependencyDeclarations(dependencies={"a": "*", "left-pad": "^1"}),
    ... )
    >>> build_dependency_graph([a, b]).edge_list()
    [('a', 'b')]
    """
    options = options or EdgeOptions()
    packages = list(packages)
    names = frozenset(p.name for p in packages)
    edges: dict[str, set[str]] = {}

    for package in packages:
        for dep in package.declarations.names(options):
            if dep == package.name or dep not in names:
                continue
            edges.setdefault(dep, set()).add(package.name)

    return DependencyGraph(nodes=names, edges={k: frozenset(v) for k, v in edges.items()})


@dataclass(frozen=True, slots=True)
class ExecutionPlan:
    """Ordered tiers that partition the selected packages.

    ``cycle`` holds the members of the fallback tier when a dependency cycle
    was found; it is empty for acyclic graphs. When non-empty it is always
    the last tier.
    """

    tiers: tuple[frozenset[str], ...]
    cycle: frozenset[str] = frozenset()

    def __iter__(self) -> Iterator[frozenset[str]]:
        return iter(self.tiers)

    def __len__(self) -> int:
        return len(self.tiers)

    @property
    def has_cycle(self) -> bool:
        return bool(self.cycle)

    def sequential_order(self) -> list[str]:
        """Tiers flattened in order; names sorted within a tier for stable output."""
        return [name for tier in self.tiers for name in sorted(tier)]

    def tier_index(self, name: str) -> int:
        """Zero-based index of the tier containing ``name``."""
        for index, tier in enumerate(self.tiers):
            if name in tier:
                return index
        raise KeyError(name)

    def members(self) -> frozenset[str]:
        return frozenset().union(*self.tiers) if self.tiers else frozenset()


def find_cycle(graph: DependencyGraph, among: Iterable[str] | None = None) -> list[str] | None:
    """Find one dependency cycle, returned as a closed path ``[a, b, ..., a]``.

    Parameters
    ----------
    graph : DependencyGraph
        Graph to search
    among : Iterable[str] | None
        Restrict the search to these nodes (defaults to all nodes)

    Returns
    -------
    list[str] | None
        The cycle path following ``dependency -> dependent`` edges, or None
    """
    scope = frozenset(among) if among is not None else graph.nodes
    colors = dict.fromkeys(sorted(scope), Color.WHITE)

    def dfs(node: str, path: list[str]) -> list[str] | None:
        if colors[node] == Color.GRAY:
            # Back edge
            return path[path.index(node) :] + [node]
        if colors[node] == Color.BLACK:
            return None

        colors[node] = Color.GRAY
        path.append(node)
        for dependent in sorted(graph.dependents(node)):
            if dependent in colors and (result := dfs(dependent, path)):
                return result
        path.pop()
        colors[node] = Color.BLACK
        return None

    for node in colors:
        if colors[node] == Color.WHITE and (result := dfs(node, [])):
            return result
    return None


def compute_tiers(graph: DependencyGraph) -> ExecutionPlan:
    """Compute execution tiers with a level-order Kahn's algorithm.

    Each tier contains every remaining node whose selected dependencies all
    sit in earlier tiers. If at some point no remaining node qualifies, the
    remaining nodes contain a cycle: they are emitted together as the final
    tier with a warning, and no ordering among them is guaranteed.

    Examples
    --------
    >>> g = DependencyGraph(
    ...     nodes=frozenset({"A", "B", "C", "D"}),
    ...     edges={"A": frozenset({"B", "C"}), "B": frozenset({"C"})},
    ... )
    >>> [sorted(t) for t in compute_tiers(g)]
    [['A', 'D'], ['B'], ['C']]
    """
    indegree = graph.indegrees()
    remaining = set(graph.nodes)
    tiers: list[frozenset[str]] = []

    while remaining:
        ready = frozenset(n for n in remaining if indegree[n] == 0)

        if not ready:
            cycle = find_cycle(graph, remaining)
            path = " -> ".join(cycle) if cycle else "unknown"
            logger.warning(
                "Dependency cycle detected ({path}); placing {count} remaining packages "
                "in a final tier, ordering among them is not guaranteed: {members}",
                path=path,
                count=len(remaining),
                members=", ".join(sorted(remaining)),
            )
            leftover = frozenset(remaining)
            tiers.append(leftover)
            return ExecutionPlan(tiers=tuple(tiers), cycle=leftover)

        tiers.append(ready)
        remaining.difference_update(ready)
        for node in ready:
            for dependent in graph.dependents(node):
                indegree[dependent] -= 1

    logger.debug("Computed {count} tiers for {nodes} packages", count=len(tiers), nodes=len(graph))
    return ExecutionPlan(tiers=tuple(tiers))
