"""Package records and the options that shape the dependency graph."""

import sys
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType

_EMPTY: Mapping[str, str] = MappingProxyType({})


def _freeze(mapping: Mapping[str, str] | None) -> Mapping[str, str]:
    if not mapping:
        return _EMPTY
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True, slots=True)
class DependencyDeclarations:
    """The four name -> version-range mappings a manifest may declare.

    Version ranges are carried verbatim and never interpreted; only the
    names take part in ordering.
    """

    dependencies: Mapping[str, str] = field(default_factory=dict)
    dev_dependencies: Mapping[str, str] = field(default_factory=dict)
    peer_dependencies: Mapping[str, str] = field(default_factory=dict)
    optional_dependencies: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "dependencies", _freeze(self.dependencies))
        object.__setattr__(self, "dev_dependencies", _freeze(self.dev_dependencies))
        object.__setattr__(self, "peer_dependencies", _freeze(self.peer_dependencies))
        object.__setattr__(self, "optional_dependencies", _freeze(self.optional_dependencies))

    def names(self, options: "EdgeOptions") -> frozenset[str]:
        """Return the effective dependency names under ``options``.

        ``dependencies`` and ``optionalDependencies`` always count; dev and
        peer dependencies count only when the matching toggle is on.

        Examples
        --------
        >>> decl = DependencyDeclarations(
        ...     dependencies={"a": "^1"}, dev_dependencies={"b": "*"}
        ... )
        >>> sorted(decl.names(EdgeOptions(include_dev=False)))
        ['a']
        >>> sorted(decl.names(EdgeOptions()))
        ['a', 'b']
        """
        names = set(self.dependencies) | set(self.optional_dependencies)
        if options.include_dev:
            names.update(self.dev_dependencies)
        if options.include_peer:
            names.update(self.peer_dependencies)
        return frozenset(names)


@dataclass(frozen=True, slots=True)
class EdgeOptions:
    """Which optional dependency categories produce ordering edges."""

    include_dev: bool = True
    include_peer: bool = True

    def describe(self) -> str:
        """Human readable list of the categories in use, e.g. ``deps + optional + dev``."""
        parts = ["deps", "optional"]
        if self.include_dev:
            parts.append("dev")
        if self.include_peer:
            parts.append("peer")
        return " + ".join(parts)


@dataclass(frozen=True, slots=True)
class PackageRecord:
    """One workspace member, as loaded from its manifest.

    Attributes
    ----------
    name : str
        Unique package name; the key for graph nodes and selection
    directory : Path
        Absolute package directory, used as the working directory of its task
    scripts : Mapping[str, str]
        Script name -> command string (opaque to wsrun)
    declarations : DependencyDeclarations
        Declared dependencies in all four categories
    """

    name: str
    directory: Path
    scripts: Mapping[str, str] = field(default_factory=dict)
    declarations: DependencyDeclarations = field(default_factory=DependencyDeclarations)

    def __post_init__(self) -> None:
        object.__setattr__(self, "name", sys.intern(self.name))
        object.__setattr__(self, "scripts", _freeze(self.scripts))

    def has_script(self, script: str) -> bool:
        """Whether this package defines a non-empty command for ``script``."""
        return bool(self.scripts.get(script))

    def relative_directory(self, root: Path) -> str:
        """Directory relative to ``root`` with POSIX separators, or absolute if outside."""
        try:
            return self.directory.relative_to(root).as_posix()
        except ValueError:
            return self.directory.as_posix()


@dataclass(frozen=True, slots=True)
class SelectionCriteria:
    """Include/exclude globs matched against a package's name or directory."""

    only: tuple[str, ...] = ()
    exclude: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "only", tuple(self.only))
        object.__setattr__(self, "exclude", tuple(self.exclude))
