"""Package catalog: load records for resolved directories and apply selection."""

from collections.abc import Callable, Iterable, Iterator, Mapping
from pathlib import Path

from wsrun.domain.package import PackageRecord, SelectionCriteria
from wsrun.exceptions import ManifestError, NoPackagesSelectedError
from wsrun.logging import get_logger
from wsrun.workspace.globbing import match_glob
from wsrun.workspace.manifest import load_package

logger = get_logger(__name__)


def load_packages(
    directories: Iterable[Path],
    loader: Callable[[Path], PackageRecord] = load_package,
) -> list[PackageRecord]:
    """Load a record per directory, in sorted directory order.

    Directories whose manifest fails to load are skipped with a warning.
    When two directories declare the same name, the first one wins.
    """
    records: list[PackageRecord] = []
    seen: dict[str, Path] = {}

    for directory in sorted(directories):
        try:
            record = loader(directory)
        except ManifestError as e:
            logger.warning("Skipping {dir}: {reason}", dir=directory, reason=e.reason)
            continue

        if record.name in seen:
            logger.warning(
                "Duplicate package name '{name}' in {dir} (already loaded from {first}); skipping",
                name=record.name,
                dir=directory,
                first=seen[record.name],
            )
            continue
        seen[record.name] = directory
        records.append(record)

    return records


def _candidates(record: PackageRecord, root: Path | None) -> list[str]:
    values = [record.name, record.directory.as_posix()]
    if root is not None:
        values.append(record.relative_directory(root))
    return values


def _strip_dot_prefix(glob: str) -> str:
    return glob[2:] if glob.startswith("./") else glob


def matches_any(record: PackageRecord, globs: Iterable[str], root: Path | None = None) -> bool:
    """Whether any glob matches the package name or its directory.

    The directory is tried both absolute and relative to ``root``; a leading
    ``./`` in a glob is ignored for the relative form.
    """
    candidates = _candidates(record, root)
    for glob in globs:
        relative_glob = _strip_dot_prefix(glob)
        if any(match_glob(value, glob) or match_glob(value, relative_glob) for value in candidates):
            return True
    return False


def is_selected(
    record: PackageRecord, criteria: SelectionCriteria, root: Path | None = None
) -> bool:
    included = not criteria.only or matches_any(record, criteria.only, root)
    return included and not matches_any(record, criteria.exclude, root)


def select_packages(
    records: Iterable[PackageRecord],
    criteria: SelectionCriteria,
    root: Path | None = None,
) -> list[PackageRecord]:
    """Narrow ``records`` to the packages matching ``criteria``.

    Raises
    ------
    NoPackagesSelectedError
        If nothing is left after filtering
    """
    selected = [r for r in records if is_selected(r, criteria, root)]
    if not selected:
        raise NoPackagesSelectedError(criteria.only, criteria.exclude)

    logger.debug(
        "Selected {count} packages: {names}",
        count=len(selected),
        names=", ".join(r.name for r in selected),
    )
    return selected


class PackageCatalog(Mapping[str, PackageRecord]):
    """Read-only name -> record lookup over the packages of one run."""

    def __init__(self, records: Iterable[PackageRecord], root: Path | None = None) -> None:
        self._records = {r.name: r for r in records}
        self.root = root

    @classmethod
    def load(cls, directories: Iterable[Path], root: Path | None = None) -> "PackageCatalog":
        return cls(load_packages(directories), root=root)

    def select(self, criteria: SelectionCriteria) -> "PackageCatalog":
        """A new catalog holding only the selected packages."""
        return PackageCatalog(select_packages(self.values(), criteria, self.root), root=self.root)

    def __getitem__(self, name: str) -> PackageRecord:
        return self._records[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __repr__(self) -> str:
        return f"PackageCatalog({sorted(self._records)!r})"
