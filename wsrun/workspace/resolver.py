"""Resolve the root manifest's workspace patterns into package directories."""

from collections.abc import Callable, Iterable
from pathlib import Path

from wsrun.exceptions import ConfigurationError, ManifestError
from wsrun.logging import get_logger
from wsrun.workspace.globbing import expand_pattern, probe_directory, safe_list_dir
from wsrun.workspace.manifest import PackageManifest, manifest_path, read_manifest

logger = get_logger(__name__)


class WorkspaceResolver:
    """Expands workspace glob patterns into directories holding a loadable manifest.

    Filesystem access goes through ``is_directory``, ``list_entries`` and
    ``read`` so that tests can substitute an in-memory tree.

    Examples
    --------
    Example usage::

        resolver = WorkspaceResolver(Path("/repo"))
        dirs = resolver.resolve(["packages/*", "apps/**"])
    """

    def __init__(
        self,
        root: Path,
        is_directory: Callable[[Path], bool] = probe_directory,
        list_entries: Callable[[Path], Iterable[str]] = safe_list_dir,
        read: Callable[[Path], PackageManifest] = read_manifest,
    ) -> None:
        self.root = root.resolve()
        self._is_directory = is_directory
        self._list_entries = list_entries
        self._read = read

    def root_manifest(self) -> PackageManifest:
        """Read the workspace root manifest.

        Raises
        ------
        ConfigurationError
            If the root manifest is missing or malformed
        """
        path = manifest_path(self.root)
        try:
            return self._read(path)
        except ManifestError as e:
            raise ConfigurationError(str(path), e.reason) from e

    def patterns(self, manifest: PackageManifest | None = None) -> list[str]:
        """Workspace patterns from the root manifest; non-string entries are skipped."""
        manifest = manifest or self.root_manifest()
        patterns: list[str] = []
        for pattern in manifest.workspace_patterns():
            if not isinstance(pattern, str):
                logger.warning("Skipping invalid workspace pattern: {pattern!r}", pattern=pattern)
                continue
            patterns.append(pattern)
        return patterns

    def has_manifest(self, directory: Path) -> bool:
        try:
            self._read(manifest_path(directory))
        except ManifestError:
            return False
        return True

    def resolve(self, patterns: Iterable[str]) -> set[Path]:
        """Union of directories matched by ``patterns`` that contain a valid manifest."""
        directories: set[Path] = set()
        for pattern in patterns:
            matched = expand_pattern(
                self.root,
                pattern,
                is_directory=self._is_directory,
                list_entries=self._list_entries,
            )
            kept = {d for d in matched if self.has_manifest(d)}
            logger.debug(
                "Pattern {pattern!r} matched {matched} directories, {kept} with a manifest",
                pattern=pattern,
                matched=len(matched),
                kept=len(kept),
            )
            directories |= kept
        return directories

    def discover(self) -> set[Path]:
        """Resolve the directories declared by the root manifest."""
        return self.resolve(self.patterns())
