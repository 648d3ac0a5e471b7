"""Minimal ``*`` / ``**`` globbing for workspace patterns and selection filters.

Two flavours share the same wildcard vocabulary:

- :func:`match_glob` matches a whole string: ``*`` is any run of characters
  except ``/`` and ``**`` is any run of characters including ``/``.
- :func:`expand_pattern` walks the filesystem one path segment at a time:
  ``*`` is any single directory and ``**`` is zero or more directories.
"""

import os
import posixpath
import re
from collections.abc import Callable, Iterable
from functools import lru_cache
from pathlib import Path

_SPECIAL_CHARS = re.compile(r"[-/\\^$+?.()|\[\]{}]")


@lru_cache(maxsize=256)
def _compile(glob: str) -> re.Pattern[str]:
    escaped = _SPECIAL_CHARS.sub(lambda m: "\\" + m.group(0), glob)
    # Placeholder keeps the single-star pass from touching "**"
    escaped = escaped.replace("**", "\0").replace("*", "[^/]*").replace("\0", ".*")
    return re.compile(f"^{escaped}$")


def match_glob(value: str, glob: str) -> bool:
    """Return True if ``glob`` matches the whole of ``value``.

    Examples
    --------
    >>> match_glob("plugin-x", "plugin-*")
    True
    >>> match_glob("@scope/pkg", "@scope/*")
    True
    >>> match_glob("packages/a/b", "packages/*")
    False
    >>> match_glob("packages/a/b", "packages/**")
    True
    """
    return _compile(glob).match(value) is not None


def normalize_pattern(pattern: str) -> list[str]:
    """Split a workspace pattern into path segments.

    Leading ``./``, duplicate slashes and ``.`` segments are dropped; ``..``
    segments are folded where possible.

    Examples
    --------
    >>> normalize_pattern("./packages/*")
    ['packages', '*']
    >>> normalize_pattern("apps//**/")
    ['apps', '**']
    """
    normalized = posixpath.normpath(pattern.replace("\\", "/"))
    return [seg for seg in normalized.split("/") if seg not in ("", ".")]


def probe_directory(path: Path) -> bool:
    try:
        return path.is_dir()
    except OSError:
        return False


def safe_list_dir(path: Path) -> list[str]:
    try:
        return sorted(os.listdir(path))
    except OSError:
        return []


def expand_pattern(
    root: Path,
    pattern: str,
    is_directory: Callable[[Path], bool] = probe_directory,
    list_entries: Callable[[Path], Iterable[str]] = safe_list_dir,
) -> set[Path]:
    """Expand one workspace pattern into the directories it matches under ``root``.

    The walk is depth first. A literal segment requires an existing
    subdirectory, ``*`` fans out over immediate subdirectories, and ``**``
    matches the current directory and every descendant, continuing with the
    remaining segments from each of them. Listing failures count as "no
    entries".

    Parameters
    ----------
    root : Path
        Directory the pattern is relative to
    pattern : str
        ``/``-separated pattern such as ``packages/*`` or ``apps/**``
    is_directory : Callable[[Path], bool]
        Filesystem probe, replaceable for tests
    list_entries : Callable[[Path], Iterable[str]]
        Directory listing that returns an empty iterable on error

    Returns
    -------
    set[Path]
        Matching directories (manifest presence is not checked here)
    """
    segments = normalize_pattern(pattern)
    matches: set[Path] = set()
    visited: set[tuple[Path, int]] = set()

    def subdirectories(directory: Path) -> list[Path]:
        children = (directory / entry for entry in list_entries(directory))
        return [child for child in children if is_directory(child)]

    def walk(directory: Path, index: int) -> None:
        # "**" can reach the same (directory, index) pair along several paths
        if (directory, index) in visited:
            return
        visited.add((directory, index))

        if index == len(segments):
            matches.add(directory)
            return

        segment = segments[index]
        if segment == "**":
            walk(directory, index + 1)
            for child in subdirectories(directory):
                walk(child, index)
        elif segment == "*":
            for child in subdirectories(directory):
                walk(child, index + 1)
        else:
            candidate = directory / segment
            if is_directory(candidate):
                walk(candidate, index + 1)

    if is_directory(root):
        walk(root, 0)
    return matches
