"""Workspace discovery: manifests, glob expansion, catalog and selection."""

from wsrun.workspace.catalog import PackageCatalog, load_packages, select_packages
from wsrun.workspace.globbing import expand_pattern, match_glob
from wsrun.workspace.manifest import PackageManifest, load_package, read_manifest
from wsrun.workspace.resolver import WorkspaceResolver

__all__ = [
    "PackageCatalog",
    "PackageManifest",
    "WorkspaceResolver",
    "expand_pattern",
    "load_package",
    "load_packages",
    "match_glob",
    "read_manifest",
    "select_packages",
]
