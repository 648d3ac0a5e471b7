"""Reading ``package.json`` manifests.

Only the fields the orchestrator needs are modelled; anything else in the
file is accepted and ignored.
"""

import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from wsrun.domain.package import DependencyDeclarations, PackageRecord
from wsrun.exceptions import ManifestError

MANIFEST_FILENAME = "package.json"


class PackageManifest(BaseModel):
    """Subset of a ``package.json`` document."""

    model_config = ConfigDict(extra="allow", populate_by_name=True, frozen=True)

    name: str
    version: Any = None
    private: Any = None
    workspaces: Any = None
    scripts: dict[str, str] = Field(default_factory=dict)
    dependencies: dict[str, str] = Field(default_factory=dict)
    dev_dependencies: dict[str, str] = Field(default_factory=dict, alias="devDependencies")
    peer_dependencies: dict[str, str] = Field(default_factory=dict, alias="peerDependencies")
    optional_dependencies: dict[str, str] = Field(
        default_factory=dict, alias="optionalDependencies"
    )

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("name must not be empty")
        return value

    @field_validator(
        "scripts",
        "dependencies",
        "dev_dependencies",
        "peer_dependencies",
        "optional_dependencies",
        mode="before",
    )
    @classmethod
    def _string_entries_only(cls, value: Any) -> dict[str, str]:
        # Entries of the wrong shape carry no ordering information
        if not isinstance(value, dict):
            return {}
        return {k: v for k, v in value.items() if isinstance(v, str)}

    def declarations(self) -> DependencyDeclarations:
        return DependencyDeclarations(
            dependencies=self.dependencies,
            dev_dependencies=self.dev_dependencies,
            peer_dependencies=self.peer_dependencies,
            optional_dependencies=self.optional_dependencies,
        )

    def workspace_patterns(self) -> list[Any]:
        """Raw ``workspaces`` entries, from either the list or the ``{packages: [...]}`` form."""
        if isinstance(self.workspaces, list):
            return list(self.workspaces)
        if isinstance(self.workspaces, dict):
            packages = self.workspaces.get("packages") or []
            return list(packages) if isinstance(packages, list) else []
        return []


def manifest_path(directory: Path) -> Path:
    return directory / MANIFEST_FILENAME


def read_manifest(path: Path) -> PackageManifest:
    """Read and validate a manifest file.

    Raises
    ------
    ManifestError
        If the file cannot be read or decoded, is not a JSON object, or
        lacks a non-empty string ``name``
    """
    try:
        content = path.read_bytes()
    except OSError as e:
        raise ManifestError(path, e.strerror or str(e)) from e

    try:
        data = json.loads(content.decode("utf-8"))
    except UnicodeDecodeError as e:
        raise ManifestError(path, f"not valid UTF-8: {e.reason}") from e
    except json.JSONDecodeError as e:
        raise ManifestError(path, f"invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ManifestError(path, f"expected a JSON object, got {type(data).__name__}")
    if not isinstance(data.get("name"), str):
        raise ManifestError(path, "missing or invalid name field")

    try:
        return PackageManifest.model_validate(data)
    except PydanticValidationError as e:
        details = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ManifestError(path, details) from e


def load_package(directory: Path) -> PackageRecord:
    """Load the :class:`PackageRecord` for a package directory."""
    manifest = read_manifest(manifest_path(directory))
    return PackageRecord(
        name=manifest.name,
        directory=directory,
        scripts=manifest.scripts,
        declarations=manifest.declarations(),
    )
