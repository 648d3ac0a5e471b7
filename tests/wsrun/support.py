"""Test doubles and builders shared by the wsrun test suite."""

import asyncio
import json
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from wsrun.domain.package import DependencyDeclarations, PackageRecord


class FakeRunner:
    """ProcessRunner double keyed by package directory name.

    ``exit_codes`` maps a directory name to the code its task returns
    (default 0). ``delays`` maps a directory name to a simulated runtime.
    ``errors`` maps a directory name to an exception the runner raises.
    """

    def __init__(
        self,
        exit_codes: dict[str, int] | None = None,
        delays: dict[str, float] | None = None,
        default_delay: float = 0.01,
        errors: dict[str, Exception] | None = None,
    ) -> None:
        self.exit_codes = exit_codes or {}
        self.errors = errors or {}
        self.delays = delays or {}
        self.default_delay = default_delay
        self.calls: list[tuple[tuple[str, ...], Path]] = []
        self.timeline: list[tuple[str, str]] = []
        self.active = 0
        self.max_active = 0

    @property
    def started(self) -> list[str]:
        return [name for kind, name in self.timeline if kind == "start"]

    @property
    def finished(self) -> list[str]:
        return [name for kind, name in self.timeline if kind == "end"]

    async def run(self, command: Sequence[str], cwd: Path) -> int:
        name = cwd.name
        self.calls.append((tuple(command), cwd))
        self.timeline.append(("start", name))
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(self.delays.get(name, self.default_delay))
        finally:
            self.active -= 1
            self.timeline.append(("end", name))
        if name in self.errors:
            raise self.errors[name]
        return self.exit_codes.get(name, 0)


def warnings_in(records: list[dict[str, Any]]) -> list[str]:
    return [r["message"] for r in records if r["level"].name == "WARNING"]


def write_manifest(directory: Path, manifest: dict[str, Any] | str) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / "package.json"
    content = manifest if isinstance(manifest, str) else json.dumps(manifest, indent=2)
    path.write_text(content, encoding="utf-8")
    return path


def package_manifest(
    name: str,
    scripts: dict[str, str] | None = None,
    **dependency_fields: dict[str, str],
) -> dict[str, Any]:
    """Build a member manifest; dependency fields use package.json spelling."""
    return {
        "name": name,
        "version": "1.0.0",
        "scripts": {"build": "tsc"} if scripts is None else scripts,
        **dependency_fields,
    }


def record(
    name: str,
    deps: Sequence[str] = (),
    *,
    dev: Sequence[str] = (),
    peer: Sequence[str] = (),
    optional: Sequence[str] = (),
    scripts: dict[str, str] | None = None,
    base: Path = Path("/ws/packages"),
) -> PackageRecord:
    """In-memory PackageRecord whose directory is ``base / name``."""
    return PackageRecord(
        name=name,
        directory=base / name,
        scripts={"build": "tsc"} if scripts is None else scripts,
        declarations=DependencyDeclarations(
            dependencies=dict.fromkeys(deps, "*"),
            dev_dependencies=dict.fromkeys(dev, "*"),
            peer_dependencies=dict.fromkeys(peer, "*"),
            optional_dependencies=dict.fromkeys(optional, "*"),
        ),
    )
