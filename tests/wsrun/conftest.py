"""Configuration file for pytest containing fixtures for wsrun tests.

This module provides fixtures that can be used across multiple test files:
- make_workspace: writes a root package.json plus member manifests
- fake_runner: an in-memory ProcessRunner recording calls and concurrency
- log_records: loguru records emitted during a test
"""

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
from loguru import logger

from tests.wsrun.support import FakeRunner, write_manifest


@pytest.fixture
def fake_runner() -> FakeRunner:
    """Fixture providing a FakeRunner where every task succeeds."""
    return FakeRunner()


@pytest.fixture
def log_records():
    """Collect loguru records (DEBUG and above) for the duration of a test."""
    records: list[dict[str, Any]] = []
    handler_id = logger.add(lambda message: records.append(message.record), level="DEBUG")
    yield records
    logger.remove(handler_id)


@pytest.fixture
def make_workspace(tmp_path: Path) -> Callable[..., Path]:
    """Factory writing a workspace under ``tmp_path`` and returning its root.

    ``members`` maps a root-relative directory to its manifest (a dict, or
    raw text for malformed files). ``workspaces`` is written verbatim to the
    root manifest; pass None to omit the field.
    """

    def _make(
        members: dict[str, dict[str, Any] | str],
        workspaces: Any = ("packages/*",),
    ) -> Path:
        root = tmp_path.resolve()
        root_manifest: dict[str, Any] = {"name": "monorepo", "private": True}
        if workspaces is not None:
            root_manifest["workspaces"] = (
                list(workspaces) if isinstance(workspaces, tuple) else workspaces
            )
        write_manifest(root, root_manifest)
        for relative, manifest in members.items():
            write_manifest(root / relative, manifest)
        return root

    return _make
