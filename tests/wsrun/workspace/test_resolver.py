"""Tests for wsrun.workspace.resolver."""

import pytest

from tests.wsrun.support import package_manifest, warnings_in, write_manifest
from wsrun.exceptions import ConfigurationError
from wsrun.workspace.resolver import WorkspaceResolver


class TestWorkspaceResolver:
    """Expanding the root manifest's workspaces into package directories."""

    def test_resolves_directories_with_manifest(self, make_workspace):
        """Test only matched directories holding a package.json are kept."""
        root = make_workspace(
            {
                "packages/core": package_manifest("core"),
                "packages/ui": package_manifest("ui"),
            }
        )
        (root / "packages" / "empty").mkdir()

        resolved = WorkspaceResolver(root).discover()

        assert resolved == {root / "packages" / "core", root / "packages" / "ui"}

    def test_directories_with_broken_manifest_are_dropped(self, make_workspace):
        """Test a directory whose manifest cannot be parsed is not resolved."""
        root = make_workspace(
            {"packages/core": package_manifest("core"), "packages/broken": "{oops"}
        )
        assert WorkspaceResolver(root).discover() == {root / "packages" / "core"}

    def test_directories_with_undecodable_manifest_are_dropped(self, make_workspace):
        """Test a manifest that is not valid UTF-8 is skipped instead of aborting."""
        root = make_workspace({"packages/core": package_manifest("core")})
        bad = root / "packages" / "bad"
        bad.mkdir()
        (bad / "package.json").write_bytes(b'{"name": "\xff\xfe"}')

        assert WorkspaceResolver(root).discover() == {root / "packages" / "core"}

    def test_union_of_patterns(self, make_workspace):
        """Test several patterns contribute to one de-duplicated set."""
        root = make_workspace(
            {
                "packages/core": package_manifest("core"),
                "apps/web": package_manifest("web"),
            },
            workspaces=["packages/*", "apps/*", "./packages/core"],
        )
        assert WorkspaceResolver(root).discover() == {
            root / "packages" / "core",
            root / "apps" / "web",
        }

    def test_object_form_workspaces(self, make_workspace):
        """Test workspaces given as {packages: [...]}."""
        root = make_workspace(
            {"libs/a": package_manifest("a")}, workspaces={"packages": ["libs/*"]}
        )
        assert WorkspaceResolver(root).discover() == {root / "libs" / "a"}

    def test_recursive_pattern(self, make_workspace):
        """Test ** finds packages at any depth, including the base directory."""
        root = make_workspace(
            {
                "apps/web": package_manifest("web"),
                "apps/group/admin": package_manifest("admin"),
            },
            workspaces=["apps/**"],
        )
        assert WorkspaceResolver(root).discover() == {
            root / "apps" / "web",
            root / "apps" / "group" / "admin",
        }

    def test_non_string_patterns_are_skipped(self, make_workspace, log_records):
        """Test invalid entries are skipped with a warning."""
        root = make_workspace(
            {"packages/core": package_manifest("core")}, workspaces=["packages/*", 42, None]
        )

        resolver = WorkspaceResolver(root)

        assert resolver.patterns() == ["packages/*"]
        assert len([w for w in warnings_in(log_records) if "invalid workspace pattern" in w]) == 2

    def test_missing_workspaces_field(self, make_workspace):
        """Test a root manifest without workspaces yields no patterns."""
        root = make_workspace({}, workspaces=None)
        resolver = WorkspaceResolver(root)
        assert resolver.patterns() == []
        assert resolver.discover() == set()

    def test_missing_root_manifest_is_configuration_error(self, tmp_path):
        """Test the root manifest is required."""
        with pytest.raises(ConfigurationError):
            WorkspaceResolver(tmp_path).root_manifest()

    def test_malformed_root_manifest_is_configuration_error(self, tmp_path):
        write_manifest(tmp_path, "not json at all")
        with pytest.raises(ConfigurationError):
            WorkspaceResolver(tmp_path).patterns()
