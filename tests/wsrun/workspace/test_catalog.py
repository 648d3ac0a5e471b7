"""Tests for wsrun.workspace.catalog."""

from pathlib import Path

import pytest

from tests.wsrun.support import package_manifest, record, warnings_in, write_manifest
from wsrun.domain.package import SelectionCriteria
from wsrun.exceptions import ManifestError, NoPackagesSelectedError
from wsrun.workspace.catalog import (
    PackageCatalog,
    is_selected,
    load_packages,
    matches_any,
    select_packages,
)

ROOT = Path("/ws")


@pytest.fixture
def plugin_records():
    """core, plugin-a and plugin-b under /ws/packages."""
    return [record("core"), record("plugin-a"), record("plugin-b")]


class TestLoadPackages:
    """Loading records for resolved directories."""

    def test_loads_in_sorted_directory_order(self, tmp_path):
        for name in ("zeta", "alpha", "mid"):
            write_manifest(tmp_path / name, package_manifest(name))

        records = load_packages([tmp_path / "zeta", tmp_path / "alpha", tmp_path / "mid"])

        assert [r.name for r in records] == ["alpha", "mid", "zeta"]

    def test_broken_manifest_is_skipped_with_warning(self, tmp_path, log_records):
        """Test a manifest error drops the directory and the run continues."""
        write_manifest(tmp_path / "good", package_manifest("good"))
        write_manifest(tmp_path / "bad", '{"version": "1.0.0"}')

        records = load_packages([tmp_path / "good", tmp_path / "bad"])

        assert [r.name for r in records] == ["good"]
        assert any("bad" in w for w in warnings_in(log_records))

    def test_duplicate_names_first_wins(self, tmp_path, log_records):
        """Test a duplicate name keeps the record from the first directory."""
        write_manifest(tmp_path / "a", package_manifest("same"))
        write_manifest(tmp_path / "b", package_manifest("same"))

        records = load_packages([tmp_path / "b", tmp_path / "a"])

        assert len(records) == 1
        assert records[0].directory == tmp_path / "a"
        assert any("Duplicate package name" in w for w in warnings_in(log_records))

    def test_custom_loader(self):
        """Test the loader is injectable."""

        def loader(directory: Path):
            if directory.name == "bad":
                raise ManifestError(directory / "package.json", "boom")
            return record(directory.name)

        records = load_packages([ROOT / "bad", ROOT / "ok"], loader=loader)
        assert [r.name for r in records] == ["ok"]


class TestSelection:
    """Include/exclude filtering."""

    def test_no_filters_selects_everything(self, plugin_records):
        selected = select_packages(plugin_records, SelectionCriteria(), ROOT)
        assert [r.name for r in selected] == ["core", "plugin-a", "plugin-b"]

    def test_only_and_exclude_by_name(self, plugin_records):
        """Test only=plugin-* with exclude=plugin-b selects plugin-a alone."""
        criteria = SelectionCriteria(only=("plugin-*",), exclude=("plugin-b",))
        selected = select_packages(plugin_records, criteria, ROOT)
        assert [r.name for r in selected] == ["plugin-a"]

    def test_exclude_wins_over_only(self, plugin_records):
        criteria = SelectionCriteria(only=("core",), exclude=("core",))
        with pytest.raises(NoPackagesSelectedError):
            select_packages(plugin_records, criteria, ROOT)

    def test_match_by_relative_directory(self, plugin_records):
        """Test globs also match the root-relative directory."""
        criteria = SelectionCriteria(only=("packages/plugin-*",))
        selected = select_packages(plugin_records, criteria, ROOT)
        assert [r.name for r in selected] == ["plugin-a", "plugin-b"]

    def test_leading_dot_slash_in_directory_glob(self, plugin_records):
        criteria = SelectionCriteria(exclude=("./packages/plugin-*",))
        selected = select_packages(plugin_records, criteria, ROOT)
        assert [r.name for r in selected] == ["core"]

    def test_match_by_absolute_directory(self, plugin_records):
        assert matches_any(plugin_records[0], ["/ws/packages/core"])
        assert matches_any(plugin_records[0], ["/ws/**"])
        assert not matches_any(plugin_records[0], ["/other/**"])

    def test_scoped_names(self):
        pkg = record("@acme/ui")
        assert is_selected(pkg, SelectionCriteria(only=("@acme/*",)), ROOT)
        assert not is_selected(pkg, SelectionCriteria(exclude=("@acme/*",)), ROOT)

    def test_nothing_selected_raises(self, plugin_records):
        """Test an empty selection is a discovery error."""
        with pytest.raises(NoPackagesSelectedError, match="No packages matched selection"):
            select_packages(plugin_records, SelectionCriteria(only=("nope-*",)), ROOT)


class TestPackageCatalog:
    """Mapping behaviour of the catalog."""

    def test_mapping_interface(self, plugin_records):
        catalog = PackageCatalog(plugin_records, root=ROOT)

        assert len(catalog) == 3
        assert "core" in catalog
        assert catalog["plugin-a"].directory == ROOT / "packages" / "plugin-a"
        assert list(catalog) == ["core", "plugin-a", "plugin-b"]

    def test_select_returns_new_catalog(self, plugin_records):
        catalog = PackageCatalog(plugin_records, root=ROOT)

        selected = catalog.select(SelectionCriteria(only=("plugin-*",)))

        assert sorted(selected) == ["plugin-a", "plugin-b"]
        assert len(catalog) == 3
        assert selected.root == ROOT

    def test_load_from_directories(self, make_workspace):
        root = make_workspace({"packages/core": package_manifest("core")})
        catalog = PackageCatalog.load([root / "packages" / "core"], root=root)
        assert list(catalog) == ["core"]
