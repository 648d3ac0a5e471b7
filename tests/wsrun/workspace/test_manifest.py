"""Tests for wsrun.workspace.manifest."""

import pytest

from tests.wsrun.support import package_manifest, write_manifest
from wsrun.domain.package import EdgeOptions
from wsrun.exceptions import ManifestError
from wsrun.workspace.manifest import PackageManifest, load_package, read_manifest


class TestReadManifest:
    """Reading and validating package.json files."""

    def test_reads_all_dependency_categories(self, tmp_path):
        """Test the four dependency maps are read with their package.json names."""
        path = write_manifest(
            tmp_path,
            package_manifest(
                "@acme/app",
                dependencies={"core": "^1.0.0"},
                devDependencies={"tooling": "*"},
                peerDependencies={"react": ">=18"},
                optionalDependencies={"fsevents": "*"},
            ),
        )

        manifest = read_manifest(path)

        assert manifest.name == "@acme/app"
        assert manifest.dependencies == {"core": "^1.0.0"}
        assert manifest.dev_dependencies == {"tooling": "*"}
        assert manifest.peer_dependencies == {"react": ">=18"}
        assert manifest.optional_dependencies == {"fsevents": "*"}

    def test_unknown_fields_are_ignored(self, tmp_path):
        """Test extra package.json fields do not break validation."""
        path = write_manifest(
            tmp_path, {"name": "x", "license": "MIT", "files": ["dist"], "main": "index.js"}
        )
        assert read_manifest(path).name == "x"

    def test_null_dependency_maps_become_empty(self, tmp_path):
        """Test null maps are treated as empty."""
        path = write_manifest(tmp_path, {"name": "x", "dependencies": None, "scripts": None})
        manifest = read_manifest(path)
        assert manifest.dependencies == {}
        assert manifest.scripts == {}

    @pytest.mark.parametrize(
        "content",
        [
            "{not json",
            "[1, 2, 3]",
            '{"version": "1.0.0"}',
            '{"name": 42}',
            '{"name": "   "}',
        ],
    )
    def test_invalid_manifests_raise(self, tmp_path, content):
        """Test malformed or nameless manifests raise ManifestError."""
        path = write_manifest(tmp_path, content)
        with pytest.raises(ManifestError) as exc_info:
            read_manifest(path)
        assert exc_info.value.path == path

    def test_missing_file_raises(self, tmp_path):
        """Test a missing manifest raises ManifestError."""
        with pytest.raises(ManifestError):
            read_manifest(tmp_path / "package.json")

    def test_invalid_utf8_raises_manifest_error(self, tmp_path):
        """Test undecodable bytes are reported as ManifestError, not UnicodeDecodeError."""
        path = tmp_path / "package.json"
        path.write_bytes(b'{"name": "\xff\xfe"}')

        with pytest.raises(ManifestError, match="UTF-8"):
            read_manifest(path)

    @pytest.mark.parametrize(
        "manifest",
        [
            {"name": "b", "version": 2, "dependencies": {"a": "*"}},
            {"name": "b", "private": "yes", "dependencies": {"a": "*"}},
            {"name": "b", "workspaces": "packages/*", "dependencies": {"a": "*"}},
            {"name": "b", "scripts": {"build": "tsc", "weird": 1}, "dependencies": {"a": "*"}},
        ],
    )
    def test_odd_field_types_keep_the_package(self, tmp_path, manifest):
        """Test a named, parseable manifest loads despite unusual field values."""
        path = write_manifest(tmp_path, manifest)

        loaded = read_manifest(path)

        assert loaded.name == "b"
        assert loaded.dependencies == {"a": "*"}

    def test_non_string_entries_are_dropped(self, tmp_path):
        """Test non-string script and dependency values are filtered out."""
        path = write_manifest(
            tmp_path,
            {
                "name": "x",
                "scripts": {"build": "tsc", "weird": 1},
                "dependencies": {"a": "*", "b": {"version": "1"}},
                "devDependencies": ["tooling"],
            },
        )

        manifest = read_manifest(path)

        assert manifest.scripts == {"build": "tsc"}
        assert manifest.dependencies == {"a": "*"}
        assert manifest.dev_dependencies == {}


class TestWorkspacePatterns:
    """The two accepted shapes of the workspaces field."""

    def test_list_form(self):
        manifest = PackageManifest(name="root", workspaces=["packages/*", "apps/*"])
        assert manifest.workspace_patterns() == ["packages/*", "apps/*"]

    def test_object_form(self):
        manifest = PackageManifest(
            name="root", workspaces={"packages": ["packages/*"], "nohoist": ["**/react"]}
        )
        assert manifest.workspace_patterns() == ["packages/*"]

    def test_missing_field(self):
        assert PackageManifest(name="root").workspace_patterns() == []


class TestLoadPackage:
    """Building PackageRecords from a directory."""

    def test_record_fields(self, tmp_path):
        """Test the record carries name, directory, scripts and declarations."""
        write_manifest(
            tmp_path,
            package_manifest(
                "ui", scripts={"build": "vite build", "lint": ""}, devDependencies={"core": "*"}
            ),
        )

        pkg = load_package(tmp_path)

        assert pkg.name == "ui"
        assert pkg.directory == tmp_path
        assert pkg.has_script("build")
        assert not pkg.has_script("lint")
        assert not pkg.has_script("test")
        assert pkg.declarations.names(EdgeOptions()) == {"core"}
        assert pkg.declarations.names(EdgeOptions(include_dev=False)) == set()
