"""Tests for pici.config.schemas module."""

import pytest
from pydantic import ValidationError

from pici.config.schemas import (
    CustomManifest,
    PackageManifest,
    ProjectConfig,
    SyntheticManifest,
)


class TestPackageManifest:
    """Tests for PackageManifest schema."""

    def test_reads_aliased_fields(self):
        """Accepts camelCase package.json keys."""
        manifest = PackageManifest.model_validate(
            {
                "devDependencies": {"a": "1"},
                "peerDependencies": {"b": "2"},
                "optionalDependencies": {"c": "3"},
            }
        )

        assert manifest.dev_dependencies == {"a": "1"}
        assert manifest.peer_dependencies == {"b": "2"}
        assert manifest.optional_dependencies == {"c": "3"}

    def test_get_field_by_alias_and_name(self):
        """Looks fields up by package.json key or attribute name."""
        manifest = PackageManifest.model_validate({"devDependencies": {"a": "1"}})

        assert manifest.get_field("devDependencies") == {"a": "1"}
        assert manifest.get_field("dev_dependencies") == {"a": "1"}

    def test_get_field_missing_is_empty(self):
        """Returns an empty mapping for an absent field."""
        assert PackageManifest().get_field("peerDependencies") == {}

    def test_get_field_from_extra_data(self):
        """Reads non-standard dependency mappings kept as extra data."""
        manifest = PackageManifest.model_validate(
            {"bundleDependencies": {"x": "1.0.0"}, "name": "app"}
        )

        assert manifest.get_field("bundleDependencies") == {"x": "1.0.0"}
        assert manifest.get_field("name") == {}

    def test_null_field_is_empty(self):
        """Treats null dependency fields as empty."""
        manifest = PackageManifest.model_validate({"dependencies": None})

        assert manifest.dependencies == {}


class TestCustomManifest:
    """Tests for CustomManifest schema."""

    def test_defaults_to_empty(self):
        """Creates an empty dependency mapping."""
        assert CustomManifest().dependencies == {}

    def test_add_dependency_overwrites(self):
        """Overwrites an existing entry with an empty version."""
        manifest = CustomManifest(dependencies={"foo": "1.0.0"})

        manifest.add_dependency("foo")

        assert manifest.dependencies == {"foo": ""}

    def test_keeps_non_string_versions(self):
        """Accepts null and numeric versions so they can fall back to package.json."""
        manifest = CustomManifest.model_validate({"dependencies": {"foo": None, "bar": 2}})

        assert manifest.dependencies == {"foo": None, "bar": 2}


class TestSyntheticManifest:
    """Tests for SyntheticManifest schema."""

    def test_has_exactly_three_keys(self):
        """Dumps name, version and dependencies only."""
        data = SyntheticManifest(dependencies={"foo": "^1.0.0"}).model_dump()

        assert data == {
            "name": "pici-temp",
            "version": "1.0.0",
            "dependencies": {"foo": "^1.0.0"},
        }


class TestProjectConfig:
    """Tests for ProjectConfig schema."""

    def test_strips_field_names(self):
        """Strips whitespace around field names."""
        config = ProjectConfig(fields=[" dependencies ", "devDependencies"])

        assert config.fields == ["dependencies", "devDependencies"]

    def test_rejects_empty_fields(self):
        """Requires at least one field."""
        with pytest.raises(ValidationError, match="At least one dependency field"):
            ProjectConfig(fields=[" "])

    def test_rejects_blank_custom_file(self):
        """Requires a custom file name."""
        with pytest.raises(ValidationError, match="custom_file cannot be empty"):
            ProjectConfig(custom_file="  ")
