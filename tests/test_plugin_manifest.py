"""Tests for plugin metadata and manifest validation."""

import pytest
from pydantic import ValidationError

from devtoolbox.plugins.manifest import PluginManifest, PluginMetadata, is_valid_version


def _meta(**overrides):
    data = {
        "id": "hello-world",
        "name": "Hello World",
        "version": "1.0.0",
        "description": "Says hello",
    }
    data.update(overrides)
    return data


class TestIsValidVersion:
    def test_accepts_semver(self):
        assert is_valid_version("1.0.0")
        assert is_valid_version("0.10.3-beta.1")
        assert is_valid_version("2.0.0+build.7")

    def test_rejects_non_semver(self):
        assert not is_valid_version("1.0")
        assert not is_valid_version("v1.0.0")
        assert not is_valid_version("")
        assert not is_valid_version(None)


class TestPluginMetadata:
    def test_valid_metadata(self):
        meta = PluginMetadata.model_validate(_meta(author="Dev", dependencies=["a", "b"]))
        assert meta.id == "hello-world"
        assert meta.author == "Dev"
        assert meta.dependencies == ("a", "b")

    def test_rejects_malformed_id(self):
        with pytest.raises(ValidationError):
            PluginMetadata.model_validate(_meta(id="hello world"))
        with pytest.raises(ValidationError):
            PluginMetadata.model_validate(_meta(id=""))

    def test_rejects_unparseable_version(self):
        with pytest.raises(ValidationError):
            PluginMetadata.model_validate(_meta(version="one"))

    def test_requires_name_and_description(self):
        data = _meta()
        del data["name"]
        with pytest.raises(ValidationError):
            PluginMetadata.model_validate(data)
        with pytest.raises(ValidationError):
            PluginMetadata.model_validate(_meta(description=""))

    def test_dependencies_deduplicated_in_order(self):
        meta = PluginMetadata.model_validate(_meta(dependencies=["b", "a", "b"]))
        assert meta.dependencies == ("b", "a")

    def test_self_dependency_rejected(self):
        with pytest.raises(ValidationError):
            PluginMetadata.model_validate(_meta(dependencies=["hello-world"]))

    def test_min_version_alias(self):
        meta = PluginMetadata.model_validate(_meta(minVersion="1.2.0"))
        assert meta.min_version == "1.2.0"

    def test_immutable(self):
        meta = PluginMetadata.model_validate(_meta())
        with pytest.raises(ValidationError):
            meta.version = "2.0.0"


class TestPluginManifest:
    def test_default_entry_point(self):
        manifest = PluginManifest.model_validate(_meta())
        assert manifest.entry_point == "plugin:Plugin"

    def test_entry_point_alias(self):
        manifest = PluginManifest.model_validate(_meta(entryPoint="main:create"))
        assert manifest.entry_point == "main:create"

    def test_entry_point_format(self):
        with pytest.raises(ValidationError):
            PluginManifest.model_validate(_meta(entryPoint="main"))

    def test_to_metadata_drops_entry_point(self):
        meta = PluginManifest.model_validate(_meta(dependencies=["a"])).to_metadata()
        assert type(meta) is PluginMetadata
        assert meta.dependencies == ("a",)
