"""Plugin metadata model - describes a plugin's identity and dependencies."""

import re
from typing import Optional, Tuple

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

PLUGIN_ID_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")
SEMVER_PATTERN = re.compile(
    r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    r"(?:-[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*)?"
    r"(?:\+[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*)?$"
)


def is_valid_version(version: str) -> bool:
    """Check that a string is a semantic version (MAJOR.MINOR.PATCH[-pre][+build])."""
    return bool(SEMVER_PATTERN.match(version or ""))


class PluginMetadata(BaseModel):
    """Plugin metadata. Immutable once the plugin is loaded."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str = Field(..., description="Unique plugin identifier (alphanumeric, '-' and '_')")
    name: str = Field(..., min_length=1, description="Human-readable plugin name")
    version: str = Field(..., description="Semantic version")
    description: str = Field(..., min_length=1, description="Plugin description")
    author: Optional[str] = Field(default=None, description="Plugin author")
    min_version: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("min_version", "minVersion"),
        description="Minimum required toolbox version",
    )
    dependencies: Tuple[str, ...] = Field(
        default=(),
        description="Ids of plugins that must be loaded and active first",
    )

    @field_validator("id")
    @classmethod
    def id_well_formed(cls, v: str) -> str:
        if not v or not PLUGIN_ID_PATTERN.match(v):
            raise ValueError(
                "Plugin ID must contain only alphanumeric characters, hyphens, and underscores"
            )
        return v

    @field_validator("version")
    @classmethod
    def version_parseable(cls, v: str) -> str:
        if not is_valid_version(v):
            raise ValueError(f"Invalid semantic version: {v!r}")
        return v

    @field_validator("min_version")
    @classmethod
    def min_version_parseable(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not is_valid_version(v):
            raise ValueError(f"Invalid semantic version: {v!r}")
        return v

    @field_validator("dependencies", mode="before")
    @classmethod
    def dedupe_dependencies(cls, v):
        if v is None:
            return ()
        seen = []
        for dep in v:
            if dep not in seen:
                seen.append(dep)
        return tuple(seen)

    @model_validator(mode="after")
    def no_self_dependency(self):
        if self.id in self.dependencies:
            raise ValueError(f"Plugin '{self.id}' cannot depend on itself")
        return self


class PluginManifest(PluginMetadata):
    """Plugin manifest loaded from plugin.json."""

    entry_point: str = Field(
        default="plugin:Plugin",
        validation_alias=AliasChoices("entry_point", "entryPoint"),
        description="module:attribute path relative to the plugin directory",
    )

    @field_validator("entry_point")
    @classmethod
    def entry_point_format(cls, v: str) -> str:
        module_name, sep, attr = v.partition(":")
        if not sep or not module_name or not attr:
            raise ValueError(f"entry_point must look like 'module:attribute', got {v!r}")
        return v

    def to_metadata(self) -> PluginMetadata:
        return PluginMetadata(**self.model_dump(exclude={"entry_point"}))
