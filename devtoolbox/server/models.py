"""Request bodies for the management API."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PluginLoadRequest(BaseModel):
    path: str = Field(..., description="Path to the plugin directory")
    force: bool = Field(default=False, description="Unload and load again if already loaded")

    @field_validator("path")
    @classmethod
    def path_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Plugin path is required")
        return v.strip()


class PluginUnloadRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    plugin_id: str = Field(..., alias="pluginId", min_length=1)
    cascade: bool = Field(default=False, description="Also unload plugins that depend on it")


class PluginReloadRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    plugin_id: Optional[str] = Field(default=None, alias="pluginId")
