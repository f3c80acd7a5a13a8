"""Accessors for the runtime objects attached to the FastAPI app."""

from fastapi import Request

from devtoolbox.config import ServerConfig
from devtoolbox.plugins.manager import PluginManager
from devtoolbox.tools.registry import ToolRegistry


def get_plugin_manager(request: Request) -> PluginManager:
    return request.app.state.plugin_manager


def get_tool_registry(request: Request) -> ToolRegistry:
    return request.app.state.tool_registry


def get_server_config(request: Request) -> ServerConfig:
    return request.app.state.server_config
