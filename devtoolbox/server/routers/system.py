"""Health, statistics and command listing endpoints."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from devtoolbox import __version__
from devtoolbox.config import ServerConfig
from devtoolbox.plugins.manager import PluginManager
from devtoolbox.server.dependencies import get_plugin_manager, get_server_config, get_tool_registry
from devtoolbox.server.responses import success_response
from devtoolbox.server.routers.guard import guarded
from devtoolbox.tools.registry import ToolRegistry

router = APIRouter(tags=["system"])


@router.get("/health")
async def health():
    return success_response({
        "status": "ok",
        "version": __version__,
        "time": datetime.now(timezone.utc).isoformat(),
    })


@router.get("/commands")
async def list_commands(manager: PluginManager = Depends(get_plugin_manager)):
    """Aggregated commands of all active plugins."""
    commands = await guarded(manager.list_commands)
    return success_response([
        {
            "name": c.name,
            "description": c.description,
            "usage": c.usage,
            "pluginId": manager.command_owner(c.name),
        }
        for c in commands
    ])


@router.get("/stats")
async def stats(
    manager: PluginManager = Depends(get_plugin_manager),
    registry: ToolRegistry = Depends(get_tool_registry),
    config: ServerConfig = Depends(get_server_config),
):
    return success_response({
        "plugins": await guarded(manager.get_statistics),
        "tools": await guarded(registry.get_statistics),
        "rateLimitEnabled": config.enable_rate_limit,
        "rateLimitMax": config.rate_limit_max,
    })
