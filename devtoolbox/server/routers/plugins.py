"""Plugin management REST API endpoints."""

import logging
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query

from devtoolbox.errors import InvalidRequestError
from devtoolbox.plugins.manager import PluginManager
from devtoolbox.server.dependencies import get_plugin_manager
from devtoolbox.server.models import PluginLoadRequest, PluginReloadRequest, PluginUnloadRequest
from devtoolbox.server.responses import success_response
from devtoolbox.server.routers.guard import guarded

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/plugins", tags=["plugins"])


@router.get("")
async def list_plugins(manager: PluginManager = Depends(get_plugin_manager)):
    """List all loaded plugins."""
    plugins = await guarded(manager.list_plugins)
    return success_response(plugins)


@router.get("/failures")
async def list_failures(manager: PluginManager = Depends(get_plugin_manager)):
    """List plugins that were rejected or failed to initialize."""
    return success_response(await guarded(manager.list_failures))


@router.get("/{plugin_id}")
async def get_plugin(plugin_id: str, manager: PluginManager = Depends(get_plugin_manager)):
    """Get detailed information about a loaded plugin."""
    return success_response(await guarded(manager.get_plugin, plugin_id))


@router.post("/load")
async def load_plugin(body: PluginLoadRequest, manager: PluginManager = Depends(get_plugin_manager)):
    """Load a plugin from a local directory."""
    source_path = Path(body.path).expanduser()
    if not source_path.exists():
        raise InvalidRequestError(f"Path does not exist: {body.path}", {"path": body.path})
    if not source_path.is_dir():
        raise InvalidRequestError(f"Path is not a directory: {body.path}", {"path": body.path})

    info = await guarded(manager.load, source_path, force=body.force)
    return success_response(info, status_code=201)


@router.post("/unload")
async def unload_plugin(body: PluginUnloadRequest, manager: PluginManager = Depends(get_plugin_manager)):
    """Unload a plugin. Set cascade to unload its dependents first."""
    unloaded = await guarded(manager.unload, body.plugin_id, cascade=body.cascade)
    return success_response({"pluginId": body.plugin_id, "unloaded": unloaded})


@router.delete("/{plugin_id}")
async def delete_plugin(
    plugin_id: str,
    cascade: bool = Query(False, description="Also unload plugins that depend on it"),
    manager: PluginManager = Depends(get_plugin_manager),
):
    """Unload a plugin (REST-style alias of /plugins/unload)."""
    unloaded = await guarded(manager.unload, plugin_id, cascade=cascade)
    return success_response({"pluginId": plugin_id, "unloaded": unloaded})


@router.post("/reload")
async def reload_plugins(
    body: Optional[PluginReloadRequest] = Body(default=None),
    manager: PluginManager = Depends(get_plugin_manager),
):
    """Reload one plugin (with its dependents) or, without pluginId, all plugins."""
    plugin_id = body.plugin_id if body else None
    reloaded = await guarded(manager.reload, plugin_id)
    return success_response(reloaded)
