"""Tool registry REST API endpoints (read-only)."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from devtoolbox.errors import ToolNotFoundError
from devtoolbox.server.dependencies import get_tool_registry
from devtoolbox.server.responses import success_response
from devtoolbox.server.routers.guard import guarded
from devtoolbox.tools.registry import ToolRegistry
from devtoolbox.tools.types import ToolCategory, ToolSearchFilter

router = APIRouter(prefix="/tools", tags=["tools"])


@router.get("")
async def search_tools(
    category: Optional[ToolCategory] = Query(None),
    tags: Optional[str] = Query(None, description="Comma-separated tags"),
    enabled: Optional[bool] = Query(None),
    search: Optional[str] = Query(None, description="Substring of name or description"),
    author: Optional[str] = Query(None),
    registry: ToolRegistry = Depends(get_tool_registry),
):
    """Search registered tools. Without filters, every tool is returned."""
    filter = ToolSearchFilter(
        category=category,
        tags=[t.strip() for t in tags.split(",") if t.strip()] if tags else None,
        enabled=enabled,
        search=search,
        author=author,
    )
    tools = await guarded(registry.search_tools, filter)
    return success_response([t.metadata for t in tools])


@router.get("/stats")
async def tool_statistics(registry: ToolRegistry = Depends(get_tool_registry)):
    return success_response(await guarded(registry.get_statistics))


@router.get("/{tool_id}")
async def get_tool(tool_id: str, registry: ToolRegistry = Depends(get_tool_registry)):
    tool = registry.get_tool(tool_id)
    if tool is None:
        raise ToolNotFoundError(tool_id)
    return success_response(tool.metadata)
