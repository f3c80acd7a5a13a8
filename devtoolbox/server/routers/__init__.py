"""API routers package."""

from .plugins import router as plugins_router
from .system import router as system_router
from .tools import router as tools_router

__all__ = ["plugins_router", "system_router", "tools_router"]
