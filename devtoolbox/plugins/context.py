"""PluginContext - the capability bundle passed to each plugin's initialize()."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from devtoolbox.tools.registry import ToolRegistry
    from devtoolbox.tools.types import Tool


class PluginContext:
    """Context object provided to plugins during initialization.

    Plugins use this to log, store data, read their configuration and
    register tools. The manager creates it; the plugin must not keep it
    past cleanup().
    """

    def __init__(
        self,
        plugin_id: str,
        data_dir: Path,
        config: Optional[Dict[str, Any]] = None,
        tool_registry: Optional[ToolRegistry] = None,
    ):
        self.plugin_id = plugin_id
        self.config: Dict[str, Any] = dict(config or {})
        self.tool_registry = tool_registry
        self._data_dir = data_dir
        self._tools: List[Tuple[str, Tool]] = []
        self._logger = logging.getLogger(f"plugin.{plugin_id}")

    @property
    def data_dir(self) -> Path:
        """Plugin-specific data directory, created on first access."""
        self._data_dir.mkdir(parents=True, exist_ok=True)
        return self._data_dir

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    def get_logger(self, name: Optional[str] = None) -> logging.Logger:
        """Get a logger for this plugin.

        Args:
            name: Optional sub-logger name (appended to plugin.{plugin_id})

        Returns:
            Logger instance
        """
        if name:
            return logging.getLogger(f"plugin.{self.plugin_id}.{name}")
        return self._logger

    async def register_tool(self, tool: Tool) -> None:
        """Register a tool in the shared registry on behalf of this plugin.

        Raises:
            RuntimeError: if no tool registry was provided
            ToolRegistryError: if the registry rejects the tool
        """
        if self.tool_registry is None:
            raise RuntimeError(f"Plugin '{self.plugin_id}' has no tool registry available")
        await self.tool_registry.register(tool)
        tool_id = tool.metadata.id
        self._tools.append((tool_id, tool))
        self._logger.info(f"Registered tool: {tool_id}")

    @property
    def tool_ids(self) -> List[str]:
        """Ids of tools registered through this context."""
        return [tool_id for tool_id, _ in self._tools]

    @property
    def tools(self) -> List[Tuple[str, Tool]]:
        """(id, tool object) pairs registered through this context, oldest first."""
        return list(self._tools)
