"""Tool registry - in-memory catalog of tools with search and statistics."""

import asyncio
import inspect
import json
import logging
from typing import Dict, List, Optional

from pydantic import ValidationError

from devtoolbox.errors import (
    InvalidToolMetadataError,
    RegistryCapacityError,
    ToolAlreadyRegisteredError,
    ToolDependencyError,
    ToolNotFoundError,
    ToolRegistryError,
)
from devtoolbox.tools.types import (
    RegistryConfig,
    RegistryStatistics,
    Tool,
    ToolCategory,
    ToolExecutionContext,
    ToolExecutionResult,
    ToolMetadata,
    ToolSearchFilter,
)

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Central registry for tool registration, discovery and execution.

    Only this class writes tool state. Registration failures are raised to
    the caller as ToolRegistryError subclasses.
    """

    def __init__(self, config: Optional[RegistryConfig] = None):
        self.config = config or RegistryConfig()
        self._tools: Dict[str, Tool] = {}
        self._lock = asyncio.Lock()
        self._last_registered: Optional[str] = None
        self._last_unregistered: Optional[str] = None

    async def register(self, tool: Tool, config: Optional[RegistryConfig] = None) -> None:
        """Register a tool, replacing an existing one only if overrides are allowed.

        Args:
            tool: Tool to register
            config: Optional per-call settings (defaults to the registry config)

        Raises:
            RegistryCapacityError, ToolAlreadyRegisteredError,
            InvalidToolMetadataError, ToolDependencyError, ToolRegistryError
        """
        cfg = config or self.config
        async with self._lock:
            metadata = self._coerce_metadata(tool)
            tool_id = metadata.id
            exists = tool_id in self._tools

            occupied = len(self._tools) - (1 if exists else 0)
            if cfg.max_tools > 0 and occupied >= cfg.max_tools:
                raise RegistryCapacityError(cfg.max_tools)

            if exists and not cfg.allow_overrides:
                raise ToolAlreadyRegisteredError(tool_id)

            if cfg.validate_on_register:
                missing = [
                    dep for dep in metadata.dependencies
                    if dep != tool_id and dep not in self._tools
                ]
                if missing:
                    raise ToolDependencyError(
                        f"Missing dependency: {', '.join(missing)}",
                        {"toolId": tool_id, "missing": missing},
                    )
                ok, error = tool.self_check() if hasattr(tool, "self_check") else (True, None)
                if not ok:
                    raise InvalidToolMetadataError(
                        f"Tool '{tool_id}' failed self-check: {error or 'not valid'}",
                        {"toolId": tool_id},
                    )

            hook = getattr(tool, "initialize", None)
            if hook is not None:
                try:
                    result = hook()
                    if inspect.isawaitable(result):
                        await result
                except Exception as e:
                    raise ToolRegistryError(
                        f"Failed to initialize tool '{tool_id}': {e}", {"toolId": tool_id}
                    ) from e

            if exists:
                logger.info(f"Replacing tool: {tool_id}")
            self._tools[tool_id] = tool
            tool.metadata = metadata
            self._last_registered = tool_id
            logger.info(f"Registered tool: {metadata.name} ({tool_id})")
            self._persist_state(cfg)

    async def unregister(self, tool_id: str, cleanup: bool = True) -> None:
        """Remove a tool, running its cleanup hook best-effort.

        Raises:
            ToolNotFoundError: if the tool is not registered
            ToolDependencyError: if other tools depend on it
        """
        async with self._lock:
            tool = self._tools.get(tool_id)
            if tool is None:
                raise ToolNotFoundError(tool_id)

            dependents = self._find_dependents(tool_id)
            if dependents:
                raise ToolDependencyError(
                    f"Cannot unregister: tool is required by {', '.join(dependents)}",
                    {"toolId": tool_id, "dependents": dependents},
                )

            hook = getattr(tool, "cleanup", None)
            if cleanup and hook is not None:
                try:
                    result = hook()
                    if inspect.isawaitable(result):
                        await result
                except Exception as e:
                    logger.warning(f"Error cleaning up tool {tool_id}: {e}")

            del self._tools[tool_id]
            self._last_unregistered = tool_id
            logger.info(f"Unregistered tool: {tool_id}")
            self._persist_state(self.config)

    def get_tool(self, tool_id: str) -> Optional[Tool]:
        return self._tools.get(tool_id)

    def has_tool(self, tool_id: str) -> bool:
        return tool_id in self._tools

    def get_all_tools(self) -> List[Tool]:
        return list(self._tools.values())

    def get_enabled_tools(self) -> List[Tool]:
        return [t for t in self._tools.values() if t.metadata.enabled]

    def get_tools_by_category(self, category: ToolCategory) -> List[Tool]:
        return [t for t in self._tools.values() if t.metadata.category == ToolCategory(category)]

    def search_tools(self, filter: Optional[ToolSearchFilter] = None) -> List[Tool]:
        """Return tools matching every provided predicate. Order is not meaningful."""
        f = filter or ToolSearchFilter()
        results = self.get_all_tools()

        if f.category is not None:
            category = ToolCategory(f.category)
            results = [t for t in results if t.metadata.category == category]

        if f.enabled is not None:
            results = [t for t in results if t.metadata.enabled == f.enabled]

        if f.author:
            author = f.author.lower()
            results = [t for t in results if (t.metadata.author or "").lower() == author]

        if f.tags:
            wanted = set(f.tags)
            results = [t for t in results if wanted.intersection(t.metadata.tags)]

        if f.search:
            needle = f.search.lower()
            results = [
                t for t in results
                if needle in t.metadata.name.lower() or needle in t.metadata.description.lower()
            ]

        return results

    async def execute_tool(self, tool_id: str, context: ToolExecutionContext) -> ToolExecutionResult:
        """Execute a tool. Failures are returned as results, not raised."""
        tool = self._tools.get(tool_id)
        if tool is None:
            return ToolExecutionResult.failure(f"Tool not found: {tool_id}")
        if not tool.metadata.enabled:
            return ToolExecutionResult.failure(f"Tool is disabled: {tool_id}")

        try:
            validate = getattr(tool, "validate", None)
            if validate is not None:
                ok, error = validate(context)
                if not ok:
                    return ToolExecutionResult.failure(error or "Validation failed")

            result = tool.execute(context)
            if inspect.isawaitable(result):
                result = await result
            return result
        except Exception as e:
            logger.error(f"Tool {tool_id} failed: {e}")
            return ToolExecutionResult.failure(f"Tool execution failed: {e}")

    def enable_tool(self, tool_id: str) -> None:
        tool = self._tools.get(tool_id)
        if tool is None:
            raise ToolNotFoundError(tool_id)
        tool.metadata.enabled = True
        logger.info(f"Enabled tool: {tool.metadata.name}")
        self._persist_state(self.config)

    def disable_tool(self, tool_id: str) -> None:
        tool = self._tools.get(tool_id)
        if tool is None:
            raise ToolNotFoundError(tool_id)

        dependents = [
            d for d in self._find_dependents(tool_id) if self._tools[d].metadata.enabled
        ]
        if dependents:
            raise ToolDependencyError(
                f"Cannot disable: tool is required by {', '.join(dependents)}",
                {"toolId": tool_id, "dependents": dependents},
            )

        tool.metadata.enabled = False
        logger.info(f"Disabled tool: {tool.metadata.name}")
        self._persist_state(self.config)

    def get_statistics(self) -> RegistryStatistics:
        """Statistics computed fresh from the live tool set."""
        tools = list(self._tools.values())
        enabled = sum(1 for t in tools if t.metadata.enabled)
        by_category = {c.value: 0 for c in ToolCategory}
        for tool in tools:
            by_category[tool.metadata.category.value] += 1

        return RegistryStatistics(
            total_tools=len(tools),
            enabled_tools=enabled,
            disabled_tools=len(tools) - enabled,
            tools_by_category=by_category,
            last_registered=self._last_registered,
            last_unregistered=self._last_unregistered,
        )

    def clear_registry(self) -> None:
        """Drop every tool without running cleanup hooks (teardown/testing only)."""
        self._tools.clear()
        self._last_registered = None
        self._last_unregistered = None
        self._persist_state(self.config)

    def _coerce_metadata(self, tool: Tool) -> ToolMetadata:
        raw = getattr(tool, "metadata", None)
        try:
            if isinstance(raw, ToolMetadata):
                return raw
            if isinstance(raw, dict):
                metadata = ToolMetadata.model_validate(raw)
            else:
                metadata = ToolMetadata.model_validate(raw, from_attributes=True)
        except ValidationError as e:
            raise InvalidToolMetadataError(f"Invalid tool metadata: {e.error_count()} error(s)", {
                "errors": [
                    f"{'.'.join(str(x) for x in err['loc'])}: {err['msg']}" for err in e.errors()
                ],
            }) from e
        return metadata

    def _find_dependents(self, tool_id: str) -> List[str]:
        return [
            tid for tid, t in self._tools.items()
            if tid != tool_id and tool_id in t.metadata.dependencies
        ]

    def _persist_state(self, config: RegistryConfig) -> None:
        if not (config.persist_state and config.state_path):
            return
        state = {
            "tools": [t.metadata.model_dump(mode="json") for t in self._tools.values()],
            "lastRegistered": self._last_registered,
            "lastUnregistered": self._last_unregistered,
        }
        try:
            config.state_path.parent.mkdir(parents=True, exist_ok=True)
            with open(config.state_path, "w", encoding="utf-8") as f:
                json.dump(state, f, indent=2, ensure_ascii=False)
        except OSError as e:
            logger.error(f"Failed to persist registry state: {e}")
