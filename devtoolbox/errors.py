"""Error taxonomy shared by the plugin manager, tool registry and API server."""

from enum import Enum
from typing import Any, Dict, List, Optional


class ErrorCode(str, Enum):
    """Stable machine-readable error codes."""

    PLUGIN_NOT_FOUND = "PLUGIN_NOT_FOUND"
    PLUGIN_ALREADY_LOADED = "PLUGIN_ALREADY_LOADED"
    PLUGIN_LOAD_FAILED = "PLUGIN_LOAD_FAILED"
    PLUGIN_UNLOAD_FAILED = "PLUGIN_UNLOAD_FAILED"
    INVALID_REQUEST = "INVALID_REQUEST"
    UNAUTHORIZED = "UNAUTHORIZED"
    RATE_LIMITED = "RATE_LIMITED"
    SERVER_ERROR = "SERVER_ERROR"
    TOOL_ERROR = "TOOL_ERROR"


class DevToolboxError(Exception):
    """Base error. Carries a code, a message and optional details."""

    code: ErrorCode = ErrorCode.SERVER_ERROR
    status_code: int = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = details or {}

    def to_dict(self) -> dict:
        data = {"code": self.code.value, "message": self.message}
        if self.details:
            data["details"] = self.details
        return data


# ---------------------------------------------------------------------------
# Plugin errors
# ---------------------------------------------------------------------------


class PluginNotFoundError(DevToolboxError):
    code = ErrorCode.PLUGIN_NOT_FOUND
    status_code = 404

    def __init__(self, plugin_id: str):
        super().__init__(f"Plugin not found: {plugin_id}", {"pluginId": plugin_id})
        self.plugin_id = plugin_id


class PluginAlreadyLoadedError(DevToolboxError):
    code = ErrorCode.PLUGIN_ALREADY_LOADED
    status_code = 409

    def __init__(self, plugin_id: str):
        super().__init__(
            f"Plugin '{plugin_id}' is already loaded. Use force=true to reload.",
            {"pluginId": plugin_id},
        )
        self.plugin_id = plugin_id


class PluginLoadError(DevToolboxError):
    """Validation, dependency or initialization failure of a single plugin."""

    code = ErrorCode.PLUGIN_LOAD_FAILED
    status_code = 400

    def __init__(
        self,
        plugin_id: str,
        cause: Any,
        details: Optional[Dict[str, Any]] = None,
    ):
        reason = str(cause) or type(cause).__name__
        merged = {"pluginId": plugin_id, "cause": reason}
        merged.update(details or {})
        super().__init__(f"Failed to load plugin '{plugin_id}': {reason}", merged)
        self.plugin_id = plugin_id
        self.cause = cause


class MissingDependencyError(Exception):
    """A declared dependency is not loaded and active."""

    def __init__(self, plugin_id: str, missing: List[str]):
        super().__init__(f"Missing dependency: {', '.join(missing)}")
        self.plugin_id = plugin_id
        self.missing = missing


class DependencyCycleError(PluginLoadError):
    """The dependency graph of a batch contains a cycle."""

    def __init__(self, cycle: List[str]):
        path = " -> ".join(cycle)
        super().__init__(
            cycle[0], f"dependency cycle detected: {path}", {"cycle": list(cycle)}
        )
        self.cycle = list(cycle)


class PluginUnloadError(DevToolboxError):
    code = ErrorCode.PLUGIN_UNLOAD_FAILED
    status_code = 409

    def __init__(self, plugin_id: str, dependents: List[str]):
        super().__init__(
            f"Cannot unload '{plugin_id}': required by {', '.join(dependents)}",
            {"pluginId": plugin_id, "dependents": list(dependents)},
        )
        self.plugin_id = plugin_id
        self.dependents = list(dependents)


# ---------------------------------------------------------------------------
# Request / server errors
# ---------------------------------------------------------------------------


class InvalidRequestError(DevToolboxError):
    code = ErrorCode.INVALID_REQUEST
    status_code = 400


class UnauthorizedError(DevToolboxError):
    code = ErrorCode.UNAUTHORIZED
    status_code = 401

    def __init__(self, message: str = "Invalid or missing API key"):
        super().__init__(message)


class RateLimitExceededError(DevToolboxError):
    code = ErrorCode.RATE_LIMITED
    status_code = 429

    def __init__(self, limit: int, retry_after: int):
        super().__init__(
            "Rate limit exceeded",
            {"limit": limit, "retryAfter": retry_after},
        )
        self.retry_after = retry_after


class ServerError(DevToolboxError):
    code = ErrorCode.SERVER_ERROR
    status_code = 500

    def __init__(self, detail: str):
        super().__init__("Internal server error", {"detail": detail})


# ---------------------------------------------------------------------------
# Tool registry errors
# ---------------------------------------------------------------------------


class ToolRegistryError(DevToolboxError):
    code = ErrorCode.TOOL_ERROR
    status_code = 400


class ToolNotFoundError(ToolRegistryError):
    status_code = 404

    def __init__(self, tool_id: str):
        super().__init__(f"Tool not found: {tool_id}", {"toolId": tool_id})
        self.tool_id = tool_id


class ToolAlreadyRegisteredError(ToolRegistryError):
    status_code = 409

    def __init__(self, tool_id: str):
        super().__init__(
            f"Tool with ID '{tool_id}' already exists", {"toolId": tool_id}
        )
        self.tool_id = tool_id


class RegistryCapacityError(ToolRegistryError):
    def __init__(self, max_tools: int):
        super().__init__(
            f"Maximum number of tools ({max_tools}) reached", {"maxTools": max_tools}
        )


class InvalidToolMetadataError(ToolRegistryError):
    pass


class ToolDependencyError(ToolRegistryError):
    pass
