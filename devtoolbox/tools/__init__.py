"""Tool registry system."""

from devtoolbox.tools.registry import ToolRegistry
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

__all__ = [
    "ToolRegistry",
    "RegistryConfig",
    "RegistryStatistics",
    "Tool",
    "ToolCategory",
    "ToolExecutionContext",
    "ToolExecutionResult",
    "ToolMetadata",
    "ToolSearchFilter",
]
