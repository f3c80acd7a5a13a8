"""Tool Registry Demo plugin: registers example tools through its context."""

import json
from pathlib import Path
from typing import List, Optional

from devtoolbox.plugins.context import PluginContext
from devtoolbox.plugins.contract import Plugin, PluginCommand
from devtoolbox.tools.types import (
    Tool,
    ToolCategory,
    ToolExecutionContext,
    ToolExecutionResult,
    ToolMetadata,
)

CASES = ("upper", "lower", "title")


class FileCounterTool(Tool):
    """Counts files in a directory tree."""

    def __init__(self):
        self.metadata = ToolMetadata(
            id="file-counter",
            name="File Counter",
            category=ToolCategory.FILE,
            version="1.0.0",
            description="Counts files in a directory",
            author="Developer Toolbox",
            tags=["file", "count", "directory"],
        )

    def validate(self, context: ToolExecutionContext):
        if not context.args:
            return False, "Directory path is required"
        return True, None

    def execute(self, context: ToolExecutionContext) -> ToolExecutionResult:
        directory = Path(context.args[0])
        if not directory.is_absolute():
            directory = context.cwd / directory
        if not directory.is_dir():
            return ToolExecutionResult.failure(f"Not a directory: {context.args[0]}")

        count = sum(1 for p in directory.rglob("*") if p.is_file())
        return ToolExecutionResult(
            success=True,
            data={"directory": str(directory), "fileCount": count},
        )

    def get_help(self) -> str:
        return """
Usage: file-counter <directory>

Counts the number of files in the specified directory and its subdirectories.

Examples:
  file-counter /path/to/dir
  file-counter .
"""


class CaseConverterTool(Tool):
    def __init__(self):
        self.metadata = ToolMetadata(
            id="case-converter",
            name="String Case Converter",
            category=ToolCategory.UTILITY,
            version="1.0.0",
            description="Converts text between different cases (upper, lower, title)",
            author="Developer Toolbox",
            tags=["string", "text", "utility"],
        )

    def validate(self, context: ToolExecutionContext):
        if not context.args:
            return False, "Text input is required"
        target = context.options.get("case", "upper")
        if target not in CASES:
            return False, f"Invalid case type. Must be one of: {', '.join(CASES)}"
        return True, None

    def execute(self, context: ToolExecutionContext) -> ToolExecutionResult:
        text = context.args[0]
        target = context.options.get("case", "upper")
        if target == "upper":
            converted = text.upper()
        elif target == "lower":
            converted = text.lower()
        else:
            converted = text.title()
        return ToolExecutionResult(
            success=True,
            data={"original": text, "converted": converted, "case": target},
        )

    def get_help(self) -> str:
        return """
Usage: case-converter <text> [--case=<type>]

Options:
  --case=<type>  Target case: upper, lower, or title (default: upper)
"""


class JsonFormatterTool(Tool):
    def __init__(self):
        self.metadata = ToolMetadata(
            id="json-formatter",
            name="JSON Formatter",
            category=ToolCategory.UTILITY,
            version="1.0.0",
            description="Formats and validates JSON data",
            author="Developer Toolbox",
            tags=["json", "format", "validate"],
        )

    def validate(self, context: ToolExecutionContext):
        if not context.args:
            return False, "JSON string is required"
        return True, None

    def execute(self, context: ToolExecutionContext) -> ToolExecutionResult:
        raw = context.args[0]
        try:
            indent = int(context.options.get("indent", 2))
            parsed = json.loads(raw)
        except ValueError as e:
            return ToolExecutionResult.failure(f"Invalid JSON: {e}")
        return ToolExecutionResult(
            success=True,
            data={"original": raw, "formatted": json.dumps(parsed, indent=indent), "valid": True},
        )

    def get_help(self) -> str:
        return """
Usage: json-formatter <json-string> [--indent=<spaces>]
"""


class ToolRegistryDemoPlugin(Plugin):
    metadata = {
        "id": "tool-registry-demo",
        "name": "Tool Registry Demo Plugin",
        "version": "1.0.0",
        "description": "Registers example tools in the tool registry",
        "author": "Developer Toolbox",
    }

    def __init__(self):
        self.context: Optional[PluginContext] = None

    async def initialize(self, context: PluginContext) -> None:
        self.context = context
        for tool in (FileCounterTool(), CaseConverterTool(), JsonFormatterTool()):
            await context.register_tool(tool)
        context.logger.info(f"Registered {len(context.tool_ids)} demo tools")

    def get_commands(self) -> List[PluginCommand]:
        return [
            PluginCommand(
                name="demo-tools",
                description="List the tools registered by the demo plugin",
                handler=self.list_tools,
            ),
        ]

    def list_tools(self, args: List[str]) -> int:
        if self.context is None:
            return 1
        for tool_id in self.context.tool_ids:
            print(tool_id)
        return 0

    async def cleanup(self) -> None:
        # Tools registered through the context are released by the manager
        if self.context:
            self.context.logger.info("Tool Registry Demo Plugin cleaned up")
            self.context = None
