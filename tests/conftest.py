"""Shared fixtures for plugin manager, tool registry and API tests."""

import json
import textwrap
from pathlib import Path
from typing import Iterable, List, Optional

import pytest

from devtoolbox.plugins.config import PluginSettings
from devtoolbox.plugins.contract import Plugin, PluginCommand
from devtoolbox.plugins.manager import PluginManager
from devtoolbox.tools.registry import ToolRegistry
from devtoolbox.tools.types import (
    RegistryConfig,
    Tool,
    ToolCategory,
    ToolExecutionContext,
    ToolExecutionResult,
    ToolMetadata,
)


class FakePlugin(Plugin):
    """In-memory plugin that records hook calls into a shared journal."""

    def __init__(
        self,
        plugin_id: str,
        dependencies: Iterable[str] = (),
        commands: Optional[List[str]] = None,
        journal: Optional[list] = None,
        fail_init: Optional[Exception] = None,
        fail_cleanup: Optional[Exception] = None,
        version: str = "1.0.0",
    ):
        self.metadata = {
            "id": plugin_id,
            "name": f"Plugin {plugin_id}",
            "version": version,
            "description": f"Test plugin {plugin_id}",
            "dependencies": list(dependencies),
        }
        self.command_names = commands if commands is not None else [f"{plugin_id}-cmd"]
        self.journal = journal if journal is not None else []
        self.fail_init = fail_init
        self.fail_cleanup = fail_cleanup
        self.context = None

    async def initialize(self, context):
        self.journal.append(("init", self.metadata["id"]))
        self.context = context
        if self.fail_init:
            raise self.fail_init

    def get_commands(self):
        return [
            PluginCommand(name=name, description=f"{name} command", handler=lambda args: 0)
            for name in self.command_names
        ]

    async def cleanup(self):
        self.journal.append(("cleanup", self.metadata["id"]))
        if self.fail_cleanup:
            raise self.fail_cleanup


class EchoTool(Tool):
    """Tool that returns its arguments."""

    def __init__(self, tool_id: str, category=ToolCategory.UTILITY, **meta):
        self.metadata = ToolMetadata(
            id=tool_id,
            name=meta.pop("name", f"Tool {tool_id}"),
            category=category,
            description=meta.pop("description", f"Echo tool {tool_id}"),
            **meta,
        )
        self.cleaned_up = False

    def execute(self, context: ToolExecutionContext) -> ToolExecutionResult:
        return ToolExecutionResult(success=True, data={"args": context.args})

    async def cleanup(self):
        self.cleaned_up = True


def write_plugin_dir(
    root: Path,
    plugin_id: str,
    dependencies: Iterable[str] = (),
    body: Optional[str] = None,
    manifest_extra: Optional[dict] = None,
) -> Path:
    """Write ``<root>/<plugin_id>/{plugin.json, plugin.py}`` and return the directory."""
    plugin_dir = root / plugin_id
    plugin_dir.mkdir(parents=True, exist_ok=True)
    manifest = {
        "id": plugin_id,
        "name": f"Plugin {plugin_id}",
        "version": "1.0.0",
        "description": f"Directory plugin {plugin_id}",
        "dependencies": list(dependencies),
    }
    manifest.update(manifest_extra or {})
    (plugin_dir / "plugin.json").write_text(json.dumps(manifest), encoding="utf-8")

    if body is None:
        body = f"""
        from devtoolbox.plugins.contract import Plugin as Base, PluginCommand


        class Plugin(Base):
            metadata = {{
                "id": "{plugin_id}",
                "name": "Plugin {plugin_id}",
                "version": "1.0.0",
                "description": "Directory plugin {plugin_id}",
                "dependencies": {list(dependencies)!r},
            }}

            def get_commands(self):
                return [PluginCommand(name="{plugin_id}-cmd", handler=lambda args: 0)]
        """
    (plugin_dir / "plugin.py").write_text(textwrap.dedent(body), encoding="utf-8")
    return plugin_dir


@pytest.fixture
def tool_registry():
    return ToolRegistry(RegistryConfig())


@pytest.fixture
def settings(tmp_path):
    return PluginSettings(tmp_path / "config.json")


@pytest.fixture
def plugins_root(tmp_path):
    root = tmp_path / "plugins"
    root.mkdir()
    return root


@pytest.fixture
def manager(tmp_path, tool_registry, settings, plugins_root):
    return PluginManager(
        tool_registry=tool_registry,
        settings=settings,
        search_paths=[(plugins_root, "test")],
        data_dir=tmp_path / "data",
        hook_timeout=2.0,
    )
