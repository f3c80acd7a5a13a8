"""Hello World plugin entry point."""

import argparse
from typing import List, Optional

from rich.console import Console

from devtoolbox.plugins.context import PluginContext
from devtoolbox.plugins.contract import Plugin, PluginCommand

console = Console()


def _parse_name(prog: str, args: List[str]) -> str:
    parser = argparse.ArgumentParser(prog=prog, add_help=False)
    parser.add_argument("-n", "--name", default="World")
    options, _ = parser.parse_known_args(args)
    return options.name


class HelloWorldPlugin(Plugin):
    """Contributes the ``hello`` and ``goodbye`` commands."""

    metadata = {
        "id": "hello-world",
        "name": "Hello World Plugin",
        "version": "1.0.0",
        "description": "A simple example plugin that demonstrates the plugin system",
        "author": "Developer Toolbox",
    }

    def __init__(self):
        self.context: Optional[PluginContext] = None
        self.greeting = "Hello"

    async def initialize(self, context: PluginContext) -> None:
        self.context = context
        self.greeting = context.config.get("greeting", "Hello")
        context.logger.info("Hello World Plugin initialized")

    def get_commands(self) -> List[PluginCommand]:
        return [
            PluginCommand(
                name="hello",
                description="Say hello to the world",
                handler=self.hello,
                usage="hello [-n NAME]",
            ),
            PluginCommand(
                name="goodbye",
                description="Say goodbye",
                handler=self.goodbye,
                usage="goodbye [-n NAME]",
            ),
        ]

    def hello(self, args: List[str]) -> int:
        name = _parse_name("hello", args)
        console.print(f"\n[bold green]👋 {self.greeting}, {name}![/bold green]\n")
        if self.context:
            self.context.logger.debug(f"Greeted {name}")
        return 0

    def goodbye(self, args: List[str]) -> int:
        name = _parse_name("goodbye", args)
        console.print(f"\n[bold blue]👋 Goodbye, {name}![/bold blue]\n")
        if self.context:
            self.context.logger.debug(f"Said goodbye to {name}")
        return 0

    async def cleanup(self) -> None:
        if self.context:
            self.context.logger.info("Hello World Plugin cleaned up")
            self.context = None
