"""Rich rendering helpers for CLI output."""

from typing import Iterable, List

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from devtoolbox.plugins.contract import PluginCommand
from devtoolbox.plugins.manager import LoadResult
from devtoolbox.plugins.registry import PluginInfo
from devtoolbox.tools.types import RegistryStatistics, Tool

console = Console(legacy_windows=False, tab_size=4)


def render_plugins(plugins: Iterable[PluginInfo], results: List[LoadResult]) -> None:
    table = Table(title="Plugins")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Version")
    table.add_column("State")
    table.add_column("Dependencies")
    table.add_column("Commands")

    for p in plugins:
        table.add_row(
            p.id, p.name, p.version, f"[green]{p.state}[/green]",
            ", ".join(p.dependencies) or "-", ", ".join(p.commands) or "-",
        )
    console.print(table)

    failed = [r for r in results if not r.success]
    for r in failed:
        console.print(f"[red]✗ {r.plugin_id}[/red]: {r.error}")
    if not plugins and not failed:
        console.print("[dim]No plugins found.[/dim]")


def render_plugin(info: PluginInfo) -> None:
    lines = [
        f"ID:           {info.id}",
        f"Name:         {info.name}",
        f"Version:      {info.version}",
        f"Description:  {info.description}",
        f"Author:       {info.author or '-'}",
        f"State:        {info.state}",
        f"Dependencies: {', '.join(info.dependencies) or '-'}",
        f"Commands:     {', '.join(info.commands) or '-'}",
    ]
    if info.error:
        lines.append(f"Error:        [red]{info.error}[/red]")
    console.print(Panel("\n".join(lines), title=f"Plugin: {info.id}", border_style="blue"))


def render_commands(commands: Iterable[PluginCommand], owner) -> None:
    table = Table(title="Plugin Commands")
    table.add_column("Command", style="cyan")
    table.add_column("Plugin")
    table.add_column("Description")
    for c in commands:
        table.add_row(c.name, owner(c.name) or "-", c.description)
    console.print(table)


def render_tools(tools: List[Tool]) -> None:
    if not tools:
        console.print("[dim]No tools found matching the criteria[/dim]")
        return

    table = Table(title=f"Registered Tools ({len(tools)})")
    table.add_column("", width=1)
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Category")
    table.add_column("Tags")
    table.add_column("Description")
    for t in tools:
        m = t.metadata
        status = "[green]●[/green]" if m.enabled else "[dim]○[/dim]"
        table.add_row(status, m.id, m.name, m.category.value, ", ".join(m.tags), m.description)
    console.print(table)


def render_tool(tool: Tool, registered) -> None:
    m = tool.metadata
    lines = [
        f"ID:          {m.id}",
        f"Category:    {m.category.value}",
        f"Description: {m.description}",
        f"Enabled:     {'[green]Yes[/green]' if m.enabled else '[red]No[/red]'}",
    ]
    if m.version:
        lines.append(f"Version:     {m.version}")
    if m.author:
        lines.append(f"Author:      {m.author}")
    if m.tags:
        lines.append(f"Tags:        {', '.join(m.tags)}")
    if m.docs_url:
        lines.append(f"Docs:        {m.docs_url}")
    if m.repo_url:
        lines.append(f"Repository:  {m.repo_url}")
    for dep in m.dependencies:
        mark = "[green]✓[/green]" if registered(dep) else "[red]✗[/red]"
        lines.append(f"Dependency:  {mark} {dep}")
    help_text = tool.get_help() if hasattr(tool, "get_help") else ""
    if help_text:
        lines.append("")
        lines.append(help_text.strip())
    console.print(Panel("\n".join(lines), title=m.name, border_style="blue"))


def render_statistics(stats: RegistryStatistics) -> None:
    table = Table(title="Tool Registry Statistics", show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value")
    table.add_row("Total tools", str(stats.total_tools))
    table.add_row("Enabled", str(stats.enabled_tools))
    table.add_row("Disabled", str(stats.disabled_tools))
    for category, count in stats.tools_by_category.items():
        if count:
            table.add_row(f"  {category}", str(count))
    table.add_row("Last registered", stats.last_registered or "-")
    table.add_row("Last unregistered", stats.last_unregistered or "-")
    console.print(table)
