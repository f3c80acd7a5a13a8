#!/usr/bin/env python
"""
Developer Toolbox CLI

Usage:
    devtoolbox plugins list
    devtoolbox tools list -c file
    devtoolbox run hello --name World
    devtoolbox serve --port 3000 --api-key secret
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from devtoolbox.cli import render
from devtoolbox.config import ServerConfig
from devtoolbox.constants import LOG_DIR
from devtoolbox.errors import DevToolboxError
from devtoolbox.plugins.graph import find_cycle
from devtoolbox.runtime import Runtime, build_runtime
from devtoolbox.tools.types import ToolCategory, ToolExecutionContext, ToolSearchFilter

logger = logging.getLogger(__name__)
console = render.console


def setup_logging(verbose: bool = False) -> None:
    """File handler for everything at INFO, console only for warnings."""
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG if verbose else logging.INFO)

    try:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(LOG_DIR / "devtoolbox.log", encoding="utf-8")
        file_handler.setLevel(logging.INFO)
        file_handler.setFormatter(logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))
        root_logger.addHandler(file_handler)
    except OSError as e:
        print(f"Cannot write log file in {LOG_DIR}: {e}", file=sys.stderr)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    console_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    root_logger.addHandler(console_handler)


# ---------------------------------------------------------------------------
# plugins
# ---------------------------------------------------------------------------


async def cmd_plugins_list(runtime: Runtime, args) -> int:
    manager = runtime.plugin_manager
    results = await manager.load_all()
    render.render_plugins(manager.list_plugins(), results)
    return 0


async def cmd_plugins_info(runtime: Runtime, args) -> int:
    manager = runtime.plugin_manager
    await manager.load_all()
    if manager.has_plugin(args.plugin_id):
        render.render_plugin(manager.get_plugin(args.plugin_id))
        return 0
    for failure in manager.list_failures():
        if failure.id == args.plugin_id:
            render.render_plugin(failure)
            return 1
    console.print(f"[red]Plugin '{args.plugin_id}' not found.[/red]")
    return 1


async def cmd_plugins_enable(runtime: Runtime, args) -> int:
    runtime.settings.enable(args.plugin_id)
    console.print(f"Plugin '{args.plugin_id}' enabled.")
    return 0


async def cmd_plugins_disable(runtime: Runtime, args) -> int:
    runtime.settings.disable(args.plugin_id)
    console.print(f"Plugin '{args.plugin_id}' disabled.")
    return 0


async def cmd_plugins_doctor(runtime: Runtime, args) -> int:
    """Run health checks on the plugin system without loading any plugin."""
    manager = runtime.plugin_manager
    issues = []

    for path, source in manager.search_paths:
        if not path.exists():
            console.print(f"[dim]{source} plugin directory missing: {path}[/dim]")

    config_file = runtime.settings.config_file
    if config_file.exists():
        try:
            with open(config_file) as f:
                json.load(f)
        except json.JSONDecodeError as e:
            issues.append(f"Plugin config file has invalid JSON: {e}")

    graph = {}
    for instance in manager.loader.discover(manager.search_paths):
        try:
            manifest = manager.loader.read_manifest(instance.source)
        except Exception as e:
            issues.append(f"Plugin at {instance.source}: invalid manifest: {e}")
            continue
        entry_module = manifest.entry_point.split(":")[0]
        entry_file = instance.source / f"{entry_module}.py"
        if not entry_file.exists():
            issues.append(f"Plugin '{manifest.id}': entry point file missing: {entry_file}")
        graph[manifest.id] = list(manifest.dependencies)

    for plugin_id, deps in graph.items():
        for dep in deps:
            if dep not in graph:
                issues.append(f"Plugin '{plugin_id}': dependency '{dep}' not found in any search path")

    cycle = find_cycle(graph)
    if cycle:
        issues.append(f"Dependency cycle: {' -> '.join(cycle)}")

    if issues:
        console.print(f"[red]Found {len(issues)} issue(s):[/red]")
        for i, issue in enumerate(issues, 1):
            console.print(f"  {i}. {issue}")
        return 1

    disabled = runtime.settings.get_disabled_list()
    console.print(
        f"[green]All checks passed.[/green] {len(graph)} plugin(s) found, {len(disabled)} disabled."
    )
    return 0


# ---------------------------------------------------------------------------
# tools
# ---------------------------------------------------------------------------


async def cmd_tools_list(runtime: Runtime, args) -> int:
    await runtime.plugin_manager.load_all()
    enabled = True if args.enabled else False if args.disabled else None
    filter = ToolSearchFilter(
        category=args.category,
        tags=[t.strip() for t in args.tags.split(",")] if args.tags else None,
        enabled=enabled,
        search=args.search,
        author=args.author,
    )
    render.render_tools(runtime.tool_registry.search_tools(filter))
    return 0


async def cmd_tools_info(runtime: Runtime, args) -> int:
    await runtime.plugin_manager.load_all()
    registry = runtime.tool_registry
    tool = registry.get_tool(args.tool_id)
    if tool is None:
        console.print(f"[red]Tool not found: {args.tool_id}[/red]")
        return 1
    render.render_tool(tool, registry.has_tool)
    return 0


async def cmd_tools_stats(runtime: Runtime, args) -> int:
    await runtime.plugin_manager.load_all()
    render.render_statistics(runtime.tool_registry.get_statistics())
    return 0


def split_tool_args(raw):
    """Split ``--key=value`` options from positional tool arguments."""
    positional, options = [], {}
    for arg in raw:
        if arg.startswith("--") and "=" in arg:
            key, value = arg[2:].split("=", 1)
            options[key] = value
        else:
            positional.append(arg)
    return positional, options


async def cmd_tools_run(runtime: Runtime, args) -> int:
    await runtime.plugin_manager.load_all()
    positional, options = split_tool_args(args.args)
    context = ToolExecutionContext(args=positional, options=options, cwd=Path.cwd())
    result = await runtime.tool_registry.execute_tool(args.tool_id, context)
    if result.success:
        if result.data is not None:
            console.print_json(json.dumps(result.data, default=str))
    else:
        console.print(f"[red]✗ {result.error}[/red]")
    return result.exit_code


# ---------------------------------------------------------------------------
# commands / run / serve
# ---------------------------------------------------------------------------


async def cmd_commands(runtime: Runtime, args) -> int:
    manager = runtime.plugin_manager
    await manager.load_all()
    render.render_commands(manager.list_commands(), manager.command_owner)
    return 0


async def cmd_run(runtime: Runtime, args) -> int:
    manager = runtime.plugin_manager
    await manager.load_all()
    if manager.get_command(args.command_name) is None:
        console.print(f"[red]Unknown command: {args.command_name}[/red]")
        console.print("[dim]Run 'devtoolbox commands' to see available commands[/dim]")
        return 1
    return await manager.run_command(args.command_name, args.args)


async def cmd_serve(runtime: Runtime, args) -> int:
    import uvicorn

    from devtoolbox.server import create_app

    config = ServerConfig.from_env()
    if args.port is not None:
        config.port = args.port
    if args.host is not None:
        config.host = args.host
    if args.no_cors:
        config.enable_cors = False
    if args.api_key:
        config.api_key = args.api_key
    if args.no_rate_limit:
        config.enable_rate_limit = False
    if args.rate_limit_max is not None:
        config.rate_limit_max = args.rate_limit_max

    ok, message = config.validate()
    if not ok:
        console.print(f"[red]Error: {message}[/red]")
        return 1

    results = await runtime.plugin_manager.load_all()
    loaded = sum(1 for r in results if r.success)
    app = create_app(runtime.plugin_manager, runtime.tool_registry, config)

    console.print(f"[bold blue]Plugin API Server[/bold blue] http://{config.host}:{config.port}/api")
    console.print(f"[dim]{loaded} plugin(s) loaded. Press Ctrl+C to stop.[/dim]")
    server = uvicorn.Server(uvicorn.Config(app, host=config.host, port=config.port, log_level="info"))
    await server.serve()
    return 0


# ---------------------------------------------------------------------------
# argument parsing
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="devtoolbox",
        description="Developer Toolbox - plugins, tools and the plugin management API",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug logs on the console")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # plugins
    plugins = subparsers.add_parser("plugins", help="Manage plugins")
    plugin_sub = plugins.add_subparsers(dest="plugins_command")
    plugin_sub.add_parser("list", help="Load and list plugins").set_defaults(handler=cmd_plugins_list)
    for name, handler, help_text in (
        ("info", cmd_plugins_info, "Show plugin details"),
        ("enable", cmd_plugins_enable, "Enable a plugin"),
        ("disable", cmd_plugins_disable, "Disable a plugin"),
    ):
        p = plugin_sub.add_parser(name, help=help_text)
        p.add_argument("plugin_id", help="Plugin ID")
        p.set_defaults(handler=handler)
    plugin_sub.add_parser("doctor", help="Run health checks").set_defaults(handler=cmd_plugins_doctor)

    # tools
    tools = subparsers.add_parser("tools", help="Inspect and run registered tools")
    tool_sub = tools.add_subparsers(dest="tools_command")
    tools_list = tool_sub.add_parser("list", help="List registered tools")
    tools_list.add_argument("-c", "--category", choices=[c.value for c in ToolCategory], help="Filter by category")
    tools_list.add_argument("-e", "--enabled", action="store_true", help="Show only enabled tools")
    tools_list.add_argument("-d", "--disabled", action="store_true", help="Show only disabled tools")
    tools_list.add_argument("-s", "--search", help="Search in name and description")
    tools_list.add_argument("-t", "--tags", help="Filter by tags (comma-separated)")
    tools_list.add_argument("-a", "--author", help="Filter by author")
    tools_list.set_defaults(handler=cmd_tools_list)
    tools_info = tool_sub.add_parser("info", help="Show tool details")
    tools_info.add_argument("tool_id", help="Tool ID")
    tools_info.set_defaults(handler=cmd_tools_info)
    tool_sub.add_parser("stats", help="Show registry statistics").set_defaults(handler=cmd_tools_stats)
    tools_run = tool_sub.add_parser("run", help="Execute a tool")
    tools_run.add_argument("tool_id", help="Tool ID")
    tools_run.add_argument("args", nargs=argparse.REMAINDER, help="Tool arguments")
    tools_run.set_defaults(handler=cmd_tools_run)

    # commands / run
    subparsers.add_parser("commands", help="List plugin commands").set_defaults(handler=cmd_commands)
    run = subparsers.add_parser("run", help="Run a plugin command")
    run.add_argument("command_name", help="Command name")
    run.add_argument("args", nargs=argparse.REMAINDER, help="Command arguments")
    run.set_defaults(handler=cmd_run)

    # serve
    serve = subparsers.add_parser("serve", aliases=["api"], help="Start the plugin management API")
    serve.add_argument("-p", "--port", type=int, help="Port to run the API server on")
    serve.add_argument("-H", "--host", help="Host to bind the API server to")
    serve.add_argument("--no-cors", action="store_true", help="Disable CORS")
    serve.add_argument("-k", "--api-key", help="API key for authentication")
    serve.add_argument("--no-rate-limit", action="store_true", help="Disable rate limiting")
    serve.add_argument("--rate-limit-max", type=int, help="Max requests per minute")
    serve.set_defaults(handler=cmd_serve)

    return parser


async def _dispatch(runtime: Runtime, args) -> int:
    try:
        return await args.handler(runtime, args)
    except DevToolboxError as e:
        console.print(f"[red]{e.code.value}: {e.message}[/red]")
        return 1
    finally:
        await runtime.plugin_manager.unload_all()


def main(argv=None) -> int:
    load_dotenv(".env")
    parser = build_parser()
    args = parser.parse_args(argv)

    if not getattr(args, "handler", None):
        parser.print_help()
        return 1

    setup_logging(args.verbose)
    runtime = build_runtime()
    try:
        return asyncio.run(_dispatch(runtime, args))
    except KeyboardInterrupt:
        console.print("\n[yellow]interrupted[/yellow]")
        return 130


if __name__ == "__main__":
    sys.exit(main())
