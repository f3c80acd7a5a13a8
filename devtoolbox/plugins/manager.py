"""Plugin manager - top-level orchestrator for the plugin system."""

import asyncio
import inspect
import logging
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from devtoolbox.constants import HOOK_TIMEOUT, PLUGIN_DATA_DIR, plugin_search_paths
from devtoolbox.errors import (
    InvalidRequestError,
    MissingDependencyError,
    PluginAlreadyLoadedError,
    PluginLoadError,
    PluginNotFoundError,
    PluginUnloadError,
    ToolRegistryError,
)
from devtoolbox.plugins.config import PluginSettings
from devtoolbox.plugins.context import PluginContext
from devtoolbox.plugins.contract import PluginCommand
from devtoolbox.plugins.graph import topological_order
from devtoolbox.plugins.lifecycle import PluginLifecycle
from devtoolbox.plugins.loader import PluginLoader, PluginRef
from devtoolbox.plugins.registry import PluginInfo, PluginInstance, PluginRegistry, PluginState
from devtoolbox.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


@dataclass
class LoadResult:
    """Outcome of one plugin in a bulk load."""

    plugin_id: str
    success: bool
    error: Optional[str] = None


class PluginManager:
    """Top-level plugin system orchestrator.

    Owns the active plugin set. Mutations (load, unload, reload) are
    serialized behind one lock; reads work on committed snapshots and never
    wait for a queued mutation.
    """

    def __init__(
        self,
        tool_registry: Optional[ToolRegistry] = None,
        settings: Optional[PluginSettings] = None,
        search_paths: Optional[Sequence[Tuple[Path, str]]] = None,
        data_dir: Path = PLUGIN_DATA_DIR,
        loader: Optional[PluginLoader] = None,
        hook_timeout: Optional[float] = HOOK_TIMEOUT,
    ):
        self.tool_registry = tool_registry
        self.settings = settings
        self.search_paths = list(search_paths) if search_paths is not None else plugin_search_paths()
        self.data_dir = data_dir
        self.loader = loader or PluginLoader()
        self.lifecycle = PluginLifecycle(self.loader, hook_timeout)
        self.registry = PluginRegistry()
        self._lock = asyncio.Lock()
        self._commands: Mapping[str, PluginCommand] = MappingProxyType({})

    # ------------------------------------------------------------------
    # Read-only operations
    # ------------------------------------------------------------------

    def list_plugins(self) -> List[PluginInfo]:
        """Active plugins in load order."""
        return [inst.to_info() for inst in self.registry.active()]

    def get_plugin(self, plugin_id: str) -> PluginInfo:
        instance = self.registry.get(plugin_id)
        if instance is None:
            raise PluginNotFoundError(plugin_id)
        return instance.to_info()

    def has_plugin(self, plugin_id: str) -> bool:
        return self.registry.has(plugin_id)

    def list_failures(self) -> List[PluginInfo]:
        """Plugins that were rejected or failed, with the recorded cause."""
        return [inst.to_info() for inst in self.registry.get_failures()]

    def list_commands(self) -> List[PluginCommand]:
        """Deduplicated commands of all active plugins."""
        return list(self._commands.values())

    def get_command(self, name: str) -> Optional[PluginCommand]:
        return self._commands.get(name)

    def command_owner(self, name: str) -> Optional[str]:
        for instance in self.registry.active():
            if any(c.name == name for c in instance.commands):
                return instance.id
        return None

    @property
    def busy(self) -> bool:
        """True while a mutating operation holds the lock."""
        return self._lock.locked()

    def get_statistics(self) -> dict:
        active = self.registry.active()
        return {
            "totalPlugins": self.registry.count(),
            "activePlugins": len(active),
            "failedPlugins": len(self.registry.get_failures()),
            "commands": len(self._commands),
            "busy": self.busy,
        }

    # ------------------------------------------------------------------
    # Mutating operations
    # ------------------------------------------------------------------

    async def load(self, ref: PluginRef, force: bool = False, source_label: str = "external") -> PluginInfo:
        """Load one plugin from a directory path or an in-memory plugin object.

        Raises:
            PluginAlreadyLoadedError: id is active and force is not set
            PluginUnloadError: force is set but active plugins depend on it
            PluginLoadError: validation, dependency check or initialize failed
        """
        async with self._lock:
            instance = self.loader.describe(ref, source_label)
            self._validate(instance)

            if self.registry.has(instance.id):
                if not force:
                    raise PluginAlreadyLoadedError(instance.id)
                logger.info(f"Force reloading plugin: {instance.id}")
                await self._unload_locked(instance.id, cascade=False)

            await self._activate(instance)
            return instance.to_info()

    async def unload(self, plugin_id: str, cascade: bool = False) -> List[str]:
        """Unload a plugin (and, with cascade, everything depending on it).

        Returns:
            Ids unloaded, in the order they were unloaded

        Raises:
            PluginNotFoundError: plugin is not active
            PluginUnloadError: active dependents exist and cascade is not set
        """
        async with self._lock:
            return await self._unload_locked(plugin_id, cascade)

    async def reload(self, plugin_id: Optional[str] = None) -> List[PluginInfo]:
        """Reload one plugin (with its dependents) or every active plugin.

        The new code is validated and ordered before anything is unloaded, so
        an invalid plugin or a dependency cycle leaves the running set intact.
        Leaves are unloaded first and roots loaded first. A failure while
        loading aborts the rest of the batch without rollback.

        Raises:
            PluginNotFoundError: plugin_id is not active
            DependencyCycleError: the new dependency graph has a cycle
            PluginLoadError: a plugin in the batch failed to validate or load
        """
        async with self._lock:
            if plugin_id is not None:
                if not self.registry.has(plugin_id):
                    raise PluginNotFoundError(plugin_id)
                unload_order = self.registry.dependents_of(plugin_id) + [plugin_id]
            else:
                unload_order = list(reversed(list(self.registry.snapshot().keys())))

            if not unload_order:
                return []

            current = [self.registry.get(pid) for pid in reversed(unload_order)]
            fresh = [self.loader.describe(inst.source, inst.source_label) for inst in current]
            for instance in fresh:
                self._validate(instance)

            by_id = {inst.id: inst for inst in fresh}
            load_order = topological_order({inst.id: inst.dependencies for inst in fresh})

            logger.info(f"Reloading {len(fresh)} plugin(s): {', '.join(load_order)}")
            for pid in unload_order:
                await self._teardown(self.registry.get(pid))

            reloaded: List[PluginInfo] = []
            for index, pid in enumerate(load_order):
                try:
                    await self._activate(by_id[pid])
                except PluginLoadError as e:
                    raise PluginLoadError(pid, e.details.get("cause", e.message), {
                        "reloaded": [info.id for info in reloaded],
                        "skipped": load_order[index + 1:],
                    }) from e
                reloaded.append(by_id[pid].to_info())
            return reloaded

    async def load_all(self) -> List[LoadResult]:
        """Discover plugins in the search paths and load them in dependency order.

        The settings file is re-read first, so enable/disable changes made by
        another process apply. Disabled plugins are skipped. Plugins whose
        dependencies failed are reported and skipped; independent plugins
        still load.

        Raises:
            DependencyCycleError: the discovered graph has a cycle (nothing is loaded)
        """
        async with self._lock:
            results: Dict[str, LoadResult] = {}
            resolved: Dict[str, PluginInstance] = {}
            if self.settings is not None:
                self.settings.reload()

            for instance in self.loader.discover(self.search_paths):
                try:
                    self._validate(instance)
                except PluginLoadError as e:
                    results[instance.id] = LoadResult(instance.id, False, e.message)
                    continue
                if self.settings is not None and not self.settings.is_enabled(instance.id):
                    logger.info(f"Plugin '{instance.id}' is disabled, skipping")
                    continue
                if self.registry.has(instance.id):
                    results[instance.id] = LoadResult(instance.id, False, "Plugin already loaded")
                    continue
                resolved[instance.id] = instance

            order = topological_order({pid: inst.dependencies for pid, inst in resolved.items()})
            failed = {pid for pid, r in results.items() if not r.success}

            for pid in order:
                instance = resolved[pid]
                broken = [dep for dep in instance.dependencies if dep in failed]
                if broken:
                    instance.state = PluginState.FAILED
                    instance.error = f"Dependency failed to load: {', '.join(broken)}"
                    self.registry.record_failure(instance)
                    results[pid] = LoadResult(pid, False, instance.error)
                    failed.add(pid)
                    continue
                try:
                    await self._activate(instance)
                    results[pid] = LoadResult(pid, True)
                except PluginLoadError as e:
                    results[pid] = LoadResult(pid, False, e.message)
                    failed.add(pid)

            loaded = sum(1 for r in results.values() if r.success)
            logger.info(f"Plugin system initialized, {loaded}/{len(results)} plugins loaded")
            return list(results.values())

    async def unload_all(self) -> None:
        """Unload every active plugin, leaves first."""
        async with self._lock:
            for instance in reversed(self.registry.get_all()):
                await self._teardown(instance)
        logger.info("All plugins unloaded")

    async def run_command(self, name: str, args: Optional[List[str]] = None) -> int:
        """Run an aggregated command with before/after hooks.

        Returns:
            Exit code of the handler (None counts as 0, an exception as 1)
        """
        command = self.get_command(name)
        if command is None or command.handler is None:
            raise InvalidRequestError(f"Unknown command: {name}", {"command": name})

        await self.run_hook("before_command", name)
        try:
            result = command.handler(list(args or []))
            if inspect.isawaitable(result):
                result = await result
            exit_code = int(result or 0)
        except Exception as e:
            logger.error(f"Command '{name}' failed: {e}")
            exit_code = 1
        await self.run_hook("after_command", name, exit_code)
        return exit_code

    async def run_hook(self, hook_name: str, *args) -> None:
        """Run an optional hook on every active plugin. Failures are logged."""
        for instance in self.registry.active():
            result = await self.lifecycle.run_hook(instance, hook_name, *args)
            if not result.ok:
                logger.error(f"Error executing {hook_name} hook for plugin {instance.id}: {result.error}")

    # ------------------------------------------------------------------
    # Internals (callers hold the lock)
    # ------------------------------------------------------------------

    def _validate(self, instance: PluginInstance) -> None:
        try:
            self.lifecycle.validate(instance)
        except PluginLoadError:
            self.registry.record_failure(instance)
            raise

    async def _activate(self, instance: PluginInstance) -> None:
        try:
            self.lifecycle.check_dependencies(instance, self.registry.snapshot())
        except MissingDependencyError as e:
            instance.state = PluginState.FAILED
            instance.error = str(e)
            self.registry.record_failure(instance)
            logger.error(f"Cannot load plugin {instance.id}: {e}")
            raise PluginLoadError(instance.id, e, {"missing": e.missing}) from e

        context = self._create_context(instance)
        try:
            await self.lifecycle.initialize(instance, context)
        except PluginLoadError:
            self.registry.record_failure(instance)
            await self._release_tools(context)
            raise

        self.registry.add(instance)
        self._rebuild_commands()

    async def _unload_locked(self, plugin_id: str, cascade: bool) -> List[str]:
        if not self.registry.has(plugin_id):
            raise PluginNotFoundError(plugin_id)

        dependents = self.registry.dependents_of(plugin_id)
        if dependents and not cascade:
            raise PluginUnloadError(plugin_id, dependents)

        unloaded = []
        for pid in dependents + [plugin_id]:
            await self._teardown(self.registry.get(pid))
            unloaded.append(pid)
        return unloaded

    async def _teardown(self, instance: PluginInstance) -> None:
        # Readers see only ACTIVE instances, so this flip and the command rebuild commit as one step.
        instance.state = PluginState.UNLOADING
        self._rebuild_commands()

        result = await self.lifecycle.cleanup(instance)
        if not result.ok:
            logger.warning(f"Cleanup of plugin {instance.id} failed: {result.error}")
        await self._release_tools(instance.context)

        self.registry.remove(instance.id)
        instance.state = PluginState.UNLOADED
        instance.context = None
        self._rebuild_commands()
        logger.info(f"Unloaded plugin: {instance.id}")

    async def _release_tools(self, context: Optional[PluginContext]) -> None:
        if context is None or self.tool_registry is None:
            return
        for tool_id, tool in reversed(context.tools):
            if self.tool_registry.get_tool(tool_id) is not tool:
                logger.debug(f"Tool {tool_id} of plugin {context.plugin_id} was replaced or removed, leaving it")
                continue
            try:
                await self.tool_registry.unregister(tool_id)
            except ToolRegistryError as e:
                logger.warning(f"Could not unregister tool {tool_id} of plugin {context.plugin_id}: {e}")

    def _create_context(self, instance: PluginInstance) -> PluginContext:
        config = self.settings.get_plugin_config(instance.id) if self.settings else {}
        return PluginContext(
            plugin_id=instance.id,
            data_dir=self.data_dir / instance.id,
            config=config,
            tool_registry=self.tool_registry,
        )

    def _rebuild_commands(self) -> None:
        commands: Dict[str, PluginCommand] = {}
        for instance in self.registry.snapshot().values():
            if instance.state != PluginState.ACTIVE:
                continue
            for command in instance.commands:
                if command.name in commands:
                    logger.warning(
                        f"Command '{command.name}' from plugin {instance.id} "
                        f"shadowed by an earlier plugin"
                    )
                    continue
                commands[command.name] = command
        self._commands = MappingProxyType(commands)
