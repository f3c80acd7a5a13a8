"""Plugin lifecycle management - handles state transitions."""
from __future__ import annotations

import asyncio
import inspect
import logging
from pathlib import Path
from typing import Any, List, Mapping, Optional

from pydantic import ValidationError

from devtoolbox.constants import HOOK_TIMEOUT
from devtoolbox.errors import MissingDependencyError, PluginLoadError
from devtoolbox.plugins.context import PluginContext
from devtoolbox.plugins.contract import HookResult, PluginCommand, plugin_like
from devtoolbox.plugins.loader import PluginLoader
from devtoolbox.plugins.manifest import PluginMetadata
from devtoolbox.plugins.registry import PluginInstance, PluginState

logger = logging.getLogger(__name__)


def _coerce_metadata(raw: Any) -> PluginMetadata:
    if isinstance(raw, PluginMetadata):
        return raw
    if isinstance(raw, Mapping):
        return PluginMetadata.model_validate(dict(raw))
    return PluginMetadata.model_validate(raw, from_attributes=True)


def _coerce_command(raw: Any) -> PluginCommand:
    if isinstance(raw, PluginCommand):
        return raw
    if isinstance(raw, Mapping):
        return PluginCommand(
            name=raw["name"],
            description=raw.get("description", ""),
            handler=raw.get("handler"),
            usage=raw.get("usage", ""),
        )
    raise TypeError(f"Unsupported command contribution: {raw!r}")


async def _call_hook(hook, *args, timeout: Optional[float] = None):
    result = hook(*args)
    if inspect.isawaitable(result):
        return await asyncio.wait_for(result, timeout)
    return result


class PluginLifecycle:
    """Drives a plugin through: validating → resolved → initializing → active → unloading."""

    def __init__(self, loader: Optional[PluginLoader] = None, hook_timeout: Optional[float] = HOOK_TIMEOUT):
        self.loader = loader or PluginLoader()
        self.hook_timeout = hook_timeout

    def validate(self, instance: PluginInstance) -> None:
        """Resolve the plugin object and schema-check its metadata.

        On failure the instance is REJECTED and PluginLoadError is raised.
        On success the instance is RESOLVED.
        """
        instance.state = PluginState.VALIDATING
        try:
            if isinstance(instance.source, Path):
                manifest = self.loader.read_manifest(instance.source)
                plugin = self.loader.load_object(instance.source, manifest)
                metadata = manifest.to_metadata()
                declared = getattr(plugin, "metadata", None)
                if declared:
                    own = _coerce_metadata(declared)
                    if own.id != metadata.id:
                        raise ValueError(
                            f"Manifest id '{metadata.id}' does not match plugin id '{own.id}'"
                        )
                    metadata = own
            else:
                plugin = instance.source
                if not plugin_like(plugin):
                    raise TypeError("Object does not provide metadata and get_commands()")
                if not getattr(plugin, "metadata", None):
                    raise ValueError("Plugin does not have metadata")
                metadata = _coerce_metadata(plugin.metadata)
        except ValidationError as e:
            self._reject(instance, f"Invalid manifest: {self._summarize(e)}")
            raise PluginLoadError(instance.id, instance.error, {"state": instance.state.value}) from e
        except Exception as e:
            self._reject(instance, str(e) or type(e).__name__)
            raise PluginLoadError(instance.id, e, {"state": instance.state.value}) from e

        instance.plugin_object = plugin
        instance.metadata = metadata
        instance.state = PluginState.RESOLVED
        logger.debug(f"Resolved plugin: {metadata.id} v{metadata.version}")

    def check_dependencies(
        self, instance: PluginInstance, active: Mapping[str, PluginInstance]
    ) -> None:
        """Raise MissingDependencyError unless every dependency is active."""
        missing = [
            dep for dep in instance.dependencies
            if dep not in active or active[dep].state != PluginState.ACTIVE
        ]
        if missing:
            raise MissingDependencyError(instance.id, missing)

    async def initialize(self, instance: PluginInstance, context: PluginContext) -> None:
        """Call initialize() and collect commands.

        On failure the instance is FAILED, cleanup is attempted and
        PluginLoadError is raised. On success the instance is ACTIVE.
        """
        if instance.state != PluginState.RESOLVED:
            raise PluginLoadError(
                instance.id, f"state is {instance.state.value}, expected resolved"
            )

        instance.state = PluginState.INITIALIZING
        instance.context = context
        plugin = instance.plugin_object
        try:
            hook = getattr(plugin, "initialize", None)
            if hook is not None:
                await _call_hook(hook, context, timeout=self.hook_timeout)
            commands = [_coerce_command(c) for c in (plugin.get_commands() or [])]
        except Exception as e:
            if isinstance(e, asyncio.TimeoutError):
                reason = f"initialize() timed out after {self.hook_timeout}s"
            else:
                reason = str(e) or type(e).__name__
            instance.state = PluginState.FAILED
            instance.error = reason
            logger.error(f"Failed to initialize plugin {instance.id}: {reason}")
            result = await self.cleanup(instance)
            if not result.ok:
                logger.warning(f"Cleanup after failed initialize of {instance.id}: {result.error}")
            instance.state = PluginState.FAILED
            raise PluginLoadError(instance.id, reason, {"state": instance.state.value}) from e

        instance.commands = commands
        instance.error = None
        instance.state = PluginState.ACTIVE
        logger.info(
            f"Loaded plugin: {instance.metadata.name} v{instance.metadata.version} "
            f"({len(commands)} command(s))"
        )

    async def cleanup(self, instance: PluginInstance) -> HookResult:
        """Call cleanup() best-effort. Never raises."""
        hook = getattr(instance.plugin_object, "cleanup", None)
        if hook is None:
            return HookResult(ok=True)
        try:
            await _call_hook(hook, timeout=self.hook_timeout)
            return HookResult(ok=True)
        except asyncio.TimeoutError:
            return HookResult(ok=False, error=f"cleanup() timed out after {self.hook_timeout}s")
        except Exception as e:
            return HookResult(ok=False, error=str(e) or type(e).__name__)

    async def run_hook(self, instance: PluginInstance, hook_name: str, *args) -> HookResult:
        """Call an optional command hook best-effort. Never raises."""
        hook = getattr(instance.plugin_object, hook_name, None)
        if hook is None:
            return HookResult(ok=True)
        try:
            await _call_hook(hook, *args, timeout=self.hook_timeout)
            return HookResult(ok=True)
        except Exception as e:
            return HookResult(ok=False, error=str(e) or type(e).__name__)

    def _reject(self, instance: PluginInstance, reason: str) -> None:
        instance.state = PluginState.REJECTED
        instance.error = reason
        logger.error(f"Rejected plugin {instance.id}: {reason}")

    @staticmethod
    def _summarize(error: ValidationError) -> str:
        parts: List[str] = []
        for err in error.errors():
            loc = ".".join(str(x) for x in err.get("loc", ())) or "metadata"
            parts.append(f"{loc}: {err.get('msg')}")
        return "; ".join(parts)
