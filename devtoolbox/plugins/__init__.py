"""Plugin system for the developer toolbox.

Imports are lazy so lightweight components (PluginSettings, PluginLoader)
can be used by the CLI without pulling in the manager and tool registry.
"""

__all__ = [
    "Plugin",
    "PluginCommand",
    "HookResult",
    "PluginContext",
    "PluginMetadata",
    "PluginManifest",
    "PluginRegistry",
    "PluginInstance",
    "PluginInfo",
    "PluginState",
    "PluginLoader",
    "PluginLifecycle",
    "PluginManager",
    "PluginSettings",
    "LoadResult",
]


def __getattr__(name):
    if name in ("Plugin", "PluginCommand", "HookResult"):
        from devtoolbox.plugins import contract
        return getattr(contract, name)
    if name == "PluginContext":
        from devtoolbox.plugins.context import PluginContext
        return PluginContext
    if name in ("PluginMetadata", "PluginManifest"):
        from devtoolbox.plugins import manifest
        return getattr(manifest, name)
    if name in ("PluginRegistry", "PluginInstance", "PluginInfo", "PluginState"):
        from devtoolbox.plugins import registry
        return getattr(registry, name)
    if name == "PluginLoader":
        from devtoolbox.plugins.loader import PluginLoader
        return PluginLoader
    if name == "PluginLifecycle":
        from devtoolbox.plugins.lifecycle import PluginLifecycle
        return PluginLifecycle
    if name in ("PluginManager", "LoadResult"):
        from devtoolbox.plugins import manager
        return getattr(manager, name)
    if name == "PluginSettings":
        from devtoolbox.plugins.config import PluginSettings
        return PluginSettings
    raise AttributeError(f"module 'devtoolbox.plugins' has no attribute {name!r}")
