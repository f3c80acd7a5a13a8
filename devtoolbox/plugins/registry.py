"""Plugin registry - tracks loaded plugins and recorded failures."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, TYPE_CHECKING

from pydantic import BaseModel, Field

from devtoolbox.plugins.contract import PluginCommand
from devtoolbox.plugins.manifest import PluginMetadata

if TYPE_CHECKING:
    from devtoolbox.plugins.context import PluginContext

logger = logging.getLogger(__name__)


class PluginState(str, Enum):
    """Plugin lifecycle states."""

    DISCOVERED = "discovered"
    VALIDATING = "validating"
    REJECTED = "rejected"
    RESOLVED = "resolved"
    INITIALIZING = "initializing"
    FAILED = "failed"
    ACTIVE = "active"
    UNLOADING = "unloading"
    UNLOADED = "unloaded"


class PluginInfo(BaseModel):
    """Public view of a plugin returned by the manager and the API."""

    id: str
    name: str
    version: str
    description: str = ""
    author: Optional[str] = None
    loaded: bool
    state: str
    dependencies: List[str] = Field(default_factory=list)
    commands: List[str] = Field(default_factory=list)
    error: Optional[str] = None


@dataclass
class PluginInstance:
    """A plugin moving through the lifecycle. Owned by the PluginManager."""

    source: Any  # directory path or in-memory plugin object
    source_label: str = "external"
    state: PluginState = PluginState.DISCOVERED
    metadata: Optional[PluginMetadata] = None
    plugin_object: Any = field(default=None, repr=False)
    context: Optional[PluginContext] = field(default=None, repr=False)
    commands: List[PluginCommand] = field(default_factory=list, repr=False)
    error: Optional[str] = None

    @property
    def id(self) -> str:
        if self.metadata is not None:
            return self.metadata.id
        if isinstance(self.source, Path):
            return self.source.name
        raw = getattr(self.source, "metadata", None)
        raw_id = raw.get("id") if isinstance(raw, dict) else getattr(raw, "id", None)
        return raw_id or "unknown"

    @property
    def dependencies(self) -> List[str]:
        return list(self.metadata.dependencies) if self.metadata else []

    def to_info(self) -> PluginInfo:
        """Serialize plugin instance for API responses."""
        meta = self.metadata
        return PluginInfo(
            id=self.id,
            name=meta.name if meta else self.id,
            version=meta.version if meta else "0.0.0",
            description=meta.description if meta else "",
            author=meta.author if meta else None,
            loaded=self.state == PluginState.ACTIVE,
            state=self.state.value,
            dependencies=self.dependencies,
            commands=[c.name for c in self.commands],
            error=self.error,
        )


class PluginRegistry:
    """Registry of active plugins.

    The active set is replaced wholesale on every commit, so readers holding
    ``snapshot()`` never observe a half-applied change.
    """

    def __init__(self):
        self._active: Mapping[str, PluginInstance] = MappingProxyType({})
        self._failures: Dict[str, PluginInstance] = {}

    def snapshot(self) -> Mapping[str, PluginInstance]:
        """Current active plugins, in load order."""
        return self._active

    def add(self, instance: PluginInstance) -> None:
        """Commit an active plugin."""
        updated = dict(self._active)
        updated[instance.id] = instance
        self._active = MappingProxyType(updated)
        self._failures.pop(instance.id, None)
        logger.debug(f"Committed plugin: {instance.id} ({len(updated)} active)")

    def remove(self, plugin_id: str) -> Optional[PluginInstance]:
        """Commit the removal of a plugin."""
        if plugin_id not in self._active:
            return None
        updated = dict(self._active)
        instance = updated.pop(plugin_id)
        self._active = MappingProxyType(updated)
        return instance

    def active(self) -> List[PluginInstance]:
        """Committed plugins that are fully active (not mid-unload)."""
        return [inst for inst in self._active.values() if inst.state == PluginState.ACTIVE]

    def get(self, plugin_id: str) -> Optional[PluginInstance]:
        return self._active.get(plugin_id)

    def has(self, plugin_id: str) -> bool:
        return plugin_id in self._active

    def get_all(self) -> List[PluginInstance]:
        return list(self._active.values())

    def count(self) -> int:
        return len(self._active)

    def record_failure(self, instance: PluginInstance) -> None:
        """Keep a rejected or failed plugin for inspection."""
        self._failures[instance.id] = instance

    def get_failures(self) -> List[PluginInstance]:
        return list(self._failures.values())

    def dependents_of(self, plugin_id: str) -> List[str]:
        """Active plugins that depend on plugin_id, directly or transitively.

        Returned leaves-first, so the list can be unloaded in order.
        """
        snapshot = self._active
        found: List[str] = []
        frontier = [plugin_id]
        while frontier:
            current = frontier.pop()
            for pid, inst in snapshot.items():
                if current in inst.dependencies and pid not in found:
                    found.append(pid)
                    frontier.append(pid)
        # Load order is a valid topological order, so reversing it puts leaves first.
        order = list(snapshot.keys())
        return sorted(found, key=order.index, reverse=True)
