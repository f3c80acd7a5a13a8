"""Plugin abstract base class and command contribution types."""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, List, Optional, TYPE_CHECKING, Union

from devtoolbox.plugins.manifest import PluginMetadata

if TYPE_CHECKING:
    from devtoolbox.plugins.context import PluginContext

CommandHandler = Callable[[List[str]], Union[Optional[int], Awaitable[Optional[int]]]]


@dataclass
class PluginCommand:
    """A CLI command contributed by a plugin."""

    name: str
    description: str = ""
    handler: Optional[CommandHandler] = field(default=None, repr=False)
    usage: str = ""


@dataclass
class HookResult:
    """Outcome of a best-effort hook. Inspected and logged, never raised."""

    ok: bool
    error: Optional[str] = None


class Plugin(ABC):
    """Abstract base class for toolbox plugins.

    Subclasses set ``metadata`` (a PluginMetadata or a plain dict) and
    contribute commands. The manager never looks past this contract.
    """

    metadata: Union[PluginMetadata, dict, None] = None

    async def initialize(self, context: PluginContext) -> None:
        """Called once dependencies are active. Override for setup."""
        pass

    @abstractmethod
    def get_commands(self) -> List[PluginCommand]:
        """Return the commands this plugin contributes."""
        ...

    async def cleanup(self) -> None:
        """Called when the plugin is unloaded. Override for teardown."""
        pass

    async def before_command(self, command: str) -> None:
        """Called before any toolbox command runs."""
        pass

    async def after_command(self, command: str, exit_code: int) -> None:
        """Called after any toolbox command finishes."""
        pass


def plugin_like(obj: Any) -> bool:
    """Duck-type check for objects that satisfy the plugin contract."""
    return isinstance(obj, Plugin) or (
        hasattr(obj, "metadata") and callable(getattr(obj, "get_commands", None))
    )
