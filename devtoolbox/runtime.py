"""Process-wide runtime: one tool registry and one plugin manager.

Built once at process start and passed down to the CLI and the API server.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence, Tuple

from devtoolbox.constants import (
    HOOK_TIMEOUT,
    PLUGIN_CONFIG_FILE,
    PLUGIN_DATA_DIR,
    TOOL_STATE_FILE,
    plugin_search_paths,
)
from devtoolbox.plugins.config import PluginSettings
from devtoolbox.plugins.manager import PluginManager
from devtoolbox.tools.registry import ToolRegistry
from devtoolbox.tools.types import RegistryConfig

logger = logging.getLogger(__name__)


@dataclass
class Runtime:
    tool_registry: ToolRegistry
    plugin_manager: PluginManager
    settings: PluginSettings


def build_runtime(
    search_paths: Optional[Sequence[Tuple[Path, str]]] = None,
    config_file: Path = PLUGIN_CONFIG_FILE,
    data_dir: Path = PLUGIN_DATA_DIR,
    registry_config: Optional[RegistryConfig] = None,
    hook_timeout: Optional[float] = HOOK_TIMEOUT,
) -> Runtime:
    """Create the tool registry, plugin settings and plugin manager."""
    if registry_config is None:
        registry_config = RegistryConfig(state_path=TOOL_STATE_FILE)
    tool_registry = ToolRegistry(registry_config)
    settings = PluginSettings(config_file)
    manager = PluginManager(
        tool_registry=tool_registry,
        settings=settings,
        search_paths=search_paths if search_paths is not None else plugin_search_paths(),
        data_dir=data_dir,
        hook_timeout=hook_timeout,
    )
    logger.info("Created runtime (tool registry + plugin manager)")
    return Runtime(tool_registry=tool_registry, plugin_manager=manager, settings=settings)
