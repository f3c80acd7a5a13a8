"""Global constants for the developer toolbox."""

import os
from pathlib import Path

# Project root (repository checkout)
PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Toolbox home directory (supports DEVTOOLBOX_HOME env var)
_home_env = os.getenv("DEVTOOLBOX_HOME", "")
TOOLBOX_HOME = Path(_home_env).expanduser() if _home_env else Path.home() / ".devtoolbox"

USER_PLUGINS_DIR = TOOLBOX_HOME / "plugins"
PLUGIN_DATA_DIR = TOOLBOX_HOME / "plugin-data"
PLUGIN_CONFIG_FILE = USER_PLUGINS_DIR / "config.json"
LOG_DIR = TOOLBOX_HOME / "logs"
TOOL_STATE_FILE = TOOLBOX_HOME / "tools.json"

BUNDLED_PLUGINS_DIR = PROJECT_ROOT / "plugins" / "bundled"
PROJECT_PLUGINS_DIR = Path.cwd() / ".devtoolbox" / "plugins"

# Timeout for plugin initialize/cleanup hooks (seconds)
HOOK_TIMEOUT = float(os.getenv("DEVTOOLBOX_HOOK_TIMEOUT", "30"))


def plugin_search_paths() -> list[tuple[Path, str]]:
    """Plugin directories in search order, as (path, source_label) tuples."""
    paths = [
        (USER_PLUGINS_DIR, "user"),
        (PROJECT_PLUGINS_DIR, "project"),
        (BUNDLED_PLUGINS_DIR, "bundled"),
    ]
    extra = os.getenv("DEVTOOLBOX_PLUGIN_PATHS", "")
    for p in extra.split(":"):
        if p.strip():
            paths.append((Path(p.strip()).expanduser(), "external"))
    return paths
