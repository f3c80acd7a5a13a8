"""Plugin settings service - manages plugins/config.json."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List

logger = logging.getLogger(__name__)


class PluginSettings:
    """Manages the plugins/config.json settings file.

    Config format:
    {
        "disabled": ["git-utils"],
        "plugins": {
            "hello-world": {
                "greeting": "Hello"
            }
        }
    }
    """

    def __init__(self, config_file: Path):
        self.config_file = config_file
        self._config: Dict[str, Any] = self._load()

    def _load(self) -> Dict[str, Any]:
        """Load config from file, falling back to defaults if not found."""
        if self.config_file.exists():
            try:
                with open(self.config_file, "r", encoding="utf-8") as f:
                    data = json.load(f)
                if isinstance(data, dict):
                    return data
                logger.error(f"Plugin config {self.config_file} is not a JSON object, ignoring")
            except (json.JSONDecodeError, IOError) as e:
                logger.error(f"Error loading plugin config: {e}")

        return {"disabled": [], "plugins": {}}

    def _save(self) -> None:
        self.config_file.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_file, "w", encoding="utf-8") as f:
            json.dump(self._config, f, indent=2, ensure_ascii=False)
        logger.debug(f"Saved plugin config to {self.config_file}")

    def is_enabled(self, plugin_id: str) -> bool:
        return plugin_id not in self._config.get("disabled", [])

    def get_disabled_list(self) -> List[str]:
        return list(self._config.get("disabled", []))

    def get_plugin_config(self, plugin_id: str) -> Dict[str, Any]:
        """Get configuration for a specific plugin."""
        return dict(self._config.get("plugins", {}).get(plugin_id, {}))

    def enable(self, plugin_id: str) -> None:
        disabled = self._config.setdefault("disabled", [])
        if plugin_id in disabled:
            disabled.remove(plugin_id)
            self._save()
            logger.info(f"Enabled plugin: {plugin_id}")

    def disable(self, plugin_id: str) -> None:
        disabled = self._config.setdefault("disabled", [])
        if plugin_id not in disabled:
            disabled.append(plugin_id)
            self._save()
            logger.info(f"Disabled plugin: {plugin_id}")

    def update_plugin_config(self, plugin_id: str, config: Dict[str, Any]) -> None:
        plugins = self._config.setdefault("plugins", {})
        plugins[plugin_id] = config
        self._save()
        logger.info(f"Updated config for plugin: {plugin_id}")

    def reload(self) -> None:
        """Reload config from disk."""
        self._config = self._load()
