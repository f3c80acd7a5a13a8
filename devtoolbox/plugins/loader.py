"""Plugin loader - discovers plugin directories and resolves plugin objects."""

import importlib.util
import itertools
import json
import logging
import sys
from pathlib import Path
from typing import Any, Iterable, List, Optional, Tuple, Union

from devtoolbox.plugins.contract import plugin_like
from devtoolbox.plugins.manifest import PluginManifest
from devtoolbox.plugins.registry import PluginInstance, PluginState

logger = logging.getLogger(__name__)

PluginRef = Union[str, Path, Any]

_module_counter = itertools.count()


class PluginLoader:
    """Turns external references into plugin objects.

    A reference is either a plugin directory (``plugin.json`` plus the entry
    module) or an in-memory object that already satisfies the plugin contract.
    """

    MANIFEST_FILE = "plugin.json"

    def describe(self, ref: PluginRef, source_label: str = "external") -> PluginInstance:
        """Wrap a reference in a fresh DISCOVERED instance."""
        if isinstance(ref, (str, Path)):
            ref = Path(ref).expanduser().resolve()
        return PluginInstance(source=ref, source_label=source_label, state=PluginState.DISCOVERED)

    def discover(self, search_paths: Iterable[Tuple[Path, str]]) -> List[PluginInstance]:
        """Scan search paths for plugin directories.

        Directories whose manifest declares an id already seen are skipped
        (first-found wins).

        Returns:
            Discovered PluginInstance objects (state=DISCOVERED)
        """
        discovered = []
        seen_ids = set()

        for search_path, source in search_paths:
            if not search_path.exists():
                logger.debug(f"Plugin search path does not exist: {search_path}")
                continue

            for item in sorted(search_path.iterdir()):
                if not item.is_dir() or not (item / self.MANIFEST_FILE).exists():
                    continue

                plugin_id = self._peek_id(item) or item.name
                if plugin_id in seen_ids:
                    logger.warning(
                        f"Duplicate plugin ID '{plugin_id}' found at {item}, "
                        f"skipping (first-found wins)"
                    )
                    continue
                seen_ids.add(plugin_id)
                discovered.append(self.describe(item, source))

        logger.info(f"Discovered {len(discovered)} plugin(s)")
        return discovered

    def read_manifest(self, plugin_dir: Path) -> PluginManifest:
        """Load and validate plugin.json.

        Raises:
            FileNotFoundError: if the manifest is missing
            json.JSONDecodeError / pydantic.ValidationError: if it is invalid
        """
        manifest_file = plugin_dir / self.MANIFEST_FILE
        if not manifest_file.exists():
            raise FileNotFoundError(f"No {self.MANIFEST_FILE} found at {plugin_dir}")
        with open(manifest_file, "r", encoding="utf-8") as f:
            data = json.load(f)
        return PluginManifest.model_validate(data)

    def load_object(self, plugin_dir: Path, manifest: PluginManifest) -> Any:
        """Import the entry module and resolve the plugin object.

        The entry attribute may be a class (instantiated without arguments),
        a zero-argument factory, or a ready plugin object.
        """
        module_name, attr = manifest.entry_point.split(":", 1)
        module_file = plugin_dir / f"{module_name}.py"
        if not module_file.exists():
            raise ImportError(f"Cannot find module {module_name}.py in {plugin_dir}")

        qualified = f"devtoolbox_plugin_{manifest.id.replace('-', '_')}_{next(_module_counter)}"
        spec = importlib.util.spec_from_file_location(qualified, module_file)
        if spec is None or spec.loader is None:
            raise ImportError(f"Cannot load module {module_file}")

        # Plugin directory on sys.path so the entry module can import siblings
        plugin_path = str(plugin_dir)
        added = plugin_path not in sys.path
        if added:
            sys.path.insert(0, plugin_path)
        try:
            module = importlib.util.module_from_spec(spec)
            sys.modules[qualified] = module
            try:
                spec.loader.exec_module(module)
            except BaseException:
                sys.modules.pop(qualified, None)
                raise
        finally:
            if added and plugin_path in sys.path:
                sys.path.remove(plugin_path)

        target = getattr(module, attr, None)
        if target is None:
            raise AttributeError(f"Module {module_name} has no attribute '{attr}'")

        if plugin_like(target) and not isinstance(target, type):
            return target
        if callable(target):
            plugin = target()
            if not plugin_like(plugin):
                raise TypeError(
                    f"{module_name}.{attr}() did not return an object with metadata and get_commands()"
                )
            return plugin
        raise TypeError(f"{module_name}.{attr} is not a plugin, class or factory")

    def _peek_id(self, plugin_dir: Path) -> Optional[str]:
        try:
            with open(plugin_dir / self.MANIFEST_FILE, "r", encoding="utf-8") as f:
                data = json.load(f)
            return data.get("id") if isinstance(data, dict) else None
        except (json.JSONDecodeError, OSError):
            return None
