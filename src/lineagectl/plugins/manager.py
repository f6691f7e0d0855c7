"""Plugin discovery and registration.

Plugins come from the ``lineagectl.plugins`` entry-point group or are
registered directly with :meth:`PluginManager.register_plugin`.
"""

from __future__ import annotations

import inspect
import logging

import pluggy

from lineagectl.plugins.hookspecs import LineageHookSpec

PROJECT_NAME = "lineagectl"
ENTRY_POINT_GROUP = "lineagectl.plugins"

logger = logging.getLogger(__name__)


class PluginManager:
    """Owns a pluggy manager loaded with :class:`LineageHookSpec`."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(LineageHookSpec)

    def discover(self) -> list[str]:
        """Load entry-point plugins and return the names of all registered plugins."""
        self._pm.load_setuptools_entrypoints(ENTRY_POINT_GROUP)
        self._instantiate_classes()
        return self.list_plugin_names()

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        """Register a plugin instance directly."""
        resolved_name = name or plugin.__class__.__name__
        self._pm.register(plugin, name=resolved_name)
        logger.debug("Registered plugin: %s", resolved_name)

    def unregister(self, plugin: object) -> None:
        self._pm.unregister(plugin)

    @property
    def hook(self) -> pluggy.HookRelay:
        """Hook relay used to dispatch events."""
        return self._pm.hook

    def get_plugins(self) -> list[object]:
        return list(self._pm.get_plugins())

    def list_plugin_names(self) -> list[str]:
        return [self._pm.get_name(p) or p.__class__.__name__ for p in self._pm.get_plugins()]

    def _instantiate_classes(self) -> None:
        """Replace plugin classes registered by entry points with instances.

        Hooks dispatched against a class object would leave ``self`` unbound.
        """
        for plugin in list(self._pm.get_plugins()):
            if not inspect.isclass(plugin):
                continue
            plugin_name = self._pm.get_name(plugin) or plugin.__name__
            self._pm.unregister(plugin)
            try:
                instance = plugin()
            except Exception:
                logger.warning("Failed to instantiate plugin %s", plugin_name, exc_info=True)
                continue
            self._pm.register(instance, name=plugin_name)
            logger.debug("Instantiated entry-point plugin: %s", plugin_name)
