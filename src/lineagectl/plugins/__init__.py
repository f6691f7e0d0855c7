"""Plugin system — pluggy lifecycle hooks for genealogy mutations."""

from lineagectl.plugins.manager import PluginManager

__all__ = ["PluginManager"]
