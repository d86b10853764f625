"""
Plugin system for wabot.

Provides:
- Loading command plugins from a directory
- Hot reload and unload
- Directory watching with debounce
"""

from wabot.plugins.manager import (
    PluginInfo,
    PluginLoadError,
    PluginManager,
    PluginRecord,
)
from wabot.plugins.watcher import PluginWatcher

__all__ = [
    "PluginInfo",
    "PluginLoadError",
    "PluginManager",
    "PluginRecord",
    "PluginWatcher",
]
