"""Plugin subsystem for nodecompat.

``plugin_registry`` holds every known ``BuildPlugin``.  The plugins
shipped with nodecompat register themselves when
:func:`load_builtin_plugins` imports them; third-party plugins are
discovered through the ``nodecompat.plugins`` entry-point group.

Example
-------
::

    from nodecompat.plugins import load_builtin_plugins, plugin_registry

    load_builtin_plugins()
    plugin_registry.list_plugins()
    # ['external-files', 'nodejs-hybrid', 'runtime-internal']
"""
from __future__ import annotations

from nodecompat.plugins.base import BuildPlugin, PluginServices
from nodecompat.plugins.registry import (
    ENTRY_POINT_GROUP,
    PluginAlreadyRegisteredError,
    PluginNotFoundError,
    PluginRegistry,
)

plugin_registry: PluginRegistry[BuildPlugin] = PluginRegistry(BuildPlugin, "build-plugins")


def load_builtin_plugins() -> PluginRegistry[BuildPlugin]:
    """Import the bundled plugins so they register, then return the registry."""
    import nodecompat.compat  # noqa: F401

    return plugin_registry


__all__ = [
    "ENTRY_POINT_GROUP",
    "BuildPlugin",
    "PluginAlreadyRegisteredError",
    "PluginNotFoundError",
    "PluginRegistry",
    "PluginServices",
    "load_builtin_plugins",
    "plugin_registry",
]
