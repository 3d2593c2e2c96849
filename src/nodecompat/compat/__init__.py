"""Node.js compatibility plugins.

Importing this package registers ``nodejs-hybrid``, ``external-files``
and ``runtime-internal`` with :data:`nodecompat.plugins.plugin_registry`.

Example
-------
::

    from nodecompat.compat import create_host
    from nodecompat.config import CompatConfig
    from nodecompat.host import ResolveArgs, ResolveKind

    host = create_host(CompatConfig(compatibility_date="2025-03-10",
                                    compatibility_flags=("nodejs_compat",)))
    report = host.run_pass([ResolveArgs("fs", ResolveKind.REQUIRE, "/src/a.js")])
"""
from __future__ import annotations

from collections.abc import Sequence

from nodecompat.compat.alias_loader import REQUIRED_ALIAS_NAMESPACE, AliasLoadHandler
from nodecompat.compat.external_files import ExternalFilesPlugin
from nodecompat.compat.externals import BuiltinExternalizer
from nodecompat.compat.format_guard import OutputFormatGuard
from nodecompat.compat.global_injector import (
    VIRTUAL_PRELUDE_MARKER,
    GlobalInjector,
    PreludeModule,
    prelude_path,
)
from nodecompat.compat.plugin import NodeCompatPlugin
from nodecompat.compat.require_rewriter import REQUIRED_BUILTIN_NAMESPACE, RequireRewriter
from nodecompat.compat.runtime_internal import RuntimeInternalPlugin
from nodecompat.config.settings import CompatConfig
from nodecompat.host.build import BuildHost
from nodecompat.host.types import BuildOptions
from nodecompat.plugins import plugin_registry
from nodecompat.plugins.base import BuildPlugin, PluginServices

DEFAULT_PLUGIN_ORDER: tuple[str, ...] = ("nodejs-hybrid", "external-files", "runtime-internal")

# Injected by the runtime for sites with static assets.
STATIC_CONTENT_MANIFEST = "__STATIC_CONTENT_MANIFEST"


def default_plugins(
    config: CompatConfig,
    services: PluginServices | None = None,
    names: Sequence[str] = DEFAULT_PLUGIN_ORDER,
) -> list[BuildPlugin]:
    """Instantiate the standard plugin list, in priority order."""
    return plugin_registry.create_all(names, config, services)


def create_host(
    config: CompatConfig,
    services: PluginServices | None = None,
    names: Sequence[str] = DEFAULT_PLUGIN_ORDER,
) -> BuildHost:
    """Build a ``BuildHost`` running the standard plugins for ``config``.

    Raises
    ------
    SetupError
        If the preset query or any blocking resolution fails.
    """
    options = BuildOptions(
        format=config.output_format,
        external=[STATIC_CONTENT_MANIFEST],
        abs_working_dir=config.base_path,
    )
    return BuildHost(default_plugins(config, services, names), options)


__all__ = [
    "DEFAULT_PLUGIN_ORDER",
    "REQUIRED_ALIAS_NAMESPACE",
    "REQUIRED_BUILTIN_NAMESPACE",
    "STATIC_CONTENT_MANIFEST",
    "VIRTUAL_PRELUDE_MARKER",
    "AliasLoadHandler",
    "BuiltinExternalizer",
    "ExternalFilesPlugin",
    "GlobalInjector",
    "NodeCompatPlugin",
    "OutputFormatGuard",
    "PreludeModule",
    "RequireRewriter",
    "RuntimeInternalPlugin",
    "create_host",
    "default_plugins",
    "prelude_path",
]
