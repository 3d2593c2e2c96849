"""Leaves modules the runtime provides itself (``cloudflare:*``) external."""
from __future__ import annotations

import logging
import re
from collections.abc import Iterable

from nodecompat.config.settings import DEFAULT_RUNTIME_PREFIXES, CompatConfig
from nodecompat.host.build import PluginBuild
from nodecompat.host.context import PassContext
from nodecompat.host.types import ResolveArgs, ResolveResult
from nodecompat.plugins import plugin_registry
from nodecompat.plugins.base import BuildPlugin, PluginServices

logger = logging.getLogger(__name__)


@plugin_registry.register("runtime-internal")
class RuntimeInternalPlugin(BuildPlugin):
    """Externalizes specifiers that start with one of ``prefixes``."""

    name = "runtime-internal"

    def __init__(self, prefixes: Iterable[str] = DEFAULT_RUNTIME_PREFIXES) -> None:
        self.prefixes = tuple(p for p in prefixes if p)

    @classmethod
    def from_config(cls, config: CompatConfig, services: PluginServices) -> "RuntimeInternalPlugin":
        return cls(config.runtime_prefixes)

    def setup(self, build: PluginBuild) -> None:
        if not self.prefixes:
            return
        pattern = "^(?:" + "|".join(re.escape(p) for p in self.prefixes) + ")"
        build.on_resolve(pattern, self.resolve)

    def resolve(self, args: ResolveArgs, ctx: PassContext) -> ResolveResult | None:
        if not args.path.startswith(self.prefixes):
            return None
        logger.debug("Leaving runtime module %r external", args.path)
        return ResolveResult(path=args.path, external=True)
