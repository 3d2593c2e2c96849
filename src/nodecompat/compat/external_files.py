"""Leaves imports of binary and text assets external.

The target runtime loads modules such as ``./add.wasm`` or
``./page.html`` itself, so the bundler must not try to parse them.
"""
from __future__ import annotations

import logging
import os
from collections.abc import Iterable

from nodecompat.config.settings import DEFAULT_EXTERNAL_EXTENSIONS, CompatConfig
from nodecompat.host.build import PluginBuild
from nodecompat.host.context import PassContext
from nodecompat.host.types import ResolveArgs, ResolveResult
from nodecompat.plugins import plugin_registry
from nodecompat.plugins.base import BuildPlugin, PluginServices

logger = logging.getLogger(__name__)


@plugin_registry.register("external-files")
class ExternalFilesPlugin(BuildPlugin):
    """Externalizes specifiers whose file extension is in ``extensions``."""

    name = "external-files"

    def __init__(self, extensions: Iterable[str] = DEFAULT_EXTERNAL_EXTENSIONS) -> None:
        self.extensions = frozenset(_normalize(ext) for ext in extensions)

    @classmethod
    def from_config(cls, config: CompatConfig, services: PluginServices) -> "ExternalFilesPlugin":
        return cls(config.external_extensions)

    def setup(self, build: PluginBuild) -> None:
        if self.extensions:
            build.on_resolve(".*", self.resolve)

    def resolve(self, args: ResolveArgs, ctx: PassContext) -> ResolveResult | None:
        _, ext = os.path.splitext(args.path)
        if ext.lower() not in self.extensions:
            return None
        logger.debug("Leaving asset %r external", args.path)
        return ResolveResult(path=args.path, external=True)


def _normalize(ext: str) -> str:
    ext = ext.lower()
    return ext if ext.startswith(".") else f".{ext}"
