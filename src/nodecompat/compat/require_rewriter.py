"""Rewrites ``require()`` calls of Node.js built-ins into virtual ES modules.

An ES module bundle cannot keep a synchronous ``require("fs")`` of an
external module, and the call cannot be lowered to an asynchronous
``import()``.  Instead the request is redirected into the
``node-built-in-modules`` namespace, whose modules import the built-in's
default binding statically and hand it back as the CommonJS export
object::

    import libDefault from "fs";
    module.exports = libDefault;

Every output format is rewritten the same way.  Static and dynamic
imports of built-ins pass through untouched.

All ``require()`` calls of one built-in share a single virtual module, so
the warning and external maps are filled here, once per real importer.
"""
from __future__ import annotations

import json
import logging

from nodecompat.classifier.classifier import SpecifierClassifier
from nodecompat.host.build import PluginBuild
from nodecompat.host.context import PassContext
from nodecompat.host.types import (
    LoadArgs,
    Loader,
    ResolveArgs,
    ResolveResult,
    VirtualModule,
)
from nodecompat.resolution.aliases import AliasTable

logger = logging.getLogger(__name__)

REQUIRED_BUILTIN_NAMESPACE = "node-built-in-modules"


def render_require_shim(specifier: str) -> str:
    """Return the CommonJS bridge body for a ``require()`` of ``specifier``."""
    return f"import libDefault from {json.dumps(specifier)};\nmodule.exports = libDefault;\n"


class RequireRewriter:
    """Resolve and load hooks for ``require()`` of built-in modules.

    Parameters
    ----------
    classifier:
        Decides which specifiers are built-ins.
    aliases:
        Active alias table; used to tell shimmed built-ins from ones left
        to the runtime.
    """

    def __init__(self, classifier: SpecifierClassifier, aliases: AliasTable) -> None:
        self._classifier = classifier
        self._aliases = aliases

    def install(self, build: PluginBuild) -> None:
        build.on_resolve(self._classifier.filter, self.resolve)
        build.on_load(".*", self.load, namespace=REQUIRED_BUILTIN_NAMESPACE)

    def resolve(self, args: ResolveArgs, ctx: PassContext) -> ResolveResult | None:
        classification = self._classifier.classify(
            args.path, args.kind, ctx.options.format, self._aliases
        )
        if not classification.needs_require_shim:
            return None

        importer = ctx.origin_of(args)
        ctx.remember_origin(REQUIRED_BUILTIN_NAMESPACE, args.path, importer)
        if classification.should_externalize:
            ctx.record_external(args.path, importer)
            # Runtime-provided aliases are expected externals and stay quiet.
            if not classification.is_aliased:
                ctx.warn_builtin(args.path, importer)
        return ResolveResult(path=args.path, namespace=REQUIRED_BUILTIN_NAMESPACE)

    def load(self, args: LoadArgs, ctx: PassContext) -> VirtualModule:
        return VirtualModule(
            namespace=REQUIRED_BUILTIN_NAMESPACE,
            path=args.path,
            contents=render_require_shim(args.path),
            loader=Loader.JS,
            imports=(args.path,),
        )
