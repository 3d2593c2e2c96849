"""Resolve hooks for aliased modules and CommonJS interop for ESM shims.

For a specifier in the active alias table:

1. a target the runtime provides (in the preset's ``external`` list) is
   left external, with no shim generated;
2. a ``require()`` of an npm re-export shim (``unenv/npm/*``,
   ``unenv/mock/*``) is redirected into the ``required-unenv-alias``
   namespace;
3. anything else resolves to the target's absolute path.

Modules in ``required-unenv-alias`` import the shim's whole namespace and
fold its named exports onto its default export, reproducing Node's
ESM/CommonJS interop without relying on the target runtime's.
"""
from __future__ import annotations

import json
import logging

from nodecompat.classifier.classifier import SpecifierClassifier
from nodecompat.errors import VirtualModuleError
from nodecompat.host.build import PluginBuild
from nodecompat.host.context import PassContext
from nodecompat.host.types import (
    LoadArgs,
    Loader,
    ResolveArgs,
    ResolveKind,
    ResolveResult,
    VirtualModule,
)
from nodecompat.resolution.aliases import AliasEntry, AliasTable

logger = logging.getLogger(__name__)

REQUIRED_ALIAS_NAMESPACE = "required-unenv-alias"

_INTEROP_TEMPLATE = """\
import * as esm from {source};
module.exports = Object.entries(esm)
  .filter(([k,]) => k !== 'default')
  .reduce((cjs, [k, value]) =>
    Object.defineProperty(cjs, k, {{ value, enumerable: true }}),
    "default" in esm ? esm.default : {{}}
  );
"""


def render_interop_module(source: str) -> str:
    """Return the CommonJS interop body re-exporting the ES module ``source``."""
    return _INTEROP_TEMPLATE.format(source=json.dumps(source))


class AliasLoadHandler:
    """Resolve and load hooks for the active alias table.

    Parameters
    ----------
    aliases:
        The active alias table.
    classifier:
        Used to record externalized built-ins for the output-format guard.
    """

    def __init__(self, aliases: AliasTable, classifier: SpecifierClassifier) -> None:
        self._aliases = aliases
        self._classifier = classifier

    def install(self, build: PluginBuild) -> None:
        if not len(self._aliases):
            logger.debug("No active aliases; alias hooks not installed")
            return
        build.on_resolve(self._aliases.filter, self.resolve)
        build.on_load(".*", self.load, namespace=REQUIRED_ALIAS_NAMESPACE)

    def resolve(self, args: ResolveArgs, ctx: PassContext) -> ResolveResult | None:
        entry = self._aliases.get(args.path)
        if entry is None:
            return None

        if entry.external:
            if self._classifier.is_builtin(args.path) or self._classifier.is_builtin(entry.target):
                ctx.record_external(args.path, ctx.origin_of(args))
            return ResolveResult(path=entry.target, external=True)

        if args.kind is ResolveKind.REQUIRE and entry.is_npm_shim:
            ctx.remember_origin(REQUIRED_ALIAS_NAMESPACE, entry.target, ctx.origin_of(args))
            return ResolveResult(path=entry.target, namespace=REQUIRED_ALIAS_NAMESPACE)

        return ResolveResult(path=_resolved(entry))

    def load(self, args: LoadArgs, ctx: PassContext) -> VirtualModule:
        entry = self._aliases.by_target(args.path)
        if entry is None or entry.external:
            raise VirtualModuleError(
                f"{REQUIRED_ALIAS_NAMESPACE}:{args.path}",
                "no active alias targets this module",
            )
        source = _resolved(entry)
        return VirtualModule(
            namespace=REQUIRED_ALIAS_NAMESPACE,
            path=args.path,
            contents=render_interop_module(source),
            loader=Loader.JS,
            imports=(source,),
        )


def _resolved(entry: AliasEntry) -> str:
    # Active, non-external entries always carry a path.
    assert entry.resolved_path is not None
    return entry.resolved_path
