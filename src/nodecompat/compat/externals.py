"""Fallback hook leaving unshimmed built-ins to the runtime."""
from __future__ import annotations

from nodecompat.classifier.classifier import SpecifierClassifier
from nodecompat.host.build import PluginBuild
from nodecompat.host.context import PassContext
from nodecompat.host.types import ResolveArgs, ResolveResult


class BuiltinExternalizer:
    """Marks every built-in no earlier hook claimed as external.

    Installed last, so aliased built-ins have already been resolved to
    their shims.  Each hit is recorded both as a warning and as an
    external for the output-format guard.
    """

    def __init__(self, classifier: SpecifierClassifier) -> None:
        self._classifier = classifier

    def install(self, build: PluginBuild) -> None:
        build.on_resolve(self._classifier.filter, self.resolve)

    def resolve(self, args: ResolveArgs, ctx: PassContext) -> ResolveResult | None:
        if not self._classifier.is_builtin(args.path):
            return None
        importer = ctx.origin_of(args)
        ctx.warn_builtin(args.path, importer)
        ctx.record_external(args.path, importer)
        return ResolveResult(path=args.path, external=True)
