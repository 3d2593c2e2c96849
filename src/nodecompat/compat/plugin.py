"""The ``nodejs-hybrid`` build plugin.

Setup runs the two blocking steps, both once per host: querying the
compatibility preset and resolving alias targets and polyfills to
absolute paths.  It then installs the resolve hooks in priority order:

1. require rewriter (``require()`` of built-ins in formats without it);
2. alias handler (preset aliases, externals before shims);
3. global prelude modules;
4. built-in externalizer (everything else that is a built-in).

At the end of each pass the plugin reports the batched warnings for
built-ins left to the runtime, and the output-format guard fails the pass
if the bundle format cannot carry them.
"""
from __future__ import annotations

import logging

from nodecompat.classifier.classifier import SpecifierClassifier
from nodecompat.compat.alias_loader import AliasLoadHandler
from nodecompat.compat.externals import BuiltinExternalizer
from nodecompat.compat.format_guard import OutputFormatGuard
from nodecompat.compat.global_injector import GlobalInjector
from nodecompat.compat.require_rewriter import RequireRewriter
from nodecompat.config.settings import CompatConfig
from nodecompat.host.build import PluginBuild
from nodecompat.host.context import PassContext
from nodecompat.host.messages import Message
from nodecompat.plugins import plugin_registry
from nodecompat.plugins.base import BuildPlugin, PluginServices
from nodecompat.preset.models import PresetConfig
from nodecompat.preset.providers import NodePresetProvider, PresetProvider
from nodecompat.preset.resolver import PresetResolver
from nodecompat.resolution.aliases import AliasPathResolver, AliasTable
from nodecompat.resolution.oracle import NodeResolutionOracle, ResolutionOracle

logger = logging.getLogger(__name__)


@plugin_registry.register("nodejs-hybrid")
class NodeCompatPlugin(BuildPlugin):
    """Node.js built-in compatibility for a bundle targeting a non-Node runtime.

    Parameters
    ----------
    config:
        Compatibility settings.
    provider:
        Preset back-end.  Defaults to ``NodePresetProvider`` built from
        ``config``.
    oracle:
        Resolution back-end.  Defaults to ``NodeResolutionOracle`` built
        from ``config``.
    resolver:
        Preset cache to share between plugins; one is created from
        ``provider`` when omitted.

    Attributes
    ----------
    preset, classifier, aliases, injector:
        Populated by :meth:`setup`; ``None`` before.
    """

    name = "nodejs-hybrid"

    def __init__(
        self,
        config: CompatConfig,
        provider: PresetProvider | None = None,
        oracle: ResolutionOracle | None = None,
        resolver: PresetResolver | None = None,
    ) -> None:
        self.config = config
        if provider is None:
            provider = NodePresetProvider(
                node_binary=config.node_binary,
                package_manager=config.package_manager,
                install=config.install_preset,
                unenv_version=config.unenv_version,
                timeout=config.timeout_seconds,
            )
        if oracle is None:
            oracle = NodeResolutionOracle(config.node_binary, config.timeout_seconds)
        self.oracle = oracle
        self.resolver = resolver if resolver is not None else PresetResolver(provider)

        self.preset: PresetConfig | None = None
        self.classifier: SpecifierClassifier | None = None
        self.aliases: AliasTable | None = None
        self.injector: GlobalInjector | None = None

    @classmethod
    def from_config(cls, config: CompatConfig, services: PluginServices) -> "NodeCompatPlugin":
        return cls(config, provider=services.provider, oracle=services.oracle)

    def setup(self, build: PluginBuild) -> None:
        config = self.config
        self.preset = self.resolver.resolve(
            config.compatibility_date,
            config.compatibility_flags,
            config.base_path,
        )
        if config.enumerate_builtins:
            self.classifier = SpecifierClassifier.from_oracle(self.oracle)
        else:
            self.classifier = SpecifierClassifier()
        self.aliases = AliasPathResolver(self.oracle).resolve(self.preset, config.base_path)
        self.injector = GlobalInjector.from_preset(self.preset, self.oracle, config.base_path)

        RequireRewriter(self.classifier, self.aliases).install(build)
        AliasLoadHandler(self.aliases, self.classifier).install(build)
        self.injector.install(build)
        BuiltinExternalizer(self.classifier).install(build)

        build.on_end(self.report_warnings)
        OutputFormatGuard().install(build)
        logger.debug(
            "nodejs-hybrid ready: %d alias(es), %d prelude(s), %d unresolved alias(es)",
            len(self.aliases),
            len(self.injector.paths),
            len(self.aliases.unresolved),
        )

    def report_warnings(self, ctx: PassContext) -> list[Message]:
        """Return one warning per built-in left to the runtime without a shim."""
        messages: list[Message] = []
        for specifier, importers in ctx.warnings.items():
            text = (
                f"The package {specifier!r} wasn't found on the file system but is "
                f"built into node; it is left for the runtime to provide. "
                f"Imported from: {', '.join(importers) or '<unknown>'}"
            )
            logger.warning(text)
            messages.append(Message.warning(text, specifier=specifier, importers=tuple(importers)))
        return messages
