"""Global prelude modules for the preset's ``inject`` and ``polyfill`` tables.

Inject entries are grouped by source module.  Each module gets one
virtual prelude at ``<base>/_virtual_unenv_global_polyfill-<module>``
(``/`` replaced by ``-``) that imports every export it needs and assigns
them onto ``globalThis``::

    import { default as defaultExport } from "unenv/node/process";
    globalThis.process = defaultExport;

Polyfills are resolved to absolute paths up front and get a prelude of
their own whose body is a bare side-effect import.  Every prelude path is
added once to the host's always-inject list.
"""
from __future__ import annotations

import json
import logging
import os
import re
from collections.abc import Iterable
from dataclasses import dataclass

from nodecompat.errors import VirtualModuleError
from nodecompat.host.build import PluginBuild
from nodecompat.host.context import PassContext
from nodecompat.host.types import (
    LoadArgs,
    Loader,
    ResolveArgs,
    ResolveResult,
    VirtualModule,
)
from nodecompat.preset.models import InjectEntry, PresetConfig
from nodecompat.resolution.oracle import ResolutionOracle

logger = logging.getLogger(__name__)

VIRTUAL_PRELUDE_MARKER = "_virtual_unenv_global_polyfill-"
PRELUDE_FILTER = re.escape(VIRTUAL_PRELUDE_MARKER) + r"(.+)$"


def prelude_path(base_path: str, module: str) -> str:
    """Return the virtual prelude path for ``module`` under ``base_path``."""
    return os.path.join(os.path.abspath(base_path), VIRTUAL_PRELUDE_MARKER + module.replace("/", "-"))


@dataclass(frozen=True)
class PreludeModule:
    """One generated prelude.

    Parameters
    ----------
    path:
        Virtual path registered on the always-inject list.
    module:
        Source module specifier, or the polyfill specifier.
    contents:
        Generated JavaScript.
    imports:
        Static imports the body issues.
    """

    path: str
    module: str
    contents: str
    imports: tuple[str, ...]


def render_inject_prelude(module: str, entries: Iterable[InjectEntry]) -> str:
    """Return the prelude body assigning ``entries`` of ``module`` onto ``globalThis``."""
    ordered = sorted(entries, key=lambda e: e.global_name)
    if not ordered:
        raise VirtualModuleError(module, "no inject entries for module")

    bindings: list[str] = []
    for entry in ordered:
        if entry.import_name == entry.export_name:
            binding = entry.export_name
        else:
            binding = f"{entry.export_name} as {entry.import_name}"
        if binding not in bindings:
            bindings.append(binding)

    lines = [f"import {{ {', '.join(bindings)} }} from {json.dumps(module)};"]
    lines.extend(f"globalThis.{e.global_name} = {e.import_name};" for e in ordered)
    return "\n".join(lines) + "\n"


def render_polyfill_prelude(resolved_path: str) -> str:
    """Return a side-effect-only prelude importing ``resolved_path``."""
    return f"import {json.dumps(resolved_path)};\n"


class GlobalInjector:
    """Owns the prelude modules of one build and the hooks that serve them.

    Parameters
    ----------
    preludes:
        Prelude modules, in always-inject order.
    """

    def __init__(self, preludes: Iterable[PreludeModule] = ()) -> None:
        self._preludes: dict[str, PreludeModule] = {}
        for prelude in preludes:
            self._preludes.setdefault(prelude.path, prelude)

    @classmethod
    def from_preset(
        cls,
        preset: PresetConfig,
        oracle: ResolutionOracle,
        base_path: str,
    ) -> "GlobalInjector":
        """Generate every prelude for ``preset``.

        Raises
        ------
        ResolutionOracleError
            If the polyfills cannot be resolved.
        """
        by_module: dict[str, list[InjectEntry]] = {}
        for entry in preset.inject:
            by_module.setdefault(entry.module, []).append(entry)

        preludes = [
            PreludeModule(
                path=prelude_path(base_path, module),
                module=module,
                contents=render_inject_prelude(module, by_module[module]),
                imports=(module,),
            )
            for module in sorted(by_module)
        ]

        polyfills = [p for p in dict.fromkeys(preset.polyfill) if p not in by_module]
        if polyfills:
            resolved = oracle.resolve_all(polyfills, base_path)
            for module, path in sorted(zip(polyfills, resolved)):
                preludes.append(
                    PreludeModule(
                        path=prelude_path(base_path, module),
                        module=module,
                        contents=render_polyfill_prelude(path),
                        imports=(path,),
                    )
                )
        logger.debug("Generated %d global prelude module(s)", len(preludes))
        return cls(preludes)

    @property
    def preludes(self) -> list[PreludeModule]:
        return list(self._preludes.values())

    @property
    def paths(self) -> list[str]:
        return list(self._preludes)

    def install(self, build: PluginBuild) -> None:
        inject = build.initial_options.inject
        for path in self._preludes:
            if path not in inject:
                inject.append(path)
        if not self._preludes:
            return
        build.on_resolve(PRELUDE_FILTER, self.resolve)
        build.on_load(PRELUDE_FILTER, self.load)

    def resolve(self, args: ResolveArgs, ctx: PassContext) -> ResolveResult:
        return ResolveResult(path=args.path)

    def load(self, args: LoadArgs, ctx: PassContext) -> VirtualModule:
        prelude = self._preludes.get(args.path)
        if prelude is None:
            raise VirtualModuleError(args.path, "not a registered global prelude")
        return VirtualModule(
            namespace=args.namespace,
            path=prelude.path,
            contents=prelude.contents,
            loader=Loader.JS,
            imports=prelude.imports,
        )
