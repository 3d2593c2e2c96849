"""Tests for aliased-module resolution and the CommonJS interop modules."""
from __future__ import annotations

import pytest

from nodecompat.classifier import SpecifierClassifier
from nodecompat.compat import REQUIRED_ALIAS_NAMESPACE, AliasLoadHandler, create_host
from nodecompat.config import CompatConfig
from nodecompat.errors import VirtualModuleError
from nodecompat.host import (
    BuildHost,
    BuildOptions,
    HookTable,
    LoadArgs,
    PluginBuild,
    ResolveArgs,
    ResolveKind,
    ResolveResult,
)
from nodecompat.plugins import PluginServices
from nodecompat.resolution import AliasTable

RUNTIME = "/project/node_modules/unenv/dist/runtime"
INDEX = "/src/index.js"


@pytest.fixture()
def host(config: CompatConfig, services: PluginServices) -> BuildHost:
    return create_host(config, services)


class TestAliasResolution:
    def test_import_resolves_to_absolute_shim_path(self, host: BuildHost) -> None:
        result = host.resolve(host.start(), ResolveArgs("debug", ResolveKind.IMPORT, INDEX))
        assert result == ResolveResult(f"{RUNTIME}/npm/debug.mjs")

    def test_prefixed_builtin_alias(self, host: BuildHost) -> None:
        result = host.resolve(host.start(), ResolveArgs("node:fs", ResolveKind.IMPORT, INDEX))
        assert result == ResolveResult(f"{RUNTIME}/node/fs.mjs")

    @pytest.mark.parametrize(
        ("specifier", "target"),
        [("debug", "unenv/npm/debug"), ("mime", "unenv/mock/proxy")],
    )
    def test_require_of_npm_shim_uses_interop_namespace(
        self, host: BuildHost, specifier: str, target: str
    ) -> None:
        result = host.resolve(host.start(), ResolveArgs(specifier, ResolveKind.REQUIRE, INDEX))
        assert result == ResolveResult(target, namespace=REQUIRED_ALIAS_NAMESPACE)

    def test_external_target_is_checked_before_the_shim(self, host: BuildHost) -> None:
        ctx = host.start()
        result = host.resolve(ctx, ResolveArgs("buffer", ResolveKind.IMPORT, INDEX))
        assert result == ResolveResult("node:buffer", external=True)
        assert ctx.externals == {"buffer": [INDEX]}
        assert ctx.warnings == {}

    def test_unresolvable_alias_falls_through(self, host: BuildHost) -> None:
        assert host.resolve(host.start(), ResolveArgs("missing-shim", ResolveKind.IMPORT, INDEX)) is None


class TestInteropModule:
    def test_interop_imports_resolved_shim(self, host: BuildHost) -> None:
        module = host.load(host.start(), LoadArgs("unenv/npm/debug", REQUIRED_ALIAS_NAMESPACE))
        assert module is not None
        assert module.contents.startswith(f'import * as esm from "{RUNTIME}/npm/debug.mjs";\n')
        assert "module.exports = Object.entries(esm)" in module.contents
        assert ".filter(([k,]) => k !== 'default')" in module.contents
        assert "Object.defineProperty(cjs, k, { value, enumerable: true })" in module.contents
        assert '"default" in esm ? esm.default : {}' in module.contents
        assert module.imports == (f"{RUNTIME}/npm/debug.mjs",)

    def test_unknown_target_raises(self, host: BuildHost) -> None:
        with pytest.raises(VirtualModuleError):
            host.load(host.start(), LoadArgs("unenv/npm/unknown", REQUIRED_ALIAS_NAMESPACE))

    def test_require_pass_loads_interop_once(self, host: BuildHost) -> None:
        report = host.run_pass(
            [
                ResolveArgs("debug", ResolveKind.REQUIRE, "/src/a.js"),
                ResolveArgs("debug", ResolveKind.REQUIRE, "/src/b.js"),
            ]
        )
        interop = [m for m in report.modules if m.namespace == REQUIRED_ALIAS_NAMESPACE]
        assert len(interop) == 1


class TestEmptyTable:
    def test_no_hooks_installed(self) -> None:
        hooks = HookTable()
        AliasLoadHandler(AliasTable(), SpecifierClassifier()).install(PluginBuild(hooks, BuildOptions()))
        assert hooks.resolve == []
        assert hooks.load == []
