"""Unit tests for nodecompat.host: hook tables, per-pass context and the pass driver."""
from __future__ import annotations

import threading

import pytest

from nodecompat.errors import BuildError
from nodecompat.host import (
    BuildHost,
    BuildOptions,
    LoadArgs,
    Message,
    PassContext,
    PluginBuild,
    ResolveArgs,
    ResolveKind,
    ResolveResult,
    VirtualModule,
)
from nodecompat.plugins import BuildPlugin


class RecordingPlugin(BuildPlugin):
    """Claims specifiers matching ``pattern`` and records every call."""

    def __init__(self, name: str, pattern: str, claim: bool = True) -> None:
        self.name = name
        self.pattern = pattern
        self.claim = claim
        self.calls: list[str] = []

    def setup(self, build: PluginBuild) -> None:
        build.on_resolve(self.pattern, self.resolve)

    def resolve(self, args: ResolveArgs, ctx: PassContext) -> ResolveResult | None:
        self.calls.append(args.path)
        if not self.claim:
            return None
        return ResolveResult(path=f"/{self.name}/{args.path}")


class VirtualPlugin(BuildPlugin):
    """Serves ``virtual:*`` modules that import a follow-up specifier."""

    name = "virtual"

    def setup(self, build: PluginBuild) -> None:
        build.on_resolve("^virtual:", lambda args, ctx: ResolveResult(args.path, namespace="v"))
        build.on_load(".*", self.load, namespace="v")

    def load(self, args: LoadArgs, ctx: PassContext) -> VirtualModule:
        return VirtualModule("v", args.path, f"import 'dep-of-{args.path}';", imports=(f"dep-of-{args.path}",))


class FailingPlugin(BuildPlugin):
    name = "failing"

    def setup(self, build: PluginBuild) -> None:
        build.on_end(lambda ctx: [Message.warning("careful"), Message.error("broken")])


# ===========================================================================
# Dispatch order
# ===========================================================================


class TestDispatch:
    def test_first_non_none_result_wins(self) -> None:
        first = RecordingPlugin("first", "^a")
        second = RecordingPlugin("second", "^a")
        host = BuildHost([first, second])
        ctx = host.start()
        result = host.resolve(ctx, ResolveArgs("abc"))
        assert result == ResolveResult("/first/abc")
        assert second.calls == []

    def test_none_passes_to_next_hook(self) -> None:
        first = RecordingPlugin("first", "^a", claim=False)
        second = RecordingPlugin("second", "^a")
        host = BuildHost([first, second])
        result = host.resolve(host.start(), ResolveArgs("abc"))
        assert result == ResolveResult("/second/abc")
        assert first.calls == ["abc"]

    def test_filter_restricts_hooks(self) -> None:
        plugin = RecordingPlugin("only-b", "^b")
        host = BuildHost([plugin])
        assert host.resolve(host.start(), ResolveArgs("abc")) is None
        assert plugin.calls == []

    def test_unclaimed_external_option_is_external(self) -> None:
        host = BuildHost([], BuildOptions(external=["__STATIC_CONTENT_MANIFEST"]))
        result = host.resolve(host.start(), ResolveArgs("__STATIC_CONTENT_MANIFEST"))
        assert result == ResolveResult("__STATIC_CONTENT_MANIFEST", external=True)

    def test_namespace_restricts_load_hooks(self) -> None:
        host = BuildHost([VirtualPlugin()])
        ctx = host.start()
        assert host.load(ctx, LoadArgs("virtual:x", "file")) is None
        assert host.load(ctx, LoadArgs("virtual:x", "v")) is not None


# ===========================================================================
# Dedup
# ===========================================================================


class TestDedup:
    def test_identical_requests_resolve_once(self) -> None:
        plugin = RecordingPlugin("p", ".*")
        host = BuildHost([plugin])
        ctx = host.start()
        args = ResolveArgs("x", ResolveKind.IMPORT, "/src/a.js", "/src")
        assert host.resolve(ctx, args) is host.resolve(ctx, ResolveArgs("x", ResolveKind.IMPORT, "/src/a.js", "/src"))
        assert plugin.calls == ["x"]
        assert ctx.resolve_calls == 1

    @pytest.mark.parametrize(
        "other",
        [
            ResolveArgs("x", ResolveKind.REQUIRE, "/src/a.js", "/src"),
            ResolveArgs("x", ResolveKind.IMPORT, "/src/b.js", "/src"),
            ResolveArgs("x", ResolveKind.IMPORT, "/src/a.js", "/lib"),
        ],
    )
    def test_any_key_component_makes_a_new_request(self, other: ResolveArgs) -> None:
        plugin = RecordingPlugin("p", ".*")
        host = BuildHost([plugin])
        ctx = host.start()
        host.resolve(ctx, ResolveArgs("x", ResolveKind.IMPORT, "/src/a.js", "/src"))
        host.resolve(ctx, other)
        assert len(plugin.calls) == 2

    def test_new_pass_starts_fresh(self) -> None:
        plugin = RecordingPlugin("p", ".*")
        host = BuildHost([plugin])
        host.resolve(host.start(), ResolveArgs("x"))
        host.resolve(host.start(), ResolveArgs("x"))
        assert plugin.calls == ["x", "x"]

    def test_concurrent_requests_resolve_once(self) -> None:
        plugin = RecordingPlugin("p", ".*")
        host = BuildHost([plugin])
        ctx = host.start()
        threads = [
            threading.Thread(target=host.resolve, args=(ctx, ResolveArgs("x", importer="/a.js")))
            for _ in range(16)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        assert plugin.calls == ["x"]


# ===========================================================================
# PassContext
# ===========================================================================


class TestPassContext:
    def test_warnings_are_unique_and_sorted(self) -> None:
        ctx = PassContext(BuildOptions())
        ctx.warn_builtin("path", "/src/z.js")
        ctx.warn_builtin("path", "/src/a.js")
        ctx.warn_builtin("path", "/src/z.js")
        ctx.warn_builtin("http", "/src/a.js")
        assert ctx.warnings == {"http": ["/src/a.js"], "path": ["/src/a.js", "/src/z.js"]}

    def test_origin_follows_virtual_modules(self) -> None:
        ctx = PassContext(BuildOptions())
        ctx.remember_origin("ns", "fs", "/src/index.js")
        follow_up = ResolveArgs("fs", importer="fs", namespace="ns")
        assert ctx.origin_of(follow_up) == "/src/index.js"

    def test_origin_of_real_module_is_its_importer(self) -> None:
        ctx = PassContext(BuildOptions())
        assert ctx.origin_of(ResolveArgs("fs", importer="/src/a.js")) == "/src/a.js"

    def test_first_origin_is_kept(self) -> None:
        ctx = PassContext(BuildOptions())
        ctx.remember_origin("ns", "fs", "/src/a.js")
        ctx.remember_origin("ns", "fs", "/src/b.js")
        assert ctx.origin_of(ResolveArgs("fs", importer="fs", namespace="ns")) == "/src/a.js"


# ===========================================================================
# run_pass / finish
# ===========================================================================


class TestRunPass:
    def test_follows_imports_of_virtual_modules(self) -> None:
        host = BuildHost([VirtualPlugin()])
        report = host.run_pass([ResolveArgs("virtual:a", importer="/src/index.js")])
        assert [args.path for args, _ in report.resolutions] == ["virtual:a", "dep-of-virtual:a"]
        follow_up = report.resolutions[1][0]
        assert follow_up.importer == "virtual:a"
        assert follow_up.namespace == "v"
        assert len(report.modules) == 1

    def test_each_module_generated_once(self) -> None:
        host = BuildHost([VirtualPlugin()])
        report = host.run_pass(
            [
                ResolveArgs("virtual:a", importer="/src/one.js"),
                ResolveArgs("virtual:a", importer="/src/two.js"),
            ]
        )
        assert len(report.modules) == 1

    def test_inject_paths_resolve_first(self) -> None:
        plugin = RecordingPlugin("p", ".*")
        host = BuildHost([plugin], BuildOptions(inject=["/prelude.js"]))
        host.run_pass([ResolveArgs("x")])
        assert plugin.calls == ["/prelude.js", "x"]

    def test_error_messages_raise_build_error(self) -> None:
        host = BuildHost([FailingPlugin()])
        with pytest.raises(BuildError) as exc_info:
            host.run_pass([])
        error = exc_info.value
        assert [m.text for m in error.errors] == ["broken"]
        assert error.errors[0].plugin == "failing"
        assert error.report is not None
        assert [m.text for m in error.report.messages] == ["careful"]
        assert "Build failed with 1 error(s)" in str(error)

    def test_finish_returns_warnings(self) -> None:
        class Warner(BuildPlugin):
            name = "warner"

            def setup(self, build: PluginBuild) -> None:
                build.on_end(lambda ctx: [Message.warning("heads up")])

        host = BuildHost([Warner()])
        messages = host.finish(host.start())
        assert len(messages) == 1
        assert str(messages[0]) == "[warner] WARNING: heads up"
