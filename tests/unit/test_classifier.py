"""Unit tests for nodecompat.classifier: built-in detection and classification."""
from __future__ import annotations

import re

import pytest

from nodecompat.classifier import NODE_BUILTIN_MODULES, SpecifierClassifier
from nodecompat.errors import ResolutionOracleError
from nodecompat.host.types import OutputFormat, ResolveKind
from nodecompat.resolution import AliasEntry, AliasTable, StaticResolutionOracle


@pytest.fixture()
def classifier() -> SpecifierClassifier:
    return SpecifierClassifier()


@pytest.fixture()
def aliases() -> AliasTable:
    return AliasTable(
        [
            AliasEntry("fs", "unenv/node/fs", "/nm/unenv/node/fs.mjs"),
            AliasEntry("buffer", "node:buffer", None, external=True),
            AliasEntry("debug", "unenv/npm/debug", "/nm/unenv/npm/debug.mjs"),
        ]
    )


# ===========================================================================
# is_builtin
# ===========================================================================


class TestIsBuiltin:
    @pytest.mark.parametrize(
        "specifier",
        ["fs", "node:fs", "fs/promises", "node:fs/promises", "_http_agent", "node:test"],
    )
    def test_builtins_are_recognised(self, classifier: SpecifierClassifier, specifier: str) -> None:
        assert classifier.is_builtin(specifier)

    @pytest.mark.parametrize(
        "specifier",
        ["left-pad", "lodash", "react", "./fs", "fs/", "node:", "FS", "fsx", "nodefs"],
    )
    def test_non_builtins_are_rejected(self, classifier: SpecifierClassifier, specifier: str) -> None:
        assert not classifier.is_builtin(specifier)

    def test_prefix_only_module_needs_its_scheme(self, classifier: SpecifierClassifier) -> None:
        assert classifier.is_builtin("node:test")
        assert not classifier.is_builtin("test")

    def test_bare_identifier_outside_the_set_is_not_builtin(self) -> None:
        classifier = SpecifierClassifier(["fs"])
        assert not classifier.is_builtin("path")

    def test_contains(self, classifier: SpecifierClassifier) -> None:
        assert "path" in classifier
        assert "left-pad" not in classifier
        assert 42 not in classifier


# ===========================================================================
# filter pattern
# ===========================================================================


class TestFilter:
    def test_filter_is_anchored(self, classifier: SpecifierClassifier) -> None:
        pattern = re.compile(classifier.filter)
        assert pattern.search("fs")
        assert pattern.search("node:path")
        assert not pattern.search("my-fs")
        assert not pattern.search("fs-extra")

    def test_filter_escapes_names(self) -> None:
        classifier = SpecifierClassifier(["a.b"])
        pattern = re.compile(classifier.filter)
        assert pattern.search("a.b")
        assert not pattern.search("axb")

    def test_empty_set_matches_nothing(self) -> None:
        classifier = SpecifierClassifier([])
        pattern = re.compile(classifier.filter)
        assert not pattern.search("fs")
        assert not pattern.search("")
        assert not classifier.is_builtin("fs")

    def test_names_are_sorted_and_unique(self) -> None:
        classifier = SpecifierClassifier(["zlib", "fs", "fs", " "])
        assert classifier.names == ["fs", "zlib"]


# ===========================================================================
# classify
# ===========================================================================


class TestClassify:
    @pytest.mark.parametrize("kind", list(ResolveKind))
    def test_builtin_for_every_kind(self, classifier: SpecifierClassifier, kind: ResolveKind) -> None:
        result = classifier.classify("node:crypto", kind)
        assert result.is_builtin
        assert result.should_externalize

    @pytest.mark.parametrize("kind", list(ResolveKind))
    def test_non_builtin_for_every_kind(self, classifier: SpecifierClassifier, kind: ResolveKind) -> None:
        result = classifier.classify("left-pad", kind)
        assert not result.is_builtin
        assert not result.should_externalize
        assert not result.needs_require_shim

    def test_require_needs_shim_in_esm(self, classifier: SpecifierClassifier) -> None:
        result = classifier.classify("fs", ResolveKind.REQUIRE, OutputFormat.ESM)
        assert result.needs_require_shim

    def test_require_needs_shim_in_iife(self, classifier: SpecifierClassifier) -> None:
        result = classifier.classify("fs", ResolveKind.REQUIRE, OutputFormat.IIFE)
        assert result.needs_require_shim

    def test_require_needs_shim_in_cjs(self, classifier: SpecifierClassifier) -> None:
        result = classifier.classify("fs", ResolveKind.REQUIRE, OutputFormat.CJS)
        assert result.needs_require_shim

    @pytest.mark.parametrize("kind", [ResolveKind.IMPORT, ResolveKind.DYNAMIC])
    def test_imports_never_need_shim(self, classifier: SpecifierClassifier, kind: ResolveKind) -> None:
        assert not classifier.classify("fs", kind).needs_require_shim

    def test_locally_shimmed_alias_is_not_externalized(
        self, classifier: SpecifierClassifier, aliases: AliasTable
    ) -> None:
        result = classifier.classify("fs", aliases=aliases)
        assert result.is_aliased
        assert result.matched_alias == "unenv/node/fs"
        assert not result.should_externalize

    def test_external_alias_is_externalized(
        self, classifier: SpecifierClassifier, aliases: AliasTable
    ) -> None:
        result = classifier.classify("buffer", aliases=aliases)
        assert result.is_aliased
        assert result.should_externalize

    def test_aliased_npm_package_is_not_builtin(
        self, classifier: SpecifierClassifier, aliases: AliasTable
    ) -> None:
        result = classifier.classify("debug", aliases=aliases)
        assert result.is_aliased
        assert not result.is_builtin
        assert not result.should_externalize


# ===========================================================================
# from_oracle
# ===========================================================================


class TestFromOracle:
    def test_uses_live_enumeration(self) -> None:
        classifier = SpecifierClassifier.from_oracle(StaticResolutionOracle(builtins=["fs", "node:sea"]))
        assert classifier.names == ["fs", "node:sea"]
        assert not classifier.is_builtin("path")

    def test_empty_enumeration_falls_back_to_snapshot(self) -> None:
        classifier = SpecifierClassifier.from_oracle(StaticResolutionOracle())
        assert classifier.names == sorted(set(NODE_BUILTIN_MODULES))

    def test_enumeration_failure_falls_back_with_warning(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        class BrokenOracle(StaticResolutionOracle):
            def builtin_modules(self) -> list[str]:
                raise ResolutionOracleError("node exploded")

        with caplog.at_level("WARNING", logger="nodecompat.classifier.classifier"):
            classifier = SpecifierClassifier.from_oracle(BrokenOracle())
        assert classifier.is_builtin("fs")
        assert "node exploded" in caplog.text
