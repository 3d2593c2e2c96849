"""Unit tests for nodecompat.resolution.aliases: AliasTable and AliasPathResolver."""
from __future__ import annotations

import logging
import re
from typing import Any

import pytest

from nodecompat.preset import PresetConfig
from nodecompat.resolution import AliasEntry, AliasPathResolver, AliasTable, StaticResolutionOracle


class TestAliasEntry:
    def test_active_when_resolved(self) -> None:
        assert AliasEntry("fs", "unenv/node/fs", "/fs.mjs").active

    def test_active_when_external_without_path(self) -> None:
        assert AliasEntry("buffer", "node:buffer", None, external=True).active

    def test_inactive_without_path(self) -> None:
        assert not AliasEntry("x", "unenv/npm/x").active

    @pytest.mark.parametrize(
        ("target", "expected"),
        [
            ("unenv/npm/debug", True),
            ("unenv/mock/proxy", True),
            ("unenv/node/fs", False),
            ("node:buffer", False),
        ],
    )
    def test_is_npm_shim(self, target: str, expected: bool) -> None:
        assert AliasEntry("x", target, "/x.mjs").is_npm_shim is expected


class TestAliasTable:
    def test_inactive_entries_are_listed_as_unresolved(self) -> None:
        table = AliasTable(
            [
                AliasEntry("fs", "unenv/node/fs", "/fs.mjs"),
                AliasEntry("zzz", "unenv/npm/zzz"),
                AliasEntry("aaa", "unenv/npm/aaa"),
            ]
        )
        assert table.names == ["fs"]
        assert table.unresolved == ["aaa", "zzz"]
        assert "zzz" not in table
        assert len(table) == 1

    def test_filter_escapes_and_anchors(self) -> None:
        table = AliasTable(
            [
                AliasEntry("node:fs", "unenv/node/fs", "/fs.mjs"),
                AliasEntry("a.b", "unenv/npm/ab", "/ab.mjs"),
            ]
        )
        pattern = re.compile(table.filter)
        assert pattern.search("node:fs")
        assert pattern.search("a.b")
        assert not pattern.search("axb")
        assert not pattern.search("node:fs/promises")
        assert table.matches("a.b")
        assert not table.matches("a.bc")

    def test_empty_table_matches_nothing(self) -> None:
        table = AliasTable()
        assert not re.compile(table.filter).search("fs")
        assert not table.matches("")

    def test_by_target_returns_first_entry(self) -> None:
        table = AliasTable(
            [
                AliasEntry("fs", "unenv/node/fs", "/fs.mjs"),
                AliasEntry("node:fs", "unenv/node/fs", "/fs.mjs"),
            ]
        )
        entry = table.by_target("unenv/node/fs")
        assert entry is not None
        assert entry.name == "fs"
        assert table.by_target("unenv/node/path") is None

    def test_iteration_is_sorted(self) -> None:
        table = AliasTable(
            [AliasEntry("b", "t/b", "/b"), AliasEntry("a", "t/a", "/a")]
        )
        assert [e.name for e in table] == ["a", "b"]


class TestAliasPathResolver:
    def test_resolves_every_target(
        self, raw_preset: dict[str, Any], oracle: StaticResolutionOracle
    ) -> None:
        table = AliasPathResolver(oracle).resolve(PresetConfig.from_dict(raw_preset), "/project")
        fs = table.get("fs")
        assert fs is not None
        assert fs.resolved_path.endswith("/node/fs.mjs")
        assert not fs.external

    def test_external_targets_skip_the_oracle(
        self, raw_preset: dict[str, Any], oracle: StaticResolutionOracle
    ) -> None:
        table = AliasPathResolver(oracle).resolve(PresetConfig.from_dict(raw_preset), "/project")
        buffer = table.get("buffer")
        assert buffer is not None
        assert buffer.external
        assert buffer.resolved_path is None
        assert "node:buffer" not in oracle.calls

    def test_unresolvable_alias_is_dropped_quietly(
        self,
        raw_preset: dict[str, Any],
        oracle: StaticResolutionOracle,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        with caplog.at_level(logging.DEBUG, logger="nodecompat.resolution.aliases"):
            table = AliasPathResolver(oracle).resolve(PresetConfig.from_dict(raw_preset), "/project")
        assert "missing-shim" not in table
        assert table.unresolved == ["missing-shim"]
        records = [r for r in caplog.records if "missing-shim" in r.getMessage()]
        assert records and all(r.levelno == logging.DEBUG for r in records)
