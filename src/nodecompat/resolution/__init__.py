"""Module resolution: the resolution oracle and alias path resolver."""
from __future__ import annotations

from nodecompat.resolution.aliases import (
    NPM_SHIM_PREFIXES,
    AliasEntry,
    AliasPathResolver,
    AliasTable,
)
from nodecompat.resolution.oracle import (
    NodeResolutionOracle,
    ResolutionOracle,
    StaticResolutionOracle,
)
from nodecompat.resolution.process import DEFAULT_TIMEOUT_SECONDS, run_process

__all__ = [
    "DEFAULT_TIMEOUT_SECONDS",
    "NPM_SHIM_PREFIXES",
    "AliasEntry",
    "AliasPathResolver",
    "AliasTable",
    "NodeResolutionOracle",
    "ResolutionOracle",
    "StaticResolutionOracle",
    "run_process",
]
