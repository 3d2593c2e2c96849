"""Shared test fixtures for nodecompat.

Fixtures defined here are available to all tests in the suite without
needing an explicit import.  Nothing here spawns a process: the preset
and resolution back-ends are the static fakes.
"""
from __future__ import annotations

from typing import Any

import pytest

from nodecompat.config import CompatConfig
from nodecompat.plugins import PluginServices
from nodecompat.preset import StaticPresetProvider
from nodecompat.resolution import StaticResolutionOracle

BASE_PATH = "/project"
UNENV_RUNTIME = "/project/node_modules/unenv/dist/runtime"


def sample_preset() -> dict[str, Any]:
    """Return a raw preset shaped like the Cloudflare one, trimmed down."""
    return {
        "alias": {
            "fs": "unenv/node/fs",
            "node:fs": "unenv/node/fs",
            "buffer": "node:buffer",
            "node:buffer": "node:buffer",
            "debug": "unenv/npm/debug",
            "mime": "unenv/mock/proxy",
            "missing-shim": "unenv/npm/does-not-exist",
        },
        "inject": {
            "process": "@cloudflare/unenv-preset/node/process",
            "Buffer": ["node:buffer", "Buffer"],
            "performance": ["unenv/polyfill/performance", "performance", "perf"],
            "Performance": ["unenv/polyfill/performance", "Performance"],
        },
        "external": ["node:buffer"],
        "polyfill": ["unenv/polyfill/timers"],
    }


def sample_paths() -> dict[str, str]:
    """Return what ``require.resolve`` gives for the sample preset's targets."""
    return {
        "unenv/node/fs": f"{UNENV_RUNTIME}/node/fs.mjs",
        "unenv/npm/debug": f"{UNENV_RUNTIME}/npm/debug.mjs",
        "unenv/mock/proxy": f"{UNENV_RUNTIME}/mock/proxy.mjs",
        "unenv/polyfill/timers": f"{UNENV_RUNTIME}/polyfill/timers.mjs",
    }


@pytest.fixture()
def raw_preset() -> dict[str, Any]:
    return sample_preset()


@pytest.fixture()
def provider() -> StaticPresetProvider:
    return StaticPresetProvider(sample_preset())


@pytest.fixture()
def oracle() -> StaticResolutionOracle:
    return StaticResolutionOracle(sample_paths())


@pytest.fixture()
def services(provider: StaticPresetProvider, oracle: StaticResolutionOracle) -> PluginServices:
    return PluginServices(oracle=oracle, provider=provider)


@pytest.fixture()
def config() -> CompatConfig:
    return CompatConfig(
        compatibility_date="2025-03-10",
        compatibility_flags=("nodejs_compat",),
        base_path=BASE_PATH,
    )


@pytest.fixture()
def expected_version() -> str:
    """Return the current expected version string.

    Update this fixture when cutting a release so that the version
    test immediately catches stale ``__version__`` values.
    """
    return "0.1.0"
