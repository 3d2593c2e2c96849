#!/usr/bin/env python3
"""Example: Quickstart for nodecompat

Minimal working example: classify a few specifiers, then run one build
pass through the standard plugins with a fixed preset, so no Node.js
install is needed.

Usage:
    python examples/01_quickstart.py

Requirements:
    pip install nodecompat
"""
from __future__ import annotations

import nodecompat
from nodecompat.config import CompatConfig
from nodecompat.host import ResolveArgs, ResolveKind
from nodecompat.plugins import PluginServices
from nodecompat.preset import StaticPresetProvider
from nodecompat.resolution import StaticResolutionOracle

PRESET = {
    "alias": {"fs": "unenv/node/fs", "debug": "unenv/npm/debug"},
    "inject": {"process": "unenv/node/process"},
    "external": [],
    "polyfill": [],
}

RESOLVED = {
    "unenv/node/fs": "/app/node_modules/unenv/dist/runtime/node/fs.mjs",
    "unenv/npm/debug": "/app/node_modules/unenv/dist/runtime/npm/debug.mjs",
}


def main() -> None:
    print(f"nodecompat version: {nodecompat.__version__}")

    # Step 1: Classify specifiers
    for specifier in ("fs", "node:test", "test", "left-pad"):
        result = nodecompat.classify(specifier, "require-call")
        print(f"  {specifier:<10} builtin={result.is_builtin} "
              f"require_shim={result.needs_require_shim}")

    # Step 2: Build a host with a fixed preset
    config = CompatConfig(
        compatibility_date="2025-03-10",
        compatibility_flags=("nodejs_compat",),
        base_path="/app",
    )
    services = PluginServices(
        oracle=StaticResolutionOracle(RESOLVED),
        provider=StaticPresetProvider(PRESET),
    )
    host = nodecompat.create_host(config, services)

    # Step 3: Run one pass
    report = host.run_pass([
        ResolveArgs("fs", ResolveKind.REQUIRE, "/app/src/index.js"),
        ResolveArgs("debug", ResolveKind.REQUIRE, "/app/src/index.js"),
        ResolveArgs("node:http", ResolveKind.IMPORT, "/app/src/server.js"),
    ])
    print(f"\nResolutions: {len(report.resolutions)}, "
          f"virtual modules: {len(report.modules)}")
    for module in report.modules:
        print(f"\n// {module.id}")
        print(module.contents)

    # Step 4: Warnings for built-ins left to the runtime
    for message in report.messages:
        print(f"[{message.severity.name.lower()}] {message.text}")


if __name__ == "__main__":
    main()
