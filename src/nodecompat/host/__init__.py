"""Host bundler plugin surface.

The host exposes four hook kinds to plugins: resolve-specifier,
load-module-body, the always-inject module list, and start/end-of-pass
callbacks.  ``BuildHost`` evaluates them as explicit ordered tables, so
hook priority is a testable contract.

Example
-------
::

    from nodecompat.host import BuildHost, BuildOptions, OutputFormat, ResolveArgs

    host = BuildHost(plugins, BuildOptions(format=OutputFormat.ESM))
    report = host.run_pass([ResolveArgs("node:buffer", importer="/src/index.js")])
"""
from __future__ import annotations

from nodecompat.host.build import BuildHost, HookTable, PassReport, PluginBuild
from nodecompat.host.context import PassContext
from nodecompat.host.messages import Message, MessageSeverity
from nodecompat.host.types import (
    FILE_NAMESPACE,
    BuildOptions,
    LoadArgs,
    Loader,
    OutputFormat,
    ResolveArgs,
    ResolveKind,
    ResolveResult,
    VirtualModule,
)

__all__ = [
    "BuildHost",
    "BuildOptions",
    "FILE_NAMESPACE",
    "HookTable",
    "LoadArgs",
    "Loader",
    "Message",
    "MessageSeverity",
    "OutputFormat",
    "PassContext",
    "PassReport",
    "PluginBuild",
    "ResolveArgs",
    "ResolveKind",
    "ResolveResult",
    "VirtualModule",
]
