"""nodecompat: Node.js built-in compatibility for bundles targeting non-Node runtimes.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
::

    import nodecompat
    from nodecompat.host import ResolveArgs, ResolveKind

    config = nodecompat.load_config("nodecompat.yaml")
    host = nodecompat.create_host(config)
    report = host.run_pass([ResolveArgs("fs", ResolveKind.REQUIRE, "/src/index.js")])

    nodecompat.classify("node:buffer").is_builtin
    True

    nodecompat.__version__
    '0.1.0'
"""
from __future__ import annotations

import os
from typing import TYPE_CHECKING

__version__: str = "0.1.0"

if TYPE_CHECKING:
    from nodecompat.classifier.classifier import ClassificationResult
    from nodecompat.config.settings import CompatConfig
    from nodecompat.host.build import BuildHost
    from nodecompat.host.types import OutputFormat, ResolveKind
    from nodecompat.plugins.base import PluginServices


def classify(
    specifier: str,
    kind: "ResolveKind | str" = "import-statement",
    output_format: "OutputFormat | str" = "esm",
) -> "ClassificationResult":
    """Classify ``specifier`` against the bundled Node.js built-in list.

    Parameters
    ----------
    specifier:
        Raw import text, e.g. ``"node:fs"``.
    kind:
        How the specifier is reached (``import-statement``,
        ``require-call`` or ``dynamic-import``).
    output_format:
        Output format of the bundle (``esm``, ``cjs`` or ``iife``).

    Returns
    -------
    ClassificationResult
    """
    from nodecompat.classifier.classifier import SpecifierClassifier
    from nodecompat.host.types import OutputFormat, ResolveKind

    return SpecifierClassifier().classify(
        specifier,
        ResolveKind.parse(kind),
        OutputFormat(output_format),
    )


def load_config(path: "str | os.PathLike[str]") -> "CompatConfig":
    """Load a ``CompatConfig`` from a YAML file.

    Raises
    ------
    nodecompat.errors.ConfigError
        If the file is unreadable or holds invalid settings.
    """
    from nodecompat.config.settings import load_config as _load_config

    return _load_config(path)


def create_host(
    config: "CompatConfig",
    services: "PluginServices | None" = None,
) -> "BuildHost":
    """Set up the standard plugins for ``config`` and return the host.

    Raises
    ------
    nodecompat.errors.SetupError
        If the preset query or a blocking resolution fails.
    """
    from nodecompat.compat import create_host as _create_host

    return _create_host(config, services)


__all__ = [
    "__version__",
    "classify",
    "create_host",
    "load_config",
]
