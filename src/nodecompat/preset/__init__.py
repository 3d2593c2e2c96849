"""Compatibility preset: query, validation and normalisation.

Example
-------
::

    from nodecompat.preset import NodePresetProvider, PresetResolver

    resolver = PresetResolver(NodePresetProvider())
    preset = resolver.resolve("2025-01-01", ["nodejs_compat"], "/path/to/project")
    preset.alias["fs"]      # 'node:fs'
"""
from __future__ import annotations

from nodecompat.preset.models import (
    DefaultExport,
    InjectEntry,
    InjectSource,
    NamedExport,
    PresetConfig,
    RenamedExport,
    normalize_inject_value,
)
from nodecompat.preset.providers import (
    NodePresetProvider,
    PresetProvider,
    StaticPresetProvider,
    render_preset_script,
)
from nodecompat.preset.resolver import PresetResolver, validate_compatibility_date

__all__ = [
    "DefaultExport",
    "InjectEntry",
    "InjectSource",
    "NamedExport",
    "NodePresetProvider",
    "PresetConfig",
    "PresetProvider",
    "PresetResolver",
    "RenamedExport",
    "StaticPresetProvider",
    "normalize_inject_value",
    "render_preset_script",
    "validate_compatibility_date",
]
