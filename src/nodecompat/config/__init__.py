"""Configuration loading for nodecompat."""
from __future__ import annotations

from nodecompat.config.settings import (
    DEFAULT_EXTERNAL_EXTENSIONS,
    DEFAULT_RUNTIME_PREFIXES,
    CompatConfig,
    load_config,
)

__all__ = [
    "DEFAULT_EXTERNAL_EXTENSIONS",
    "DEFAULT_RUNTIME_PREFIXES",
    "CompatConfig",
    "load_config",
]
