"""Compatibility preset resolution.

``PresetResolver`` validates the runtime compatibility settings, queries
a ``PresetProvider`` and normalises the answer into a ``PresetConfig``.
Results are memoised per ``(compatibility_date, flags, base_dir)``: the
preset is a deterministic function of those inputs.

Failures are never retried.
"""
from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from datetime import datetime

from nodecompat.errors import ConfigError
from nodecompat.preset.models import PresetConfig
from nodecompat.preset.providers import PresetProvider

logger = logging.getLogger(__name__)

_DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}")

PresetKey = tuple[str, tuple[str, ...], str]


def validate_compatibility_date(value: str) -> str:
    """Return ``value`` if it is a real ``YYYY-MM-DD`` date.

    Raises
    ------
    ConfigError
        If the value is not in ``YYYY-MM-DD`` form or is not a calendar date.
    """
    if not isinstance(value, str) or not _DATE_RE.fullmatch(value):
        raise ConfigError("compatibility_date", f"{value!r} must be in format YYYY-MM-DD")
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except ValueError as exc:
        raise ConfigError("compatibility_date", f"{value!r} is not a valid date") from exc
    return value


class PresetResolver:
    """Fetches and caches compatibility presets.

    Parameters
    ----------
    provider:
        The preset back-end to query.
    """

    def __init__(self, provider: PresetProvider) -> None:
        self._provider = provider
        self._cache: dict[PresetKey, PresetConfig] = {}

    def resolve(
        self,
        compatibility_date: str,
        compatibility_flags: Sequence[str],
        base_dir: str,
    ) -> PresetConfig:
        """Return the preset for the given compatibility settings.

        Raises
        ------
        ConfigError
            If ``compatibility_date`` is malformed.
        PresetQueryError
            If the provider fails or returns a malformed preset.
        """
        validate_compatibility_date(compatibility_date)
        key: PresetKey = (compatibility_date, tuple(compatibility_flags), base_dir)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        logger.debug(
            "Querying compatibility preset (date=%s, flags=%s, base=%s)",
            compatibility_date,
            list(compatibility_flags),
            base_dir,
        )
        raw = self._provider.query(compatibility_date, list(compatibility_flags), base_dir)
        preset = PresetConfig.from_dict(raw)
        logger.debug(
            "Preset has %d alias(es), %d inject(s), %d external(s), %d polyfill(s)",
            len(preset.alias),
            len(preset.inject),
            len(preset.external),
            len(preset.polyfill),
        )
        self._cache[key] = preset
        return preset
