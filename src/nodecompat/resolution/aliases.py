"""Alias path resolution.

Every alias target in the preset is resolved to an absolute path through
a ``ResolutionOracle``.  Targets the oracle cannot resolve are dropped
from the active table: the original specifier then falls through to the
bundler's default resolution and, if it is genuinely missing, fails there
with an ordinary module-not-found error.  Externalized targets stay active
even without a path, since their path is never used.

The active names are compiled into one anchored alternation so the resolve
hook can filter on them in a single match.
"""
from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from nodecompat.preset.models import PresetConfig
from nodecompat.resolution.oracle import ResolutionOracle

logger = logging.getLogger(__name__)

NPM_SHIM_PREFIXES: tuple[str, ...] = ("unenv/npm/", "unenv/mock/")

# Matches nothing; used when no alias is active.
NEVER_MATCHES = r"(?!)"


@dataclass(frozen=True, slots=True)
class AliasEntry:
    """One alias from the preset.

    Parameters
    ----------
    name:
        Logical module name the user imports, e.g. ``"debug"``.
    target:
        Shim specifier chosen by the preset, e.g. ``"unenv/npm/debug"``.
    resolved_path:
        Absolute path of ``target``; ``None`` if it could not be resolved.
    external:
        ``target`` is provided by the runtime and must not be bundled.
    """

    name: str
    target: str
    resolved_path: str | None = None
    external: bool = False

    @property
    def active(self) -> bool:
        """Return True if this alias takes part in resolution."""
        return self.external or self.resolved_path is not None

    @property
    def is_npm_shim(self) -> bool:
        """Return True if ``target`` is an ESM re-export shim for an npm package."""
        return self.target.startswith(NPM_SHIM_PREFIXES)


class AliasTable:
    """The active aliases of one build, keyed by logical name.

    Parameters
    ----------
    entries:
        Every alias from the preset; inactive entries are kept only in
        :attr:`unresolved`.
    """

    def __init__(self, entries: Iterable[AliasEntry] = ()) -> None:
        self._entries: dict[str, AliasEntry] = {}
        self._by_target: dict[str, AliasEntry] = {}
        unresolved: list[str] = []
        for entry in entries:
            if not entry.active:
                unresolved.append(entry.name)
                continue
            self._entries[entry.name] = entry
            self._by_target.setdefault(entry.target, entry)
        self.unresolved: list[str] = sorted(unresolved)

        names = sorted(self._entries)
        if names:
            self.filter = f"^(?:{'|'.join(re.escape(n) for n in names)})$"
        else:
            self.filter = NEVER_MATCHES
        self._pattern = re.compile(self.filter)

    def get(self, name: str) -> AliasEntry | None:
        return self._entries.get(name)

    def by_target(self, target: str) -> AliasEntry | None:
        """Return the first active entry whose target is ``target``."""
        return self._by_target.get(target)

    def matches(self, specifier: str) -> bool:
        return self._pattern.fullmatch(specifier) is not None

    @property
    def names(self) -> list[str]:
        return sorted(self._entries)

    def __iter__(self) -> Iterator[AliasEntry]:
        return iter(self._entries[name] for name in sorted(self._entries))

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"AliasTable(active={len(self)}, unresolved={len(self.unresolved)})"


class AliasPathResolver:
    """Resolves the preset's alias targets to absolute paths.

    Parameters
    ----------
    oracle:
        The resolution back-end.
    """

    def __init__(self, oracle: ResolutionOracle) -> None:
        self._oracle = oracle

    def resolve(self, preset: PresetConfig, base_dir: str) -> AliasTable:
        """Build the active alias table for ``preset`` from ``base_dir``."""
        entries: list[AliasEntry] = []
        for name, target in preset.alias.items():
            external = preset.is_external(target)
            resolved = None if external else self._oracle.resolve(target, base_dir)
            if resolved is None and not external:
                logger.debug("Dropping alias %r -> %r: target is not resolvable", name, target)
            entries.append(AliasEntry(name, target, resolved, external))
        table = AliasTable(entries)
        logger.debug("Alias table: %r", table)
        return table
