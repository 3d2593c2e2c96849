"""Specifier classification: does a specifier address a Node.js built-in?

Two independent rules decide built-in status:

1. the specifier is ``name`` or ``node:name`` for a canonical built-in
   name (one anchored alternation pattern, also used as the resolve-hook
   filter);
2. the specifier is a bare lowercase/underscore identifier that is itself
   a canonical name.

Neither rule ever terminates resolution; a non-match is simply passed on.

Usage
-----
::

    from nodecompat.classifier import SpecifierClassifier

    classifier = SpecifierClassifier()
    classifier.is_builtin("node:fs")        # True
    classifier.is_builtin("fs/promises")    # True
    classifier.is_builtin("left-pad")       # False
    classifier.is_builtin("test")           # False, only node:test exists
"""
from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from nodecompat.classifier.builtins import NODE_BUILTIN_MODULES, NODE_PREFIX
from nodecompat.errors import ResolutionOracleError
from nodecompat.host.types import OutputFormat, ResolveKind

if TYPE_CHECKING:
    from nodecompat.resolution.aliases import AliasTable
    from nodecompat.resolution.oracle import ResolutionOracle

logger = logging.getLogger(__name__)

_BARE_IDENTIFIER_RE = re.compile(r"[a-z_][a-z0-9_]*")

# Matches nothing; used when the canonical set is empty.
NEVER_MATCHES = r"(?!)"


@dataclass(frozen=True, slots=True)
class ClassificationResult:
    """How the compatibility engine treats one specifier.

    Parameters
    ----------
    is_builtin:
        The specifier addresses a Node.js built-in module.
    is_aliased:
        The active alias table maps the specifier to a shim.
    matched_alias:
        The alias target, when ``is_aliased``.
    should_externalize:
        The specifier is a built-in that will be left for the runtime:
        either nothing shims it locally, or its alias target is external.
    needs_require_shim:
        The specifier is a built-in reached through ``require()``; every
        output format routes such calls through the ``require`` shim.
    """

    is_builtin: bool
    is_aliased: bool = False
    matched_alias: str | None = None
    should_externalize: bool = False
    needs_require_shim: bool = False


class SpecifierClassifier:
    """Classifies import specifiers against a canonical built-in name set.

    Parameters
    ----------
    names:
        Canonical built-in module names.  Names that only exist with the
        ``node:`` scheme keep their prefix.
    """

    def __init__(self, names: Iterable[str] = NODE_BUILTIN_MODULES) -> None:
        unique = tuple(dict.fromkeys(name.strip() for name in names if name.strip()))
        self._names = frozenset(unique)
        bare = sorted(n for n in unique if not n.startswith(NODE_PREFIX))
        prefixed = sorted(n for n in unique if n.startswith(NODE_PREFIX))

        alternatives: list[str] = []
        if bare:
            joined = "|".join(re.escape(n) for n in bare)
            alternatives.append(f"(?:{re.escape(NODE_PREFIX)})?(?:{joined})")
        alternatives.extend(re.escape(n) for n in prefixed)

        self.filter = f"^(?:{'|'.join(alternatives)})$" if alternatives else NEVER_MATCHES
        self._pattern = re.compile(self.filter)

    @classmethod
    def from_oracle(
        cls,
        oracle: "ResolutionOracle",
        fallback: Iterable[str] = NODE_BUILTIN_MODULES,
    ) -> "SpecifierClassifier":
        """Build a classifier from a live enumeration of the runtime's built-ins.

        An enumeration failure is not fatal: the static ``fallback`` set is
        used instead.
        """
        try:
            names = list(oracle.builtin_modules())
        except ResolutionOracleError as exc:
            logger.warning("Could not enumerate built-in modules, using snapshot: %s", exc)
            names = []
        if not names:
            names = list(fallback)
        return cls(names)

    @property
    def names(self) -> list[str]:
        """Return the canonical names in alphabetical order."""
        return sorted(self._names)

    def is_builtin(self, specifier: str) -> bool:
        """Return True if ``specifier`` addresses a canonical built-in module."""
        return self._matches_canonical(specifier) or self._matches_bare_identifier(specifier)

    def classify(
        self,
        specifier: str,
        kind: ResolveKind = ResolveKind.IMPORT,
        output_format: OutputFormat = OutputFormat.ESM,
        aliases: "AliasTable | None" = None,
    ) -> ClassificationResult:
        """Classify ``specifier`` as reached by ``kind`` in an ``output_format`` build.

        Parameters
        ----------
        specifier:
            Raw import text.
        kind:
            How the specifier was reached.
        output_format:
            Output format of the bundle.  Classification does not currently
            depend on it.
        aliases:
            Active alias table, if the preset has been resolved.

        Returns
        -------
        ClassificationResult
        """
        is_builtin = self.is_builtin(specifier)
        entry = aliases.get(specifier) if aliases is not None else None
        locally_shimmed = entry is not None and not entry.external
        return ClassificationResult(
            is_builtin=is_builtin,
            is_aliased=entry is not None,
            matched_alias=entry.target if entry is not None else None,
            should_externalize=is_builtin and not locally_shimmed,
            needs_require_shim=is_builtin and kind is ResolveKind.REQUIRE,
        )

    def _matches_canonical(self, specifier: str) -> bool:
        return self._pattern.fullmatch(specifier) is not None

    def _matches_bare_identifier(self, specifier: str) -> bool:
        return (
            _BARE_IDENTIFIER_RE.fullmatch(specifier) is not None
            and specifier in self._names
        )

    def __contains__(self, specifier: object) -> bool:
        return isinstance(specifier, str) and self.is_builtin(specifier)

    def __repr__(self) -> str:
        return f"SpecifierClassifier(names={len(self._names)})"
