"""Per-pass mutable state.

A ``PassContext`` is created at the start of every build pass and passed
explicitly to each hook call.  Nothing here outlives the pass, so aborting
a pass at any point needs no cleanup.

The host may dispatch resolve and load hooks from several threads.  All
mutations go through the context's re-entrant lock.
"""
from __future__ import annotations

import threading
from collections.abc import Callable

from nodecompat.host.types import (
    FILE_NAMESPACE,
    BuildOptions,
    LoadArgs,
    ResolveArgs,
    ResolveKind,
    ResolveResult,
    VirtualModule,
)

_ResolveKey = tuple[str, ResolveKind, str, str]


class PassContext:
    """Dedup cache, warning map and virtual-module cache of one build pass.

    Parameters
    ----------
    options:
        The build options of the host running this pass.
    """

    def __init__(self, options: BuildOptions) -> None:
        self.options = options
        self._lock = threading.RLock()
        self._resolved: dict[_ResolveKey, ResolveResult | None] = {}
        self._loaded: dict[tuple[str, str], VirtualModule | None] = {}
        self._origins: dict[tuple[str, str], str] = {}
        self._warnings: dict[str, list[str]] = {}
        self._externals: dict[str, list[str]] = {}
        self.resolve_calls = 0
        self.load_calls = 0

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    # ------------------------------------------------------------------
    # Memoisation
    # ------------------------------------------------------------------

    def resolve_once(
        self,
        args: ResolveArgs,
        compute: Callable[[ResolveArgs], ResolveResult | None],
    ) -> ResolveResult | None:
        """Return the cached result for ``args.key`` or compute it exactly once."""
        with self._lock:
            if args.key in self._resolved:
                return self._resolved[args.key]
            self.resolve_calls += 1
            result = compute(args)
            self._resolved[args.key] = result
            return result

    def load_once(
        self,
        args: LoadArgs,
        compute: Callable[[LoadArgs], VirtualModule | None],
    ) -> VirtualModule | None:
        """Return the cached module for ``(namespace, path)`` or generate it once."""
        key = (args.namespace, args.path)
        with self._lock:
            if key in self._loaded:
                return self._loaded[key]
            self.load_calls += 1
            module = compute(args)
            self._loaded[key] = module
            return module

    # ------------------------------------------------------------------
    # Importer attribution
    # ------------------------------------------------------------------

    def remember_origin(self, namespace: str, virtual_path: str, importer: str) -> None:
        """Record which real module caused a virtual module to exist."""
        with self._lock:
            self._origins.setdefault((namespace, virtual_path), importer)

    def origin_of(self, args: ResolveArgs) -> str:
        """Return the real importer behind ``args``, following virtual modules."""
        if args.namespace == FILE_NAMESPACE:
            return args.importer
        with self._lock:
            return self._origins.get((args.namespace, args.importer), args.importer)

    # ------------------------------------------------------------------
    # Warnings and externals
    # ------------------------------------------------------------------

    def warn_builtin(self, specifier: str, importer: str) -> None:
        """Record that ``specifier`` was externalized with no local shim."""
        with self._lock:
            _append_unique(self._warnings, specifier, importer)

    def record_external(self, specifier: str, importer: str) -> None:
        """Record that the built-in ``specifier`` survived as an external import."""
        with self._lock:
            _append_unique(self._externals, specifier, importer)

    @property
    def warnings(self) -> dict[str, list[str]]:
        """Return ``specifier -> importers`` for unshimmed built-ins, sorted."""
        with self._lock:
            return _sorted_copy(self._warnings)

    @property
    def externals(self) -> dict[str, list[str]]:
        """Return ``specifier -> importers`` for externalized built-ins, sorted."""
        with self._lock:
            return _sorted_copy(self._externals)


def _append_unique(table: dict[str, list[str]], key: str, value: str) -> None:
    importers = table.setdefault(key, [])
    if value not in importers:
        importers.append(value)


def _sorted_copy(table: dict[str, list[str]]) -> dict[str, list[str]]:
    return {key: sorted(table[key]) for key in sorted(table)}
