"""Compatibility preset data model.

A ``PresetConfig`` is an immutable snapshot of the four tables the preset
provider returns:

``alias``
    logical module name → shim specifier.
``inject``
    global name → export reference.  The provider encodes the reference
    as a string (default export), a 2-list ``[module, export]`` or a
    3-list ``[module, export, local]``.  These shapes are normalised
    once, here, into ``DefaultExport | NamedExport | RenamedExport`` and
    never inspected again.
``external``
    specifiers the runtime provides natively.
``polyfill``
    modules imported purely for their side effects.
"""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Union

from nodecompat.errors import PresetQueryError

PRESET_KEYS = frozenset({"alias", "inject", "external", "polyfill"})


# ---------------------------------------------------------------------------
# Inject references
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class DefaultExport:
    """The default export of ``module``."""

    module: str

    @property
    def export_name(self) -> str:
        return "default"

    @property
    def import_name(self) -> str:
        return "defaultExport"


@dataclass(frozen=True, slots=True)
class NamedExport:
    """The export ``export_name`` of ``module``, imported under its own name."""

    module: str
    export_name: str

    @property
    def import_name(self) -> str:
        return self.export_name


@dataclass(frozen=True, slots=True)
class RenamedExport:
    """The export ``export_name`` of ``module``, imported as ``import_name``."""

    module: str
    export_name: str
    import_name: str


InjectSource = Union[DefaultExport, NamedExport, RenamedExport]


@dataclass(frozen=True, slots=True)
class InjectEntry:
    """A value to assign onto the global object before user code runs.

    Parameters
    ----------
    global_name:
        Name assigned on ``globalThis``.
    source:
        Where the value comes from.
    """

    global_name: str
    source: InjectSource

    @property
    def module(self) -> str:
        return self.source.module

    @property
    def export_name(self) -> str:
        return self.source.export_name

    @property
    def import_name(self) -> str:
        return self.source.import_name


def normalize_inject_value(global_name: str, value: Any) -> InjectSource:
    """Convert one raw ``inject`` value into its tagged variant.

    Raises
    ------
    PresetQueryError
        If ``value`` is not a string or a list of two or three strings.
    """
    if isinstance(value, str) and value:
        return DefaultExport(value)
    if isinstance(value, (list, tuple)) and all(isinstance(v, str) and v for v in value):
        if len(value) == 2:
            return NamedExport(value[0], value[1])
        if len(value) == 3:
            return RenamedExport(value[0], value[1], value[2])
    raise PresetQueryError(
        f"inject entry {global_name!r} has unsupported shape {value!r}; "
        "expected a module string or a [module, export(, local)] list"
    )


# ---------------------------------------------------------------------------
# Preset snapshot
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PresetConfig:
    """Immutable alias/inject/external/polyfill snapshot for one build.

    Build instances with :meth:`from_dict`, which validates the raw
    provider output.
    """

    alias: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    inject: tuple[InjectEntry, ...] = ()
    external: tuple[str, ...] = ()
    polyfill: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Any) -> "PresetConfig":
        """Validate and normalise raw provider output.

        Raises
        ------
        PresetQueryError
            If ``data`` is not an object with exactly the four preset keys,
            or any table has the wrong shape.
        """
        if not isinstance(data, dict):
            raise PresetQueryError(f"expected a JSON object, got {type(data).__name__}")
        keys = set(data)
        if keys != PRESET_KEYS:
            missing = ", ".join(sorted(PRESET_KEYS - keys)) or "none"
            extra = ", ".join(sorted(keys - PRESET_KEYS)) or "none"
            raise PresetQueryError(
                f"expected keys alias, external, inject, polyfill (missing: {missing}; "
                f"unexpected: {extra})"
            )

        alias = data["alias"]
        if not isinstance(alias, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in alias.items()
        ):
            raise PresetQueryError("'alias' must map strings to strings")

        inject = data["inject"]
        if not isinstance(inject, dict):
            raise PresetQueryError("'inject' must be an object")
        entries = tuple(
            InjectEntry(str(name), normalize_inject_value(str(name), value))
            for name, value in inject.items()
        )

        return cls(
            alias=MappingProxyType(dict(alias)),
            inject=entries,
            external=_string_list(data["external"], "external"),
            polyfill=_string_list(data["polyfill"], "polyfill"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the preset in the provider's wire shape."""
        inject: dict[str, Any] = {}
        for entry in self.inject:
            source = entry.source
            if isinstance(source, DefaultExport):
                inject[entry.global_name] = source.module
            elif isinstance(source, NamedExport):
                inject[entry.global_name] = [source.module, source.export_name]
            else:
                inject[entry.global_name] = [
                    source.module,
                    source.export_name,
                    source.import_name,
                ]
        return {
            "alias": dict(self.alias),
            "inject": inject,
            "external": list(self.external),
            "polyfill": list(self.polyfill),
        }

    def is_external(self, specifier: str) -> bool:
        return specifier in self.external


def _string_list(value: Any, key: str) -> tuple[str, ...]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise PresetQueryError(f"{key!r} must be a list of strings")
    return tuple(value)
