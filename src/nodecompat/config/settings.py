"""Configuration for the compatibility engine.

A ``CompatConfig`` gathers the target-runtime compatibility settings and
the knobs of the out-of-process helpers.  It is normally loaded from a
YAML file::

    # nodecompat.yaml
    compatibility_date: "2025-03-10"
    compatibility_flags: [nodejs_compat]
    base_path: .
    output_format: esm
    timeout_seconds: 30

Relative ``base_path`` values are resolved against the directory of the
file they were read from.
"""
from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from nodecompat.errors import ConfigError
from nodecompat.host.types import OutputFormat
from nodecompat.preset.providers import DEFAULT_UNENV_VERSION
from nodecompat.preset.resolver import validate_compatibility_date
from nodecompat.resolution.process import DEFAULT_TIMEOUT_SECONDS

DEFAULT_EXTERNAL_EXTENSIONS: tuple[str, ...] = (".wasm", ".bin", ".html", ".txt")
DEFAULT_RUNTIME_PREFIXES: tuple[str, ...] = ("cloudflare:",)


@dataclass(frozen=True)
class CompatConfig:
    """Settings for one compatibility-engine host.

    Parameters
    ----------
    compatibility_date:
        Target runtime compatibility date, ``YYYY-MM-DD``.
    compatibility_flags:
        Ordered runtime compatibility flags, e.g. ``("nodejs_compat",)``.
    base_path:
        Absolute project directory; aliases and polyfills resolve from here.
    output_format:
        Output module format of the bundle.
    node_binary:
        ``node`` executable used by the shell-based helpers.
    package_manager:
        Package manager used to install the preset packages.
    install_preset:
        Install ``unenv`` and the preset before querying it.
    unenv_version:
        ``unenv`` version to install.
    timeout_seconds:
        Time limit for every out-of-process call.
    enumerate_builtins:
        Ask ``node`` for its built-in module list instead of using the
        bundled snapshot.
    external_extensions:
        File extensions left external by the external-files plugin.
    runtime_prefixes:
        Specifier prefixes provided by the target runtime itself.
    """

    compatibility_date: str
    compatibility_flags: tuple[str, ...] = ()
    base_path: str = field(default_factory=os.getcwd)
    output_format: OutputFormat = OutputFormat.ESM
    node_binary: str = "node"
    package_manager: str = "npm"
    install_preset: bool = False
    unenv_version: str = DEFAULT_UNENV_VERSION
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    enumerate_builtins: bool = False
    external_extensions: tuple[str, ...] = DEFAULT_EXTERNAL_EXTENSIONS
    runtime_prefixes: tuple[str, ...] = DEFAULT_RUNTIME_PREFIXES

    def __post_init__(self) -> None:
        validate_compatibility_date(self.compatibility_date)
        if self.timeout_seconds <= 0:
            raise ConfigError("timeout_seconds", "must be positive")
        object.__setattr__(self, "base_path", os.path.abspath(self.base_path))
        object.__setattr__(self, "output_format", _as_format(self.output_format))
        for key in ("compatibility_flags", "external_extensions", "runtime_prefixes"):
            object.__setattr__(self, key, tuple(getattr(self, key)))

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],
        relative_to: str | os.PathLike[str] | None = None,
    ) -> "CompatConfig":
        """Build a config from a plain mapping, validating every value.

        Parameters
        ----------
        data:
            Raw configuration values, e.g. parsed YAML.
        relative_to:
            Directory a relative ``base_path`` is resolved against.
            Defaults to the current working directory.

        Raises
        ------
        ConfigError
            On unknown keys, wrong types or malformed values.
        """
        if not isinstance(data, dict):
            raise ConfigError("<root>", "configuration must be a mapping")
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(unknown[0], f"unknown key (expected one of: {', '.join(sorted(known))})")
        if "compatibility_date" not in data:
            raise ConfigError("compatibility_date", "is required")

        values: dict[str, Any] = {
            "compatibility_date": _as_str(data, "compatibility_date"),
        }
        for key in ("node_binary", "package_manager", "unenv_version"):
            if key in data:
                values[key] = _as_str(data, key)
        for key in ("install_preset", "enumerate_builtins"):
            if key in data:
                values[key] = _as_bool(data, key)
        for key in ("compatibility_flags", "external_extensions", "runtime_prefixes"):
            if key in data:
                values[key] = _as_str_tuple(data, key)
        if "timeout_seconds" in data:
            timeout = data["timeout_seconds"]
            if isinstance(timeout, bool) or not isinstance(timeout, (int, float)):
                raise ConfigError("timeout_seconds", "must be a number")
            values["timeout_seconds"] = float(timeout)
        if "output_format" in data:
            values["output_format"] = _as_format(data["output_format"])

        base = Path(relative_to) if relative_to is not None else Path.cwd()
        base_path = Path(_as_str(data, "base_path")) if "base_path" in data else Path(".")
        values["base_path"] = str(base_path if base_path.is_absolute() else base / base_path)
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        """Return the config as a YAML-friendly mapping."""
        data = dataclasses.asdict(self)
        data["output_format"] = self.output_format.value
        for key in ("compatibility_flags", "external_extensions", "runtime_prefixes"):
            data[key] = list(data[key])
        return data


def load_config(path: str | os.PathLike[str]) -> CompatConfig:
    """Load a ``CompatConfig`` from a YAML file.

    Raises
    ------
    ConfigError
        If the file cannot be read, is not valid YAML, or holds invalid values.
    """
    config_path = Path(path)
    try:
        text = config_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(str(config_path), f"cannot read file: {exc}") from exc
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(str(config_path), f"invalid YAML: {exc}") from exc
    if data is None:
        data = {}
    return CompatConfig.from_dict(data, relative_to=config_path.resolve().parent)


def _as_str(data: dict[str, Any], key: str) -> str:
    value = data[key]
    # YAML reads an unquoted 2025-01-01 as a date.
    if hasattr(value, "isoformat") and key == "compatibility_date":
        return value.isoformat()
    if not isinstance(value, str):
        raise ConfigError(key, "must be a string")
    return value


def _as_bool(data: dict[str, Any], key: str) -> bool:
    value = data[key]
    if not isinstance(value, bool):
        raise ConfigError(key, "must be true or false")
    return value


def _as_str_tuple(data: dict[str, Any], key: str) -> tuple[str, ...]:
    value = data[key]
    if value is None:
        return ()
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(key, "must be a list of strings")
    return tuple(value)


def _as_format(value: Any) -> OutputFormat:
    if isinstance(value, OutputFormat):
        return value
    try:
        return OutputFormat(str(value).lower())
    except ValueError:
        choices = ", ".join(f.value for f in OutputFormat)
        raise ConfigError("output_format", f"{value!r} is not one of: {choices}") from None
