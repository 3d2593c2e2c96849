"""Compatibility preset providers.

A provider is the black box that knows which shims a target runtime
needs.  It is queried once per build with the runtime's compatibility
date and flags.

- ``NodePresetProvider``: runs ``unenv``'s ``defineEnv`` with the
  Cloudflare preset inside a Node.js process and reads its JSON output.
- ``StaticPresetProvider``: returns a fixed preset; used in tests and
  for offline builds.
"""
from __future__ import annotations

import json
import logging
import subprocess
from collections.abc import Mapping, Sequence
from typing import Any, Protocol, runtime_checkable

from nodecompat.errors import PresetQueryError
from nodecompat.resolution.process import DEFAULT_TIMEOUT_SECONDS, run_process

logger = logging.getLogger(__name__)

DEFAULT_UNENV_VERSION = "2.0.0-rc.24"

_PRESET_SCRIPT = """
import { defineEnv } from "unenv";
import { getCloudflarePreset } from "@cloudflare/unenv-preset";

const { alias, inject, external, polyfill } = defineEnv({
    presets: [
        getCloudflarePreset({
            compatibilityDate: %(date)s,
            compatibilityFlags: %(flags)s,
        }),
        {
            alias: {
                debug: "debug",
            },
        },
    ],
    npmShims: true,
}).env;
console.log(JSON.stringify({
    alias: alias ?? {},
    inject: inject ?? {},
    external: external ?? [],
    polyfill: polyfill ?? [],
}));
"""


@runtime_checkable
class PresetProvider(Protocol):
    """Protocol for compatibility preset back-ends."""

    def query(
        self,
        compatibility_date: str,
        compatibility_flags: Sequence[str],
        base_dir: str,
    ) -> Any:
        """Return the raw preset for the given runtime compatibility settings.

        The result must be a JSON-compatible object with exactly the keys
        ``alias``, ``inject``, ``external`` and ``polyfill``.
        """
        ...  # pragma: no cover


def render_preset_script(compatibility_date: str, compatibility_flags: Sequence[str]) -> str:
    """Return the ES module script that prints the preset as JSON."""
    return _PRESET_SCRIPT % {
        "date": json.dumps(compatibility_date),
        "flags": json.dumps(list(compatibility_flags)),
    }


class NodePresetProvider:
    """Queries ``unenv`` and ``@cloudflare/unenv-preset`` through Node.js.

    Parameters
    ----------
    node_binary:
        Name or path of the ``node`` executable.
    package_manager:
        Package manager used to install the preset packages.
    install:
        When ``True``, install the preset packages as dev dependencies
        before the first query.
    unenv_version:
        Version of ``unenv`` to install.
    timeout:
        Seconds each process may run.
    """

    def __init__(
        self,
        node_binary: str = "node",
        package_manager: str = "npm",
        install: bool = False,
        unenv_version: str = DEFAULT_UNENV_VERSION,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self._node = node_binary
        self._package_manager = package_manager
        self._install = install
        self._unenv_version = unenv_version
        self._timeout = timeout
        self._installed_in: set[str] = set()

    def query(
        self,
        compatibility_date: str,
        compatibility_flags: Sequence[str],
        base_dir: str,
    ) -> Any:
        if self._install and base_dir not in self._installed_in:
            self._install_packages(base_dir)
            self._installed_in.add(base_dir)

        script = render_preset_script(compatibility_date, compatibility_flags)
        rc, out, err = self._run([self._node, "--input-type=module", "-e", script], base_dir)
        if rc != 0:
            raise PresetQueryError(f"{self._node} exited with status {rc}", err)
        try:
            return json.loads(out)
        except json.JSONDecodeError as exc:
            raise PresetQueryError(f"preset output is not valid JSON: {exc}") from exc

    def install_command(self) -> list[str]:
        return [
            self._package_manager,
            "install",
            "-D",
            f"unenv@{self._unenv_version}",
            "@cloudflare/unenv-preset@latest",
        ]

    def _install_packages(self, base_dir: str) -> None:
        command = self.install_command()
        logger.info("Installing compatibility preset: %s", " ".join(command))
        rc, out, err = self._run(command, base_dir)
        if rc != 0:
            raise PresetQueryError("failed to install the preset packages", err or out)
        logger.debug("%s", out)

    def _run(self, args: list[str], cwd: str) -> tuple[int, str, str]:
        try:
            return run_process(args, cwd=cwd, timeout=self._timeout)
        except subprocess.TimeoutExpired as exc:
            raise PresetQueryError(
                f"{args[0]} did not finish within {self._timeout:g}s"
            ) from exc
        except FileNotFoundError as exc:
            raise PresetQueryError(f"{args[0]!r} executable not found") from exc


class StaticPresetProvider:
    """Returns a fixed raw preset.

    Parameters
    ----------
    preset:
        The raw preset mapping to return.  Missing tables default to empty.
    """

    def __init__(self, preset: Mapping[str, Any] | None = None) -> None:
        data = dict(preset or {})
        self._preset = {
            "alias": dict(data.pop("alias", {})),
            "inject": dict(data.pop("inject", {})),
            "external": list(data.pop("external", [])),
            "polyfill": list(data.pop("polyfill", [])),
            **data,
        }
        self.call_count = 0

    def query(
        self,
        compatibility_date: str,
        compatibility_flags: Sequence[str],
        base_dir: str,
    ) -> Any:
        self.call_count += 1
        return json.loads(json.dumps(self._preset))
