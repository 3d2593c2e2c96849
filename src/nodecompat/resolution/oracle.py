"""Resolution oracles: map a specifier to an absolute path the way Node would.

Defines the ``ResolutionOracle`` protocol plus two implementations:

- ``NodeResolutionOracle``: shells out to ``node -e`` and asks
  ``require.resolve`` from the project directory, so aliases resolve
  exactly as the package manager laid them out.
- ``StaticResolutionOracle``: a fixed lookup table; never spawns a
  process.  Used in tests and when resolution is done in-process.

Contract
--------
``resolve`` returns ``None`` when the specifier cannot be resolved (the
alias is unavailable, not a fatal fault).  ``resolve_all`` and
``builtin_modules`` are blocking setup calls; any failure there raises
``ResolutionOracleError``.  A timeout is always fatal.
"""
from __future__ import annotations

import json
import logging
import os
import subprocess
from collections.abc import Iterable, Mapping, Sequence
from typing import Protocol, runtime_checkable

from nodecompat.errors import ResolutionOracleError
from nodecompat.resolution.process import DEFAULT_TIMEOUT_SECONDS, run_process

logger = logging.getLogger(__name__)


@runtime_checkable
class ResolutionOracle(Protocol):
    """Protocol for module resolution back-ends."""

    def resolve(self, specifier: str, cwd: str) -> str | None:
        """Return the absolute path of ``specifier`` from ``cwd``, or ``None``."""
        ...  # pragma: no cover

    def resolve_all(self, specifiers: Sequence[str], cwd: str) -> list[str]:
        """Resolve every specifier or raise ``ResolutionOracleError``."""
        ...  # pragma: no cover

    def builtin_modules(self) -> list[str]:
        """Return the runtime's built-in module names."""
        ...  # pragma: no cover


class NodeResolutionOracle:
    """Resolves specifiers by running ``require.resolve`` in a Node.js process.

    Parameters
    ----------
    node_binary:
        Name or path of the ``node`` executable.
    timeout:
        Seconds each process may run before the call is treated as a
        fatal setup error.
    """

    def __init__(
        self,
        node_binary: str = "node",
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self._node = node_binary
        self._timeout = timeout

    def resolve(self, specifier: str, cwd: str) -> str | None:
        script = f"console.log(require.resolve({json.dumps(specifier)}))"
        rc, out, err = self._run(script, cwd)
        if rc != 0 or not out:
            logger.debug("require.resolve(%r) failed in %s: %s", specifier, cwd, err)
            return None
        return out.splitlines()[-1].strip()

    def resolve_all(self, specifiers: Sequence[str], cwd: str) -> list[str]:
        if not specifiers:
            return []
        script = (
            f"console.log(JSON.stringify({json.dumps(list(specifiers))}"
            ".map(m => require.resolve(m))))"
        )
        rc, out, err = self._run(script, cwd)
        if rc != 0:
            raise ResolutionOracleError(
                f"require.resolve failed for {', '.join(specifiers)}", err
            )
        try:
            resolved = json.loads(out)
        except json.JSONDecodeError as exc:
            raise ResolutionOracleError(f"malformed resolution output: {exc}") from exc
        if not isinstance(resolved, list) or len(resolved) != len(specifiers):
            raise ResolutionOracleError("resolution output does not match the request")
        return [str(path) for path in resolved]

    def builtin_modules(self) -> list[str]:
        script = "console.log(JSON.stringify(require('module').builtinModules))"
        rc, out, err = self._run(script, os.getcwd())
        if rc != 0:
            raise ResolutionOracleError("could not enumerate built-in modules", err)
        try:
            names = json.loads(out)
        except json.JSONDecodeError as exc:
            raise ResolutionOracleError(f"malformed built-in module list: {exc}") from exc
        return [str(name) for name in names]

    def _run(self, script: str, cwd: str) -> tuple[int, str, str]:
        try:
            return run_process([self._node, "-e", script], cwd=cwd, timeout=self._timeout)
        except subprocess.TimeoutExpired as exc:
            raise ResolutionOracleError(
                f"{self._node} did not finish within {self._timeout:g}s"
            ) from exc
        except FileNotFoundError as exc:
            raise ResolutionOracleError(f"{self._node!r} executable not found") from exc

    def __repr__(self) -> str:
        return f"NodeResolutionOracle(node_binary={self._node!r}, timeout={self._timeout!r})"


class StaticResolutionOracle:
    """Deterministic oracle backed by a lookup table.

    Parameters
    ----------
    paths:
        Mapping of specifier to absolute path.  Specifiers missing from
        the table are unresolvable.
    builtins:
        Names returned by :meth:`builtin_modules`.  Defaults to an empty
        list, which makes classifiers fall back to their snapshot.
    """

    def __init__(
        self,
        paths: Mapping[str, str] | None = None,
        builtins: Iterable[str] = (),
    ) -> None:
        self._paths = dict(paths or {})
        self._builtins = list(builtins)
        self.calls: list[str] = []

    def resolve(self, specifier: str, cwd: str) -> str | None:
        self.calls.append(specifier)
        return self._paths.get(specifier)

    def resolve_all(self, specifiers: Sequence[str], cwd: str) -> list[str]:
        missing = [s for s in specifiers if s not in self._paths]
        if missing:
            raise ResolutionOracleError(f"cannot resolve {', '.join(missing)}")
        self.calls.extend(specifiers)
        return [self._paths[s] for s in specifiers]

    def builtin_modules(self) -> list[str]:
        return list(self._builtins)
