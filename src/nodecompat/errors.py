"""Exception hierarchy for nodecompat.

Errors fall into four classes that map directly onto how a build pass
reacts to them:

``SetupError``
    Raised while the compatibility plugin is being set up (bad
    configuration, preset query failure, oracle failure).  Always fatal
    and never retried: preset data is a deterministic function of its
    inputs, so a second attempt cannot succeed where the first failed.
``OutputFormatError``
    Raised once at the end of a pass when the chosen output format cannot
    carry the external imports that survived resolution.  It carries
    *every* offending specifier, not just the first.
``VirtualModuleError``
    An internal consistency fault: a virtual module was requested that
    nothing registered.  Continuing would emit incorrect output.
``BuildError``
    A pass aborted with one or more error messages.
"""
from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from nodecompat.host.messages import Message


class NodeCompatError(Exception):
    """Base class for every error raised by nodecompat."""


# ---------------------------------------------------------------------------
# Setup faults
# ---------------------------------------------------------------------------


class SetupError(NodeCompatError):
    """A fatal fault raised while setting up the compatibility plugin."""


class ConfigError(SetupError):
    """Raised when a configuration value is missing or malformed."""

    def __init__(self, key: str, message: str) -> None:
        self.key = key
        super().__init__(f"Invalid configuration for {key!r}: {message}")


class PresetQueryError(SetupError):
    """Raised when the compatibility preset provider fails or returns garbage.

    Parameters
    ----------
    message:
        Human-readable description of the failure.
    stderr:
        Captured standard error of the provider process, if any.
    """

    def __init__(self, message: str, stderr: str = "") -> None:
        self.stderr = stderr
        detail = f"\n{stderr.strip()}" if stderr.strip() else ""
        super().__init__(f"Compatibility preset query failed: {message}{detail}")


class ResolutionOracleError(SetupError):
    """Raised when a blocking resolution-oracle call fails fatally."""

    def __init__(self, message: str, stderr: str = "") -> None:
        self.stderr = stderr
        detail = f"\n{stderr.strip()}" if stderr.strip() else ""
        super().__init__(f"Module resolution failed: {message}{detail}")


# ---------------------------------------------------------------------------
# End-of-pass and internal faults
# ---------------------------------------------------------------------------


class OutputFormatError(NodeCompatError):
    """Raised when external built-in imports cannot be carried by the output format.

    Parameters
    ----------
    output_format:
        The offending output format name, e.g. ``"iife"``.
    offenders:
        Mapping of externalized specifier to the importers that requested it.
    """

    def __init__(self, output_format: str, offenders: dict[str, list[str]]) -> None:
        self.output_format = output_format
        self.offenders = dict(offenders)
        super().__init__(format_offenders(output_format, self.offenders))


class VirtualModuleError(NodeCompatError):
    """Raised when a virtual module is requested that was never registered."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        super().__init__(f"Virtual module {path!r}: {reason}")


class BuildError(NodeCompatError):
    """Aggregates the error messages that aborted a build pass.

    Parameters
    ----------
    errors:
        Ordered list of error messages reported by end-of-pass hooks.
    warnings:
        Warnings reported alongside the errors.
    """

    def __init__(self, errors: list["Message"], warnings: list["Message"] | None = None) -> None:
        self.errors = list(errors)
        self.warnings = list(warnings or [])
        self.report: object | None = None
        super().__init__(str(self))

    def __str__(self) -> str:
        if not self.errors:
            return "BuildError (no errors)"
        lines = [f"Build failed with {len(self.errors)} error(s):"]
        for error in self.errors:
            lines.append(f"  {error}")
        return "\n".join(lines)


def format_offenders(output_format: str, offenders: dict[str, list[str]]) -> str:
    """Render the batched output-format error text."""
    listing = "\n".join(
        f"  - {specifier!r} imported by {', '.join(importers) or '<unknown>'}"
        for specifier, importers in sorted(offenders.items())
    )
    return (
        f"Unexpected external import of {', '.join(sorted(offenders))} "
        f"in {output_format!r} output.\n"
        f"{listing}\n"
        "Your worker has no default export, which means it is assumed to be a "
        "Service Worker format Worker, and that format cannot import modules.\n"
        "Did you mean to create an ES Module format Worker? If so, add "
        "`export default { ... }` to your entry-point and build with the 'esm' format."
    )
