"""Diagnostics reported by plugins at the end of a build pass.

A ``Message`` is either an error (aborts the pass) or a warning (printed
in batch, never aborts).
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto


class MessageSeverity(Enum):
    """Severity of a build message."""

    ERROR = auto()
    WARNING = auto()


@dataclass(frozen=True)
class Message:
    """A single build diagnostic.

    Parameters
    ----------
    severity:
        Whether this message aborts the pass.
    text:
        Human-readable description.
    specifier:
        The import specifier the message is about, if any.
    importers:
        Modules that imported ``specifier``.
    plugin:
        Name of the plugin that produced the message.
    """

    severity: MessageSeverity
    text: str
    specifier: str | None = field(default=None)
    importers: tuple[str, ...] = field(default=())
    plugin: str = field(default="")

    def __str__(self) -> str:
        prefix = f"[{self.plugin}] " if self.plugin else ""
        return f"{prefix}{self.severity.name}: {self.text}"

    @property
    def is_error(self) -> bool:
        return self.severity == MessageSeverity.ERROR

    @classmethod
    def error(cls, text: str, **kwargs: object) -> "Message":
        return cls(MessageSeverity.ERROR, text, **kwargs)  # type: ignore[arg-type]

    @classmethod
    def warning(cls, text: str, **kwargs: object) -> "Message":
        return cls(MessageSeverity.WARNING, text, **kwargs)  # type: ignore[arg-type]
