"""Specifier classification against the canonical Node.js built-in set."""
from __future__ import annotations

from nodecompat.classifier.builtins import NODE_BUILTIN_MODULES, NODE_PREFIX
from nodecompat.classifier.classifier import ClassificationResult, SpecifierClassifier

__all__ = [
    "NODE_BUILTIN_MODULES",
    "NODE_PREFIX",
    "ClassificationResult",
    "SpecifierClassifier",
]
