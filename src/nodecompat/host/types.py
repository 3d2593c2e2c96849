"""Value types exchanged between the host bundler and its plugins.

Every value that crosses the hook boundary is a frozen dataclass, so
resolution requests can be used directly as dedup keys and generated
modules can be cached and compared.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class ResolveKind(Enum):
    """How a specifier was reached in the importing module."""

    IMPORT = "import-statement"
    REQUIRE = "require-call"
    DYNAMIC = "dynamic-import"

    @classmethod
    def parse(cls, value: "str | ResolveKind") -> "ResolveKind":
        """Accept an enum member, its value, or its lowercase name."""
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower()
        for member in cls:
            if text in (member.value, member.name.lower()):
                return member
        choices = ", ".join(m.name.lower() for m in cls)
        raise ValueError(f"Unknown resolve kind {value!r}. Expected one of: {choices}")


class OutputFormat(Enum):
    """Output module format of the bundle."""

    ESM = "esm"
    CJS = "cjs"
    IIFE = "iife"

    @property
    def carries_imports(self) -> bool:
        """Return True if the format can keep bare ``import`` statements."""
        return self is OutputFormat.ESM

    @property
    def carries_externals(self) -> bool:
        """Return False for self-contained formats that cannot reference other modules."""
        return self is not OutputFormat.IIFE


class Loader(Enum):
    """Loader the host should apply to a module body."""

    JS = "js"
    JSX = "jsx"
    TEXT = "text"


FILE_NAMESPACE = "file"


@dataclass(frozen=True, slots=True)
class ResolveArgs:
    """A single resolution request.

    Parameters
    ----------
    path:
        The raw specifier text, e.g. ``"node:fs"`` or ``"./util.js"``.
    kind:
        How the specifier was reached.
    importer:
        Path of the module containing the import.  Empty for entry points
        and always-injected modules.
    resolve_dir:
        Directory relative specifiers are resolved from.
    namespace:
        Namespace of the *importer*.  Imports issued by a virtual module
        carry that module's namespace.
    """

    path: str
    kind: ResolveKind = ResolveKind.IMPORT
    importer: str = ""
    resolve_dir: str = ""
    namespace: str = FILE_NAMESPACE

    @property
    def key(self) -> tuple[str, ResolveKind, str, str]:
        """Return the dedup key ``(specifier, kind, resolve_dir, importer)``."""
        return (self.path, self.kind, self.resolve_dir, self.importer)


@dataclass(frozen=True, slots=True)
class ResolveResult:
    """Outcome of a resolve hook.

    ``path`` is an absolute filesystem path, a bare specifier left for the
    runtime (``external=True``), or a virtual path inside ``namespace``.
    """

    path: str
    namespace: str = FILE_NAMESPACE
    external: bool = False

    @property
    def is_virtual(self) -> bool:
        return self.namespace != FILE_NAMESPACE


@dataclass(frozen=True, slots=True)
class LoadArgs:
    """A request for the body of a resolved module."""

    path: str
    namespace: str = FILE_NAMESPACE


@dataclass(frozen=True, slots=True)
class VirtualModule:
    """A module whose source text is generated in memory.

    Parameters
    ----------
    namespace:
        Namespace the module lives in.
    path:
        Path of the module inside its namespace.
    contents:
        Generated UTF-8 JavaScript source.
    loader:
        Loader the host should apply to ``contents``.
    imports:
        Specifiers the generated body imports statically, in order.
    """

    namespace: str
    path: str
    contents: str
    loader: Loader = Loader.JS
    imports: tuple[str, ...] = ()

    @property
    def id(self) -> str:
        return f"{self.namespace}:{self.path}"


@dataclass
class BuildOptions:
    """Mutable build options shared by every plugin of one host.

    Parameters
    ----------
    format:
        Output module format.
    inject:
        Always-inject list: modules loaded before any user code.  Plugins
        append to it during setup.
    external:
        Specifiers the host leaves external regardless of plugins.
    abs_working_dir:
        Absolute working directory of the build.
    """

    format: OutputFormat = OutputFormat.ESM
    inject: list[str] = field(default_factory=list)
    external: list[str] = field(default_factory=list)
    abs_working_dir: str = ""
