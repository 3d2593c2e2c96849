"""Registry of build plugins.

Build plugins register under a short name, either with the ``@register``
decorator at import time or lazily from installed packages through the
``nodecompat.plugins`` entry-point group.  The registry then instantiates
them, in a caller-chosen order, from one ``CompatConfig``.

Example
-------
Register a plugin with the decorator::

    from nodecompat.plugins import BuildPlugin, plugin_registry

    @plugin_registry.register("text-assets")
    class TextAssetsPlugin(BuildPlugin):
        name = "text-assets"

        def setup(self, build):
            build.on_resolve(r"\\.txt$", lambda args, ctx: None)

Declare a third-party plugin in its ``pyproject.toml``::

    [project.entry-points."nodecompat.plugins"]
    text-assets = "my_package.plugins:TextAssetsPlugin"

Instantiate the default set::

    plugins = plugin_registry.create_all(["nodejs-hybrid", "external-files"], config)
"""
from __future__ import annotations

import importlib.metadata
import logging
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Generic, TypeVar

from nodecompat.plugins.base import BuildPlugin, PluginServices

if TYPE_CHECKING:
    from nodecompat.config.settings import CompatConfig

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "nodecompat.plugins"

T = TypeVar("T", bound=BuildPlugin)


class PluginNotFoundError(KeyError):
    """Raised when a requested plugin name is not in the registry."""

    def __init__(self, name: str, registry_name: str, available: Iterable[str] = ()) -> None:
        self.plugin_name = name
        self.registry_name = registry_name
        listing = ", ".join(available) or "none"
        super().__init__(
            f"Plugin {name!r} is not registered in the {registry_name!r} registry. "
            f"Available plugins: {listing}. "
            "Check that the package is installed and its entry-points are declared."
        )


class PluginAlreadyRegisteredError(ValueError):
    """Raised when attempting to register a name that already exists."""

    def __init__(self, name: str, registry_name: str) -> None:
        self.plugin_name = name
        self.registry_name = registry_name
        super().__init__(
            f"Plugin {name!r} is already registered in the {registry_name!r} registry. "
            "Use a unique name or explicitly deregister the existing entry first."
        )


class PluginRegistry(Generic[T]):
    """Name → class registry for build plugins.

    Parameters
    ----------
    base_class:
        The class every registered plugin must subclass.
    name:
        A human-readable name for this registry (used in error messages).
    """

    def __init__(self, base_class: type[T], name: str) -> None:
        self._base_class = base_class
        self._name = name
        self._plugins: dict[str, type[T]] = {}

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, name: str) -> Callable[[type[T]], type[T]]:
        """Return a class decorator that registers the decorated class under ``name``.

        Raises
        ------
        PluginAlreadyRegisteredError
            If ``name`` is already in use in this registry.
        TypeError
            If the decorated class does not subclass ``base_class``.
        """

        def decorator(cls: type[T]) -> type[T]:
            self.register_class(name, cls)
            return cls

        return decorator

    def register_class(self, name: str, cls: type[T]) -> None:
        """Register ``cls`` under ``name`` without the decorator syntax."""
        if name in self._plugins:
            raise PluginAlreadyRegisteredError(name, self._name)
        if not (isinstance(cls, type) and issubclass(cls, self._base_class)):
            raise TypeError(
                f"Cannot register {cls!r} under {name!r}: "
                f"it must be a subclass of {self._base_class.__name__}."
            )
        self._plugins[name] = cls
        logger.debug(
            "Registered plugin %r -> %s in registry %r",
            name,
            cls.__qualname__,
            self._name,
        )

    def deregister(self, name: str) -> None:
        """Remove the plugin registered under ``name``.

        Raises
        ------
        PluginNotFoundError
            If ``name`` is not currently registered.
        """
        if name not in self._plugins:
            raise PluginNotFoundError(name, self._name, self.list_plugins())
        del self._plugins[name]
        logger.debug("Deregistered plugin %r from registry %r", name, self._name)

    # ------------------------------------------------------------------
    # Lookup and instantiation
    # ------------------------------------------------------------------

    def get(self, name: str) -> type[T]:
        """Return the class registered under ``name``.

        Raises
        ------
        PluginNotFoundError
            If no plugin is registered under ``name``.
        """
        try:
            return self._plugins[name]
        except KeyError:
            raise PluginNotFoundError(name, self._name, self.list_plugins()) from None

    def create(
        self,
        name: str,
        config: "CompatConfig",
        services: PluginServices | None = None,
    ) -> T:
        """Instantiate the plugin registered under ``name`` from ``config``."""
        cls = self.get(name)
        return cls.from_config(config, services or PluginServices())

    def create_all(
        self,
        names: Iterable[str],
        config: "CompatConfig",
        services: PluginServices | None = None,
    ) -> list[T]:
        """Instantiate several plugins, preserving the order of ``names``.

        One ``PluginServices`` instance is shared, so plugins that shell out
        reuse the same oracle and provider.
        """
        shared = services or PluginServices()
        return [self.create(name, config, shared) for name in names]

    def list_plugins(self) -> list[str]:
        """Return a sorted list of all registered plugin names."""
        return sorted(self._plugins)

    def __contains__(self, name: object) -> bool:
        return name in self._plugins

    def __len__(self) -> int:
        return len(self._plugins)

    def __repr__(self) -> str:
        return (
            f"PluginRegistry(name={self._name!r}, "
            f"base_class={self._base_class.__name__}, "
            f"plugins={self.list_plugins()})"
        )

    # ------------------------------------------------------------------
    # Entry-point loading
    # ------------------------------------------------------------------

    def load_entrypoints(self, group: str = ENTRY_POINT_GROUP) -> None:
        """Discover and register plugins declared as package entry-points.

        Entry-points whose name is already registered are skipped, which
        makes repeated calls idempotent.  Entry-points that fail to import
        or are not ``BuildPlugin`` subclasses are logged and skipped.
        """
        for ep in importlib.metadata.entry_points(group=group):
            if ep.name in self._plugins:
                logger.debug(
                    "Entry-point %r already registered in %r; skipping.",
                    ep.name,
                    self._name,
                )
                continue
            try:
                cls = ep.load()
            except Exception:
                logger.exception(
                    "Failed to load entry-point %r from group %r; skipping.",
                    ep.name,
                    group,
                )
                continue
            try:
                self.register_class(ep.name, cls)
            except (PluginAlreadyRegisteredError, TypeError):
                logger.warning(
                    "Entry-point %r loaded but could not be registered "
                    "in registry %r; skipping.",
                    ep.name,
                    self._name,
                )
