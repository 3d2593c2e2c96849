"""Abstract base class for build plugins."""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from nodecompat.config.settings import CompatConfig
    from nodecompat.host.build import PluginBuild
    from nodecompat.preset.providers import PresetProvider
    from nodecompat.resolution.oracle import ResolutionOracle


@dataclass
class PluginServices:
    """Out-of-process capabilities shared by the plugins of one host.

    ``None`` means "build the shell-based default from the configuration".
    """

    oracle: "ResolutionOracle | None" = None
    provider: "PresetProvider | None" = None


class BuildPlugin(ABC):
    """A bundler extension that registers hooks on a ``PluginBuild``.

    Subclasses set :attr:`name` and implement :meth:`setup`.  Setup runs
    once per host; everything that must be fresh for each pass belongs in
    the ``PassContext`` handed to the hooks.
    """

    name: str = ""

    @abstractmethod
    def setup(self, build: "PluginBuild") -> None:
        """Register this plugin's hooks on ``build``."""

    @classmethod
    def from_config(cls, config: "CompatConfig", services: PluginServices) -> "BuildPlugin":
        """Instantiate the plugin from configuration.

        The default takes no settings; plugins that need configuration
        override this.
        """
        return cls()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"
