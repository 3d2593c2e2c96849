"""The host bundler's plugin surface and pass driver.

The host is modelled as explicit, ordered hook tables.  Each resolve or
load hook is a ``(predicate, handler)`` pair; the host evaluates them in
registration order and the first handler that returns a value wins.  A
handler that returns ``None`` passes the request on to the next hook, and
a request no hook claims falls through to the bundler's own default
resolution.

Usage
-----
::

    from nodecompat.host import BuildHost, BuildOptions, ResolveArgs, ResolveKind

    host = BuildHost([plugin], BuildOptions())
    ctx = host.start()
    result = host.resolve(ctx, ResolveArgs("fs", ResolveKind.REQUIRE, "/src/a.js"))
    module = host.load(ctx, LoadArgs(result.path, result.namespace))
    warnings = host.finish(ctx)
"""
from __future__ import annotations

import logging
import re
from collections import deque
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from nodecompat.errors import BuildError
from nodecompat.host.context import PassContext
from nodecompat.host.messages import Message
from nodecompat.host.types import (
    BuildOptions,
    LoadArgs,
    ResolveArgs,
    ResolveKind,
    ResolveResult,
    VirtualModule,
)

if TYPE_CHECKING:
    from nodecompat.plugins.base import BuildPlugin

logger = logging.getLogger(__name__)

ResolveHandler = Callable[[ResolveArgs, PassContext], "ResolveResult | None"]
LoadHandler = Callable[[LoadArgs, PassContext], "VirtualModule | None"]
StartCallback = Callable[[PassContext], None]
EndCallback = Callable[[PassContext], "list[Message]"]


@dataclass(frozen=True)
class ResolveHook:
    """One entry of the resolve hook table."""

    pattern: re.Pattern[str]
    handler: ResolveHandler
    namespace: str | None = None
    plugin: str = ""

    def matches(self, args: ResolveArgs) -> bool:
        if self.namespace is not None and self.namespace != args.namespace:
            return False
        return self.pattern.search(args.path) is not None


@dataclass(frozen=True)
class LoadHook:
    """One entry of the load hook table."""

    pattern: re.Pattern[str]
    handler: LoadHandler
    namespace: str | None = None
    plugin: str = ""

    def matches(self, args: LoadArgs) -> bool:
        if self.namespace is not None and self.namespace != args.namespace:
            return False
        return self.pattern.search(args.path) is not None


@dataclass
class HookTable:
    """Ordered hook lists shared by every plugin of one host."""

    start: list[StartCallback] = field(default_factory=list)
    resolve: list[ResolveHook] = field(default_factory=list)
    load: list[LoadHook] = field(default_factory=list)
    end: list[tuple[str, EndCallback]] = field(default_factory=list)


class PluginBuild:
    """The registration surface handed to ``BuildPlugin.setup``.

    Parameters
    ----------
    hooks:
        The host's shared hook table.
    initial_options:
        The host's build options.  ``initial_options.inject`` is the
        always-inject list and may be appended to during setup.
    plugin_name:
        Name recorded against every hook this plugin registers.
    """

    def __init__(
        self,
        hooks: HookTable,
        initial_options: BuildOptions,
        plugin_name: str = "",
    ) -> None:
        self._hooks = hooks
        self.initial_options = initial_options
        self.plugin_name = plugin_name

    def on_start(self, callback: StartCallback) -> None:
        self._hooks.start.append(callback)

    def on_resolve(
        self,
        filter: str,  # noqa: A002
        handler: ResolveHandler,
        namespace: str | None = None,
    ) -> None:
        """Register a resolve hook for specifiers matching the ``filter`` regex."""
        self._hooks.resolve.append(
            ResolveHook(re.compile(filter), handler, namespace, self.plugin_name)
        )

    def on_load(
        self,
        filter: str,  # noqa: A002
        handler: LoadHandler,
        namespace: str | None = None,
    ) -> None:
        """Register a load hook for module paths matching the ``filter`` regex."""
        self._hooks.load.append(
            LoadHook(re.compile(filter), handler, namespace, self.plugin_name)
        )

    def on_end(self, callback: EndCallback) -> None:
        self._hooks.end.append((self.plugin_name, callback))


@dataclass
class PassReport:
    """Everything observed during one simulated pass.

    Parameters
    ----------
    resolutions:
        Each request paired with the result the hooks produced (``None``
        when the request fell through to default resolution).
    modules:
        Virtual modules generated during the pass, in load order.
    messages:
        Warnings reported at the end of the pass.
    """

    resolutions: list[tuple[ResolveArgs, ResolveResult | None]] = field(default_factory=list)
    modules: list[VirtualModule] = field(default_factory=list)
    messages: list[Message] = field(default_factory=list)


class BuildHost:
    """Drives build passes through the hook tables of a set of plugins.

    Plugins are set up once, in order, when the host is constructed.  Every
    call to :meth:`start` begins a new pass with fresh per-pass state.

    Parameters
    ----------
    plugins:
        Plugins to set up, in priority order.
    options:
        Build options; defaults to an ES module build.
    """

    def __init__(
        self,
        plugins: Sequence["BuildPlugin"],
        options: BuildOptions | None = None,
    ) -> None:
        self.options = options if options is not None else BuildOptions()
        self.hooks = HookTable()
        self.plugins = list(plugins)
        for plugin in self.plugins:
            logger.debug("Setting up plugin %r", plugin.name)
            plugin.setup(PluginBuild(self.hooks, self.options, plugin.name))

    # ------------------------------------------------------------------
    # Pass lifecycle
    # ------------------------------------------------------------------

    def start(self) -> PassContext:
        """Begin a pass: create a fresh context and run start hooks."""
        ctx = PassContext(self.options)
        for callback in self.hooks.start:
            callback(ctx)
        return ctx

    def resolve(self, ctx: PassContext, args: ResolveArgs) -> ResolveResult | None:
        """Resolve ``args``; identical requests run the hooks only once per pass."""
        return ctx.resolve_once(args, lambda a: self._dispatch_resolve(ctx, a))

    def load(self, ctx: PassContext, args: LoadArgs) -> VirtualModule | None:
        """Load the body of ``args``; each module is generated once per pass."""
        return ctx.load_once(args, lambda a: self._dispatch_load(ctx, a))

    def finish(self, ctx: PassContext) -> list[Message]:
        """Run end hooks.  Return the warnings, or raise if any hook reported errors.

        Raises
        ------
        BuildError
            If at least one end hook reported an error message.
        """
        messages: list[Message] = []
        for plugin_name, callback in self.hooks.end:
            for message in callback(ctx):
                if not message.plugin:
                    message = Message(
                        message.severity,
                        message.text,
                        message.specifier,
                        message.importers,
                        plugin_name,
                    )
                messages.append(message)
        errors = [m for m in messages if m.is_error]
        if errors:
            raise BuildError(errors, [m for m in messages if not m.is_error])
        return messages

    def run_pass(self, requests: Iterable[ResolveArgs]) -> PassReport:
        """Run one complete pass over ``requests``.

        Always-inject modules are resolved first, as the host would before
        any user code, then every request.  Each virtual result is loaded
        and the static imports it declares are resolved in turn.

        Raises
        ------
        BuildError
            If the pass ends with errors.
        """
        ctx = self.start()
        report = PassReport()
        pending = deque(ResolveArgs(path) for path in self.options.inject)
        pending.extend(requests)
        while pending:
            args = pending.popleft()
            result = self.resolve(ctx, args)
            report.resolutions.append((args, result))
            if result is None or result.external:
                continue
            if not result.is_virtual and result.path not in self.options.inject:
                continue
            module = self.load(ctx, LoadArgs(result.path, result.namespace))
            if module is None or module in report.modules:
                continue
            report.modules.append(module)
            pending.extend(
                ResolveArgs(
                    specifier,
                    ResolveKind.IMPORT,
                    importer=module.path,
                    namespace=module.namespace,
                )
                for specifier in module.imports
            )
        try:
            report.messages = self.finish(ctx)
        except BuildError as exc:
            report.messages = exc.warnings
            exc.report = report
            raise
        return report

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _dispatch_resolve(self, ctx: PassContext, args: ResolveArgs) -> ResolveResult | None:
        for hook in self.hooks.resolve:
            if not hook.matches(args):
                continue
            result = hook.handler(args, ctx)
            if result is not None:
                logger.debug(
                    "Resolved %r (%s) via %r -> %s:%s%s",
                    args.path,
                    args.kind.name.lower(),
                    hook.plugin,
                    result.namespace,
                    result.path,
                    " [external]" if result.external else "",
                )
                return result
        if args.path in self.options.external:
            return ResolveResult(args.path, external=True)
        return None

    def _dispatch_load(self, ctx: PassContext, args: LoadArgs) -> VirtualModule | None:
        for hook in self.hooks.load:
            if not hook.matches(args):
                continue
            module = hook.handler(args, ctx)
            if module is not None:
                return module
        return None
