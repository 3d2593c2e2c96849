"""End-of-pass check that externalized built-ins fit the output format.

An ``iife`` bundle has no import statements, so a built-in left external
cannot be reached at runtime.  Instead of failing on the first one, the
guard waits for the end of the pass and reports every offending
specifier with its importers in one error.
"""
from __future__ import annotations

import logging

from nodecompat.errors import OutputFormatError
from nodecompat.host.build import PluginBuild
from nodecompat.host.context import PassContext
from nodecompat.host.messages import Message

logger = logging.getLogger(__name__)


class OutputFormatGuard:
    """Fails the pass when external built-ins meet an import-less format."""

    def install(self, build: PluginBuild) -> None:
        build.on_end(self.finish)

    def check(self, ctx: PassContext) -> None:
        """Raise if the pass externalized built-ins its format cannot carry.

        Raises
        ------
        OutputFormatError
            With every offending specifier and its importers.
        """
        output_format = ctx.options.format
        if output_format.carries_externals:
            return
        offenders = ctx.externals
        if offenders:
            raise OutputFormatError(output_format.value, offenders)

    def finish(self, ctx: PassContext) -> list[Message]:
        try:
            self.check(ctx)
        except OutputFormatError as exc:
            logger.debug("Output-format guard tripped for %s", sorted(exc.offenders))
            return [Message.error(str(exc))]
        return []
