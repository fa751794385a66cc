"""Configuration threaded through every entry point.

An EditContext carries the dev-mode flag. Entry points take an optional
`context=` argument; when omitted they use the process default built from the
environment. Frames opened from a draft inherit the draft's context, so one
batch never mixes settings.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from forkpath import environment

logger = logging.getLogger(__name__)


@dataclass
class EditContext:
    """Settings for one family of edits.

    Attributes:
        dev_mode: Lock every committed result against further writes.
        production: Production variant. Dev mode cannot be switched on and
            set_dev_mode() only logs a warning.
    """

    dev_mode: bool = False
    production: bool = False

    @classmethod
    def from_environment(cls) -> EditContext:
        return cls(dev_mode=environment.dev_mode, production=environment.production)

    def set_dev_mode(self, enabled: bool) -> None:
        """Toggle dev mode. Already-returned values are not affected."""
        if self.production:
            logger.warning(
                "set_dev_mode(%s) ignored: forkpath is running in production mode",
                enabled,
            )
            return
        self.dev_mode = bool(enabled)
        logger.debug("dev mode %s", "enabled" if self.dev_mode else "disabled")

    def is_dev_mode(self) -> bool:
        return self.dev_mode and not self.production


_default_context = EditContext.from_environment()


def default_context() -> EditContext:
    return _default_context


def resolve_context(context: EditContext | None) -> EditContext:
    return _default_context if context is None else context


def set_dev_mode(enabled: bool) -> None:
    """Toggle dev mode on the default context."""
    _default_context.set_dev_mode(enabled)


def is_dev_mode() -> bool:
    return _default_context.is_dev_mode()
