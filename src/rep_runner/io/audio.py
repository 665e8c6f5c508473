"""Best-effort audible cue."""

from __future__ import annotations

import logging

from rich.console import Console

logger = logging.getLogger(__name__)


class BeepCue:
    """Rings the terminal bell; never raises."""

    def __init__(self, console: Console, enabled: bool = True):
        self.console = console
        self.enabled = enabled

    def __call__(self) -> None:
        if not self.enabled:
            return
        try:
            self.console.bell()
        except Exception:
            logger.debug("Terminal bell unavailable", exc_info=True)
