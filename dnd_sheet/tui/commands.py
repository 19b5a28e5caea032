"""Deferred effects issued by screens.

A Command describes work that must not run inside the event handler (a store
call, a delayed status clear). The runtime executes it outside the critical
section and feeds the returned message back in as an ordinary event.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

from .events import StatusMessage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Command:
    """A labelled zero-argument effect returning the next message (or None).

    ``delay`` is in seconds; the runtime waits that long before running it.
    """

    label: str
    run: Callable[[], Any]
    delay: float = 0.0

    def execute(self) -> Any:
        """Run the effect, converting unexpected failures into a status message."""
        try:
            return self.run()
        except Exception as e:  # noqa: BLE001 - a failed command must not end the session
            logger.exception("Command %r failed", self.label)
            return StatusMessage(message=f"Unexpected error: {e}", is_error=True)


def message(label: str, msg: Any, delay: float = 0.0) -> Command:
    """Command that just yields ``msg`` (optionally after ``delay`` seconds)."""
    return Command(label=label, run=lambda: msg, delay=delay)
