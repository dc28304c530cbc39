"""
Transient invalid-action flag

Marks a card as "just rejected locally" for a short interval so a consumer can
flash it. The flag clears itself when the interval elapses, or earlier when
the next snapshot arrives.
"""

import asyncio
import logging
import time
from collections.abc import Callable

from config import config

logger = logging.getLogger(__name__)


class InvalidActionFlag:
    """
    Cancellable timed flag owned by the session client.

    The timer is an event-loop callback when a loop is running; the flag is
    also checked against its deadline on every read, so it expires correctly
    without a loop.
    """

    def __init__(
        self,
        duration: float | None = None,
        on_change: Callable[[str | None], None] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if duration is None:
            duration = config.get("feedback", "invalid_action_flash")
        if duration <= 0:
            raise ValueError(f"Flag duration must be positive, got {duration}")

        self.duration = duration
        self.on_change = on_change
        self._clock = clock
        self._label: str | None = None
        self._deadline: float | None = None
        self._timer: asyncio.TimerHandle | None = None

    @property
    def current(self) -> str | None:
        """Label of the flagged card, or None."""
        if self._label is not None and self._clock() >= self._deadline:
            self._clear()
        return self._label

    @property
    def active(self) -> bool:
        return self.current is not None

    def flag(self, label: str) -> None:
        """Flag `label`, replacing (and restarting) any active flag."""
        self._cancel_timer()
        self._label = label
        self._deadline = self._clock() + self.duration

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None
        if loop is not None:
            self._timer = loop.call_later(self.duration, self._expire)

        self._notify()

    def cancel(self) -> None:
        """Clear the flag now (no-op when nothing is flagged)."""
        if self._label is None:
            self._cancel_timer()
            return
        self._clear()

    def _expire(self):
        self._timer = None
        if self._label is not None:
            self._clear()

    def _clear(self):
        self._cancel_timer()
        self._label = None
        self._deadline = None
        self._notify()

    def _cancel_timer(self):
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _notify(self):
        if self.on_change is None:
            return
        try:
            self.on_change(self._label)
        except Exception as e:
            logger.error(f"Error in invalid-action listener: {e}", exc_info=True)
