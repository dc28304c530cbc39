"""
EventLog - Bounded feed of recent human-readable client events

Newest entry first; the oldest entry is evicted once capacity is reached.
"""

import logging
import threading
import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field

from config import config

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LogEntry:
    """One line of the event feed"""

    text: str
    timestamp: float = field(default_factory=time.time)


class EventLog:
    """
    Fixed-size ring buffer of LogEntry, newest first

    Features:
    - Small fixed capacity (default from config, 3)
    - Automatic eviction of the oldest entry
    - Optional change listener, called after every append/clear
    """

    def __init__(
        self,
        max_size: int | None = None,
        on_change: Callable[[list[str]], None] | None = None,
    ):
        """
        Args:
            max_size: Entries kept (default: config FEEDBACK['event_log_size'])
            on_change: Called with the current entries after each change
        """
        if max_size is None:
            max_size = config.get("feedback", "event_log_size")
        if max_size <= 0:
            raise ValueError(f"Event log size must be positive, got {max_size}")

        self.max_size = max_size
        # Left end holds the newest entry; maxlen evicts from the right
        self._buffer: deque[LogEntry] = deque(maxlen=max_size)
        self._lock = threading.RLock()
        self.on_change = on_change

    def append(self, text: str) -> LogEntry:
        """Add `text` as the newest entry."""
        entry = LogEntry(text=text)
        with self._lock:
            self._buffer.appendleft(entry)
            snapshot = [e.text for e in self._buffer]
        logger.debug(f"Event log: {text}")
        self._notify(snapshot)
        return entry

    def entries(self) -> list[str]:
        """Entry texts, newest first."""
        with self._lock:
            return [entry.text for entry in self._buffer]

    def records(self) -> list[LogEntry]:
        """Entries with timestamps, newest first."""
        with self._lock:
            return list(self._buffer)

    def latest(self) -> str | None:
        with self._lock:
            return self._buffer[0].text if self._buffer else None

    def clear(self):
        with self._lock:
            self._buffer.clear()
        self._notify([])

    def _notify(self, snapshot: list[str]):
        if self.on_change is None:
            return
        try:
            self.on_change(snapshot)
        except Exception as e:
            logger.error(f"Error in event log listener: {e}", exc_info=True)

    def __len__(self) -> int:
        with self._lock:
            return len(self._buffer)

    def __iter__(self):
        return iter(self.entries())

    def __repr__(self) -> str:
        with self._lock:
            return f"EventLog(size={len(self._buffer)}/{self.max_size}, latest={self.latest()!r})"
