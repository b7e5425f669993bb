"""Collapse bursts of write notifications for the same path."""

from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from .events import RawChangeEvent

DEBOUNCE_WINDOW = 1.0  # seconds
RETENTION_WINDOW = 30.0  # seconds


@dataclass
class DebounceEntry:
    """Most recent event seen for a path."""

    event: RawChangeEvent
    seen_at: float


class EventDebouncer:
    """Suppresses events that continue a write already dispatched.

    Not thread-safe: events must arrive one at a time from a single consumer.
    """

    def __init__(
        self,
        window: float = DEBOUNCE_WINDOW,
        retention: float = RETENTION_WINDOW,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the debouncer.

        Args:
            window: Events closer than this to the previous one may be merged.
            retention: Entries older than this are purged.
            clock: Time source for purging, same clock as event timestamps.

        """
        self.window = window
        self.retention = retention
        self._clock = clock
        self._log: dict[Path, DebounceEntry] = {}

    def __len__(self) -> int:
        return len(self._log)

    def __contains__(self, path: Path) -> bool:
        return path in self._log

    def admit(self, event: RawChangeEvent) -> bool:
        """Record an event and decide whether it should be dispatched.

        The stored entry is replaced even when the event is suppressed, so a
        further rapid event compares against the latest one.

        Returns:
            True if the event should be dispatched to callbacks.

        """
        previous = self._log.get(event.path)
        self._log[event.path] = DebounceEntry(event=event, seen_at=event.timestamp)

        if previous is None:
            return True
        return not event.continues_write(previous.event, self.window)

    def purge(self) -> int:
        """Drop entries older than the retention window.

        Returns:
            Number of entries removed.

        """
        now = self._clock()
        expired = [path for path, entry in self._log.items() if now - entry.seen_at > self.retention]
        for path in expired:
            del self._log[path]
        return len(expired)
