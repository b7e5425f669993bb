"""Change events shared across watcher components."""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import IntFlag
from pathlib import Path
from typing import TYPE_CHECKING

from watchdog.events import (
    EVENT_TYPE_CLOSED,
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
)

if TYPE_CHECKING:
    from watchdog.events import FileSystemEvent


class Op(IntFlag):
    """File operations; several bits may be set on one event."""

    CREATE = 1
    WRITE = 2
    REMOVE = 4
    RENAME = 8
    CHMOD = 16


# Pairs of (previous, new) operations that continue the same logical write
CONSECUTIVE_WRITE_PAIRS = (
    (Op.CREATE, Op.CREATE),
    (Op.CREATE, Op.WRITE),
    (Op.WRITE, Op.CREATE),
    (Op.WRITE, Op.WRITE),
)


@dataclass(frozen=True)
class RawChangeEvent:
    """A single change notification, decoupled from the notification backend."""

    path: Path
    op: Op
    timestamp: float
    is_directory: bool = False

    def has_op(self, op: Op) -> bool:
        return bool(self.op & op)

    def continues_write(self, previous: RawChangeEvent, window: float) -> bool:
        """Check if this event is part of the same write as ``previous``.

        Args:
            previous: Last admitted event for the same path.
            window: Seconds within which consecutive writes are merged.

        """
        consecutive = any(previous.has_op(a) and self.has_op(b) for a, b in CONSECUTIVE_WRITE_PAIRS)
        return consecutive and self.timestamp - previous.timestamp < window

    def __str__(self) -> str:
        return f"{self.op!r} {self.path}"


def from_watchdog(event: FileSystemEvent, timestamp: float) -> list[RawChangeEvent]:
    """Translate a watchdog event into raw change events.

    A move becomes a RENAME of the old path and a CREATE of the new one.
    Event types with no counterpart (opened, closed without write) yield
    nothing.

    Args:
        event: Event delivered by the watchdog observer.
        timestamp: Arrival time on the monotonic clock.

    Returns:
        Zero, one or two raw change events.

    """
    src = Path(os.fsdecode(event.src_path))
    is_dir = event.is_directory

    if event.event_type == EVENT_TYPE_CREATED:
        return [RawChangeEvent(src, Op.CREATE, timestamp, is_dir)]
    if event.event_type in (EVENT_TYPE_MODIFIED, EVENT_TYPE_CLOSED):
        return [RawChangeEvent(src, Op.WRITE, timestamp, is_dir)]
    if event.event_type == EVENT_TYPE_DELETED:
        return [RawChangeEvent(src, Op.REMOVE, timestamp, is_dir)]
    if event.event_type == EVENT_TYPE_MOVED:
        dest = Path(os.fsdecode(getattr(event, "dest_path", "")))
        return [
            RawChangeEvent(src, Op.RENAME, timestamp, is_dir),
            RawChangeEvent(dest, Op.CREATE, timestamp, is_dir),
        ]
    return []
