"""Folder watch loop: subscribe, debounce, dispatch to callbacks."""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Protocol, Sequence

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from .config import ConfigurationError
from .debounce import EventDebouncer
from .events import RawChangeEvent, from_watchdog

if TYPE_CHECKING:
    from watchdog.events import FileSystemEvent

Callback = Callable[[RawChangeEvent], Any]


class EventSource(Protocol):
    """Ordered stream of raw change events plus a stream of transport errors.

    ``None`` on either queue means the stream is closed.
    """

    events: asyncio.Queue[RawChangeEvent | None]
    errors: asyncio.Queue[Exception | None]

    def start(self, loop: asyncio.AbstractEventLoop, paths: Sequence[Path]) -> None:
        """Subscribe to changes under ``paths``."""
        ...

    def close(self) -> None:
        """Stop subscribing. Safe to call more than once."""
        ...


class ChangeEventHandler(FileSystemEventHandler):
    """Hands watchdog events from observer threads to the event loop."""

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        events: asyncio.Queue[RawChangeEvent | None],
        errors: asyncio.Queue[Exception | None],
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the event handler.

        Args:
            loop: Loop that owns the queues.
            events: Queue receiving translated change events.
            errors: Queue receiving translation errors.
            clock: Arrival time source.

        """
        super().__init__()
        self._loop = loop
        self._events = events
        self._errors = errors
        self._clock = clock

    def on_any_event(self, event: FileSystemEvent) -> None:
        """Translate and forward any file system event.

        Args:
            event: File system event.

        """
        if self._loop.is_closed():
            return

        try:
            raw_events = from_watchdog(event, self._clock())
        except (TypeError, ValueError) as e:
            self._loop.call_soon_threadsafe(self._errors.put_nowait, e)
            return

        for raw in raw_events:
            self._loop.call_soon_threadsafe(self._events.put_nowait, raw)


class WatchdogEventSource:
    """Event source backed by a watchdog observer."""

    def __init__(self, logger: logging.Logger, *, recursive: bool = False) -> None:
        """Initialize the event source.

        Args:
            logger: Logger instance.
            recursive: Whether to watch sub-folders of each path.

        """
        self.logger = logger
        self.recursive = recursive
        self.events: asyncio.Queue[RawChangeEvent | None] = asyncio.Queue()
        self.errors: asyncio.Queue[Exception | None] = asyncio.Queue()
        self._observer: Observer | None = None

    def start(self, loop: asyncio.AbstractEventLoop, paths: Sequence[Path]) -> None:
        """Schedule every path on a new observer and start it.

        Raises:
            ConfigurationError: If a path cannot be watched.

        """
        if self._observer is not None:
            return

        observer = Observer()
        handler = ChangeEventHandler(loop, self.events, self.errors)

        try:
            for path in paths:
                observer.schedule(handler, str(path), recursive=self.recursive)
                self.logger.debug("Scheduled folder: %s", path)
            observer.start()
        except OSError as e:
            # Emitters for folders scheduled before the failure may already be running.
            observer.unschedule_all()
            observer.stop()
            if observer.is_alive():
                observer.join(timeout=5.0)
            raise ConfigurationError(f"failed to add folders to watch list: {e}") from e

        self._observer = observer

    def close(self) -> None:
        """Stop the observer and close the event stream."""
        if self._observer is None:
            return

        self._observer.stop()
        self._observer.join(timeout=5.0)
        self._observer = None
        self.events.put_nowait(None)


class WatcherState(Enum):
    """Lifecycle of a FolderWatcher."""

    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


@dataclass
class WatchStats:
    """Counters for the watch loop."""

    received: int = 0
    dispatched: int = 0
    debounced: int = 0
    callback_errors: int = 0
    transport_errors: int = 0


class FolderWatcher:
    """Watches folders and runs callbacks for every admitted change event.

    Events are handled one at a time: every callback for an event finishes
    before the next event is looked at.
    """

    def __init__(
        self,
        logger: logging.Logger,
        source: EventSource | None = None,
        debouncer: EventDebouncer | None = None,
        *,
        recursive: bool = False,
    ) -> None:
        """Initialize the watcher.

        Args:
            logger: Logger instance.
            source: Raw change event source. Uses watchdog if None.
            debouncer: Event debouncer. A default one is created if None.
            recursive: Passed to the default watchdog source.

        """
        self.logger = logger
        self.stats = WatchStats()
        self._source = source if source is not None else WatchdogEventSource(logger, recursive=recursive)
        self._debouncer = debouncer if debouncer is not None else EventDebouncer()
        self._folders: list[Path] = []
        self._callbacks: list[Callback] = []
        self._state = WatcherState.IDLE

    @property
    def state(self) -> WatcherState:
        return self._state

    @property
    def folders(self) -> list[Path]:
        return list(self._folders)

    def add_folders(self, *paths: Path | str) -> None:
        """Register folders to watch.

        Raises:
            ConfigurationError: If the watcher has already started.

        """
        if self._state is not WatcherState.IDLE:
            raise ConfigurationError("cannot add folders once watching has started")
        self._folders.extend(Path(p) for p in paths)

    def add_callbacks(self, *callbacks: Callback) -> None:
        """Register callbacks, run in registration order for each event.

        Raises:
            ConfigurationError: If a callback is None.

        """
        for callback in callbacks:
            if callback is None:
                raise ConfigurationError("nil callback function")
            self._callbacks.append(callback)

    async def watch(self) -> None:
        """Consume events until the stream closes or the task is cancelled.

        Raises:
            ConfigurationError: If there is nothing to watch or no callbacks.
            asyncio.CancelledError: When cancelled.

        """
        if self._state is not WatcherState.IDLE:
            raise ConfigurationError(f"watcher is {self._state.value}")
        if not self._folders:
            raise ConfigurationError("no folders to watch")
        if not self._callbacks:
            raise ConfigurationError("no callbacks registered")

        event_get: asyncio.Task[RawChangeEvent | None] | None = None
        error_get: asyncio.Task[Exception | None] | None = None

        try:
            self._source.start(asyncio.get_running_loop(), self._folders)
            self._state = WatcherState.RUNNING
            self.logger.info("File watcher started")

            while True:
                if purged := self._debouncer.purge():
                    self.logger.debug("Purged %d stale event log entries", purged)

                if event_get is None:
                    event_get = asyncio.ensure_future(self._source.events.get())
                if error_get is None:
                    error_get = asyncio.ensure_future(self._source.errors.get())

                done, _pending = await asyncio.wait({event_get, error_get}, return_when=asyncio.FIRST_COMPLETED)

                if event_get in done:
                    event = event_get.result()
                    event_get = None
                    if event is None:
                        self.logger.info("Event stream closed")
                        return
                    await self._handle_event(event)

                if error_get in done:
                    error = error_get.result()
                    error_get = None
                    if error is None:
                        self.logger.info("Error stream closed")
                        return
                    self.stats.transport_errors += 1
                    self.logger.error("encountered error: %s", error)

        except asyncio.CancelledError:
            self.logger.info("Watcher cancelled")
            raise
        finally:
            for task in (event_get, error_get):
                if task is not None:
                    task.cancel()
            self.close()

    async def _handle_event(self, event: RawChangeEvent) -> None:
        """Debounce an event and run every callback on it."""
        self.stats.received += 1
        self.logger.debug("received event: %s", event)

        if not self._debouncer.admit(event):
            self.stats.debounced += 1
            self.logger.info("ignoring consecutive write events for %r", str(event.path))
            return

        self.stats.dispatched += 1
        for i, callback in enumerate(self._callbacks):
            try:
                result = callback(event)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                self.stats.callback_errors += 1
                self.logger.exception("applying callback[%d] to %s", i, event.path)

    def close(self) -> None:
        """Release the subscription. Safe to call in any state."""
        if self._state is WatcherState.STOPPED:
            return

        was_running = self._state is WatcherState.RUNNING
        self._state = WatcherState.STOPPED
        self._source.close()
        if was_running:
            self.logger.info(
                "File watcher stopped. Stats: received=%d, dispatched=%d, debounced=%d, errors=%d",
                self.stats.received,
                self.stats.dispatched,
                self.stats.debounced,
                self.stats.callback_errors + self.stats.transport_errors,
            )
