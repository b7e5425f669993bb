"""Main daemon for the frame folder watcher."""

from __future__ import annotations

import asyncio
import logging
import signal
from pathlib import Path
from typing import TYPE_CHECKING

from rich.console import Console
from rich.logging import RichHandler

from .alerts import AlertSink, ConsoleAlertSink, DesktopAlertSink
from .checker import FolderChecker
from .config import resolve_watch_list
from .watcher import EventSource, FolderWatcher

if TYPE_CHECKING:
    from .config import WatchedPath, WatcherConfig


class FrameWatcherDaemon:
    """Watches print folders and alerts on misplaced files."""

    def __init__(
        self,
        config: WatcherConfig,
        sink: AlertSink | None = None,
        source: EventSource | None = None,
    ) -> None:
        """Initialize the daemon.

        Args:
            config: Validated watcher configuration.
            sink: Alert sink. Chosen from the config if None.
            source: Raw event source. Uses watchdog if None.

        """
        self.config = config
        self.logger = self._setup_logging()

        if sink is None:
            sink = DesktopAlertSink() if config.desktop_alerts else ConsoleAlertSink()
        self.sink = sink

        self.checker = FolderChecker(config, self.sink, self.logger)
        self.watcher = FolderWatcher(self.logger, source, recursive=config.recursive)
        self._task: asyncio.Task[None] | None = None

    def _setup_logging(self) -> logging.Logger:
        """Set up logging for the daemon.

        Returns:
            Configured logger instance.

        """
        logger = logging.getLogger("frame-watcher")
        logger.setLevel(self.config.effective_log_level)

        # Clear existing handlers to avoid duplicates if daemon is recreated
        if logger.handlers:
            logger.handlers.clear()

        console_handler = RichHandler(
            console=Console(stderr=True),
            show_time=True,
            show_path=False,
        )
        logger.addHandler(console_handler)

        if self.config.log_file is not None:
            self.config.log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(self.config.log_file)
            file_handler.setFormatter(logging.Formatter("%(asctime)s | %(levelname)s | %(message)s"))
            logger.addHandler(file_handler)

        return logger

    def watch_list(self) -> list[WatchedPath]:
        """Folders selected by the include/exclude globs."""
        return resolve_watch_list(self.config.include_folders, self.config.exclude_folders)

    async def run_daemon(self) -> None:
        """Watch until the event stream closes or a shutdown signal arrives."""
        watch_list = self.watch_list()
        self.watcher.add_folders(*(w.path for w in watch_list))
        self.watcher.add_callbacks(self.checker)

        self.logger.info("Monitoring following folders:")
        for i, folder in enumerate(watch_list, start=1):
            self.logger.info("[%d] %s", i, folder)
        self.logger.info("Press CTRL + C to close")

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, self._handle_shutdown)

        self._task = asyncio.current_task()
        try:
            await self.watcher.watch()
        except asyncio.CancelledError:
            self.logger.info("Daemon cancelled")
        finally:
            for sig in (signal.SIGTERM, signal.SIGINT):
                loop.remove_signal_handler(sig)
            self.watcher.close()

    def check_once(self, directory: Path | None = None) -> int:
        """Check every file already present in the watched folders.

        Args:
            directory: Check only this folder instead of the watch list.

        Returns:
            Number of alerts raised.

        """
        folders = [directory] if directory is not None else [w.path for w in self.watch_list()]
        pattern = "**/*" if self.config.recursive else "*"

        alerts = 0
        for folder in folders:
            for path in sorted(folder.glob(pattern)):
                if path.is_file() and self.checker.check_path(path):
                    alerts += 1
        return alerts

    def _handle_shutdown(self) -> None:
        """Handle shutdown signal."""
        self.logger.info("Shutdown signal received")
        self.stop()

    def stop(self) -> None:
        """Stop the daemon."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
        else:
            self.watcher.close()
