"""Alert sinks that show mismatch reports to the user."""

from __future__ import annotations

import logging
import platform
import shutil
import subprocess
from typing import Protocol, runtime_checkable

from rich.console import Console
from rich.panel import Panel

logger = logging.getLogger("frame-watcher")


@runtime_checkable
class AlertSink(Protocol):
    """Accepts an alert title and message."""

    def alert(self, title: str, message: str) -> bool:
        """Show an alert.

        Returns:
            True if the alert was shown.

        """
        ...


class DesktopAlertSink:
    """Shows alerts as desktop notifications.

    Uses ``notify-send`` on Linux and ``osascript`` on macOS.
    """

    def __init__(self, timeout: float = 10.0) -> None:
        self.timeout = timeout
        self.system = platform.system()

    def _command(self, title: str, message: str) -> list[str] | None:
        if self.system == "Linux" and shutil.which("notify-send"):
            return ["notify-send", "--urgency=critical", "--app-name=frame-watcher", title, message]
        if self.system == "Darwin":
            script = f"display notification {_applescript_str(message)} with title {_applescript_str(title)}"
            return ["osascript", "-e", script]
        return None

    def alert(self, title: str, message: str) -> bool:
        command = self._command(title, message)
        if command is None:
            logger.debug("No desktop notifier available on %s", self.system)
            return False

        try:
            result = subprocess.run(
                command,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except (subprocess.SubprocessError, OSError) as e:
            logger.debug("Desktop notification failed: %s", e)
            return False

        if result.returncode != 0:
            logger.debug("Desktop notifier exited with %d: %s", result.returncode, result.stderr.strip())
            return False
        return True


class ConsoleAlertSink:
    """Renders alerts as rich panels on the console."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console(stderr=True)

    def alert(self, title: str, message: str) -> bool:
        self.console.print(Panel(message, title=f"[bold red]{title}[/bold red]", expand=False))
        return True


class CollectingAlertSink:
    """Records alerts instead of showing them."""

    def __init__(self) -> None:
        self.alerts: list[tuple[str, str]] = []

    def alert(self, title: str, message: str) -> bool:
        self.alerts.append((title, message))
        return True

    @property
    def titles(self) -> list[str]:
        return [title for title, _message in self.alerts]

    def clear(self) -> None:
        self.alerts.clear()


def _applescript_str(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'
