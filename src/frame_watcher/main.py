"""Main entry point for the frame folder watcher."""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from rich.console import Console
from rich.table import Table

from .alerts import CollectingAlertSink, DesktopAlertSink
from .config import ConfigurationError, WatcherConfig
from .daemon import FrameWatcherDaemon


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Returns:
        Parsed arguments.

    """
    parser = argparse.ArgumentParser(
        prog="frame-watcher",
        description="Alert when print files are placed in a folder that does not match their frame size and type",
    )

    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        default=None,
        help="Path to watcher config file (default: watcher.yaml)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Display debugging information",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("run", help="Watch folders and raise alerts (default)")

    check_parser = subparsers.add_parser("check", help="Check files already in the watched folders")
    check_parser.add_argument(
        "--dir",
        "-d",
        type=Path,
        default=None,
        help="Specific directory to check",
    )

    config_parser = subparsers.add_parser("config", help="Configuration management")
    config_parser.add_argument(
        "--init",
        action="store_true",
        help="Create default configuration file",
    )
    config_parser.add_argument(
        "--show",
        action="store_true",
        help="Show current configuration",
    )

    return parser.parse_args(argv)


def cmd_run(config: WatcherConfig, args: argparse.Namespace) -> int:
    """Execute run command.

    Returns:
        Exit code.

    """
    daemon = FrameWatcherDaemon(config)
    asyncio.run(daemon.run_daemon())
    return 0


def cmd_check(config: WatcherConfig, args: argparse.Namespace) -> int:
    """Execute check command.

    Returns:
        Exit code: 1 if any file is misplaced or misnamed.

    """
    console = Console()
    sink = CollectingAlertSink()
    daemon = FrameWatcherDaemon(config, sink=sink)

    daemon.check_once(args.dir)

    if not sink.alerts:
        console.print("[green]All files are in the correct folders[/green]")
        return 0

    table = Table(title=f"Found {len(sink.alerts)} problems")
    table.add_column("Alert", style="red")
    table.add_column("Details")

    for title, message in sink.alerts:
        table.add_row(title, message)

    console.print(table)
    return 1


def cmd_config(config_path: Path | None, args: argparse.Namespace) -> int:
    """Execute config command.

    Returns:
        Exit code.

    """
    console = Console()

    if args.init:
        config_path = config_path or WatcherConfig.get_config_path()
        if config_path.exists():
            console.print(f"[yellow]Config already exists: {config_path}[/yellow]")
            return 1
        config = WatcherConfig(include_folders=["./*"])
        config.save(config_path)
        console.print(f"[green]Created config: {config_path}[/green]")
        return 0

    if args.show:
        config = WatcherConfig.load(config_path)

        table = Table(title="Current Configuration")
        table.add_column("Setting", style="cyan")
        table.add_column("Value", style="green")

        table.add_row("Include folders", "\n".join(config.include_folders))
        table.add_row("Exclude folders", "\n".join(config.exclude_folders))
        table.add_row("Recursive", str(config.recursive))
        table.add_row("Folder name patterns", "\n".join(config.folder_name_patterns))
        table.add_row("File name patterns", "\n".join(config.file_name_patterns))
        frame_types = [
            f"{abbr} -> {' | '.join(repr(name) for name in names)}"
            for abbr, names in config.frame_type_mapping.items()
        ]
        table.add_row("Frame types", "\n".join(frame_types))
        table.add_row("Desktop alerts", str(config.desktop_alerts))
        table.add_row("Log level", "DEBUG" if config.debug else config.log_level)
        table.add_row("Log file", str(config.log_file or "-"))

        console.print(table)
        return 0

    console.print("[yellow]Use --init or --show[/yellow]")
    return 1


def main(argv: list[str] | None = None) -> int:
    """Main entry point.

    Returns:
        Exit code.

    """
    args = parse_args(argv)
    command = args.command or "run"

    try:
        if command == "config":
            return cmd_config(args.config, args)

        config = WatcherConfig.load(args.config)
        if args.verbose:
            config.debug = True

        if command == "check":
            return cmd_check(config, args)
        return cmd_run(config, args)
    except ConfigurationError as e:
        Console(stderr=True).print(f"[red]ERROR: {e}[/red]")
        DesktopAlertSink().alert("ERROR", str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
