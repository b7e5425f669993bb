"""Shared fixtures for watcher tests."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Sequence

import pytest

from frame_watcher.alerts import CollectingAlertSink
from frame_watcher.config import ConfigurationError, WatcherConfig
from frame_watcher.events import RawChangeEvent


class FakeEventSource:
    """Event source fed directly by tests."""

    def __init__(self) -> None:
        self.events: asyncio.Queue[RawChangeEvent | None] = asyncio.Queue()
        self.errors: asyncio.Queue[Exception | None] = asyncio.Queue()
        self.started_with: list[Path] | None = None
        self.start_error: ConfigurationError | None = None
        self.close_calls = 0

    def start(self, loop: asyncio.AbstractEventLoop, paths: Sequence[Path]) -> None:
        if self.start_error is not None:
            raise self.start_error
        self.started_with = list(paths)

    def close(self) -> None:
        self.close_calls += 1

    def push(self, *events: RawChangeEvent) -> None:
        for event in events:
            self.events.put_nowait(event)

    def end(self) -> None:
        self.events.put_nowait(None)


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def logger() -> logging.Logger:
    """Create test logger."""
    return logging.getLogger("test-frame-watcher")


@pytest.fixture
def source() -> FakeEventSource:
    """Create a fake event source."""
    return FakeEventSource()


@pytest.fixture
def clock() -> FakeClock:
    """Create a fake clock."""
    return FakeClock()


@pytest.fixture
def sink() -> CollectingAlertSink:
    """Create an alert sink that records alerts."""
    return CollectingAlertSink()


@pytest.fixture
def config(tmp_path: Path) -> WatcherConfig:
    """Create test configuration with the default patterns and mapping."""
    cfg = WatcherConfig()
    cfg.include_folders = [str(tmp_path / "*")]
    cfg.desktop_alerts = False
    return cfg
