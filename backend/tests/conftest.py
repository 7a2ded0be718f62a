"""
AutoSync Test Configuration.

Pytest fixtures and test doubles.
Requires Python 3.11+.
"""

import asyncio
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pytest

from autosync.utils.config import get_settings


class FakeTimerHandle:
    """Timer handle returned by FakeLoop.call_later."""

    def __init__(self, when: float, callback: Callable[..., Any], args: tuple[Any, ...]) -> None:
        self.when = when
        self.callback = callback
        self.args = args
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeLoop:
    """
    Manually advanced clock with call_later.

    Provides the subset of the event loop API the scheduler uses.
    """

    def __init__(self) -> None:
        self.now = 0.0
        self.timers: list[FakeTimerHandle] = []

    def time(self) -> float:
        return self.now

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> FakeTimerHandle:
        handle = FakeTimerHandle(self.now + delay, callback, args)
        self.timers.append(handle)
        return handle

    @property
    def live_timers(self) -> list[FakeTimerHandle]:
        return [t for t in self.timers if not t.cancelled]

    def advance(self, seconds: float) -> None:
        """Move the clock forward, running timers that come due in order."""
        target = self.now + seconds
        while True:
            due = [t for t in self.live_timers if t.when <= target]
            if not due:
                break
            handle = min(due, key=lambda t: t.when)
            self.timers.remove(handle)
            self.now = max(self.now, handle.when)
            handle.callback(*handle.args)
        self.now = target


class RecordingTransport:
    """Transport double recording calls in the order they were issued."""

    def __init__(self, failing: set[str] | None = None) -> None:
        self.failing = failing or set()
        self.calls: list[tuple[str, Path]] = []
        self.gate: asyncio.Event | None = None

    async def _record(self, op: str, path: Path) -> None:
        self.calls.append((op, path))
        if self.gate is not None:
            await self.gate.wait()
        else:
            await asyncio.sleep(0)
        if str(path) in self.failing:
            raise OSError(f"permission denied: {path}")

    async def upload(self, path: Path) -> None:
        await self._record("upload", path)

    async def remove(self, path: Path) -> None:
        await self._record("remove", path)

    @property
    def uploads(self) -> list[Path]:
        return [p for op, p in self.calls if op == "upload"]

    @property
    def removals(self) -> list[Path]:
        return [p for op, p in self.calls if op == "remove"]


class RecordingStatusSink:
    """Status sink double keeping every message."""

    def __init__(self) -> None:
        self.messages: list[tuple[str, str | None, int]] = []

    def show_transient(self, message: str, detail: str | None, duration_ms: int) -> None:
        self.messages.append((message, detail, duration_ms))


class DummyObserver:
    """Minimal watchdog observer stub."""

    def __init__(self, fail_with: OSError | None = None) -> None:
        self.fail_with = fail_with
        self.handler = None
        self.args: tuple[str, bool] | None = None
        self.started = False
        self.stopped = False
        self.joined = False

    def schedule(self, handler: Any, path: str, recursive: bool) -> None:
        self.handler = handler
        self.args = (path, recursive)

    def start(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.started = True

    def is_alive(self) -> bool:
        return self.started and not self.joined

    def stop(self) -> None:
        self.stopped = True

    def join(self, timeout: float | None = None) -> None:
        self.joined = True


@pytest.fixture(autouse=True)
def fresh_settings() -> Generator[None, None, None]:
    """Re-read settings from the environment for every test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def fake_loop() -> FakeLoop:
    return FakeLoop()


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def status_sink() -> RecordingStatusSink:
    return RecordingStatusSink()


@pytest.fixture
def observer_factory() -> tuple[Callable[[], DummyObserver], list[DummyObserver]]:
    created: list[DummyObserver] = []

    def factory() -> DummyObserver:
        observer = DummyObserver()
        created.append(observer)
        return observer

    return factory, created
