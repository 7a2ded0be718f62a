"""
AutoSync Quiet Period Scheduler.

Leading and trailing debounce of flush requests.
Requires Python 3.11+.
"""

import asyncio
from collections.abc import Callable
from typing import Any

from autosync.utils.config import MIN_ACTION_INTERVAL_MS
from autosync.utils.logger import LoggerMixin


class QuietPeriodScheduler(LoggerMixin):
    """
    Collapses bursts of ``notify()`` calls into flushes.

    The first notification in an idle period fires the callback right
    away and opens a window. Notifications inside the window are
    absorbed. The window closes once ``interval_ms`` has passed since
    the latest notification; if anything was absorbed, the callback
    fires exactly once more at that point.

    All methods must be called from the thread running ``loop``.
    """

    def __init__(
        self,
        callback: Callable[[], Any],
        interval_ms: int = MIN_ACTION_INTERVAL_MS,
        loop: asyncio.AbstractEventLoop | None = None,
        name: str = "",
    ) -> None:
        """
        Initialize the scheduler.

        Args:
            callback: Flush function, called with no arguments
            interval_ms: Quiet period in milliseconds
            loop: Event loop providing the clock and timers
            name: Label used in log records

        Raises:
            ValueError: If interval_ms is below the supported minimum
        """
        if interval_ms < MIN_ACTION_INTERVAL_MS:
            raise ValueError(
                f"interval_ms must be at least {MIN_ACTION_INTERVAL_MS}, got {interval_ms}"
            )

        self._callback = callback
        self._interval = interval_ms / 1000.0
        self._loop = loop or asyncio.get_running_loop()
        self._name = name

        self._timer: asyncio.TimerHandle | None = None
        self._last_notify = 0.0
        self._leading_fired = False
        self._trailing_pending = False

    @property
    def interval_ms(self) -> int:
        """Quiet period in milliseconds."""
        return round(self._interval * 1000)

    @property
    def pending(self) -> bool:
        """Whether a trailing flush is waiting for the window to close."""
        return self._trailing_pending

    @property
    def active(self) -> bool:
        """Whether a window is currently open."""
        return self._leading_fired

    def notify(self) -> None:
        """Request a flush."""
        self._last_notify = self._loop.time()

        if self._leading_fired:
            self._trailing_pending = True
            return

        self._leading_fired = True
        self._timer = self._loop.call_later(self._interval, self._on_timer)
        self._fire("leading")

    def cancel(self) -> None:
        """Close the window without firing."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._leading_fired = False
        self._trailing_pending = False

    def flush(self) -> bool:
        """
        Fire a pending trailing flush now and close the window.

        Returns:
            True if the callback was invoked
        """
        pending = self._trailing_pending
        self.cancel()
        if pending:
            self._fire("flush")
        return pending

    def _on_timer(self) -> None:
        """Close the window, or push it back if notified meanwhile."""
        remaining = self._last_notify + self._interval - self._loop.time()
        if remaining > 0:
            self._timer = self._loop.call_later(remaining, self._on_timer)
            return

        self._timer = None
        self._leading_fired = False
        if self._trailing_pending:
            self._trailing_pending = False
            self._fire("trailing")

    def _fire(self, edge: str) -> None:
        self.log.debug("scheduler_fired", scheduler=self._name, edge=edge)
        try:
            self._callback()
        except Exception as e:
            self.log.error("scheduler_callback_failed", scheduler=self._name, error=str(e))
