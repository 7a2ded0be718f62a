"""
AutoSync Batch Dispatcher.

Turns a drained pending set into ordered, independent transfer tasks.
Requires Python 3.11+.
"""

import asyncio
from pathlib import Path

from autosync.batching.pending_set import PendingSet
from autosync.dispatch.status import StatusSink
from autosync.dispatch.transport import Transport
from autosync.models import ActionKind, DispatchResult, Outcome
from autosync.utils.config import get_settings
from autosync.utils.logger import LoggerMixin
from autosync.utils.paths import basename, depth, display


def batch_order(paths: list[Path]) -> list[Path]:
    """
    Order a batch for dispatch.

    Deepest paths come first so a directory is handled after everything
    beneath it. Equal depths fall back to lexical order.
    """
    return sorted(paths, key=lambda p: (-depth(p), str(p)))


class BatchDispatcher(LoggerMixin):
    """
    Flushes one pending set through a transport.

    Each item becomes its own task. Tasks are created in batch order but
    never wait on one another, and a failing item only affects itself.
    """

    _VERBS = {
        ActionKind.UPLOAD: "uploaded",
        ActionKind.DELETE: "removed",
    }

    def __init__(
        self,
        pending: PendingSet,
        transport: Transport,
        status: StatusSink,
        loop: asyncio.AbstractEventLoop | None = None,
        success_duration_ms: int | None = None,
        failure_duration_ms: int | None = None,
    ) -> None:
        """
        Initialize the dispatcher.

        Args:
            pending: Set drained on every flush
            transport: Remote operations
            status: Receives one message per item
            loop: Loop the transfer tasks run on
            success_duration_ms: Display time for success messages
            failure_duration_ms: Display time for failure messages
        """
        settings = get_settings().status

        self._pending = pending
        self._transport = transport
        self._status = status
        self._loop = loop or asyncio.get_running_loop()
        self._success_ms = success_duration_ms if success_duration_ms is not None else settings.success_duration_ms
        self._failure_ms = failure_duration_ms if failure_duration_ms is not None else settings.failure_duration_ms
        self._inflight: set[asyncio.Task[DispatchResult]] = set()

    @property
    def action(self) -> ActionKind:
        return self._pending.action

    @property
    def in_flight(self) -> int:
        """Number of transfers not finished yet."""
        return len(self._inflight)

    def flush(self) -> list[asyncio.Task[DispatchResult]]:
        """
        Drain the pending set and issue one task per path.

        Returns:
            The issued tasks, in dispatch order
        """
        batch = batch_order(self._pending.drain_all())
        if not batch:
            return []

        self.log.debug("flushing_batch", action=self.action.value, count=len(batch))

        tasks = []
        for path in batch:
            task = self._loop.create_task(self._dispatch_one(path))
            self._inflight.add(task)
            task.add_done_callback(self._inflight.discard)
            tasks.append(task)
        return tasks

    async def wait_idle(self) -> None:
        """Wait until every issued transfer has finished."""
        while self._inflight:
            await asyncio.gather(*self._inflight, return_exceptions=True)

    async def _dispatch_one(self, path: Path) -> DispatchResult:
        self.log.info("watcher_update", action=self.action.value, path=str(path))
        try:
            if self.action is ActionKind.UPLOAD:
                await self._transport.upload(path)
            else:
                await self._transport.remove(path)
        except Exception as e:
            self.log.error(
                f"{self.action.value}_failed",
                path=str(path),
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
            self._report("fail", None, self._failure_ms)
            return DispatchResult(path, self.action, Outcome.FAILURE, reason=str(e) or type(e).__name__)

        self._report(
            f"{self._VERBS[self.action]} {basename(path)}",
            display(path),
            self._success_ms,
        )
        return DispatchResult(path, self.action, Outcome.SUCCESS)

    def _report(self, message: str, detail: str | None, duration_ms: int) -> None:
        # A broken status surface must not turn a settled transfer into a task error
        try:
            self._status.show_transient(message, detail, duration_ms)
        except Exception as e:
            self.log.warning(
                "status_sink_failed",
                status_message=message,
                error=str(e),
                error_type=type(e).__name__,
            )
