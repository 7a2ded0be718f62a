"""
AutoSync Watcher Registry.

Owns the watcher for each root and the shared batching pipeline.
Requires Python 3.11+.
"""

import asyncio
from collections.abc import Callable
from pathlib import Path
from typing import Any

from watchdog.observers import Observer

from autosync.batching.pending_set import PendingSet
from autosync.batching.scheduler import QuietPeriodScheduler
from autosync.dispatch.dispatcher import BatchDispatcher
from autosync.dispatch.status import LoggingStatusSink, StatusSink
from autosync.dispatch.transport import Transport
from autosync.models import ActionKind, ChangeKind, WatcherConfig
from autosync.utils.config import get_settings
from autosync.utils.logger import LoggerMixin
from autosync.utils.paths import canonical
from autosync.watcher.classifier import IgnorePatternClassifier, PathClassifier
from autosync.watcher.file_watcher import RootWatcher


class _Pipeline:
    """Pending set, scheduler and dispatcher for one action kind."""

    def __init__(
        self,
        action: ActionKind,
        transport: Transport,
        status: StatusSink,
        loop: asyncio.AbstractEventLoop,
        interval_ms: int,
    ) -> None:
        self.pending = PendingSet(action)
        self.dispatcher = BatchDispatcher(self.pending, transport, status, loop=loop)
        self.scheduler = QuietPeriodScheduler(
            self.dispatcher.flush,
            interval_ms=interval_ms,
            loop=loop,
            name=action.value,
        )

    def enqueue(self, path: Path) -> None:
        self.pending.add(path)
        self.scheduler.notify()


class WatcherRegistry(LoggerMixin):
    """
    At most one active watcher per root.

    Created and modified events from every root feed one upload
    pipeline; deleted events feed one delete pipeline. The two pipelines
    flush independently.
    """

    def __init__(
        self,
        transport: Transport,
        classifier: PathClassifier | None = None,
        status: StatusSink | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
        interval_ms: int | None = None,
        observer_factory: Callable[[], Any] = Observer,
    ) -> None:
        """
        Initialize the registry.

        Must be constructed on the thread running ``loop``.

        Args:
            transport: Remote operations used by both pipelines
            classifier: Filters paths before they are queued
            status: Receives per-item results
            loop: Loop that owns the batching state
            interval_ms: Quiet period for both schedulers
            observer_factory: Builds watchdog observers for new watchers
        """
        settings = get_settings()

        self._loop = loop or asyncio.get_running_loop()
        self._classifier = classifier or IgnorePatternClassifier()
        self._observer_factory = observer_factory
        self._watchers: dict[Path, RootWatcher] = {}

        status = status or LoggingStatusSink()
        interval = interval_ms if interval_ms is not None else settings.watcher.action_interval_ms
        self._pipelines = {
            action: _Pipeline(action, transport, status, self._loop, interval)
            for action in ActionKind
        }

    def pending(self, action: ActionKind) -> PendingSet:
        return self._pipelines[action].pending

    def scheduler(self, action: ActionKind) -> QuietPeriodScheduler:
        return self._pipelines[action].scheduler

    def dispatcher(self, action: ActionKind) -> BatchDispatcher:
        return self._pipelines[action].dispatcher

    @property
    def active_roots(self) -> list[Path]:
        return list(self._watchers)

    def get(self, root: Path | str) -> RootWatcher | None:
        return self._watchers.get(canonical(root))

    def is_active(self, root: Path | str) -> bool:
        return canonical(root) in self._watchers

    def create(self, root: Path | str, config: WatcherConfig | None) -> RootWatcher | None:
        """
        Install a watcher for a root, replacing any existing one.

        Args:
            root: Directory to watch
            config: Watch configuration; None leaves the root untouched

        Returns:
            The new watcher, or None if the config installs nothing or
            the root cannot be watched
        """
        if config is None:
            return None

        key = canonical(root)
        # Old watcher goes even when the new config installs nothing
        self.dispose(key)

        if config.is_disabled:
            self.log.debug("watcher_not_installed", root=str(key))
            return None

        kinds: set[ChangeKind] = set()
        if config.auto_upload:
            kinds.update((ChangeKind.CREATED, ChangeKind.MODIFIED))
        if config.auto_delete:
            kinds.add(ChangeKind.DELETED)

        watcher = RootWatcher(
            root=key,
            pattern=config.files,
            on_change=self._on_change,
            kinds=kinds,
            loop=self._loop,
            observer_factory=self._observer_factory,
        )
        if not watcher.start():
            watcher.dispose()
            return None
        self._watchers[key] = watcher

        self.log.info(
            "watcher_created",
            root=str(key),
            files=config.files,
            auto_upload=config.auto_upload,
            auto_delete=config.auto_delete,
        )
        return watcher

    def dispose(self, root: Path | str) -> None:
        """Stop and forget the watcher for a root, if any."""
        watcher = self._watchers.pop(canonical(root), None)
        if watcher is not None:
            watcher.dispose()

    async def aclose(self) -> None:
        """
        Shut down every watcher.

        Trailing batches still waiting on a quiet period are flushed and
        in-flight transfers are awaited.
        """
        for root in list(self._watchers):
            self.dispose(root)

        for pipeline in self._pipelines.values():
            pipeline.scheduler.flush()
        for pipeline in self._pipelines.values():
            await pipeline.dispatcher.wait_idle()

        self.log.info("watcher_registry_closed")

    def _on_change(self, path: Path, kind: ChangeKind) -> None:
        if not self._classifier.is_valid(path):
            return
        self._pipelines[ActionKind.for_change(kind)].enqueue(path)
