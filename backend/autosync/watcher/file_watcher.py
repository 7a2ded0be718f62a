"""
AutoSync File Watcher.

Per-root filesystem monitoring using watchdog.
Requires Python 3.11+.
"""

import asyncio
import os
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any

from watchdog.events import (
    DirModifiedEvent,
    FileSystemEvent,
    FileSystemEventHandler,
    FileSystemMovedEvent,
)
from watchdog.observers import Observer
from wcmatch import glob

from autosync.models import ChangeKind
from autosync.utils.config import get_settings
from autosync.utils.logger import LoggerMixin
from autosync.utils.paths import canonical

ChangeCallback = Callable[[Path, ChangeKind], Any]

# ``**`` spans zero or more directories, ``{a,b}`` alternates, dotfiles match
GLOB_FLAGS = glob.GLOBSTAR | glob.BRACE | glob.DOTGLOB


class GlobMatcher:
    """
    Matches absolute paths against a glob relative to a root.

    ``*`` stays within one path segment; ``**`` crosses any number of
    them, including none.
    """

    def __init__(self, root: Path, pattern: str) -> None:
        self._root = canonical(root)
        self._pattern = pattern

    @property
    def pattern(self) -> str:
        return self._pattern

    def matches(self, path: Path) -> bool:
        try:
            rel = canonical(path).relative_to(self._root)
        except ValueError:
            return False

        if not rel.parts:
            return False
        return glob.globmatch(rel.as_posix(), self._pattern, flags=GLOB_FLAGS)


class SyncEventHandler(FileSystemEventHandler, LoggerMixin):
    """
    Forwards watchdog events for one root to the event loop.

    Events are filtered by the root's glob and by the change kinds the
    root subscribes to, then handed to ``on_change`` on the loop thread.
    Directory modifications are ignored; a move is reported as a delete
    of the source followed by a create of the destination.
    """

    def __init__(
        self,
        matcher: GlobMatcher,
        on_change: ChangeCallback,
        loop: asyncio.AbstractEventLoop,
        kinds: Iterable[ChangeKind],
    ) -> None:
        """
        Initialize the handler.

        Args:
            matcher: Glob scoping for the root
            on_change: Called with (path, kind) on the loop thread
            loop: Loop that owns the batching state
            kinds: Change kinds to forward
        """
        super().__init__()
        self._matcher = matcher
        self._on_change = on_change
        self._loop = loop
        self._kinds = frozenset(kinds)

    @property
    def matcher(self) -> GlobMatcher:
        return self._matcher

    @property
    def kinds(self) -> frozenset[ChangeKind]:
        return self._kinds

    def _forward(self, raw_path: str | bytes, kind: ChangeKind) -> None:
        if kind not in self._kinds:
            return

        path = Path(os.fsdecode(raw_path))
        if not self._matcher.matches(path):
            return

        self.log.debug("file_change_detected", path=str(path), change_type=kind.value)
        try:
            self._loop.call_soon_threadsafe(self._on_change, path, kind)
        except RuntimeError:
            # Loop already closed during shutdown
            self.log.debug("change_dropped_loop_closed", path=str(path))

    def on_created(self, event: FileSystemEvent) -> None:
        """Handle file/directory creation."""
        self._forward(event.src_path, ChangeKind.CREATED)

    def on_modified(self, event: FileSystemEvent) -> None:
        """Handle file modification."""
        if isinstance(event, DirModifiedEvent):
            return
        self._forward(event.src_path, ChangeKind.MODIFIED)

    def on_deleted(self, event: FileSystemEvent) -> None:
        """Handle file/directory deletion."""
        self._forward(event.src_path, ChangeKind.DELETED)

    def on_moved(self, event: FileSystemMovedEvent) -> None:
        """Handle file/directory move/rename."""
        self._forward(event.src_path, ChangeKind.DELETED)
        self._forward(event.dest_path, ChangeKind.CREATED)


class RootWatcher(LoggerMixin):
    """
    Watches one root directory.

    Owns a watchdog observer for the lifetime of the watcher. Once
    disposed it cannot be restarted.
    """

    def __init__(
        self,
        root: Path,
        pattern: str,
        on_change: ChangeCallback,
        kinds: Iterable[ChangeKind],
        loop: asyncio.AbstractEventLoop | None = None,
        recursive: bool | None = None,
        observer_factory: Callable[[], Any] = Observer,
    ) -> None:
        """
        Initialize the watcher.

        Args:
            root: Directory to watch
            pattern: Glob relative to root
            on_change: Called with (path, kind) on the loop thread
            kinds: Change kinds to forward
            loop: Loop that owns the batching state
            recursive: Whether to watch subdirectories
            observer_factory: Builds the watchdog observer
        """
        settings = get_settings().watcher

        self._root = canonical(root)
        self._recursive = settings.recursive if recursive is None else recursive
        self._join_timeout = settings.observer_join_timeout
        self._observer_factory = observer_factory

        self._handler = SyncEventHandler(
            matcher=GlobMatcher(self._root, pattern),
            on_change=on_change,
            loop=loop or asyncio.get_running_loop(),
            kinds=kinds,
        )

        self._observer: Any = None
        self._running = False
        self._disposed = False

    @property
    def root(self) -> Path:
        return self._root

    @property
    def handler(self) -> SyncEventHandler:
        return self._handler

    @property
    def is_running(self) -> bool:
        """Check if the watcher is running."""
        return self._running

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    def start(self) -> bool:
        """
        Start watching for file changes.

        Returns:
            False if the root could not be watched (missing, unreadable,
            out of OS watch handles), True otherwise.
        """
        if self._running:
            return True
        if self._disposed:
            raise RuntimeError(f"Watcher for {self._root} has been disposed")

        observer = self._observer_factory()
        try:
            observer.schedule(
                self._handler,
                str(self._root),
                recursive=self._recursive,
            )
            observer.start()
        except OSError as e:
            self.log.error(
                "watcher_start_failed",
                path=str(self._root),
                error=str(e),
                error_type=type(e).__name__,
            )
            self._release(observer)
            return False

        self._observer = observer
        self._running = True

        self.log.info(
            "file_watcher_started",
            path=str(self._root),
            pattern=self._handler.matcher.pattern,
            kinds=sorted(k.value for k in self._handler.kinds),
            recursive=self._recursive,
        )
        return True

    def _release(self, observer: Any) -> None:
        observer.stop()
        # join() on a thread that never started raises RuntimeError
        if observer.is_alive():
            observer.join(timeout=self._join_timeout)

    def dispose(self) -> None:
        """Stop watching and release the observer."""
        if self._disposed:
            return
        self._disposed = True

        if self._observer is not None:
            self._release(self._observer)
            self._observer = None

        self._running = False
        self.log.info("file_watcher_stopped", path=str(self._root))
