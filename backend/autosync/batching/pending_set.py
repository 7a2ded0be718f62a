"""
AutoSync Pending Set.

Deduplicating collection of paths waiting for one action kind.
Requires Python 3.11+.
"""

import threading
from collections.abc import Iterator
from pathlib import Path

from autosync.models import ActionKind
from autosync.utils.paths import canonical


class PendingSet:
    """
    Paths awaiting a single action kind.

    Identity is the canonical path, so repeated events on the same file
    collapse into one entry. ``add`` and ``drain_all`` share a lock: a
    path added while a drain is in progress either lands in the drained
    batch or stays for the next one.
    """

    def __init__(self, action: ActionKind) -> None:
        self.action = action
        self._paths: set[Path] = set()
        self._lock = threading.Lock()

    def add(self, path: Path | str) -> bool:
        """
        Queue a path.

        Returns:
            True if the path was not already pending
        """
        key = canonical(path)
        with self._lock:
            if key in self._paths:
                return False
            self._paths.add(key)
            return True

    def drain_all(self) -> list[Path]:
        """Remove and return every pending path, in no particular order."""
        with self._lock:
            drained = list(self._paths)
            self._paths.clear()
        return drained

    def __contains__(self, path: object) -> bool:
        if not isinstance(path, (str, Path)):
            return False
        with self._lock:
            return canonical(path) in self._paths

    def __len__(self) -> int:
        with self._lock:
            return len(self._paths)

    def __bool__(self) -> bool:
        return len(self) > 0

    def __iter__(self) -> Iterator[Path]:
        with self._lock:
            return iter(list(self._paths))

    def __repr__(self) -> str:
        return f"PendingSet(action={self.action.value!r}, size={len(self)})"
