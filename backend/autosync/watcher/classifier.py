"""Path eligibility rules applied before a path is queued."""

import fnmatch
from pathlib import Path
from typing import Protocol

from autosync.utils.config import get_settings


class PathClassifier(Protocol):
    """Decides whether a path takes part in synchronization."""

    def is_valid(self, path: Path) -> bool:
        ...


class IgnorePatternClassifier:
    """
    Rejects paths matching any ignore pattern.

    A pattern matches when it equals one of the path's components or
    fnmatches the final component.
    """

    def __init__(self, ignore_patterns: list[str] | None = None) -> None:
        if ignore_patterns is None:
            ignore_patterns = get_settings().watcher.ignore_patterns
        self._ignore_patterns = list(ignore_patterns)

    @property
    def ignore_patterns(self) -> list[str]:
        return list(self._ignore_patterns)

    def is_valid(self, path: Path) -> bool:
        parts = Path(path).parts
        name = parts[-1] if parts else ""
        for pattern in self._ignore_patterns:
            if pattern in parts or fnmatch.fnmatchcase(name, pattern):
                return False
        return True
