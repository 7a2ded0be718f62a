"""
AutoSync File Watcher Package.

File system monitoring and per-root watcher lifecycle.
Requires Python 3.11+.
"""

from autosync.watcher.classifier import IgnorePatternClassifier, PathClassifier
from autosync.watcher.file_watcher import GlobMatcher, RootWatcher, SyncEventHandler
from autosync.watcher.registry import WatcherRegistry

__all__ = [
    "PathClassifier",
    "IgnorePatternClassifier",
    "GlobMatcher",
    "RootWatcher",
    "SyncEventHandler",
    "WatcherRegistry",
]
