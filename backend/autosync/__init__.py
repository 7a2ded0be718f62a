"""
AutoSync.

Batches filesystem change events into rate-limited remote sync actions.
Requires Python 3.11+.
"""

from autosync.models import (
    ActionKind,
    ChangeKind,
    DispatchResult,
    Outcome,
    WatcherConfig,
)
from autosync.watcher.registry import WatcherRegistry

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "ActionKind",
    "ChangeKind",
    "DispatchResult",
    "Outcome",
    "WatcherConfig",
    "WatcherRegistry",
]
