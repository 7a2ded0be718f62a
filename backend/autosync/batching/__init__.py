"""
AutoSync Batching Package.

Pending path sets and quiet period scheduling.
Requires Python 3.11+.
"""

from autosync.batching.pending_set import PendingSet
from autosync.batching.scheduler import QuietPeriodScheduler

__all__ = ["PendingSet", "QuietPeriodScheduler"]
