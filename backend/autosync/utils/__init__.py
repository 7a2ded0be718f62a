"""
AutoSync Utilities Package.

Common utilities shared across all modules.
Requires Python 3.11+.
"""

from autosync.utils.config import Settings, get_settings, MIN_ACTION_INTERVAL_MS
from autosync.utils.logger import configure_logging, get_logger, logger, LoggerMixin

__all__ = [
    "Settings",
    "get_settings",
    "MIN_ACTION_INTERVAL_MS",
    "configure_logging",
    "get_logger",
    "logger",
    "LoggerMixin",
]
