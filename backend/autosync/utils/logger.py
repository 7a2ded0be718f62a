"""
AutoSync Structured Logging Module.

structlog setup shared by the watcher, batching and dispatch layers.
Requires Python 3.11+.
"""

import logging
import sys
from pathlib import Path
from typing import Any, TextIO

import structlog
from structlog.types import Processor

from autosync.utils.config import get_settings


def _add_app_context(
    logger: logging.Logger, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Stamp every record with the app name, version and environment."""
    settings = get_settings()
    event_dict["app"] = settings.app_name
    event_dict["version"] = settings.app_version
    event_dict["environment"] = settings.environment
    return event_dict


# One append handle per log file, shared by every configure_logging() call.
# Loggers cached on first use keep writing to it, so it is never closed here.
_log_files: dict[Path, TextIO] = {}


def _log_file(path: Path) -> TextIO:
    key = path.expanduser().resolve()
    handle = _log_files.get(key)
    if handle is None or handle.closed:
        key.parent.mkdir(parents=True, exist_ok=True)
        handle = key.open("a", encoding="utf-8")
        _log_files[key] = handle
    return handle


def configure_logging() -> None:
    """
    Set up structlog from the ``LOG_`` settings.

    Records go to stdout, or are appended to ``LOG_FILE_PATH`` when set.
    Safe to call more than once.
    """
    settings = get_settings()
    level = getattr(logging, settings.logging.level.upper())

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
        _add_app_context,
    ]

    if settings.logging.format == "json":
        processors: list[Processor] = [
            *shared_processors,
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(
                colors=settings.logging.file_path is None,
                exception_formatter=structlog.dev.plain_traceback,
            ),
        ]

    if settings.logging.file_path is not None:
        logger_factory = structlog.WriteLoggerFactory(file=_log_file(settings.logging.file_path))
    else:
        logger_factory = structlog.PrintLoggerFactory()

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=logger_factory,
        cache_logger_on_first_use=True,
    )

    # Third-party stdlib loggers share the level
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level,
    )
    logging.getLogger("watchdog").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger, optionally named after a component."""
    return structlog.get_logger(name)


logger = get_logger("autosync")


class LoggerMixin:
    """Gives a class a ``log`` attribute bound to its class name."""

    @property
    def log(self) -> structlog.stdlib.BoundLogger:
        if not hasattr(self, "_logger"):
            self._logger = get_logger(self.__class__.__name__)
        return self._logger
