"""Status sink protocol for transient user-facing messages."""

from typing import Protocol

from autosync.utils.logger import LoggerMixin


class StatusSink(Protocol):
    """Receives fire-and-forget status messages. Return values are ignored."""

    def show_transient(self, message: str, detail: str | None, duration_ms: int) -> None:
        """Show a message for duration_ms milliseconds."""
        ...


class LoggingStatusSink(LoggerMixin):
    """Writes status messages to the structured log."""

    def show_transient(self, message: str, detail: str | None, duration_ms: int) -> None:
        self.log.info("status_message", message=message, detail=detail, duration_ms=duration_ms)
