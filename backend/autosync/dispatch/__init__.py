"""
AutoSync Dispatch Package.

Batch dispatch, transports and status reporting.
Requires Python 3.11+.
"""

from autosync.dispatch.dispatcher import BatchDispatcher, batch_order
from autosync.dispatch.status import LoggingStatusSink, StatusSink
from autosync.dispatch.transport import LocalMirrorTransport, Transport

__all__ = [
    "BatchDispatcher",
    "batch_order",
    "StatusSink",
    "LoggingStatusSink",
    "Transport",
    "LocalMirrorTransport",
]
