"""
logstream - remote append-only log streams as buffered Python writers.

This package exposes a CloudWatch Logs stream as:
- A buffered, line-oriented byte writer with background flushing
- Sequence-token consistent appends that recover from token conflicts
- A pull-based, rate-limited reader
- Idempotent group and stream provisioning
"""

__version__ = "0.1.0"

from logstream.client.base import LogEvent, LogsTransport, StreamIdentity
from logstream.errors import (
    BatchLimitError,
    BatchRejectedError,
    ClosedStreamError,
    LogStreamError,
    TransportError,
)
from logstream.group import Group
from logstream.reader import StreamReader
from logstream.writer import StreamWriter, WriterConfig, WriterState

__all__ = [
    "BatchLimitError",
    "BatchRejectedError",
    "ClosedStreamError",
    "Group",
    "LogEvent",
    "LogStreamError",
    "LogsTransport",
    "StreamIdentity",
    "StreamReader",
    "StreamWriter",
    "TransportError",
    "WriterConfig",
    "WriterState",
]
