"""Remote log service transports."""

from logstream.client.base import (
    LogEvent,
    LogEventsPage,
    LogsTransport,
    PutLogEventsResult,
    RejectedEventsInfo,
    StreamDescription,
    StreamIdentity,
)
from logstream.client.memory import InMemoryLogsTransport

__all__ = [
    "LogEvent",
    "LogEventsPage",
    "LogsTransport",
    "PutLogEventsResult",
    "RejectedEventsInfo",
    "StreamDescription",
    "StreamIdentity",
    "InMemoryLogsTransport",
]
