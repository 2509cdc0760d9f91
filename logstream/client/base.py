"""
Transport protocol and wire types for the remote log service.

The writer, reader and group code depend only on ``LogsTransport``, the
capability set actually used against CloudWatch Logs. Production code uses
``CloudWatchLogsTransport``; tests and local development use
``InMemoryLogsTransport``.

Every method raises from the taxonomy in ``logstream.errors``:
``StaleTokenError``/``AlreadyAcceptedError`` for sequence conflicts on put,
``ResourceAlreadyExistsError``/``ResourceNotFoundError`` for provisioning, and
``TransportError`` for anything else.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Sequence, runtime_checkable


@dataclass(frozen=True)
class LogEvent:
    """
    A single log record.

    Attributes:
        message: Message text, without line terminator
        timestamp: Milliseconds since the epoch
    """
    message: str
    timestamp: int


@dataclass(frozen=True)
class StreamIdentity:
    """
    Identifies a remote log stream.

    Attributes:
        group_name: Log group name
        stream_name: Log stream name
    """
    group_name: str
    stream_name: str


@dataclass(frozen=True)
class StreamDescription:
    """
    Metadata of a remote stream.

    Attributes:
        name: Stream name
        upload_sequence_token: Token required by the next put (None for a
            stream that never received events)
    """
    name: str
    upload_sequence_token: Optional[str] = None


@dataclass(frozen=True)
class RejectedEventsInfo:
    """Indices of events the service refused from an accepted put."""
    too_new_start_index: Optional[int] = None
    too_old_end_index: Optional[int] = None
    expired_end_index: Optional[int] = None


@dataclass(frozen=True)
class PutLogEventsResult:
    """
    Result of an accepted put.

    Attributes:
        next_sequence_token: Token for the next put to the same stream
        rejected: Present when part of the batch was refused
    """
    next_sequence_token: Optional[str]
    rejected: Optional[RejectedEventsInfo] = None


@dataclass
class LogEventsPage:
    """
    One page of events read from a stream.

    Attributes:
        events: Events in stream order
        next_token: Forward token for the following page
    """
    events: List[LogEvent] = field(default_factory=list)
    next_token: Optional[str] = None


@runtime_checkable
class LogsTransport(Protocol):
    """Capabilities consumed from the remote log service."""

    def describe_log_group(self, group: str) -> bool:
        """Return True if a group with exactly this name exists."""
        ...

    def create_log_group(self, group: str) -> None:
        """Create a log group."""
        ...

    def create_log_stream(self, group: str, stream: str) -> None:
        """Create a log stream within a group."""
        ...

    def describe_log_stream(self, group: str, stream: str) -> Optional[StreamDescription]:
        """Return the stream with exactly this name, or None."""
        ...

    def put_log_events(
        self,
        group: str,
        stream: str,
        events: Sequence[LogEvent],
        sequence_token: Optional[str],
    ) -> PutLogEventsResult:
        """Append a batch of events, ordered by timestamp."""
        ...

    def get_log_events(
        self,
        group: str,
        stream: str,
        next_token: Optional[str] = None,
        start_from_head: bool = True,
    ) -> LogEventsPage:
        """Read one page of events."""
        ...
