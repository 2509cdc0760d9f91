"""
In-memory log service for testing.

This module provides a ``LogsTransport`` that keeps groups and streams in
process memory, for:
- Unit tests
- Local development without AWS credentials

Invariants:
    - Every accepted put issues a fresh sequence token
    - A put with a token other than the current one is rejected as stale,
      except an exact replay of the last accepted batch, which is reported
      as already accepted
    - Thread-safe for concurrent access
"""

import threading
from collections import defaultdict, deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, List, Optional, Sequence, Tuple

from logstream.client.base import (
    LogEvent,
    LogEventsPage,
    PutLogEventsResult,
    StreamDescription,
)
from logstream.errors import (
    AlreadyAcceptedError,
    ResourceAlreadyExistsError,
    ResourceNotFoundError,
    StaleTokenError,
)
from logstream.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class InMemoryStream:
    """In-memory stream storage."""
    events: List[LogEvent] = field(default_factory=list)
    sequence_token: Optional[str] = None
    last_put_token: Optional[str] = None
    last_put_events: Tuple[LogEvent, ...] = ()


class InMemoryLogsTransport:
    """
    In-memory implementation of ``LogsTransport``.

    Attributes:
        calls: Every operation invoked, as ``(operation, kwargs)``
        page_size: Events returned per ``get_log_events`` page

    Example:
        >>> transport = InMemoryLogsTransport()
        >>> transport.create_log_group("app")
        >>> transport.create_log_stream("app", "web-1")
        >>> transport.put_log_events("app", "web-1", [LogEvent("hi", 0)], None)
    """

    def __init__(self, page_size: int = 100):
        """
        Initialize in-memory transport.

        Args:
            page_size: Events per read page
        """
        self.page_size = page_size
        self.calls: List[Tuple[str, Dict[str, Any]]] = []

        self._groups: Dict[str, Dict[str, InMemoryStream]] = {}
        self._faults: Dict[str, Deque[Exception]] = defaultdict(deque)
        self._token_counter = 0
        self._lock = threading.RLock()

    def fail_next(self, operation: str, error: Exception) -> None:
        """
        Make the next call of ``operation`` raise ``error``.

        Faults queue up; each call consumes one.
        """
        with self._lock:
            self._faults[operation].append(error)

    def _record(self, operation: str, **kwargs) -> None:
        self.calls.append((operation, kwargs))
        faults = self._faults.get(operation)
        if faults:
            raise faults.popleft()

    def _stream(self, group: str, stream: str) -> InMemoryStream:
        if group not in self._groups:
            raise ResourceNotFoundError(
                f"The specified log group does not exist: {group}",
                code="ResourceNotFoundException",
            )
        streams = self._groups[group]
        if stream not in streams:
            raise ResourceNotFoundError(
                f"The specified log stream does not exist: {stream}",
                code="ResourceNotFoundException",
            )
        return streams[stream]

    def _issue_token(self) -> str:
        self._token_counter += 1
        return f"token-{self._token_counter}"

    def calls_to(self, operation: str) -> List[Dict[str, Any]]:
        """Get the arguments of every recorded call to ``operation``."""
        with self._lock:
            return [kwargs for name, kwargs in self.calls if name == operation]

    def stream_events(self, group: str, stream: str) -> List[LogEvent]:
        """Get all events stored in a stream."""
        with self._lock:
            return list(self._stream(group, stream).events)

    def current_token(self, group: str, stream: str) -> Optional[str]:
        """Get a stream's current sequence token."""
        with self._lock:
            return self._stream(group, stream).sequence_token

    def describe_log_group(self, group: str) -> bool:
        """
        Check whether a log group exists.

        Returns:
            True if the group exists
        """
        with self._lock:
            self._record("describe_log_group", group=group)
            return group in self._groups

    def create_log_group(self, group: str) -> None:
        """
        Create a log group.

        Raises:
            ResourceAlreadyExistsError: If the group already exists
        """
        with self._lock:
            self._record("create_log_group", group=group)
            if group in self._groups:
                raise ResourceAlreadyExistsError(
                    "The specified log group already exists",
                    code="ResourceAlreadyExistsException",
                )
            self._groups[group] = {}

    def create_log_stream(self, group: str, stream: str) -> None:
        """
        Create an empty stream with no sequence token.

        Raises:
            ResourceNotFoundError: If the group does not exist
            ResourceAlreadyExistsError: If the stream already exists
        """
        with self._lock:
            self._record("create_log_stream", group=group, stream=stream)
            if group not in self._groups:
                raise ResourceNotFoundError(
                    f"The specified log group does not exist: {group}",
                    code="ResourceNotFoundException",
                )
            if stream in self._groups[group]:
                raise ResourceAlreadyExistsError(
                    "The specified log stream already exists",
                    code="ResourceAlreadyExistsException",
                )
            self._groups[group][stream] = InMemoryStream()

    def describe_log_stream(self, group: str, stream: str) -> Optional[StreamDescription]:
        """
        Look up a stream and its current sequence token.

        Returns:
            StreamDescription, or None if the stream does not exist

        Raises:
            ResourceNotFoundError: If the group does not exist
        """
        with self._lock:
            self._record("describe_log_stream", group=group, stream=stream)
            if group not in self._groups:
                raise ResourceNotFoundError(
                    f"The specified log group does not exist: {group}",
                    code="ResourceNotFoundException",
                )
            state = self._groups[group].get(stream)
            if state is None:
                return None
            return StreamDescription(name=stream, upload_sequence_token=state.sequence_token)

    def put_log_events(
        self,
        group: str,
        stream: str,
        events: Sequence[LogEvent],
        sequence_token: Optional[str],
    ) -> PutLogEventsResult:
        """
        Append a batch if ``sequence_token`` is the stream's current token.

        Args:
            group: Log group name
            stream: Log stream name
            events: Events to store
            sequence_token: Token returned by the previous accepted put

        Returns:
            Result carrying a freshly issued token

        Raises:
            AlreadyAcceptedError: If this exact batch and token were the last
                accepted put (carries the token that put produced)
            StaleTokenError: If the token is not current (carries the current one)
            ResourceNotFoundError: If the group or stream does not exist
        """
        with self._lock:
            self._record(
                "put_log_events",
                group=group,
                stream=stream,
                events=list(events),
                sequence_token=sequence_token,
            )
            state = self._stream(group, stream)
            batch = tuple(events)

            if (
                state.last_put_events
                and batch == state.last_put_events
                and sequence_token == state.last_put_token
            ):
                raise AlreadyAcceptedError(
                    "The given batch of log events has already been accepted. "
                    f"The next batch can be sent with sequenceToken: {state.sequence_token}",
                    expected_token=state.sequence_token,
                )

            if sequence_token != state.sequence_token:
                raise StaleTokenError(
                    "The given sequenceToken is invalid. "
                    f"The next expected sequenceToken is: {state.sequence_token}",
                    expected_token=state.sequence_token,
                )

            state.events.extend(batch)
            state.last_put_token = sequence_token
            state.last_put_events = batch
            state.sequence_token = self._issue_token()

            logger.debug(
                "Accepted log events",
                group=group,
                stream=stream,
                count=len(batch),
            )

            return PutLogEventsResult(next_sequence_token=state.sequence_token)

    def get_log_events(
        self,
        group: str,
        stream: str,
        next_token: Optional[str] = None,
        start_from_head: bool = True,
    ) -> LogEventsPage:
        """
        Read up to ``page_size`` events.

        Forward tokens have the form ``f/<offset>``; reading past the end
        returns no events and the same token.

        Args:
            group: Log group name
            stream: Log stream name
            next_token: Token from a previous page (None = start)
            start_from_head: Without a token, start at the oldest events
                instead of the last page

        Returns:
            LogEventsPage

        Raises:
            ResourceNotFoundError: If the group or stream does not exist
        """
        with self._lock:
            self._record(
                "get_log_events",
                group=group,
                stream=stream,
                next_token=next_token,
                start_from_head=start_from_head,
            )
            state = self._stream(group, stream)

            if next_token is not None:
                offset = int(next_token.split("/", 1)[1])
            elif start_from_head:
                offset = 0
            else:
                offset = max(0, len(state.events) - self.page_size)

            page = state.events[offset:offset + self.page_size]

            return LogEventsPage(
                events=list(page),
                next_token=f"f/{offset + len(page)}",
            )
