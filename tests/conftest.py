"""Shared fixtures for logstream tests."""

import threading
from collections import deque
from typing import List, Optional, Sequence, Tuple, Union

import pytest

from logstream.client.base import (
    LogEvent,
    LogEventsPage,
    PutLogEventsResult,
    StreamDescription,
)
from logstream.client.memory import InMemoryLogsTransport


class ScriptedTransport:
    """
    Transport double with scripted put responses.

    Each put pops the next scripted outcome (a result or an exception to
    raise); with nothing scripted it succeeds with tokens T1, T2, ...
    """

    def __init__(self, upload_sequence_token: Optional[str] = None):
        self.puts: List[Tuple[List[LogEvent], Optional[str]]] = []
        self.describe_calls = 0
        self.describe_error: Optional[Exception] = None
        self.upload_sequence_token = upload_sequence_token

        self._outcomes: deque = deque()
        self._counter = 0
        self._lock = threading.Lock()

    def script(self, *outcomes: Union[PutLogEventsResult, Exception]) -> None:
        self._outcomes.extend(outcomes)

    def describe_log_group(self, group: str) -> bool:
        return True

    def create_log_group(self, group: str) -> None:
        pass

    def create_log_stream(self, group: str, stream: str) -> None:
        pass

    def describe_log_stream(self, group: str, stream: str) -> Optional[StreamDescription]:
        with self._lock:
            self.describe_calls += 1
            if self.describe_error is not None:
                raise self.describe_error
            return StreamDescription(name=stream, upload_sequence_token=self.upload_sequence_token)

    def put_log_events(
        self,
        group: str,
        stream: str,
        events: Sequence[LogEvent],
        sequence_token: Optional[str],
    ) -> PutLogEventsResult:
        with self._lock:
            self.puts.append((list(events), sequence_token))

            if self._outcomes:
                outcome = self._outcomes.popleft()
                if isinstance(outcome, Exception):
                    raise outcome
                return outcome

            self._counter += 1
            return PutLogEventsResult(next_sequence_token=f"T{self._counter}")

    def get_log_events(
        self,
        group: str,
        stream: str,
        next_token: Optional[str] = None,
        start_from_head: bool = True,
    ) -> LogEventsPage:
        return LogEventsPage(events=[], next_token=next_token)


@pytest.fixture
def scripted_transport():
    """Transport with scripted put outcomes."""
    return ScriptedTransport()


@pytest.fixture
def memory_transport():
    """In-memory transport with group 'app' and stream 'web-1'."""
    transport = InMemoryLogsTransport()
    transport.create_log_group("app")
    transport.create_log_stream("app", "web-1")
    transport.calls.clear()
    return transport
