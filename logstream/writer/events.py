"""
Line framing and event buffering for the stream writer.

Bytes written to a stream writer are split into lines; each non-empty line
becomes one timestamped LogEvent held in an EventBuffer until the next flush.
"""

import dataclasses
import threading
import time
from typing import Callable, List, Union

from logstream.client.base import LogEvent
from logstream.utils.logging import get_logger
from logstream.writer.batch import OversizePolicy, fit_message

logger = get_logger(__name__)


def now_ms() -> int:
    """Current wall-clock time in milliseconds since the epoch."""
    return int(time.time() * 1000)


class EventBuffer:
    """
    Ordered, thread-safe buffer of pending events.

    Timestamps never decrease in append order: an event stamped earlier than
    its predecessor (wall clock stepped back) takes the predecessor's
    timestamp, since the service requires chronological batches.
    """

    def __init__(self):
        """Initialize event buffer."""
        self._events: List[LogEvent] = []
        self._last_timestamp = 0
        self._lock = threading.Lock()

    def add(self, event: LogEvent) -> None:
        """Append a single event."""
        self.extend([event])

    def extend(self, events: List[LogEvent]) -> None:
        """
        Append events as one unit.

        A concurrent drain sees either all of them or none.
        """
        with self._lock:
            for event in events:
                if event.timestamp < self._last_timestamp:
                    event = dataclasses.replace(event, timestamp=self._last_timestamp)
                self._last_timestamp = event.timestamp
                self._events.append(event)

    def drain(self) -> List[LogEvent]:
        """
        Remove and return everything buffered.

        Returns:
            Events in append order (empty list if none)
        """
        with self._lock:
            events = self._events
            self._events = []
            return events

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)


class EventBatcher:
    """
    Turns written bytes into buffered log events.

    Framing is best effort: input is split on ``\\n`` and the terminator (and
    a preceding ``\\r``) is stripped. A trailing partial line still becomes an
    event; there is no reassembly across write calls. Empty lines are dropped.
    """

    def __init__(
        self,
        buffer: EventBuffer,
        clock: Callable[[], int] = now_ms,
        oversize_policy: str = OversizePolicy.TRUNCATE,
    ):
        """
        Initialize event batcher.

        Args:
            buffer: Buffer receiving events
            clock: Returns current time in epoch milliseconds
            oversize_policy: Handling of lines longer than one event allows
        """
        self.buffer = buffer
        self.oversize_policy = oversize_policy
        self._clock = clock

    def split(self, data: bytes) -> List[LogEvent]:
        """
        Split data into events without buffering them.

        Raises:
            BatchLimitError: If a line is oversized under the REJECT policy
        """
        events = []

        for line in data.split(b"\n"):
            if line.endswith(b"\r"):
                line = line[:-1]
            if not line:
                continue

            message = fit_message(line.decode("utf-8", errors="replace"), self.oversize_policy)
            events.append(LogEvent(message=message, timestamp=self._clock()))

        return events

    def write(self, data: Union[bytes, bytearray, memoryview, str]) -> int:
        """
        Record one event per line of data.

        Args:
            data: Bytes (or text, encoded as UTF-8)

        Returns:
            Number of bytes consumed

        Raises:
            BatchLimitError: If a line is oversized under the REJECT policy;
                nothing from this call is buffered
        """
        if isinstance(data, str):
            data = data.encode("utf-8")
        else:
            data = bytes(data)

        events = self.split(data)
        if events:
            self.buffer.extend(events)

        return len(data)
