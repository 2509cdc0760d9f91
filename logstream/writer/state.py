"""
Lifecycle state of a stream writer.

States:
- OPEN: accepting writes
- CLOSED: close() was called (terminal)
- FAILED: an append failed unrecoverably (terminal)
"""

import threading
from contextlib import contextmanager
from enum import Enum
from typing import Iterator, Optional

from logstream.errors import ClosedStreamError


class WriterState(Enum):
    """Writer lifecycle states."""

    OPEN = "open"
    CLOSED = "closed"
    FAILED = "failed"


class WriterStatus:
    """
    Lock-protected writer state plus the sticky failure.

    Shared by the writer facade (which checks it on every write) and the
    flush controller (which records failures). The lock covers state
    changes and a write buffering its events, never a remote call.
    """

    def __init__(self):
        """Initialize status in the OPEN state."""
        self._state = WriterState.OPEN
        self._error: Optional[Exception] = None
        self._lock = threading.Lock()

    @property
    def state(self) -> WriterState:
        with self._lock:
            return self._state

    @property
    def error(self) -> Optional[Exception]:
        with self._lock:
            return self._error

    def check_writable(self) -> None:
        """
        Raise unless the writer is OPEN.

        Raises:
            ClosedStreamError: If closed
            Exception: The stored failure, if failed
        """
        with self._lock:
            self._raise_unless_open()

    @contextmanager
    def writable(self) -> Iterator[None]:
        """
        Hold the writer OPEN for the duration of the block.

        close() cannot switch to CLOSED until the block exits, so anything
        buffered inside it is seen by the final flush.

        Raises:
            ClosedStreamError: If closed
            Exception: The stored failure, if failed
        """
        with self._lock:
            self._raise_unless_open()
            yield

    def check_flushable(self) -> None:
        """
        Raise the stored failure, if any.

        Flushing is still allowed once CLOSED, for the final flush.
        """
        with self._lock:
            if self._error is not None:
                raise self._error

    def fail(self, error: Exception) -> None:
        """
        Record an unrecoverable failure.

        OPEN moves to FAILED; a CLOSED writer stays CLOSED but keeps the
        error. The first failure wins.
        """
        with self._lock:
            if self._error is None:
                self._error = error
            if self._state is WriterState.OPEN:
                self._state = WriterState.FAILED

    def _raise_unless_open(self) -> None:
        if self._state is WriterState.CLOSED:
            raise ClosedStreamError()
        if self._state is WriterState.FAILED:
            raise self._error

    def close(self) -> bool:
        """
        Move OPEN to CLOSED.

        Returns:
            True if this call performed the transition
        """
        with self._lock:
            if self._state is not WriterState.OPEN:
                return False
            self._state = WriterState.CLOSED
            return True
