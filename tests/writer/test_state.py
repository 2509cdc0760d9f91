"""Tests for writer lifecycle state."""

import threading

import pytest

from logstream.errors import ClosedStreamError, TransportError
from logstream.writer.state import WriterState, WriterStatus


class TestWriterStatus:
    """Test WriterStatus."""

    def test_writable_when_open(self):
        """Test the block runs for an open writer."""
        status = WriterStatus()
        ran = []

        with status.writable():
            ran.append(1)

        assert ran == [1]

    def test_writable_raises_when_closed(self):
        """Test the block is refused after close."""
        status = WriterStatus()
        status.close()

        with pytest.raises(ClosedStreamError):
            with status.writable():
                pass

    def test_writable_raises_stored_failure(self):
        """Test the block is refused with the sticky failure."""
        status = WriterStatus()
        failure = TransportError("boom")
        status.fail(failure)

        with pytest.raises(TransportError) as exc_info:
            with status.writable():
                pass

        assert exc_info.value is failure

    def test_close_waits_for_writable_block(self):
        """Test close cannot transition while a write is buffering."""
        status = WriterStatus()
        closer = threading.Thread(target=status.close)

        with status.writable():
            closer.start()
            closer.join(timeout=0.1)
            assert closer.is_alive()
            assert status._state is WriterState.OPEN

        closer.join(timeout=5.0)
        assert status.state is WriterState.CLOSED

    def test_close_only_once(self):
        """Test only the first close performs the transition."""
        status = WriterStatus()

        assert status.close() is True
        assert status.close() is False

    def test_fail_after_close_keeps_closed(self):
        """Test a failure recorded after close keeps the CLOSED state."""
        status = WriterStatus()
        status.close()
        failure = TransportError("final flush")

        status.fail(failure)

        assert status.state is WriterState.CLOSED
        assert status.error is failure
