"""Tests for the stream reader."""

import pytest

from logstream.client.base import LogEvent
from logstream.client.memory import InMemoryLogsTransport
from logstream.errors import ResourceNotFoundError, TransportError
from logstream.reader import StreamReader
from logstream.utils.throttle import RequestThrottle


@pytest.fixture
def populated_transport():
    """Stream 'app/web-1' holding five events, paged two at a time."""
    transport = InMemoryLogsTransport(page_size=2)
    transport.create_log_group("app")
    transport.create_log_stream("app", "web-1")
    transport.put_log_events("app", "web-1", [LogEvent(f"m{i}", i) for i in range(5)], None)
    transport.calls.clear()
    return transport


class TestStreamReader:
    """Test StreamReader."""

    def test_read_first_page(self, populated_transport):
        """Test reading from the head without a token."""
        reader = StreamReader("app", "web-1", populated_transport)

        records, token = reader.read()

        assert [r.message for r in records] == ["m0", "m1"]
        assert token is not None

    def test_read_with_token(self, populated_transport):
        """Test the returned token continues where the last page ended."""
        reader = StreamReader("app", "web-1", populated_transport)

        _, token = reader.read()
        records, _ = reader.read(token)

        assert [r.message for r in records] == ["m2", "m3"]

    def test_poll_advances(self, populated_transport):
        """Test poll keeps its own position."""
        reader = StreamReader("app", "web-1", populated_transport)

        assert [r.message for r in reader.poll()] == ["m0", "m1"]
        assert [r.message for r in reader.poll()] == ["m2", "m3"]
        assert [r.message for r in reader.poll()] == ["m4"]
        assert reader.poll() == []

    def test_poll_sees_new_events(self, populated_transport):
        """Test a caught-up poll picks up later appends."""
        reader = StreamReader("app", "web-1", populated_transport)
        while reader.poll():
            pass

        token = populated_transport.current_token("app", "web-1")
        populated_transport.put_log_events("app", "web-1", [LogEvent("late", 9)], token)

        assert [r.message for r in reader.poll()] == ["late"]

    def test_iterate_all(self, populated_transport):
        """Test iteration yields every event then stops."""
        reader = StreamReader("app", "web-1", populated_transport)

        assert [r.message for r in reader] == ["m0", "m1", "m2", "m3", "m4"]

    def test_each_read_acquires_throttle(self, populated_transport):
        """Test every remote read passes through the throttle."""
        throttle = RequestThrottle(100)
        reader = StreamReader("app", "web-1", populated_transport, throttle=throttle)

        list(reader)

        assert throttle.get_stats()["total_requests"] == len(
            populated_transport.calls_to("get_log_events")
        )

    def test_missing_stream(self, populated_transport):
        """Test read errors propagate."""
        reader = StreamReader("app", "missing", populated_transport)

        with pytest.raises(ResourceNotFoundError):
            reader.read()

    def test_read_error_propagates(self, populated_transport):
        """Test injected transport failures reach the caller."""
        populated_transport.fail_next("get_log_events", TransportError("boom"))
        reader = StreamReader("app", "web-1", populated_transport)

        with pytest.raises(TransportError):
            reader.read()

        records, _ = reader.read()
        assert len(records) == 2
