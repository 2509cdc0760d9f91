"""Tests for line framing and the event buffer."""

import threading

import pytest

from logstream.client.base import LogEvent
from logstream.errors import BatchLimitError
from logstream.writer.batch import MAXIMUM_BYTES_PER_EVENT, OversizePolicy
from logstream.writer.events import EventBatcher, EventBuffer


def fixed_clock(value=1000):
    return lambda: value


class TestEventBuffer:
    """Test EventBuffer."""

    def test_drain_returns_in_append_order(self):
        """Test events drain in append order."""
        buffer = EventBuffer()

        buffer.add(LogEvent("a", 1))
        buffer.add(LogEvent("b", 2))
        buffer.extend([LogEvent("c", 3), LogEvent("d", 4)])

        assert [e.message for e in buffer.drain()] == ["a", "b", "c", "d"]

    def test_drain_empties_buffer(self):
        """Test drain resets the buffer."""
        buffer = EventBuffer()
        buffer.add(LogEvent("a", 1))

        buffer.drain()

        assert len(buffer) == 0
        assert buffer.drain() == []

    def test_timestamps_never_decrease(self):
        """Test an earlier timestamp is raised to its predecessor's."""
        buffer = EventBuffer()

        buffer.add(LogEvent("a", 500))
        buffer.add(LogEvent("b", 400))
        buffer.add(LogEvent("c", 600))

        assert [e.timestamp for e in buffer.drain()] == [500, 500, 600]

    def test_concurrent_add_and_drain(self):
        """Test concurrent drains never lose or duplicate events."""
        buffer = EventBuffer()
        drained = []
        done = threading.Event()

        def writer(thread_id, count):
            for i in range(count):
                buffer.add(LogEvent(f"{thread_id}-{i}", 0))

        def drainer():
            while not done.is_set():
                drained.extend(buffer.drain())

        drain_thread = threading.Thread(target=drainer)
        drain_thread.start()

        threads = []
        for i in range(5):
            t = threading.Thread(target=writer, args=(i, 200))
            threads.append(t)
            t.start()

        for t in threads:
            t.join()

        done.set()
        drain_thread.join()
        drained.extend(buffer.drain())

        messages = [e.message for e in drained]
        assert len(messages) == 1000
        assert len(set(messages)) == 1000

    def test_concurrent_drain_keeps_per_writer_order(self):
        """Test each writer's events stay ordered across drains."""
        buffer = EventBuffer()
        drained = []
        done = threading.Event()

        def writer():
            for i in range(500):
                buffer.add(LogEvent(str(i), 0))

        def drainer():
            while not done.is_set():
                drained.extend(buffer.drain())

        drain_thread = threading.Thread(target=drainer)
        drain_thread.start()

        write_thread = threading.Thread(target=writer)
        write_thread.start()
        write_thread.join()

        done.set()
        drain_thread.join()
        drained.extend(buffer.drain())

        assert [int(e.message) for e in drained] == list(range(500))


class TestEventBatcher:
    """Test EventBatcher."""

    def test_one_event_per_line(self):
        """Test each line becomes one event."""
        buffer = EventBuffer()
        batcher = EventBatcher(buffer, clock=fixed_clock())

        n = batcher.write(b"a\nb\nc")

        events = buffer.drain()
        assert [e.message for e in events] == ["a", "b", "c"]
        assert all(e.timestamp == 1000 for e in events)
        assert n == 5

    def test_terminator_stripped(self):
        """Test newline and CRLF terminators are stripped."""
        buffer = EventBuffer()
        batcher = EventBatcher(buffer, clock=fixed_clock())

        batcher.write(b"first\r\nsecond\n")

        assert [e.message for e in buffer.drain()] == ["first", "second"]

    def test_empty_lines_dropped(self):
        """Test empty lines produce no events."""
        buffer = EventBuffer()
        batcher = EventBatcher(buffer, clock=fixed_clock())

        n = batcher.write(b"\n\na\n\r\n\nb\n")

        assert [e.message for e in buffer.drain()] == ["a", "b"]
        assert n == 9

    def test_trailing_partial_line_emitted(self):
        """Test a line without terminator still becomes an event."""
        buffer = EventBuffer()
        batcher = EventBatcher(buffer, clock=fixed_clock())

        batcher.write(b"partial")
        batcher.write(b" rest\n")

        assert [e.message for e in buffer.drain()] == ["partial", " rest"]

    def test_text_input_encoded(self):
        """Test str input is accepted and counted in UTF-8 bytes."""
        buffer = EventBuffer()
        batcher = EventBatcher(buffer, clock=fixed_clock())

        n = batcher.write("café\n")

        assert [e.message for e in buffer.drain()] == ["café"]
        assert n == 6

    def test_invalid_utf8_replaced(self):
        """Test undecodable bytes do not fail the write."""
        buffer = EventBuffer()
        batcher = EventBatcher(buffer, clock=fixed_clock())

        batcher.write(b"bad \xff byte\n")

        assert buffer.drain()[0].message == "bad \ufffd byte"

    @pytest.mark.parametrize(
        "chunks",
        [
            [b"one\ntwo\nthree\n"],
            [b"one\n", b"two\n", b"three\n"],
            [b"one\ntwo\n", b"three\n"],
            [b"one\n", b"two\nthree"],
        ],
    )
    def test_call_boundaries_do_not_change_events(self, chunks):
        """Test splitting input at line boundaries yields the same events."""
        buffer = EventBuffer()
        batcher = EventBatcher(buffer, clock=fixed_clock())

        for chunk in chunks:
            batcher.write(chunk)

        assert [e.message for e in buffer.drain()] == ["one", "two", "three"]

    def test_timestamp_taken_at_write_time(self):
        """Test each event is stamped from the clock."""
        ticks = iter([10, 20, 30])
        buffer = EventBuffer()
        batcher = EventBatcher(buffer, clock=lambda: next(ticks))

        batcher.write(b"a\nb\n")
        batcher.write(b"c\n")

        assert [e.timestamp for e in buffer.drain()] == [10, 20, 30]

    def test_oversized_line_truncated(self):
        """Test oversized lines are truncated by default."""
        buffer = EventBuffer()
        batcher = EventBatcher(buffer, clock=fixed_clock())

        n = batcher.write(b"x" * (MAXIMUM_BYTES_PER_EVENT + 100) + b"\n")

        events = buffer.drain()
        assert len(events) == 1
        assert len(events[0].message) == MAXIMUM_BYTES_PER_EVENT
        assert n == MAXIMUM_BYTES_PER_EVENT + 101

    def test_oversized_line_rejected(self):
        """Test reject policy fails the whole write."""
        buffer = EventBuffer()
        batcher = EventBatcher(
            buffer,
            clock=fixed_clock(),
            oversize_policy=OversizePolicy.REJECT,
        )

        with pytest.raises(BatchLimitError):
            batcher.write(b"ok\n" + b"x" * (MAXIMUM_BYTES_PER_EVENT + 1))

        assert len(buffer) == 0
