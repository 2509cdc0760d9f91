"""Buffered stream writer for remote log streams."""

from logstream.writer.append import AppendClient
from logstream.writer.batch import EventBatch, OversizePolicy, pack_batches
from logstream.writer.events import EventBatcher, EventBuffer
from logstream.writer.flush import FlushController
from logstream.writer.scheduler import FlushScheduler
from logstream.writer.state import WriterState, WriterStatus
from logstream.writer.writer import StreamWriter, WriterConfig

__all__ = [
    "AppendClient",
    "EventBatch",
    "EventBatcher",
    "EventBuffer",
    "FlushController",
    "FlushScheduler",
    "OversizePolicy",
    "StreamWriter",
    "WriterConfig",
    "WriterState",
    "WriterStatus",
    "pack_batches",
]
