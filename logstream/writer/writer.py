"""
Stream writer for sending log lines to a remote log stream.

Provides a file-like API with:
- Line framing into timestamped events
- Periodic background flushing
- Sequence-token consistent appends with conflict recovery
- Sticky failure state
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Union

from logstream.client.base import LogsTransport, StreamIdentity
from logstream.errors import LogStreamError
from logstream.utils.config import Config
from logstream.utils.logging import get_logger
from logstream.writer.append import AppendClient
from logstream.writer.batch import OversizePolicy
from logstream.writer.events import EventBatcher, EventBuffer, now_ms
from logstream.writer.flush import FlushController
from logstream.writer.scheduler import FlushScheduler
from logstream.writer.state import WriterState, WriterStatus

logger = get_logger(__name__)

# PutLogEvents allows 5 requests per second per stream.
DEFAULT_FLUSH_INTERVAL_MS = 5000


@dataclass
class WriterConfig:
    """
    Configuration for a stream writer.

    Attributes:
        flush_interval_ms: Interval between background flushes
        oversize_policy: OversizePolicy for lines longer than one event
        on_error: Called once with the error that fails the writer
    """
    flush_interval_ms: int = DEFAULT_FLUSH_INTERVAL_MS
    oversize_policy: str = OversizePolicy.TRUNCATE
    on_error: Optional[Callable[[Exception], None]] = None

    @classmethod
    def from_config(cls, config: Config) -> "WriterConfig":
        """Build writer configuration from the ``writer.*`` keys."""
        return cls(
            flush_interval_ms=int(
                config.get("writer.flush_interval_ms", DEFAULT_FLUSH_INTERVAL_MS)
            ),
            oversize_policy=config.get("writer.oversize_policy", OversizePolicy.TRUNCATE),
        )


class StreamWriter:
    """
    Buffered writer for one remote log stream.

    Each line written becomes one log event. Events are appended by a
    background thread every ``flush_interval_ms`` and on flush()/close().
    Once an append fails unrecoverably, every later write and flush raises
    that error without contacting the service.

    Example:
        writer = StreamWriter("my-group", "my-stream", transport)

        writer.write(b"starting up\\n")
        writer.write(b"ready\\n")

        writer.close()
    """

    def __init__(
        self,
        group: str,
        stream: str,
        transport: LogsTransport,
        config: Optional[WriterConfig] = None,
        clock: Callable[[], int] = now_ms,
        **kwargs,
    ):
        """
        Initialize stream writer and start background flushing.

        Args:
            group: Log group name
            stream: Log stream name
            transport: Remote log service
            config: Writer configuration
            clock: Returns current time in epoch milliseconds
            **kwargs: Config overrides
        """
        self.config = config or WriterConfig()

        for key, value in kwargs.items():
            if hasattr(self.config, key):
                setattr(self.config, key, value)

        self.identity = StreamIdentity(group_name=group, stream_name=stream)

        self._status = WriterStatus()
        self._buffer = EventBuffer()
        self._batcher = EventBatcher(
            self._buffer,
            clock=clock,
            oversize_policy=self.config.oversize_policy,
        )
        self._controller = FlushController(
            AppendClient(self.identity, transport),
            self._buffer,
            self._status,
            on_failure=self.config.on_error,
        )
        self._scheduler = FlushScheduler(
            self._controller.flush,
            flush_interval_ms=self.config.flush_interval_ms,
            name=f"logstream-flush-{stream}",
        )
        self._scheduler.start()

        logger.info(
            "Stream writer opened",
            group=group,
            stream=stream,
            flush_interval_ms=self.config.flush_interval_ms,
        )

    @property
    def state(self) -> WriterState:
        return self._status.state

    @property
    def error(self) -> Optional[Exception]:
        """The sticky failure, if any."""
        return self._status.error

    @property
    def closed(self) -> bool:
        return self._status.state is not WriterState.OPEN

    @property
    def sequence_token(self) -> Optional[str]:
        return self._controller.sequence_token

    def write(self, data: Union[bytes, bytearray, memoryview, str]) -> int:
        """
        Buffer one event per line of data.

        Never blocks on the network.

        Args:
            data: Bytes (or text, encoded as UTF-8)

        Returns:
            Number of bytes consumed

        Raises:
            ClosedStreamError: If the writer was closed
            LogStreamError: The stored failure, if the writer failed
            BatchLimitError: If a line is oversized under the reject policy
        """
        with self._status.writable():
            return self._batcher.write(data)

    def flush(self) -> None:
        """
        Append buffered events now.

        Raises:
            ClosedStreamError: If the writer was closed
            LogStreamError: The failure this flush produced or the stored one
        """
        self._status.check_writable()
        self._controller.flush()

    def close(self) -> None:
        """
        Stop background flushing and append any remaining events.

        The writer ends CLOSED even when the final flush fails; that failure
        is kept on ``error`` and raised from this call. Closing a FAILED
        writer only stops the background thread. Later calls are no-ops.

        Raises:
            LogStreamError: If the final flush failed
        """
        if not self._status.close():
            self._scheduler.stop()
            return

        logger.info(
            "Closing stream writer",
            group=self.identity.group_name,
            stream=self.identity.stream_name,
        )

        self._scheduler.stop()

        try:
            self._controller.flush()
        except LogStreamError as e:
            logger.error(
                "Final flush failed on close",
                error=str(e),
                group=self.identity.group_name,
                stream=self.identity.stream_name,
            )
            raise

        logger.info(
            "Stream writer closed",
            group=self.identity.group_name,
            stream=self.identity.stream_name,
        )

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()

    def metrics(self) -> Dict[str, Any]:
        """
        Get writer metrics.

        Returns:
            Dictionary with metrics
        """
        return {
            "state": self.state.value,
            "pending_events": len(self._buffer),
            "has_sequence_token": self._controller.sequence_token is not None,
            "flush_thread_running": self._scheduler.running,
        }
