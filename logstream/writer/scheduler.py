"""
Background flush scheduling for the stream writer.

Periodically flushes buffered events in a background thread.
"""

import threading
from typing import Callable, Optional

from logstream.errors import LogStreamError
from logstream.utils.logging import get_logger

logger = get_logger(__name__)


class FlushScheduler:
    """
    Invokes a flush callable on a fixed interval.

    Stopping wakes the thread immediately instead of waiting out the current
    interval. A flush already running when stop() is called finishes first.
    The loop also ends on its own when the flush raises a LogStreamError.
    """

    def __init__(
        self,
        flush: Callable[[], None],
        flush_interval_ms: int = 5000,
        name: str = "logstream-flush",
    ):
        """
        Initialize flush scheduler.

        Args:
            flush: Callable performing one flush
            flush_interval_ms: Interval between flushes in milliseconds
            name: Thread name
        """
        if flush_interval_ms <= 0:
            raise ValueError("flush_interval_ms must be positive")

        self.flush_interval_ms = flush_interval_ms
        self.name = name

        self._flush = flush
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        with self._lock:
            return self._thread is not None and not self._stop_event.is_set()

    def start(self) -> None:
        """Start flush thread."""
        with self._lock:
            if self._thread is not None:
                return

            self._thread = threading.Thread(
                target=self._flush_loop,
                name=self.name,
                daemon=True,
            )
            self._thread.start()

        logger.debug("Started flush thread", name=self.name, interval_ms=self.flush_interval_ms)

    def stop(self, timeout: Optional[float] = None) -> None:
        """
        Stop flush thread and wait for it to exit.

        Args:
            timeout: Max seconds to wait (None = until any in-flight flush ends)
        """
        self._stop_event.set()

        with self._lock:
            thread = self._thread

        # A flush callback may stop its own scheduler.
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=timeout)

        logger.debug("Stopped flush thread", name=self.name)

    def _flush_loop(self) -> None:
        """Flush loop."""
        interval = self.flush_interval_ms / 1000.0

        while not self._stop_event.wait(interval):
            try:
                self._flush()

            except LogStreamError as e:
                # Sticky: recorded in the writer status, every later flush
                # would only raise it again.
                logger.info("Stopping flush thread after failure", name=self.name, error=str(e))
                self._stop_event.set()
                return

            except Exception as e:
                logger.error("Flush thread error", name=self.name, error=str(e), exc_info=True)
