"""
Request throttling for remote calls.

CloudWatch Logs limits read requests per account, so readers pace their
requests through a token bucket before each call.
"""

import threading
import time
from typing import Callable, Dict

from logstream.utils.logging import get_logger

logger = get_logger(__name__)

# Float refills land a hair under a whole token; count those as whole.
TOKEN_EPSILON = 1e-9


class RequestThrottle:
    """
    Thread-safe token bucket limiting requests per second.

    The bucket starts full, so a burst of up to ``requests_per_second``
    calls passes immediately.
    """

    def __init__(
        self,
        requests_per_second: float = 10.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize request throttle.

        Args:
            requests_per_second: Maximum sustained request rate
            clock: Monotonic clock in seconds
            sleep: Sleep function used while waiting for tokens
        """
        if requests_per_second <= 0:
            raise ValueError("requests_per_second must be positive")

        self.requests_per_second = float(requests_per_second)
        self.max_tokens = max(1.0, self.requests_per_second)
        self.tokens = self.max_tokens

        self._clock = clock
        self._sleep = sleep
        self._last_update = clock()
        self._lock = threading.Lock()

        self.total_requests = 0
        self.total_wait_time_ms = 0

    def acquire(self) -> float:
        """
        Take one request token, blocking until one is available.

        Returns:
            Seconds spent waiting
        """
        waited = 0.0

        while True:
            with self._lock:
                self._refill_tokens()

                if self.tokens >= 1.0 - TOKEN_EPSILON:
                    self.tokens = max(0.0, self.tokens - 1.0)
                    self.total_requests += 1
                    self.total_wait_time_ms += int(waited * 1000)
                    break

                wait_time = (1.0 - self.tokens) / self.requests_per_second

            self._sleep(wait_time)
            waited += wait_time

        if waited > 0.1:
            logger.debug("Throttled request", wait_ms=int(waited * 1000))

        return waited

    def _refill_tokens(self) -> None:
        """Refill token bucket based on elapsed time."""
        now = self._clock()
        elapsed = now - self._last_update

        self.tokens = min(self.max_tokens, self.tokens + elapsed * self.requests_per_second)
        self._last_update = now

    def get_stats(self) -> Dict:
        """Get throttling statistics."""
        return {
            "requests_per_second": self.requests_per_second,
            "current_tokens": round(self.tokens, 3),
            "total_requests": self.total_requests,
            "total_wait_time_ms": self.total_wait_time_ms,
        }
