"""
Event batching for the stream writer.

Packs drained events into batches that respect the PutLogEvents limits.
"""

from dataclasses import dataclass, field
from typing import Iterable, List

from logstream.client.base import LogEvent
from logstream.errors import BatchLimitError
from logstream.utils.logging import get_logger

logger = get_logger(__name__)

# See: https://docs.aws.amazon.com/AmazonCloudWatchLogs/latest/APIReference/API_PutLogEvents.html
PER_EVENT_BYTES = 26
MAXIMUM_BYTES_PER_PUT = 1048576
MAXIMUM_LOG_EVENTS_PER_PUT = 10000

# See: https://docs.aws.amazon.com/AmazonCloudWatch/latest/logs/cloudwatch_limits_cwl.html
MAXIMUM_BYTES_PER_EVENT = 262144 - PER_EVENT_BYTES


class OversizePolicy:
    """What to do with a line longer than a single event may be."""

    TRUNCATE = "truncate"  # Keep the leading bytes
    REJECT = "reject"      # Raise BatchLimitError


def event_size(event: LogEvent) -> int:
    """Size an event counts against a put: UTF-8 bytes plus fixed overhead."""
    return len(event.message.encode("utf-8")) + PER_EVENT_BYTES


def fit_message(message: str, policy: str = OversizePolicy.TRUNCATE) -> str:
    """
    Make a message fit in a single event.

    Truncation cuts on a UTF-8 character boundary.

    Args:
        message: Message text
        policy: OversizePolicy value

    Returns:
        The message, truncated if needed

    Raises:
        BatchLimitError: If the message is too long and policy is REJECT
    """
    encoded = message.encode("utf-8")
    if len(encoded) <= MAXIMUM_BYTES_PER_EVENT:
        return message

    if policy == OversizePolicy.REJECT:
        raise BatchLimitError(
            f"log event of {len(encoded)} bytes exceeds {MAXIMUM_BYTES_PER_EVENT} bytes"
        )

    logger.warning(
        "Truncating oversized log event",
        size_bytes=len(encoded),
        max_bytes=MAXIMUM_BYTES_PER_EVENT,
    )
    return encoded[:MAXIMUM_BYTES_PER_EVENT].decode("utf-8", errors="ignore")


@dataclass
class EventBatch:
    """
    An ordered batch of events for one put.

    Attributes:
        events: Events in submission order
        size_bytes: Accumulated size including per-event overhead
    """
    events: List[LogEvent] = field(default_factory=list)
    size_bytes: int = 0

    def can_fit(self, event: LogEvent) -> bool:
        """Check whether the event can join without exceeding a limit."""
        if len(self.events) >= MAXIMUM_LOG_EVENTS_PER_PUT:
            return False
        return self.size_bytes + event_size(event) <= MAXIMUM_BYTES_PER_PUT

    def append(self, event: LogEvent) -> None:
        """Add event to batch."""
        self.events.append(event)
        self.size_bytes += event_size(event)

    def __len__(self) -> int:
        return len(self.events)


def validate_batch(events: List[LogEvent]) -> None:
    """
    Check a batch against the put limits.

    Raises:
        BatchLimitError: If any limit is exceeded
    """
    if len(events) > MAXIMUM_LOG_EVENTS_PER_PUT:
        raise BatchLimitError(
            f"batch of {len(events)} events exceeds {MAXIMUM_LOG_EVENTS_PER_PUT} events"
        )

    total = 0
    for event in events:
        size = event_size(event)
        if size - PER_EVENT_BYTES > MAXIMUM_BYTES_PER_EVENT:
            raise BatchLimitError(
                f"log event of {size - PER_EVENT_BYTES} bytes exceeds "
                f"{MAXIMUM_BYTES_PER_EVENT} bytes"
            )
        total += size

    if total > MAXIMUM_BYTES_PER_PUT:
        raise BatchLimitError(
            f"batch of {total} bytes exceeds {MAXIMUM_BYTES_PER_PUT} bytes"
        )


def pack_batches(events: Iterable[LogEvent]) -> List[EventBatch]:
    """
    Split events into consecutive batches within the put limits.

    Order is preserved across and within batches.

    Args:
        events: Events in append order

    Returns:
        Non-empty batches, or an empty list when there are no events
    """
    batches: List[EventBatch] = []
    current = EventBatch()

    for event in events:
        if current.events and not current.can_fit(event):
            batches.append(current)
            current = EventBatch()
        current.append(event)

    if current.events:
        batches.append(current)

    if len(batches) > 1:
        logger.debug("Packed events into batches", batches=len(batches))

    return batches
