"""
Stream reader for pulling events from a remote log stream.

Pages through a stream with forward tokens, pacing requests through a
throttle so composed readers stay within the service's read rate.
"""

from typing import Iterator, List, Optional, Tuple

from logstream.client.base import LogEvent, LogsTransport, StreamIdentity
from logstream.utils.logging import get_logger
from logstream.utils.throttle import RequestThrottle

logger = get_logger(__name__)

# GetLogEvents allows 10 requests per second per account.
DEFAULT_READ_REQUESTS_PER_SECOND = 10.0


class StreamReader:
    """
    Pull-based reader for one remote log stream.

    Read errors propagate to the caller; they are independent of any writer
    on the same stream.

    Example:
        reader = StreamReader("my-group", "my-stream", transport)

        records, token = reader.read()
        while records:
            for record in records:
                print(record.message)
            records, token = reader.read(token)
    """

    def __init__(
        self,
        group: str,
        stream: str,
        transport: LogsTransport,
        throttle: Optional[RequestThrottle] = None,
        start_from_head: bool = True,
    ):
        """
        Initialize stream reader.

        Args:
            group: Log group name
            stream: Log stream name
            transport: Remote log service
            throttle: Request throttle (shared across readers to enforce an
                account-wide limit)
            start_from_head: Read from the oldest events when no token is given
        """
        self.identity = StreamIdentity(group_name=group, stream_name=stream)
        self.transport = transport
        self.throttle = throttle or RequestThrottle(DEFAULT_READ_REQUESTS_PER_SECOND)
        self.start_from_head = start_from_head

        self._next_token: Optional[str] = None

    def read(self, page_token: Optional[str] = None) -> Tuple[List[LogEvent], Optional[str]]:
        """
        Read one page of events.

        Args:
            page_token: Token returned by a previous read (None = start)

        Returns:
            Tuple of (records, next_page_token)

        Raises:
            TransportError: If the remote call fails
        """
        self.throttle.acquire()

        page = self.transport.get_log_events(
            self.identity.group_name,
            self.identity.stream_name,
            next_token=page_token,
            start_from_head=self.start_from_head,
        )

        logger.debug(
            "Read log events",
            group=self.identity.group_name,
            stream=self.identity.stream_name,
            count=len(page.events),
        )

        return page.events, page.next_token

    def poll(self) -> List[LogEvent]:
        """
        Read the next page, continuing from the previous poll.

        Returns:
            New records (empty when caught up)
        """
        records, next_token = self.read(self._next_token)
        if next_token is not None:
            self._next_token = next_token
        return records

    def __iter__(self) -> Iterator[LogEvent]:
        """Iterate over every event currently in the stream, then stop."""
        token: Optional[str] = None

        while True:
            records, next_token = self.read(token)
            yield from records

            # The service repeats the forward token once the end is reached.
            if not records or next_token is None or next_token == token:
                return
            token = next_token
