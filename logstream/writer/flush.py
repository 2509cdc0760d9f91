"""
Flush controller: drains the buffer and appends it in sequence-token order.

Protocol per batch:
1. attempt: put with the held token
2. on AlreadyAccepted: adopt the reported token, batch counts as stored
3. on StaleToken: resolve-and-retry-once with the reported token
4. anything else (including a failed retry): sticky writer failure

Only one flush runs at a time per stream; concurrent callers queue on the
flush lock. The held token is read and written only under that lock.
"""

import threading
from typing import Callable, List, Optional

from logstream.client.base import LogEvent, PutLogEventsResult
from logstream.errors import (
    AlreadyAcceptedError,
    BatchRejectedError,
    LogStreamError,
    SequenceTokenError,
    StaleTokenError,
    TransportError,
)
from logstream.utils.logging import get_logger
from logstream.writer.append import AppendClient
from logstream.writer.batch import pack_batches
from logstream.writer.events import EventBuffer
from logstream.writer.state import WriterStatus

logger = get_logger(__name__)


class FlushController:
    """
    Owns the stream's sequence token and drives append retries.

    Attributes:
        append_client: Remote append wrapper
        buffer: Pending events
        status: Shared writer status receiving failures
    """

    def __init__(
        self,
        append_client: AppendClient,
        buffer: EventBuffer,
        status: WriterStatus,
        on_failure: Optional[Callable[[Exception], None]] = None,
    ):
        """
        Initialize flush controller.

        Args:
            append_client: Remote append wrapper
            buffer: Buffer to drain
            status: Writer status to record failures in
            on_failure: Called once with the error that failed the writer
        """
        self.append_client = append_client
        self.buffer = buffer
        self.status = status

        self._on_failure = on_failure
        self._sequence_token: Optional[str] = None
        self._token_resolved = False
        self._lock = threading.Lock()

    @property
    def sequence_token(self) -> Optional[str]:
        """Token the next append will use."""
        with self._lock:
            return self._sequence_token

    @property
    def group(self) -> str:
        return self.append_client.identity.group_name

    @property
    def stream(self) -> str:
        return self.append_client.identity.stream_name

    def flush(self) -> None:
        """
        Append everything currently buffered.

        A no-op when the buffer is empty.

        Raises:
            LogStreamError: The failure this flush produced, or the stored
                failure from an earlier one (no remote call is made then)
        """
        failure: Optional[LogStreamError] = None
        first_failure = False

        with self._lock:
            self.status.check_flushable()

            events = self.buffer.drain()
            if not events:
                return

            self._bootstrap_token()

            for batch in pack_batches(events):
                try:
                    self._append(batch.events)
                except LogStreamError as e:
                    failure = e
                    first_failure = self._fail(e)
                    break

        if failure is not None:
            # Outside the lock: the callback may close the writer.
            if first_failure and self._on_failure is not None:
                self._on_failure(failure)
            raise failure

    def _bootstrap_token(self) -> None:
        """Look up the stream's token once, before the first append."""
        if self._token_resolved or self._sequence_token is not None:
            return

        self._token_resolved = True

        try:
            self._sequence_token = self.append_client.lookup_token()
            logger.debug(
                "Resolved initial sequence token",
                group=self.group,
                stream=self.stream,
                found=self._sequence_token is not None,
            )
        except LogStreamError as e:
            logger.warning(
                "Sequence token lookup failed, appending without token",
                error=str(e),
                group=self.group,
                stream=self.stream,
            )

    def _append(self, events: List[LogEvent]) -> None:
        """Append one batch, recovering from sequence token conflicts."""
        try:
            result = self._attempt(events, self._sequence_token)

        except AlreadyAcceptedError as e:
            logger.warning(
                "Data already accepted, ignoring error",
                error=str(e),
                group=self.group,
                stream=self.stream,
            )
            self._sequence_token = e.expected_token
            return

        except StaleTokenError as e:
            result = self._resolve_and_retry(events, e)

        self._commit(result)

    def _attempt(self, events: List[LogEvent], token: Optional[str]) -> PutLogEventsResult:
        return self.append_client.put_events(events, token)

    def _resolve_and_retry(
        self,
        events: List[LogEvent],
        conflict: StaleTokenError,
    ) -> PutLogEventsResult:
        """
        Retry once with the token carried by the conflict.

        Raises:
            TransportError: If the retry hits another sequence conflict
            LogStreamError: Any other retry failure, unchanged
        """
        logger.info(
            "Sequence token stale, retrying with expected token",
            group=self.group,
            stream=self.stream,
        )

        try:
            return self._attempt(events, conflict.expected_token)
        except SequenceTokenError as e:
            raise TransportError(
                f"sequence token conflict persisted after retry: {e}"
            ) from e

    def _commit(self, result: PutLogEventsResult) -> None:
        """Store the token of an accepted put, then surface partial rejection."""
        self._sequence_token = result.next_sequence_token

        if result.rejected is not None:
            raise BatchRejectedError(
                too_new_start_index=result.rejected.too_new_start_index,
                too_old_end_index=result.rejected.too_old_end_index,
                expired_end_index=result.rejected.expired_end_index,
            )

    def _fail(self, error: Exception) -> bool:
        """Record a sticky failure; True if it is the writer's first."""
        first = self.status.error is None
        self.status.fail(error)

        logger.error(
            "Error flushing log events",
            error=str(error),
            group=self.group,
            stream=self.stream,
        )

        return first
