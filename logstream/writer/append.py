"""
Append client for a single remote stream.

Wraps exactly one PutLogEvents call per invocation. No retries happen here;
the flush controller owns the retry policy.
"""

from typing import List, Optional

from logstream.client.base import LogEvent, LogsTransport, PutLogEventsResult, StreamIdentity
from logstream.errors import LogStreamError, SequenceTokenError, StaleTokenError, TransportError
from logstream.utils.logging import get_logger
from logstream.writer.batch import validate_batch

logger = get_logger(__name__)


class AppendClient:
    """
    Performs appends and token lookups against one stream.

    Errors leave this class classified as one of:
    - StaleTokenError: the token is not current (carries the current one)
    - AlreadyAcceptedError: the batch was already stored (carries the token
      that resulted from the earlier put)
    - TransportError / BatchRejectedError / BatchLimitError: everything else
    """

    def __init__(self, identity: StreamIdentity, transport: LogsTransport):
        """
        Initialize append client.

        Args:
            identity: Target stream
            transport: Remote log service
        """
        self.identity = identity
        self.transport = transport

    def put_events(
        self,
        events: List[LogEvent],
        sequence_token: Optional[str],
    ) -> PutLogEventsResult:
        """
        Append one batch.

        Args:
            events: Events in timestamp order
            sequence_token: Current token (None for a fresh stream)

        Returns:
            Result carrying the next sequence token

        Raises:
            BatchLimitError: If the batch exceeds put limits (nothing sent)
            SequenceTokenError: On a sequence conflict
            TransportError: On any other failure
        """
        validate_batch(events)

        try:
            return self.transport.put_log_events(
                self.identity.group_name,
                self.identity.stream_name,
                events,
                sequence_token,
            )

        except SequenceTokenError as e:
            if not isinstance(e, StaleTokenError):
                logger.info(
                    "Append conflicted with sequence token",
                    error=str(e),
                    group=self.identity.group_name,
                    stream=self.identity.stream_name,
                )
            raise

        except LogStreamError as e:
            logger.error(
                "Failed to put log events",
                error=str(e),
                code=getattr(e, "code", None),
                group=self.identity.group_name,
                stream=self.identity.stream_name,
                events=len(events),
            )
            raise

        except Exception as e:
            logger.error(
                "Failed to put log events",
                error=str(e),
                group=self.identity.group_name,
                stream=self.identity.stream_name,
                events=len(events),
            )
            raise TransportError(f"put_log_events failed: {e}") from e

    def lookup_token(self) -> Optional[str]:
        """
        Fetch the stream's current upload sequence token.

        Returns:
            Token, or None if the stream has none yet or was not found

        Raises:
            TransportError: If the lookup call fails
        """
        try:
            description = self.transport.describe_log_stream(
                self.identity.group_name,
                self.identity.stream_name,
            )
        except LogStreamError:
            raise
        except Exception as e:
            raise TransportError(f"describe_log_stream failed: {e}") from e

        if description is None:
            return None

        return description.upload_sequence_token
