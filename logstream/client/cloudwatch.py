"""
AWS CloudWatch Logs transport.

Adapts a boto3 ``logs`` client to the ``LogsTransport`` protocol and maps
service error codes onto the logstream error taxonomy.

Invariants:
    - No retries here; botocore's own retry handler is the only one below us
    - Sequence conflicts carry the token the service reported as current
"""

from typing import Any, Dict, Optional, Sequence

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from logstream.client.base import (
    LogEvent,
    LogEventsPage,
    PutLogEventsResult,
    RejectedEventsInfo,
    StreamDescription,
)
from logstream.errors import (
    AlreadyAcceptedError,
    ResourceAlreadyExistsError,
    ResourceNotFoundError,
    StaleTokenError,
    ThrottlingError,
    TransportError,
)
from logstream.utils.config import Config
from logstream.utils.logging import get_logger

logger = get_logger(__name__)

# See: https://docs.aws.amazon.com/AmazonCloudWatchLogs/latest/APIReference/API_PutLogEvents.html
INVALID_SEQUENCE_TOKEN_CODE = "InvalidSequenceTokenException"
DATA_ALREADY_ACCEPTED_CODE = "DataAlreadyAcceptedException"
RESOURCE_ALREADY_EXISTS_CODE = "ResourceAlreadyExistsException"
RESOURCE_NOT_FOUND_CODE = "ResourceNotFoundException"
THROTTLING_CODE = "ThrottlingException"


def _expected_token(error: ClientError) -> Optional[str]:
    """
    Extract the current sequence token from a conflict error.

    The service returns it as ``expectedSequenceToken``; older responses only
    carry it as the last word of the message.
    """
    token = error.response.get("expectedSequenceToken")
    if token:
        return token

    message = error.response.get("Error", {}).get("Message", "")
    parts = message.split()
    if not parts or parts[-1] == "null":
        return None
    return parts[-1]


def translate_client_error(error: ClientError) -> Exception:
    """
    Map a botocore ClientError onto the logstream taxonomy.

    Args:
        error: Error raised by the boto3 client

    Returns:
        Exception to raise in its place
    """
    code = error.response.get("Error", {}).get("Code", "")
    message = error.response.get("Error", {}).get("Message", str(error))

    if code == INVALID_SEQUENCE_TOKEN_CODE:
        return StaleTokenError(message, expected_token=_expected_token(error))
    if code == DATA_ALREADY_ACCEPTED_CODE:
        return AlreadyAcceptedError(message, expected_token=_expected_token(error))
    if code == RESOURCE_ALREADY_EXISTS_CODE:
        return ResourceAlreadyExistsError(message, code=code)
    if code == RESOURCE_NOT_FOUND_CODE:
        return ResourceNotFoundError(message, code=code)
    if code == THROTTLING_CODE:
        return ThrottlingError(message, code=code)
    return TransportError(f"{code}: {message}" if code else message, code=code or None)


class CloudWatchLogsTransport:
    """
    ``LogsTransport`` backed by boto3.

    Example:
        >>> transport = CloudWatchLogsTransport(region_name="us-east-1")
        >>> transport.create_log_stream("my-group", "my-stream")
    """

    def __init__(
        self,
        client: Any = None,
        region_name: Optional[str] = None,
        endpoint_url: Optional[str] = None,
    ):
        """
        Initialize transport.

        Args:
            client: Pre-built boto3 ``logs`` client (overrides region/endpoint)
            region_name: AWS region
            endpoint_url: Alternate endpoint (e.g. LocalStack)
        """
        if client is None:
            client = boto3.client(
                "logs",
                region_name=region_name,
                endpoint_url=endpoint_url,
            )

        self._client = client

        logger.debug(
            "Initialized CloudWatch Logs transport",
            region=getattr(getattr(client, "meta", None), "region_name", None),
        )

    @classmethod
    def from_config(cls, config: Config) -> "CloudWatchLogsTransport":
        """Build a transport from the ``aws.*`` configuration keys."""
        return cls(
            region_name=config.get("aws.region"),
            endpoint_url=config.get("aws.endpoint_url"),
        )

    def _call(self, operation: str, **kwargs) -> Dict[str, Any]:
        """Invoke a client operation, translating botocore errors."""
        try:
            return getattr(self._client, operation)(**kwargs)
        except ClientError as e:
            raise translate_client_error(e) from e
        except BotoCoreError as e:
            raise TransportError(f"{operation} failed: {e}") from e

    def describe_log_group(self, group: str) -> bool:
        """
        Check whether a log group exists.

        Args:
            group: Log group name (matched exactly, not as a prefix)

        Returns:
            True if the group exists

        Raises:
            TransportError: If the describe call fails
        """
        try:
            paginator = self._client.get_paginator("describe_log_groups")
            for page in paginator.paginate(logGroupNamePrefix=group):
                for log_group in page.get("logGroups", []):
                    if log_group.get("logGroupName") == group:
                        return True
        except ClientError as e:
            raise translate_client_error(e) from e
        except BotoCoreError as e:
            raise TransportError(f"describe_log_groups failed: {e}") from e
        return False

    def create_log_group(self, group: str) -> None:
        """
        Create a log group.

        Args:
            group: Log group name

        Raises:
            ResourceAlreadyExistsError: If the group already exists
            TransportError: On any other failure
        """
        self._call("create_log_group", logGroupName=group)

    def create_log_stream(self, group: str, stream: str) -> None:
        """
        Create a log stream in an existing group.

        Args:
            group: Log group name
            stream: Log stream name

        Raises:
            ResourceAlreadyExistsError: If the stream already exists
            ResourceNotFoundError: If the group does not exist
            TransportError: On any other failure
        """
        self._call("create_log_stream", logGroupName=group, logStreamName=stream)

    def describe_log_stream(self, group: str, stream: str) -> Optional[StreamDescription]:
        """
        Look up a stream and its current upload sequence token.

        Args:
            group: Log group name
            stream: Log stream name (matched exactly, not as a prefix)

        Returns:
            StreamDescription, or None if the stream does not exist

        Raises:
            ResourceNotFoundError: If the group does not exist
            TransportError: On any other failure
        """
        try:
            paginator = self._client.get_paginator("describe_log_streams")
            pages = paginator.paginate(logGroupName=group, logStreamNamePrefix=stream)
            for page in pages:
                for log_stream in page.get("logStreams", []):
                    if log_stream.get("logStreamName") == stream:
                        return StreamDescription(
                            name=stream,
                            upload_sequence_token=log_stream.get("uploadSequenceToken"),
                        )
        except ClientError as e:
            raise translate_client_error(e) from e
        except BotoCoreError as e:
            raise TransportError(f"describe_log_streams failed: {e}") from e
        return None

    def put_log_events(
        self,
        group: str,
        stream: str,
        events: Sequence[LogEvent],
        sequence_token: Optional[str],
    ) -> PutLogEventsResult:
        """
        Append one batch of events with PutLogEvents.

        Args:
            group: Log group name
            stream: Log stream name
            events: Events in timestamp order, within the put limits
            sequence_token: Current token (None for a fresh stream; omitted
                from the request then)

        Returns:
            Result with the next sequence token and any rejected-event info

        Raises:
            StaleTokenError: InvalidSequenceTokenException
            AlreadyAcceptedError: DataAlreadyAcceptedException
            TransportError: On any other failure
        """
        kwargs: Dict[str, Any] = {
            "logGroupName": group,
            "logStreamName": stream,
            "logEvents": [
                {"timestamp": event.timestamp, "message": event.message}
                for event in events
            ],
        }
        if sequence_token is not None:
            kwargs["sequenceToken"] = sequence_token

        response = self._call("put_log_events", **kwargs)

        rejected = None
        info = response.get("rejectedLogEventsInfo")
        if info:
            rejected = RejectedEventsInfo(
                too_new_start_index=info.get("tooNewLogEventStartIndex"),
                too_old_end_index=info.get("tooOldLogEventEndIndex"),
                expired_end_index=info.get("expiredLogEventEndIndex"),
            )

        return PutLogEventsResult(
            next_sequence_token=response.get("nextSequenceToken"),
            rejected=rejected,
        )

    def get_log_events(
        self,
        group: str,
        stream: str,
        next_token: Optional[str] = None,
        start_from_head: bool = True,
    ) -> LogEventsPage:
        """
        Read one page of events.

        Args:
            group: Log group name
            stream: Log stream name
            next_token: Forward token from a previous page (None = start)
            start_from_head: Start at the oldest events when no token is given

        Returns:
            LogEventsPage carrying the next forward token

        Raises:
            ResourceNotFoundError: If the group or stream does not exist
            TransportError: On any other failure
        """
        kwargs: Dict[str, Any] = {
            "logGroupName": group,
            "logStreamName": stream,
            "startFromHead": start_from_head,
        }
        if next_token is not None:
            kwargs["nextToken"] = next_token

        response = self._call("get_log_events", **kwargs)

        return LogEventsPage(
            events=[
                LogEvent(message=event["message"], timestamp=event["timestamp"])
                for event in response.get("events", [])
            ],
            next_token=response.get("nextForwardToken"),
        )
