"""
Error taxonomy for logstream.

Callers see ``ClosedStreamError``, ``BatchRejectedError``, ``BatchLimitError``
and ``TransportError`` (with its subclasses). Sequence token conflicts
(``StaleTokenError``, ``AlreadyAcceptedError``) are raised by transports and
recovered inside the flush path; they never escape a writer.
"""

from typing import Optional


class LogStreamError(Exception):
    """Base exception for logstream operations."""
    pass


class ClosedStreamError(LogStreamError):
    """Write or flush on a closed stream writer."""

    def __init__(self, message: str = "write on closed log stream"):
        super().__init__(message)


class TransportError(LogStreamError):
    """
    Remote call failed (network, auth, throttling, service error).

    Attributes:
        code: Service error code when one is known
    """

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.code = code


class ResourceAlreadyExistsError(TransportError):
    """Group or stream already exists."""
    pass


class ResourceNotFoundError(TransportError):
    """Group or stream does not exist."""
    pass


class ThrottlingError(TransportError):
    """Request rate exceeded the service limit."""
    pass


class SequenceTokenError(LogStreamError):
    """
    Append conflicted with the stream's sequence token.

    Attributes:
        expected_token: Token the service reported as current
    """

    def __init__(self, message: str, expected_token: Optional[str]):
        super().__init__(message)
        self.expected_token = expected_token


class StaleTokenError(SequenceTokenError):
    """Supplied sequence token is no longer the stream's current token."""
    pass


class AlreadyAcceptedError(SequenceTokenError):
    """This exact batch was already durably appended."""
    pass


class BatchLimitError(LogStreamError, ValueError):
    """Batch or event exceeds the service's size limits."""
    pass


class BatchRejectedError(LogStreamError):
    """
    Some events of an accepted batch were rejected by the service.

    Indices refer to positions in the submitted batch, as reported by the
    service; ``None`` means the category did not occur.
    """

    def __init__(
        self,
        too_new_start_index: Optional[int] = None,
        too_old_end_index: Optional[int] = None,
        expired_end_index: Optional[int] = None,
    ):
        super().__init__(
            "log events were rejected "
            f"(too_new_start_index={too_new_start_index}, "
            f"too_old_end_index={too_old_end_index}, "
            f"expired_end_index={expired_end_index})"
        )
        self.too_new_start_index = too_new_start_index
        self.too_old_end_index = too_old_end_index
        self.expired_end_index = expired_end_index
