"""
Log group provisioning.

A Group references a remote log group and creates writers and readers for
its streams. Creation is idempotent: an existing group or stream is reused.
"""

from typing import Optional

from logstream.client.base import LogsTransport, StreamIdentity
from logstream.errors import ResourceAlreadyExistsError
from logstream.reader import StreamReader
from logstream.utils.logging import get_logger
from logstream.utils.throttle import RequestThrottle
from logstream.writer.writer import StreamWriter, WriterConfig

logger = get_logger(__name__)


class Group:
    """
    A remote log group and factory for its stream writers and readers.

    Example:
        group = Group.attach("my-app", CloudWatchLogsTransport())

        with group.attach_stream("web-1") as writer:
            writer.write(b"hello\\n")
    """

    def __init__(self, name: str, transport: LogsTransport):
        """
        Reference a log group without contacting the service.

        Args:
            name: Log group name
            transport: Remote log service
        """
        self.name = name
        self.transport = transport

    @classmethod
    def attach(cls, name: str, transport: LogsTransport) -> "Group":
        """
        Reference a log group, creating it if it does not exist.

        Args:
            name: Log group name
            transport: Remote log service

        Returns:
            Group instance

        Raises:
            TransportError: If lookup or creation fails
        """
        if transport.describe_log_group(name):
            return cls(name, transport)

        try:
            transport.create_log_group(name)
            logger.info("Created log group", group=name)
        except ResourceAlreadyExistsError:
            logger.debug("Log group created concurrently", group=name)

        return cls(name, transport)

    def create_or_attach_stream(self, stream: str) -> StreamIdentity:
        """
        Ensure a stream exists in this group.

        Args:
            stream: Log stream name

        Returns:
            Identity of the stream

        Raises:
            TransportError: If creation fails for any reason other than the
                stream already existing
        """
        try:
            self.transport.create_log_stream(self.name, stream)
            logger.info("Created log stream", group=self.name, stream=stream)
        except ResourceAlreadyExistsError:
            logger.debug("Attached to existing log stream", group=self.name, stream=stream)

        return StreamIdentity(group_name=self.name, stream_name=stream)

    def attach_stream(
        self,
        stream: str,
        config: Optional[WriterConfig] = None,
        **kwargs,
    ) -> StreamWriter:
        """
        Ensure a stream exists and open a writer for it.

        Args:
            stream: Log stream name
            config: Writer configuration
            **kwargs: Writer config overrides

        Returns:
            Running StreamWriter
        """
        identity = self.create_or_attach_stream(stream)
        return StreamWriter(
            identity.group_name,
            identity.stream_name,
            self.transport,
            config=config,
            **kwargs,
        )

    def open(
        self,
        stream: str,
        throttle: Optional[RequestThrottle] = None,
        start_from_head: bool = True,
    ) -> StreamReader:
        """
        Open a reader for a stream.

        Args:
            stream: Log stream name
            throttle: Shared request throttle
            start_from_head: Read from the oldest events

        Returns:
            StreamReader instance
        """
        return StreamReader(
            self.name,
            stream,
            self.transport,
            throttle=throttle,
            start_from_head=start_from_head,
        )
