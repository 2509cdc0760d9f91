#!/usr/bin/env python3
"""
Command-line entry point for logstream.

Usage:
    # Ship a process's output to a stream
    my-server 2>&1 | python -m logstream.main write --group my-app --stream web-1

    # Print a stream
    python -m logstream.main read --group my-app --stream web-1 --follow
"""

import argparse
import sys
import time
from typing import List, Optional

from logstream.client.base import LogsTransport
from logstream.client.cloudwatch import CloudWatchLogsTransport
from logstream.errors import LogStreamError
from logstream.group import Group
from logstream.utils.config import Config
from logstream.utils.logging import (
    bind_stream_context,
    clear_stream_context,
    configure_logging,
    get_logger,
)
from logstream.writer.writer import WriterConfig

logger = get_logger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description='logstream - buffered writer and reader for CloudWatch log streams'
    )

    parser.add_argument(
        '--config',
        type=str,
        default=None,
        help='YAML configuration file'
    )

    parser.add_argument(
        '--region',
        type=str,
        default=None,
        help='AWS region (default: from config or AWS_REGION)'
    )

    parser.add_argument(
        '--endpoint-url',
        type=str,
        default=None,
        help='Alternate service endpoint, e.g. LocalStack'
    )

    parser.add_argument(
        '--log-level',
        type=str,
        default=None,
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Logging level (default: WARNING)'
    )

    parser.add_argument(
        '--log-format',
        type=str,
        default='console',
        choices=['json', 'console'],
        help='Diagnostic log format (default: console)'
    )

    subparsers = parser.add_subparsers(dest='command', required=True)

    write = subparsers.add_parser('write', help='Copy stdin lines into a log stream')
    write.add_argument('--group', type=str, default=None, help='Log group name')
    write.add_argument('--stream', type=str, required=True, help='Log stream name')
    write.add_argument(
        '--flush-interval-ms',
        type=int,
        default=None,
        help='Background flush interval (default: 5000)'
    )

    read = subparsers.add_parser('read', help='Print the events of a log stream')
    read.add_argument('--group', type=str, default=None, help='Log group name')
    read.add_argument('--stream', type=str, required=True, help='Log stream name')
    read.add_argument(
        '--follow',
        action='store_true',
        help='Keep polling for new events'
    )
    read.add_argument(
        '--poll-interval-ms',
        type=int,
        default=1000,
        help='Delay between polls when following (default: 1000)'
    )

    return parser.parse_args(argv)


def run_write(args: argparse.Namespace, group: Group, config: Config) -> int:
    """Copy stdin into the stream until EOF."""
    writer_config = WriterConfig.from_config(config)
    if args.flush_interval_ms is not None:
        writer_config.flush_interval_ms = args.flush_interval_ms

    writer = group.attach_stream(args.stream, config=writer_config)

    try:
        for line in sys.stdin.buffer:
            writer.write(line)
    finally:
        writer.close()

    return 0


def run_read(args: argparse.Namespace, group: Group) -> int:
    """Print stream events to stdout."""
    reader = group.open(args.stream)

    if not args.follow:
        for record in reader:
            print(record.message)
        return 0

    while True:
        records = reader.poll()
        for record in records:
            print(record.message, flush=True)
        if not records:
            time.sleep(args.poll_interval_ms / 1000.0)


def main(argv: Optional[List[str]] = None, transport: Optional[LogsTransport] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    config = Config(args.config)
    if args.region:
        config.set("aws.region", args.region)
    if args.endpoint_url:
        config.set("aws.endpoint_url", args.endpoint_url)

    configure_logging(
        log_level=args.log_level or config.get("logging.level", "WARNING"),
        log_format=args.log_format,
        log_output="stderr",
    )

    group_name = args.group or config.get("stream.group")
    if not group_name:
        logger.error("No log group given (use --group or LOGSTREAM_GROUP)")
        return 2

    bind_stream_context(group_name, args.stream)

    try:
        if transport is None:
            transport = CloudWatchLogsTransport.from_config(config)

        if args.command == 'write':
            return run_write(args, Group.attach(group_name, transport), config)
        return run_read(args, Group(group_name, transport))

    except KeyboardInterrupt:
        logger.info("Received interrupt signal")
        return 130

    except LogStreamError as e:
        logger.error("logstream failed", command=args.command, error=str(e))
        return 1

    finally:
        clear_stream_context()


if __name__ == '__main__':
    sys.exit(main())
