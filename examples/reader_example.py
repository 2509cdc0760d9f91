#!/usr/bin/env python3
"""
Reader example: tail a CloudWatch log stream.
"""

import argparse
import time

from logstream.client.cloudwatch import CloudWatchLogsTransport
from logstream.group import Group


def main():
    parser = argparse.ArgumentParser(description='logstream Reader Example')
    parser.add_argument('--region', default='us-east-1', help='AWS region')
    parser.add_argument('--endpoint-url', default=None, help='Alternate endpoint')
    parser.add_argument('--group', default='logstream-example', help='Log group name')
    parser.add_argument('--stream', default='writer-example', help='Log stream name')
    parser.add_argument('--timeout', type=int, default=30, help='Seconds to follow the stream')
    args = parser.parse_args()

    transport = CloudWatchLogsTransport(region_name=args.region, endpoint_url=args.endpoint_url)
    reader = Group(args.group, transport).open(args.stream)

    print(f"Reading {args.group}/{args.stream} for {args.timeout}s (Ctrl+C to stop)")

    count = 0
    deadline = time.time() + args.timeout

    try:
        while time.time() < deadline:
            records = reader.poll()
            for record in records:
                count += 1
                print(f"[{record.timestamp}] {record.message}")
            if not records:
                time.sleep(1.0)
    except KeyboardInterrupt:
        print("\nStopped")

    print(f"\nRead {count} events")


if __name__ == '__main__':
    main()
