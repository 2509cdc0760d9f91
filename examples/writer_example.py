#!/usr/bin/env python3
"""
Writer example: ship JSON lines to a CloudWatch log stream.
"""

import argparse
import json
import time

from logstream.client.cloudwatch import CloudWatchLogsTransport
from logstream.group import Group


def main():
    parser = argparse.ArgumentParser(description='logstream Writer Example')
    parser.add_argument('--region', default='us-east-1', help='AWS region')
    parser.add_argument('--endpoint-url', default=None, help='Alternate endpoint, e.g. http://localhost:4566')
    parser.add_argument('--group', default='logstream-example', help='Log group name')
    parser.add_argument('--stream', default='writer-example', help='Log stream name')
    parser.add_argument('--messages', type=int, default=100, help='Number of lines to write')
    parser.add_argument('--rate', type=int, default=10, help='Lines per second')
    args = parser.parse_args()

    print(f"Writing {args.messages} lines to {args.group}/{args.stream} at {args.rate} lines/sec")

    transport = CloudWatchLogsTransport(region_name=args.region, endpoint_url=args.endpoint_url)
    group = Group.attach(args.group, transport)

    delay = 1.0 / args.rate

    with group.attach_stream(args.stream, flush_interval_ms=1000) as writer:
        for i in range(args.messages):
            record = {
                'id': i,
                'value': f'Message number {i}',
            }
            writer.write(json.dumps(record) + '\n')

            if (i + 1) % 10 == 0:
                print(f"Wrote {i + 1} lines...")

            time.sleep(delay)

    print(f"\n[OK] Delivered {args.messages} lines!")


if __name__ == '__main__':
    main()
