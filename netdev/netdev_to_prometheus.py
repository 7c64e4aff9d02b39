#!/usr/bin/env python3
"""
Collect network device statistics and expose them as Prometheus metrics,
either on a scrape endpoint or pushed with Prometheus remote write.
"""

import argparse
import logging
import re
import socket
import sys
import time

from prometheus_client import CollectorRegistry, generate_latest, start_http_server

from .errors import NetDevError
from .exporter import NetDevCollector
from .parser import PROC_NET_DEV
from .utils import create_source, prepare_headers, send_metrics_remote_write, setup_logger


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Collect network device statistics and export them to Prometheus'
    )
    parser.add_argument(
        '--ignored-devices',
        default='^$',
        help='Regexp of net devices to ignore (default: ^$)'
    )
    parser.add_argument(
        '--proc-net-dev',
        default=PROC_NET_DEV,
        help=f'Path of the network device statistics file on Linux (default: {PROC_NET_DEV})'
    )
    parser.add_argument(
        '--namespace',
        default='node',
        help='Prefix for all metric names (default: node)'
    )
    parser.add_argument(
        '--listen-port',
        type=int,
        help='Serve metrics for scraping on this port'
    )
    parser.add_argument(
        '--remote-write-url',
        help='Prometheus remote write endpoint URL'
    )
    parser.add_argument(
        '--remote-write-header',
        action='append',
        help='Additional header for remote write (format: Key=Value)'
    )
    parser.add_argument(
        '--instance-label',
        default=socket.gethostname(),
        help='Value for the instance label added to all pushed metrics (default: hostname)'
    )
    parser.add_argument(
        '--interval',
        type=float,
        default=15.0,
        help='Seconds between remote write cycles (default: 15)'
    )
    parser.add_argument(
        '--count',
        type=int,
        default=1,
        help='Number of remote write cycles, 0 to run forever (default: 1)'
    )
    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Collect and convert metrics without sending'
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Print every metric sample sent and enable debug logging'
    )
    parser.add_argument(
        '--debug-file',
        help='Save the uncompressed payload data (before snappy compression) as JSON to the specified file for debugging'
    )
    return parser


def push_loop(args, registry: CollectorRegistry) -> bool:
    """Run the remote write cycles; return False if the last cycle failed."""
    headers = prepare_headers(args.remote_write_header)
    cycle = 0
    ok = False
    while args.count == 0 or cycle < args.count:
        if cycle > 0:
            time.sleep(args.interval)
        cycle += 1
        try:
            ok = send_metrics_remote_write(
                args.remote_write_url, headers, registry, args.instance_label,
                args.verbose, args.dry_run, args.debug_file
            )
        except NetDevError as e:
            print(f"Error: couldn't collect network device statistics: {e}", file=sys.stderr)
            ok = False
    return ok


def main(argv=None):
    arg_parser = build_arg_parser()
    args = arg_parser.parse_args(argv)

    if args.interval <= 0:
        arg_parser.error(f"--interval must be positive, got {args.interval}")
    if args.count < 0:
        arg_parser.error(f"--count must be 0 or more, got {args.count}")

    try:
        re.compile(args.ignored_devices)
    except re.error as e:
        print(f"Error: Invalid --ignored-devices pattern '{args.ignored_devices}': {e}", file=sys.stderr)
        sys.exit(1)

    setup_logger(level=logging.DEBUG if args.verbose else logging.INFO)

    try:
        source = create_source(proc_net_dev=args.proc_net_dev, ignored_devices=args.ignored_devices)
    except NetDevError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    registry = CollectorRegistry()
    NetDevCollector(source, namespace=args.namespace, registry=registry)

    if args.listen_port is not None:
        start_http_server(args.listen_port, registry=registry)
        print(f"Serving network device metrics on port {args.listen_port}")

    if args.remote_write_url:
        if not push_loop(args, registry) and args.listen_port is None:
            sys.exit(1)

    if args.listen_port is not None:
        while True:
            time.sleep(args.interval)

    if not args.remote_write_url:
        try:
            print(generate_latest(registry).decode('utf-8'), end='')
        except NetDevError as e:
            print(f"Error: couldn't collect network device statistics: {e}", file=sys.stderr)
            sys.exit(1)


if __name__ == '__main__':
    main()
