"""Utility functions for network device statistics collection."""

import logging
import sys
from typing import Dict, List, Optional

from prometheus_client import CollectorRegistry

from .errors import SourceUnavailableError
from .ifaddrs import IfaddrsWalker, layout_for_platform
from .models import StatsSource
from .parser import PROC_NET_DEV, NetDevParser

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s [%(levelname)s] %(message)s'


def setup_logger(name: str = 'netdev', level: int = logging.INFO) -> logging.Logger:
    """Attach a stderr handler to the package logger."""
    pkg_logger = logging.getLogger(name)
    pkg_logger.setLevel(level)

    if not pkg_logger.handlers:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        pkg_logger.addHandler(console_handler)

    return pkg_logger


def prepare_headers(remote_write_headers: Optional[List[str]]) -> Dict[str, str]:
    """Prepare headers dictionary from command-line arguments."""
    headers = {}
    if remote_write_headers:
        for header in remote_write_headers:
            if '=' in header:
                key, value = header.split('=', 1)
                headers[key] = value
    return headers


def _log_ignored_device(dev: str) -> None:
    logger.debug("Ignoring device: %s", dev)


def create_source(platform: Optional[str] = None, proc_net_dev: str = PROC_NET_DEV,
                  ignored_devices: str = '^$') -> StatsSource:
    """Build the statistics source for a platform.

    Linux reads the /proc/net/dev pseudo-file; every other platform walks the
    getifaddrs() list.

    Args:
        platform: ``sys.platform`` style name (default: the running platform)
        proc_net_dev: Path of the statistics file on Linux
        ignored_devices: Regular expression of devices to leave out on Linux
    """
    if platform is None:
        platform = sys.platform

    if platform.startswith('linux'):
        return NetDevParser(proc_net_dev, ignored_devices, on_skip=_log_ignored_device)

    layout = layout_for_platform(platform)
    if layout is None:
        raise SourceUnavailableError(f"No network device statistics source for platform {platform}")
    return IfaddrsWalker(layout=layout)


def send_metrics_remote_write(remote_write_url: str, headers: Dict[str, str],
                              registry: CollectorRegistry, instance_label: str,
                              verbose: bool = False, dry_run: bool = False,
                              debug_file: Optional[str] = None) -> bool:
    """Send one collection of the registry via remote write endpoint.

    Args:
        remote_write_url: URL of the Prometheus remote write endpoint
        headers: HTTP headers to include in the request
        registry: Registry holding the network device collector
        instance_label: Value for the instance label added to all metrics
        verbose: Print verbose output for each metric
        dry_run: If True, process metrics but skip sending to endpoint
        debug_file: Optional path to save uncompressed payload data before compression

    Returns:
        True if the metrics were sent (or processed, in dry-run mode)
    """
    # Import here so that scrape-only setups do not need the remote write stack
    from .remote_write import RemoteWriteClient

    if dry_run:
        print(f"\nDry-run mode: Processing metrics (not sending to {remote_write_url})...")
    else:
        print(f"\nSending metrics to {remote_write_url}...")

    client = RemoteWriteClient(remote_write_url, headers, instance_label, verbose)

    if client.send_registry(registry, dry_run=dry_run, debug_file=debug_file):
        if dry_run:
            print("Dry-run completed: Processed network device metrics")
        else:
            print("Successfully sent network device metrics")
        return True

    print("Failed to process/send metrics", file=sys.stderr)
    return False
