#!/usr/bin/env python3
"""
Collect network device statistics and export them to Prometheus.

Convenience wrapper around netdev.netdev_to_prometheus for running from a
source checkout.
"""

from netdev.netdev_to_prometheus import main


if __name__ == '__main__':
    main()
