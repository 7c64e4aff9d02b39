"""Export network device statistics as Prometheus metrics."""

import logging
import threading
from typing import Dict, Iterator, Optional, Tuple

from prometheus_client import CollectorRegistry
from prometheus_client.core import GaugeMetricFamily, Metric
from prometheus_client.registry import Collector

from .errors import NetDevError, ValueConversionError
from .models import StatsSource

logger = logging.getLogger(__name__)

SUBSYSTEM = 'network'


def build_fq_name(namespace: str, subsystem: str, name: str) -> str:
    """Join the non-empty name parts with underscores."""
    return '_'.join(part for part in (namespace, subsystem, name) if part)


def device_label(dev: str) -> str:
    """Make a device name safe for UTF-8 exposition.

    Undecodable bytes in interface names show up as backslash escapes.
    """
    return dev.encode('utf-8', 'surrogateescape').decode('utf-8', 'backslashreplace')


class NetDevCollector(Collector):
    """Prometheus collector exposing per-device network counters.

    One gauge family is produced per counter name, labelled by ``device``.
    Metric names and help texts are built the first time a counter name is
    seen and kept for the lifetime of the collector.
    """

    def __init__(self, source: StatsSource, namespace: str = 'node',
                 registry: Optional[CollectorRegistry] = None):
        self.source = source
        self.namespace = namespace
        self.metric_descs: Dict[str, Tuple[str, str]] = {}
        self._lock = threading.Lock()
        if registry is not None:
            registry.register(self)

    def describe(self) -> Iterator[Metric]:
        # Counter names depend on the source; nothing to declare up front
        return iter(())

    def collect(self) -> Iterator[Metric]:
        """Sample the source and yield one gauge family per counter name."""
        try:
            net_dev = self.source.collect()
        except NetDevError as e:
            logger.error("couldn't get netstats: %s", e)
            raise

        families: Dict[str, GaugeMetricFamily] = {}
        for dev, dev_stats in net_dev.items():
            for key, value in dev_stats.items():
                family = families.get(key)
                if family is None:
                    name, documentation = self._describe(key)
                    family = GaugeMetricFamily(name, documentation, labels=['device'])
                    families[key] = family
                family.add_metric([device_label(dev)], self._to_float(value, dev, key))

        return iter(families.values())

    def _describe(self, key: str) -> Tuple[str, str]:
        """Return the cached (name, help) pair for a counter, creating it if needed."""
        with self._lock:
            desc = self.metric_descs.get(key)
            if desc is None:
                desc = (
                    build_fq_name(self.namespace, SUBSYSTEM, key),
                    f"{key} {self.source.description}",
                )
                self.metric_descs[key] = desc
                logger.debug("Registered metric %s", desc[0])
            return desc

    @staticmethod
    def _to_float(value: str, dev: str, key: str) -> float:
        try:
            return float(value)
        except ValueError as e:
            raise ValueConversionError(value, dev, key) from e
