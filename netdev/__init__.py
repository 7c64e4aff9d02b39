"""Network device statistics to Prometheus metrics."""

from .errors import MalformedFormatError, NetDevError, SourceUnavailableError, ValueConversionError
from .exporter import NetDevCollector
from .ifaddrs import IfaddrsWalker
from .models import COUNTER_NAMES, DeviceStats, InterfaceCounters, StatsSource
from .parser import NetDevParser
from .utils import create_source

__all__ = [
    'COUNTER_NAMES',
    'DeviceStats',
    'InterfaceCounters',
    'StatsSource',
    'NetDevParser',
    'IfaddrsWalker',
    'NetDevCollector',
    'create_source',
    'NetDevError',
    'SourceUnavailableError',
    'MalformedFormatError',
    'ValueConversionError',
]
