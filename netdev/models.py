"""Data models for network device statistics."""

from dataclasses import dataclass
from typing import Dict, Protocol, Tuple


CounterSet = Dict[str, str]  # counter name -> raw counter text
DeviceStats = Dict[str, CounterSet]  # device name -> counters

# Counter names every source reports. The text parser may add more, driven by
# the header of the file it reads.
COUNTER_NAMES: Tuple[str, ...] = (
    'receive_packets',
    'transmit_packets',
    'receive_errs',
    'transmit_errs',
    'receive_bytes',
    'transmit_bytes',
    'receive_multicast',
    'transmit_multicast',
    'receive_drop',
    'transmit_drop',
)


class StatsSource(Protocol):
    """Anything that can sample per-device counters."""

    description: str

    def collect(self) -> DeviceStats:
        ...


@dataclass(frozen=True)
class InterfaceCounters:
    """Counters decoded from one native link-layer record."""
    receive_packets: int
    transmit_packets: int
    receive_errs: int
    transmit_errs: int
    receive_bytes: int
    transmit_bytes: int
    receive_multicast: int
    transmit_multicast: int
    receive_drop: int
    transmit_drop: int

    def as_counter_set(self) -> CounterSet:
        """Return the counters as decimal strings keyed by counter name."""
        return {name: str(getattr(self, name)) for name in COUNTER_NAMES}
