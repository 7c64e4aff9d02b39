"""Network device statistics from getifaddrs(3) on BSD style platforms.

getifaddrs() returns a linked list of ``struct ifaddrs``. Every interface has
one AF_LINK record whose ``ifa_data`` points at a ``struct if_data`` holding
the interface counters; the remaining records carry protocol addresses and
are skipped.
"""

import ctypes
import ctypes.util
import os
import struct
import sys
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, Iterator, Optional, Tuple, Type

from .errors import MalformedFormatError, SourceUnavailableError
from .models import DeviceStats, InterfaceCounters


class BSDSockaddr(ctypes.Structure):
    _fields_ = [
        ('sa_len', ctypes.c_uint8),
        ('sa_family', ctypes.c_uint8),
        ('sa_data', ctypes.c_char * 14),
    ]


class Ifaddrs(ctypes.Structure):
    pass


Ifaddrs._fields_ = [
    ('ifa_next', ctypes.POINTER(Ifaddrs)),
    ('ifa_name', ctypes.c_char_p),
    ('ifa_flags', ctypes.c_uint),
    ('ifa_addr', ctypes.c_void_p),
    ('ifa_netmask', ctypes.c_void_p),
    ('ifa_dstaddr', ctypes.c_void_p),
    ('ifa_data', ctypes.c_void_p),
]

# Counter name -> struct if_data member
IF_DATA_COUNTERS: Dict[str, str] = {
    'receive_packets': 'ifi_ipackets',
    'transmit_packets': 'ifi_opackets',
    'receive_errs': 'ifi_ierrors',
    'transmit_errs': 'ifi_oerrors',
    'receive_bytes': 'ifi_ibytes',
    'transmit_bytes': 'ifi_obytes',
    'receive_multicast': 'ifi_imcasts',
    'transmit_multicast': 'ifi_omcasts',
    'receive_drop': 'ifi_iqdrops',
    'transmit_drop': 'ifi_oqdrops',
}


@dataclass(frozen=True)
class IfDataLayout:
    """Leading part of one platform's ``struct if_data``.

    Only the members up to and including the last counter are described; the
    rest of the structure is never read.
    """
    name: str
    fmt: str
    field_names: Tuple[str, ...]
    af_link: int
    sockaddr: Type[ctypes.Structure] = BSDSockaddr

    @property
    def size(self) -> int:
        return struct.calcsize(self.fmt)


# sys/net/if.h, FreeBSD 11 and later
FREEBSD_IF_DATA = IfDataLayout(
    name='freebsd',
    fmt='=6BH2IQ11Q',
    field_names=(
        'ifi_type', 'ifi_physical', 'ifi_addrlen', 'ifi_hdrlen',
        'ifi_link_state', 'ifi_vhid', 'ifi_datalen',
        'ifi_mtu', 'ifi_metric', 'ifi_baudrate',
        'ifi_ipackets', 'ifi_ierrors', 'ifi_opackets', 'ifi_oerrors',
        'ifi_collisions', 'ifi_ibytes', 'ifi_obytes', 'ifi_imcasts',
        'ifi_omcasts', 'ifi_iqdrops', 'ifi_oqdrops',
    ),
    af_link=18,
)

# net/if_var.h, 32-bit counters and no output queue drops
DARWIN_IF_DATA = IfDataLayout(
    name='darwin',
    fmt='=8B3I10I',
    field_names=(
        'ifi_type', 'ifi_typelen', 'ifi_physical', 'ifi_addrlen',
        'ifi_hdrlen', 'ifi_recvquota', 'ifi_xmitquota', 'ifi_unused1',
        'ifi_mtu', 'ifi_metric', 'ifi_baudrate',
        'ifi_ipackets', 'ifi_ierrors', 'ifi_opackets', 'ifi_oerrors',
        'ifi_collisions', 'ifi_ibytes', 'ifi_obytes', 'ifi_imcasts',
        'ifi_omcasts', 'ifi_iqdrops',
    ),
    af_link=18,
)

IF_DATA_LAYOUTS = {
    'freebsd': FREEBSD_IF_DATA,
    'darwin': DARWIN_IF_DATA,
}


def layout_for_platform(platform: str) -> Optional[IfDataLayout]:
    """Return the if_data layout for a ``sys.platform`` value, if known."""
    for prefix, layout in IF_DATA_LAYOUTS.items():
        if platform.startswith(prefix):
            return layout
    return None


def load_libc():
    """Load the C library and declare the getifaddrs(3) prototypes."""
    try:
        libc = ctypes.CDLL(ctypes.util.find_library('c'), use_errno=True)
        getifaddrs = libc.getifaddrs
        freeifaddrs = libc.freeifaddrs
    except (OSError, AttributeError) as e:
        raise SourceUnavailableError(f"getifaddrs() is not available: {e}") from e

    getifaddrs.argtypes = [ctypes.POINTER(ctypes.POINTER(Ifaddrs))]
    getifaddrs.restype = ctypes.c_int
    freeifaddrs.argtypes = [ctypes.POINTER(Ifaddrs)]
    freeifaddrs.restype = None
    return libc


@contextmanager
def ifaddrs_list(libc) -> Iterator['ctypes._Pointer[Ifaddrs]']:
    """Yield the head of the getifaddrs() list and free it on exit."""
    head = ctypes.POINTER(Ifaddrs)()
    if libc.getifaddrs(ctypes.pointer(head)) == -1:
        err = ctypes.get_errno()
        reason = os.strerror(err) if err else 'unknown error'
        raise SourceUnavailableError(f"getifaddrs() failed: {reason}")
    try:
        yield head
    finally:
        libc.freeifaddrs(head)


def iter_records(head) -> Iterator[Ifaddrs]:
    node = head
    while node:
        record = node.contents
        yield record
        node = record.ifa_next


def address_family(record: Ifaddrs, layout: IfDataLayout) -> Optional[int]:
    """Return the address family of a record, or None if it has no address."""
    if not record.ifa_addr:
        return None
    sockaddr = ctypes.cast(record.ifa_addr, ctypes.POINTER(layout.sockaddr)).contents
    return sockaddr.sa_family


def decode_if_data(raw: bytes, layout: IfDataLayout) -> InterfaceCounters:
    """Decode the counters from a copy of a ``struct if_data``."""
    if len(raw) < layout.size:
        raise MalformedFormatError(
            f"Short if_data for {layout.name}: got {len(raw)} bytes, need {layout.size}")
    values = dict(zip(layout.field_names, struct.unpack_from(layout.fmt, raw)))
    return InterfaceCounters(**{
        counter: values.get(member, 0) for counter, member in IF_DATA_COUNTERS.items()
    })


def read_link_stats(record: Ifaddrs, layout: IfDataLayout) -> InterfaceCounters:
    """Read the interface counters attached to a link-layer record.

    This is the only place where ``ifa_data`` is dereferenced. The caller must
    have checked that the record's address family is ``layout.af_link`` and
    that ``ifa_data`` is not NULL; for any other record the pointer does not
    refer to a ``struct if_data``. The bytes are copied before decoding, so the
    result holds no reference into the getifaddrs() list and stays valid after
    the list is freed.
    """
    raw = ctypes.string_at(record.ifa_data, layout.size)
    return decode_if_data(raw, layout)


class IfaddrsWalker:
    """Collect network device statistics with getifaddrs(3)."""

    description = 'from getifaddrs().'

    def __init__(self, layout: Optional[IfDataLayout] = None, libc=None):
        """Initialize the walker.

        Args:
            layout: if_data layout to decode with (default: the running platform's)
            libc: Object providing getifaddrs/freeifaddrs (default: the C library)
        """
        if layout is None:
            layout = layout_for_platform(sys.platform)
            if layout is None:
                raise SourceUnavailableError(f"No if_data layout known for platform {sys.platform}")
        self.layout = layout
        self.libc = libc if libc is not None else load_libc()

    def collect(self) -> DeviceStats:
        """Return the counters of every interface with a link-layer record."""
        net_dev: DeviceStats = {}
        with ifaddrs_list(self.libc) as head:
            for record in iter_records(head):
                if not record.ifa_data:
                    continue
                if address_family(record, self.layout) != self.layout.af_link:
                    continue
                dev = os.fsdecode(record.ifa_name)
                net_dev[dev] = read_link_stats(record, self.layout).as_counter_set()
        return net_dev
