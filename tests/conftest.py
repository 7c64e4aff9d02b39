import ctypes
import logging
import struct

import pytest

from netdev.ifaddrs import BSDSockaddr, Ifaddrs

AF_INET = 2
AF_LINK = 18

PROC_NET_DEV = """\
Inter-|   Receive                                                |  Transmit
 face |bytes    packets errs drop fifo frame compressed multicast|bytes    packets errs drop fifo colls carrier compressed
    lo: 6657302    7154    0    0    0     0          0         0  6657302    7154    0    0    0     0       0          0
  eth0: 3215442829 2657394    0   12    0     0          0     1024 107318622  985452    3    0    0     0       0          0
docker0:       0       0    0    0    0     0          0         0      826       9    0    4    0     0       0          0
"""


def pack_if_data(layout, **members):
    """Build the bytes of a struct if_data with the given members set."""
    values = dict.fromkeys(layout.field_names, 0)
    values.update(members)
    return struct.pack(layout.fmt, *(values[name] for name in layout.field_names))


class FakeLibc:
    """Stand-in for the C library backed by a ctypes-built ifaddrs list.

    Records are ``(name, family, data)`` tuples; a family of None leaves
    ``ifa_addr`` NULL and data of None leaves ``ifa_data`` NULL.
    """

    def __init__(self, records=(), fail=False):
        self.fail = fail
        self.freed = []
        self._keep = []
        self.head = self._build(records)

    def _build(self, records):
        head = ctypes.POINTER(Ifaddrs)()
        for name, family, data in reversed(list(records)):
            record = Ifaddrs()
            record.ifa_next = head
            record.ifa_name = name.encode()
            if family is not None:
                sockaddr = BSDSockaddr(sa_len=ctypes.sizeof(BSDSockaddr), sa_family=family)
                self._keep.append(sockaddr)
                record.ifa_addr = ctypes.addressof(sockaddr)
            if data is not None:
                buf = ctypes.create_string_buffer(data, len(data))
                self._keep.append(buf)
                record.ifa_data = ctypes.addressof(buf)
            self._keep.append(record)
            head = ctypes.pointer(record)
        return head

    def getifaddrs(self, ifap):
        if self.fail:
            return -1
        ifap[0] = self.head
        return 0

    def freeifaddrs(self, ifa):
        self.freed.append(ifa)


@pytest.fixture
def proc_net_dev(tmp_path):
    path = tmp_path / 'dev'
    path.write_text(PROC_NET_DEV)
    return path


@pytest.fixture(autouse=True)
def reset_loggers():
    yield
    for name in ('netdev', 'netdev.test'):
        logger = logging.getLogger(name)
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
        logger.setLevel(logging.NOTSET)
