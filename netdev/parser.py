"""Parser for /proc/net/dev style network device statistics."""

import re
from typing import Callable, Iterator, List, Optional, TextIO, Union

from .errors import MalformedFormatError, SourceUnavailableError
from .models import DeviceStats

PROC_NET_DEV = '/proc/net/dev'

# Device name is followed by a colon, columns by runs of spaces
FIELD_SEPARATOR = re.compile(r'[ :] *')


class NetDevParser:
    """Parser for /proc/net/dev style network device statistics.

    The file starts with a banner line and a header line of the form
    ``face |<receive fields>|<transmit fields>``, followed by one row per
    device holding the receive columns and then the transmit columns.
    """

    description = 'from /proc/net/dev.'

    def __init__(self, path: str = PROC_NET_DEV,
                 ignored_devices: Union[str, re.Pattern] = '^$',
                 on_skip: Optional[Callable[[str], None]] = None):
        """Initialize the parser.

        Args:
            path: Path to the statistics file
            ignored_devices: Regular expression; devices whose name matches it are left out
            on_skip: Optional callback invoked with the name of every ignored device
        """
        self.path = path
        if isinstance(ignored_devices, str):
            ignored_devices = re.compile(ignored_devices)
        self.ignored_devices = ignored_devices
        self.on_skip = on_skip

    def collect(self) -> DeviceStats:
        """Read and parse the statistics file."""
        try:
            # Interface names are raw bytes; decode them like os.fsdecode
            with open(self.path, 'r', encoding='utf-8', errors='surrogateescape') as f:
                return self.parse_stream(f)
        except OSError as e:
            raise SourceUnavailableError(f"Couldn't read {self.path}: {e}") from e

    def parse_stream(self, stream: TextIO) -> DeviceStats:
        """Parse an already opened statistics stream.

        Raises:
            MalformedFormatError: the header or any device row does not have
                the expected number of columns. Nothing is returned in that case.
        """
        lines = self._lines(stream)
        next(lines, None)  # banner
        header_line = next(lines, '')
        header = self._parse_header(header_line)

        net_dev: DeviceStats = {}
        for line in lines:
            if not line.strip():
                continue
            parts = FIELD_SEPARATOR.split(line.lstrip(' '))
            if len(parts) != 2 * len(header) + 1:
                raise MalformedFormatError(f"Invalid line in {self.path}: {line}", line=line)

            dev = parts[0]
            if self.ignored_devices.search(dev):
                if self.on_skip is not None:
                    self.on_skip(dev)
                continue

            dev_stats = {}
            for i, field in enumerate(header):
                dev_stats['receive_' + field] = parts[i + 1]
                dev_stats['transmit_' + field] = parts[i + 1 + len(header)]
            net_dev[dev] = dev_stats

        return net_dev

    def _parse_header(self, line: str) -> List[str]:
        """Return the receive field names from the column header line."""
        parts = line.split('|')
        if len(parts) != 3:  # interface + receive + transmit
            raise MalformedFormatError(f"Invalid header line in {self.path}: {line}", line=line)
        # Transmit columns are labelled with the receive field names
        return parts[1].split()

    @staticmethod
    def _lines(stream: TextIO) -> Iterator[str]:
        for line in stream:
            yield line.rstrip('\r\n')
