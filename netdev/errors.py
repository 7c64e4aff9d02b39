"""Errors raised while sampling network device statistics."""

from typing import Optional


class NetDevError(Exception):
    """Base class for all network device statistics errors."""


class SourceUnavailableError(NetDevError):
    """The statistics source could not be opened, read or enumerated."""


class MalformedFormatError(NetDevError):
    """The statistics source does not have the expected layout."""

    def __init__(self, message: str, line: Optional[str] = None):
        super().__init__(message)
        self.line = line


class ValueConversionError(NetDevError, ValueError):
    """A counter value could not be converted to a number."""

    def __init__(self, value: str, device: str, counter: str):
        super().__init__(f"Invalid value {value!r} in netstats for {device}/{counter}")
        self.value = value
        self.device = device
        self.counter = counter
