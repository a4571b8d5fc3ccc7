"""Wire constants and payload codecs shared by the emitter and collector."""

import re
import time
from enum import IntEnum
from typing import Optional, Union

# Configuration Constants
BUF_LEN = 1024
MAX_PAYLOAD = BUF_LEN - 1
SERVER_IP = "127.0.0.1"
SERVER_PORT = 54321
CLIENT_PORT = 54322
DEFAULT_POLL_INTERVAL = 1.0
ENCODING = "utf-8"

HELLO_PREFIX = b"Client Hello"
HELLO_PAYLOAD = b"Client Hello from recv_socket"
SET_LEVEL_PREFIX = "Set Log Level="

_SET_LEVEL_PATTERN = re.compile(rb"^Set Log Level=\s*([+-]?\d+)")


class SeverityLevel(IntEnum):
    """Ordered filter threshold; records below the filter are dropped."""

    DEBUG = 0
    WARNING = 1
    ERROR = 2
    CRITICAL = 3


Level = Union[SeverityLevel, int]


def coerce_level(value: int) -> Level:
    """Return a SeverityLevel when the value is in range, else the raw int."""
    try:
        return SeverityLevel(value)
    except ValueError:
        return int(value)


def level_name(level: int) -> str:
    return SeverityLevel(level).name


def format_timestamp(timestamp: Optional[float] = None) -> str:
    """Render a timestamp the way C's ctime() does, without the newline."""
    return time.ctime(timestamp)


def encode_set_level(level: int) -> bytes:
    return f"{SET_LEVEL_PREFIX}{int(level)}".encode(ENCODING)


def parse_set_level(payload: bytes) -> Optional[int]:
    """Extract the level from a ``Set Log Level=<n>`` command.

    Args:
        payload: Raw datagram received on the control socket

    Returns:
        The integer level, or None when the payload is not a level command
    """
    match = _SET_LEVEL_PATTERN.match(payload)
    return int(match.group(1)) if match else None


def is_hello(payload: bytes) -> bool:
    return payload.startswith(HELLO_PREFIX)


def truncate_payload(data: bytes) -> bytes:
    """Cut to MAX_PAYLOAD bytes without splitting a UTF-8 sequence."""
    if len(data) <= MAX_PAYLOAD:
        return data
    return data[:MAX_PAYLOAD].decode(ENCODING, errors="ignore").encode(ENCODING)
