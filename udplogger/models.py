"""Data models for log records and learned peers."""

import time
from dataclasses import dataclass, field
from typing import Tuple

from .protocol import ENCODING, format_timestamp, level_name, truncate_payload


@dataclass
class LogRecord:
    """Represents one emitted event, built per log() call and sent once."""

    level: int
    file: str
    function: str
    line: int
    message: str
    timestamp: float = field(default_factory=time.time)

    def to_line(self) -> str:
        """Format as ``<ctime> <LEVEL> <file>:<function>:<line> <message>``."""
        return (
            f"{format_timestamp(self.timestamp)} {level_name(self.level)} "
            f"{self.file}:{self.function}:{self.line} {self.message}"
        )

    def to_wire(self) -> bytes:
        """Encode the record as a single datagram payload."""
        return truncate_payload(self.to_line().encode(ENCODING, errors="replace"))


@dataclass(frozen=True)
class PeerEndpoint:
    """A learned network address of a counterpart process."""

    host: str
    port: int

    @classmethod
    def from_address(cls, address: Tuple) -> "PeerEndpoint":
        return cls(address[0], int(address[1]))

    def as_address(self) -> Tuple[str, int]:
        return self.host, self.port

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"
