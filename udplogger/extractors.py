"""Extractors for parsing stored record lines."""

import datetime
import re
import time
from typing import Dict, Optional, Tuple

DEFAULT_RECORD_REGEX = (
    r"^(?P<timestamp>\w{3} \w{3} [ \d]\d \d{2}:\d{2}:\d{2} \d{4}) "
    r"(?P<level>DEBUG|WARNING|ERROR|CRITICAL) "
)
CTIME_FORMAT = "%a %b %d %H:%M:%S %Y"


class RecordParser:
    """Pulls the ctime timestamp and level name out of a stored line."""

    def __init__(self, record_regex: str = DEFAULT_RECORD_REGEX):
        self.pattern = re.compile(record_regex)

    def extract_timestamp(self, line: str) -> Optional[float]:
        """Extract timestamp from a record line as Unix epoch seconds."""
        match = self.pattern.match(line)
        if not match:
            return None
        # ctime pads single-digit days with a space
        timestamp_str = " ".join(match.group("timestamp").split())
        try:
            return datetime.datetime.strptime(timestamp_str, CTIME_FORMAT).timestamp()
        except ValueError:
            return None

    def extract_log_level(self, line: str) -> str:
        match = self.pattern.match(line)
        return match.group("level").lower() if match else "unknown"

    def to_loki_format(self, line: str) -> Tuple[str, str, Dict[str, str]]:
        """Convert a line to Loki's (ns timestamp, line, metadata) triple."""
        line = line.rstrip("\r\n")
        timestamp = self.extract_timestamp(line) or time.time()
        return (
            str(int(timestamp * 1_000_000_000)),
            line,
            {"level": self.extract_log_level(line)},
        )
