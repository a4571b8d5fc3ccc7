from __future__ import annotations

import datetime

from udplogger.extractors import RecordParser
from udplogger.models import LogRecord
from udplogger.protocol import SeverityLevel


def test_parses_emitted_record() -> None:
    when = datetime.datetime(2025, 3, 23, 14, 5, 9).timestamp()
    line = LogRecord(SeverityLevel.ERROR, "a.c", "f", 3, "boom", timestamp=when).to_line()

    parser = RecordParser()
    assert parser.extract_log_level(line) == "error"
    assert parser.extract_timestamp(line) == when


def test_single_digit_day_is_space_padded() -> None:
    line = "Sun Mar  2 08:00:00 2025 CRITICAL a.c:f:1 down"
    expected = datetime.datetime(2025, 3, 2, 8, 0, 0).timestamp()

    assert RecordParser().extract_timestamp(line) == expected


def test_hello_line_has_unknown_level() -> None:
    parser = RecordParser()
    line = "Client Hello from recv_socket"

    assert parser.extract_log_level(line) == "unknown"
    assert parser.extract_timestamp(line) is None


def test_to_loki_format() -> None:
    line = "Sun Mar  2 08:00:00 2025 WARNING a.c:f:1 slow\n"
    timestamp_ns, text, metadata = RecordParser().to_loki_format(line)

    expected = int(datetime.datetime(2025, 3, 2, 8, 0, 0).timestamp() * 1_000_000_000)
    assert timestamp_ns == str(expected)
    assert text == "Sun Mar  2 08:00:00 2025 WARNING a.c:f:1 slow"
    assert metadata == {"level": "warning"}
