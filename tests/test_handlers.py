from __future__ import annotations

import logging
import socket
import threading

import pytest

from conftest import recv
from udplogger.emitter import Emitter
from udplogger.handlers import UDPLogHandler, to_severity
from udplogger.protocol import SeverityLevel


@pytest.mark.parametrize(
    ("levelno", "expected"),
    [
        (logging.DEBUG, SeverityLevel.DEBUG),
        (logging.INFO, SeverityLevel.DEBUG),
        (logging.WARNING, SeverityLevel.WARNING),
        (logging.ERROR, SeverityLevel.ERROR),
        (logging.CRITICAL, SeverityLevel.CRITICAL),
    ],
)
def test_to_severity(levelno: int, expected: SeverityLevel) -> None:
    assert to_severity(levelno) is expected


def test_handler_ships_stdlib_records(
    peer_emitter: Emitter, udp_peer: socket.socket
) -> None:
    logger = logging.getLogger("tests.udp_handler")
    logger.propagate = False
    logger.setLevel(logging.DEBUG)
    handler = UDPLogHandler(peer_emitter)
    logger.addHandler(handler)
    try:
        logger.error("disk full")
    finally:
        logger.removeHandler(handler)

    data = recv(udp_peer)
    assert data is not None
    assert b" ERROR test_handlers.py:test_handler_ships_stdlib_records:" in data
    assert data.endswith(b" disk full")


def test_handler_respects_emitter_filter(
    peer_emitter: Emitter, udp_peer: socket.socket
) -> None:
    peer_emitter.set_level(SeverityLevel.CRITICAL)
    logger = logging.getLogger("tests.udp_handler_filtered")
    logger.propagate = False
    handler = UDPLogHandler(peer_emitter)
    logger.addHandler(handler)
    try:
        logger.warning("ignored")
    finally:
        logger.removeHandler(handler)

    assert recv(udp_peer) is None


class _WouldBlockSocket:
    def sendto(self, payload: bytes, address) -> int:
        raise BlockingIOError("send buffer full")


def test_root_handler_survives_dropped_send(peer_emitter: Emitter) -> None:
    real_socket = peer_emitter._send_socket
    peer_emitter._send_socket = _WouldBlockSocket()
    root = logging.getLogger()
    previous_level = root.level
    handler = UDPLogHandler(peer_emitter)
    root.addHandler(handler)
    root.setLevel(logging.DEBUG)
    try:
        worker = threading.Thread(
            target=logging.getLogger("app").warning, args=("x",), daemon=True
        )
        worker.start()
        worker.join(timeout=3.0)
        assert not worker.is_alive()

        assert peer_emitter._lock.acquire(timeout=1.0)
        peer_emitter._lock.release()
    finally:
        root.removeHandler(handler)
        root.setLevel(previous_level)
        peer_emitter._send_socket = real_socket
