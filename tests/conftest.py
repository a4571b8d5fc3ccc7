from __future__ import annotations

import socket
import time
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

from udplogger.collector import Collector
from udplogger.emitter import Emitter

POLL_INTERVAL = 0.05


def wait_for(predicate: Callable[[], bool], timeout: float = 2.0) -> bool:
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


def recv(sock: socket.socket) -> bytes | None:
    try:
        data, _ = sock.recvfrom(2048)
    except socket.timeout:
        return None
    return data


@pytest.fixture
def udp_peer() -> Iterator[socket.socket]:
    """A plain UDP socket standing in for the other side of the protocol."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    sock.bind(("127.0.0.1", 0))
    sock.settimeout(0.3)
    yield sock
    sock.close()


@pytest.fixture
def peer_emitter(udp_peer: socket.socket) -> Iterator[Emitter]:
    """Initialized emitter sending to ``udp_peer``; the hello is already consumed."""
    emitter = Emitter(
        server_ip="127.0.0.1",
        server_port=udp_peer.getsockname()[1],
        client_port=0,
        bind_host="127.0.0.1",
        poll_interval=POLL_INTERVAL,
    )
    emitter.initialize()
    assert recv(udp_peer) is not None
    yield emitter
    emitter.shutdown()


@pytest.fixture
def store_path(tmp_path: Path) -> Path:
    return tmp_path / "server_log.txt"


@pytest.fixture
def collector(store_path: Path) -> Iterator[Collector]:
    collector = Collector(
        store_path=str(store_path),
        bind_host="127.0.0.1",
        port=0,
        poll_interval=POLL_INTERVAL,
    )
    assert collector.start()
    yield collector
    collector.stop()


@pytest.fixture
def emitter(collector: Collector) -> Iterator[Emitter]:
    emitter = Emitter(
        server_ip="127.0.0.1",
        server_port=collector.address[1],
        client_port=0,
        bind_host="127.0.0.1",
        poll_interval=POLL_INTERVAL,
    )
    emitter.initialize()
    yield emitter
    emitter.shutdown()
