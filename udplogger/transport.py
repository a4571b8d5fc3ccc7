"""UDP socket helpers used by both endpoint engines."""

import logging
import socket
from typing import Optional, Tuple

from .protocol import BUF_LEN

logger = logging.getLogger(__name__)

Address = Tuple[str, int]


class TransportError(Exception):
    """Exception raised when a socket cannot be created or bound."""

    pass


def open_udp_socket(
    bind_address: Optional[Address] = None, timeout: Optional[float] = None
) -> socket.socket:
    """
    Create a UDP socket, optionally bound and with a receive timeout.

    A socket without a timeout is put in non-blocking mode.

    Args:
        bind_address: (host, port) to bind to, or None to leave it unbound
        timeout: Receive timeout in seconds

    Returns:
        socket.socket: The configured socket

    Raises:
        TransportError: If creation or binding fails
    """
    try:
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    except OSError as e:
        raise TransportError(f"Socket creation failed: {e}")

    try:
        if timeout is None:
            sock.setblocking(False)
        else:
            sock.settimeout(timeout)
        if bind_address is not None:
            sock.bind(bind_address)
    except OSError as e:
        sock.close()
        raise TransportError(f"Bind failed on {bind_address}: {e}")
    return sock


def send_datagram(
    sock: socket.socket, payload: bytes, address: Address
) -> Optional[OSError]:
    """Send one datagram, dropping it on any socket error.

    Nothing is logged here: callers often hold a lock that a logging
    handler may need. The error is returned so they can report it with
    ``log_dropped`` after releasing it.

    Returns:
        None on success, otherwise the error that dropped the datagram
    """
    try:
        sock.sendto(payload, address)
    except OSError as e:
        return e
    return None


def log_dropped(error: Optional[OSError], address: Address) -> None:
    if error is not None:
        logger.debug(f"Dropped datagram to {address[0]}:{address[1]}: {error}")


def receive_datagram(sock: socket.socket) -> Optional[Tuple[bytes, Address]]:
    """Wait up to the socket timeout for one datagram.

    Returns None when nothing arrived in time. ICMP errors surfaced by the
    OS for earlier sends are treated the same way.
    """
    try:
        data, address = sock.recvfrom(BUF_LEN - 1)
    except (socket.timeout, BlockingIOError, ConnectionError):
        return None
    return data, address
