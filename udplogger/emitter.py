"""Emitter engine: filters records locally and ships them to the collector."""

import logging
import os
import sys
import threading
from typing import Optional

from .models import LogRecord
from .protocol import (
    CLIENT_PORT,
    DEFAULT_POLL_INTERVAL,
    HELLO_PAYLOAD,
    SERVER_IP,
    SERVER_PORT,
    Level,
    SeverityLevel,
    coerce_level,
    parse_set_level,
)
from .transport import (
    TransportError,
    log_dropped,
    open_udp_socket,
    receive_datagram,
    send_datagram,
)


class Emitter:
    """Sends log records to a collector and obeys its level commands.

    Two sockets are used: one for outbound records and one, bound to
    ``client_port``, that announces itself with a hello and then receives
    ``Set Log Level=`` commands on a background thread.
    """

    def __init__(
        self,
        server_ip: str = SERVER_IP,
        server_port: int = SERVER_PORT,
        client_port: int = CLIENT_PORT,
        bind_host: str = "",
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        level: Level = SeverityLevel.DEBUG,
    ):
        self.server_address = (server_ip, server_port)
        self.client_port = client_port
        self.bind_host = bind_host
        self.poll_interval = poll_interval
        self._level = level
        self._lock = threading.Lock()
        self._send_socket = None
        self._control_socket = None
        self._thread: Optional[threading.Thread] = None
        self._running = False
        self.logger = logging.getLogger(self.__class__.__name__)

    @property
    def level(self) -> Level:
        with self._lock:
            return self._level

    @property
    def control_address(self):
        """Local (host, port) of the control socket once initialized."""
        if self._control_socket is None:
            return None
        return self._control_socket.getsockname()

    def initialize(self) -> None:
        """
        Open both sockets, announce the control port and start listening.

        Raises:
            RuntimeError: If the emitter was already initialized
            TransportError: If a socket or the listener thread cannot be set up;
                nothing stays open in that case
        """
        if self._thread is not None:
            raise RuntimeError("Emitter already initialized")

        send_socket = open_udp_socket()
        try:
            control_socket = open_udp_socket(
                (self.bind_host, self.client_port), timeout=self.poll_interval
            )
        except TransportError:
            send_socket.close()
            raise

        log_dropped(
            send_datagram(control_socket, HELLO_PAYLOAD, self.server_address),
            self.server_address,
        )

        self._send_socket = send_socket
        self._control_socket = control_socket
        self._running = True
        thread = threading.Thread(
            target=self._listen, name="emitter-control", daemon=True
        )
        try:
            thread.start()
        except RuntimeError as e:
            self._running = False
            self._close_sockets()
            raise TransportError(f"Receive thread creation failed: {e}")
        self._thread = thread
        self.logger.info(
            f"Logging to {self.server_address[0]}:{self.server_address[1]}, "
            f"control port {self.control_address[1]}"
        )

    def set_level(self, level: Level) -> None:
        with self._lock:
            self._level = level

    def log(
        self, level: Level, file: str, function: str, line: int, message: str
    ) -> bool:
        """
        Send one record if it passes the severity filter.

        Records at exactly the filter level are sent. Transmission is
        fire-and-forget: socket errors drop the record silently.

        Args:
            level: Severity of the record
            file: Source file name
            function: Function name
            line: Line number
            message: Free-text message

        Returns:
            bool: True if the record passed the filter and a send was attempted
        """
        with self._lock:
            if level < self._level:
                return False
            if self._send_socket is None:
                return False
            record = LogRecord(level, file, function, line, message)
            error = send_datagram(
                self._send_socket, record.to_wire(), self.server_address
            )
        log_dropped(error, self.server_address)
        return True

    def debug(self, message: str) -> bool:
        return self._log_from_caller(SeverityLevel.DEBUG, message)

    def warning(self, message: str) -> bool:
        return self._log_from_caller(SeverityLevel.WARNING, message)

    def error(self, message: str) -> bool:
        return self._log_from_caller(SeverityLevel.ERROR, message)

    def critical(self, message: str) -> bool:
        return self._log_from_caller(SeverityLevel.CRITICAL, message)

    def _log_from_caller(self, level: SeverityLevel, message: str) -> bool:
        frame = sys._getframe(2)
        code = frame.f_code
        return self.log(
            level,
            os.path.basename(code.co_filename),
            code.co_name,
            frame.f_lineno,
            message,
        )

    def handle_command(self, payload: bytes) -> None:
        """Apply a control datagram; anything but a level command is ignored."""
        new_level = parse_set_level(payload)
        if new_level is None:
            self.logger.debug(f"Ignoring control payload: {payload[:64]!r}")
            return
        self.set_level(coerce_level(new_level))
        self.logger.info(f"Log level set to {new_level} by collector")

    def _listen(self) -> None:
        while self._running:
            try:
                received = receive_datagram(self._control_socket)
                if received is None:
                    continue
                data, _ = received
                if data:
                    self.handle_command(data)
            except Exception as e:
                if self._running:
                    self.logger.error(f"Error in control listener: {e}", exc_info=True)

    def _close_sockets(self) -> None:
        for sock in (self._send_socket, self._control_socket):
            if sock is not None:
                sock.close()
        self._send_socket = None
        self._control_socket = None

    def shutdown(self) -> None:
        """Stop the control listener and close both sockets."""
        self._running = False
        if self._thread is not None:
            self._thread.join()
            self._thread = None
        with self._lock:
            self._close_sockets()

    def __enter__(self) -> "Emitter":
        self.initialize()
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.shutdown()
