"""Collector engine: ingests records and pushes level changes back."""

import logging
import threading
from enum import Enum
from typing import List, Optional

from .models import PeerEndpoint
from .protocol import (
    DEFAULT_POLL_INTERVAL,
    SERVER_PORT,
    encode_set_level,
    is_hello,
)
from .store import RecordStore, RecordStoreError
from .transport import (
    TransportError,
    log_dropped,
    open_udp_socket,
    receive_datagram,
    send_datagram,
)

# Configuration Constants
DEFAULT_STORE_PATH = "server_log.txt"


class CollectorState(Enum):
    UNINITIALIZED = "uninitialized"
    LISTENING = "listening"
    STOPPED = "stopped"


class Collector:
    """Receives records over UDP, persists them and remembers one peer.

    The first sender seen becomes the source endpoint and the first sender
    of a hello becomes the control endpoint. Neither slot changes afterwards,
    so a collector serves a single emitter.
    """

    def __init__(
        self,
        store_path: str = DEFAULT_STORE_PATH,
        bind_host: str = "",
        port: int = SERVER_PORT,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ):
        self.bind_address = (bind_host, port)
        self.poll_interval = poll_interval
        self.store = RecordStore(store_path)
        self.state = CollectorState.UNINITIALIZED
        self._lock = threading.Lock()
        self._socket = None
        self._thread: Optional[threading.Thread] = None
        self._running = False
        self._source_endpoint: Optional[PeerEndpoint] = None
        self._control_endpoint: Optional[PeerEndpoint] = None
        self.logger = logging.getLogger(self.__class__.__name__)

    @property
    def source_endpoint(self) -> Optional[PeerEndpoint]:
        with self._lock:
            return self._source_endpoint

    @property
    def control_endpoint(self) -> Optional[PeerEndpoint]:
        with self._lock:
            return self._control_endpoint

    @property
    def address(self):
        """Bound (host, port); the port is the real one when 0 was requested."""
        if self._socket is None:
            return None
        return self._socket.getsockname()

    def start(self) -> bool:
        """
        Bind the socket, open the store and start the ingestion thread.

        Returns:
            bool: True once listening, False if the store could not be opened

        Raises:
            RuntimeError: If the collector was already started or stopped
            TransportError: If the socket or thread cannot be set up
        """
        if self.state is not CollectorState.UNINITIALIZED:
            raise RuntimeError(f"Cannot start collector in state {self.state.value}")

        sock = open_udp_socket(self.bind_address, timeout=self.poll_interval)
        try:
            self.store.open()
        except RecordStoreError as e:
            self.logger.error(f"Not listening, record store unavailable: {e}")
            sock.close()
            return False

        self._socket = sock
        self._running = True
        thread = threading.Thread(
            target=self._listen, name="collector-ingest", daemon=True
        )
        try:
            thread.start()
        except RuntimeError as e:
            self._running = False
            self._socket = None
            sock.close()
            self.store.close()
            raise TransportError(f"Receive thread creation failed: {e}")

        self._thread = thread
        self.state = CollectorState.LISTENING
        host, port = self.address[:2]
        self.logger.info(f"Listening on {host}:{port}, storing to {self.store.path}")
        return True

    def push_level(self, level: int) -> bool:
        """
        Send a ``Set Log Level=`` command to the known control endpoint.

        Args:
            level: New filter rank for the emitter; not range-checked here

        Returns:
            bool: False if no control endpoint is known yet, True otherwise
        """
        with self._lock:
            if self._control_endpoint is None or self._socket is None:
                return False
            endpoint = self._control_endpoint
            error = send_datagram(
                self._socket, encode_set_level(level), endpoint.as_address()
            )
        log_dropped(error, endpoint.as_address())
        self.logger.info(f"Sent log level {int(level)} to {endpoint}")
        return True

    def dump(self) -> List[str]:
        return self.store.dump()

    def ingest(self, payload: bytes, address) -> None:
        """Learn peers from one datagram and append it to the store."""
        with self._lock:
            if self._source_endpoint is None:
                self._source_endpoint = PeerEndpoint.from_address(address)
                self.logger.info(f"Source endpoint is {self._source_endpoint}")
            if is_hello(payload) and self._control_endpoint is None:
                self._control_endpoint = PeerEndpoint.from_address(address)
                self.logger.info(f"Control endpoint is {self._control_endpoint}")
            self.store.append(payload)

    def _listen(self) -> None:
        while self._running:
            try:
                received = receive_datagram(self._socket)
                if received is None:
                    continue
                data, address = received
                if data:
                    self.ingest(data, address)
            except Exception as e:
                if self._running:
                    self.logger.error(f"Error in ingestion loop: {e}", exc_info=True)

    def stop(self) -> None:
        """Stop ingesting and release the socket and the store."""
        if self.state is CollectorState.STOPPED:
            return
        self._running = False
        if self._thread is not None:
            self._thread.join()
            self._thread = None
        with self._lock:
            if self._socket is not None:
                self._socket.close()
                self._socket = None
        self.store.close()
        self.state = CollectorState.STOPPED
        self.logger.info("Collector stopped")

    def __enter__(self) -> "Collector":
        if not self.start():
            raise RecordStoreError(f"Failed to open store {self.store.path}")
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.stop()
