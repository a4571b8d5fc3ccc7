"""Follows the record store and ships new lines to Loki."""

import logging
import os
import threading
import time
from typing import List, Optional, Tuple

from .clients import LokiClient
from .extractors import RecordParser
from .store import RecordStore, ensure_dir

# Configuration Constants
DEFAULT_POLL_INTERVAL = 5


class StoreForwarder:
    """Polls a RecordStore for appended lines and pushes them in batches."""

    def __init__(
        self,
        store: RecordStore,
        client: LokiClient,
        app_name: str = "udplogger",
        service_name: str = "collector",
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        offset_dir: Optional[str] = None,
        parser: Optional[RecordParser] = None,
    ):
        self.store = store
        self.client = client
        self.app_name = app_name
        self.service_name = service_name
        self.poll_interval = poll_interval
        self.parser = parser or RecordParser()
        self.offset_path = self._offset_path(offset_dir)
        self._running = False
        self._thread: Optional[threading.Thread] = None
        self.logger = logging.getLogger(f"{self.__class__.__name__}.{self.app_name}")

    def _offset_path(self, offset_dir: Optional[str]) -> Optional[str]:
        if not offset_dir:
            return None
        ensure_dir(offset_dir)
        safe_app_name = self.app_name.replace(" ", "_")
        store_name = os.path.basename(self.store.path)
        return os.path.join(offset_dir, f"{safe_app_name}_{store_name}.offset")

    def collect(self) -> List[Tuple]:
        """Parse every line appended since the last call."""
        entries = []
        for line in self.store.read_new(self.offset_path):
            if not line.strip():
                continue
            entries.append(self.parser.to_loki_format(line))
        return entries

    def forward_once(self) -> int:
        """Ship one batch; returns the number of records sent."""
        entries = self.collect()
        labels = {"app": self.app_name, "service": self.service_name}
        if entries and self.client.push_records(labels, entries):
            return len(entries)
        return 0

    def _run(self) -> None:
        self.logger.info(f"Forwarding {self.store.path} to {self.client.loki_url}")
        while self._running:
            try:
                self.forward_once()
            except Exception as e:
                self.logger.error(f"Error forwarding records: {e}", exc_info=True)
            # Wake up at least every 100ms to observe stop()
            deadline = time.time() + self.poll_interval
            while self._running and time.time() < deadline:
                time.sleep(min(0.1, self.poll_interval))

    def start(self) -> None:
        self._running = True
        self._thread = threading.Thread(
            target=self._run, name="store-forwarder", daemon=True
        )
        self._thread.start()

    def stop(self, timeout: float = 1.0) -> None:
        self._running = False
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None
        self.client.close()
