"""Client for pushing collected records to Loki using simple POST requests."""

import logging
from typing import Dict, List, Optional, Tuple

import requests

DEFAULT_LOKI_URL = "http://localhost:3100/loki/api/v1/push"
REQUEST_TIMEOUT = 10


class LokiClient:
    """Client for sending records to Loki."""

    def __init__(self, loki_url: Optional[str] = None, timeout: float = REQUEST_TIMEOUT):
        """Initialize the Loki client.

        Args:
            loki_url: Push endpoint of the Loki server
            timeout: Request timeout in seconds
        """
        self.loki_url = loki_url or DEFAULT_LOKI_URL
        self.timeout = timeout
        self.session = requests.Session()
        self.logger = logging.getLogger(self.__class__.__name__)
        self.logger.info(f"Initialized Loki client with URL: {self.loki_url}")

    def push_records(
        self,
        labels: Dict[str, str],
        entries: List[Tuple[str, str, Dict[str, str]]],
    ) -> bool:
        """Push one batch of collector records as a single Loki stream.

        Args:
            labels: Stream labels, e.g. app and service of the collector
            entries: Parsed store lines as (timestamp_ns, line, metadata)

        Returns:
            bool: True if Loki accepted the batch, False if the request
            failed (the batch is not retried)
        """
        if not entries:
            return True

        stream = {"stream": dict(labels), "values": [list(entry) for entry in entries]}
        try:
            response = self.session.post(
                self.loki_url,
                json={"streams": [stream]},
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            self.logger.error(f"Loki rejected {len(entries)} records: {e}")
            return False
        return True

    def close(self) -> None:
        self.session.close()
