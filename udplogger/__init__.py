"""UDP log shipping with collector-controlled severity filtering."""

from .collector import Collector, CollectorState
from .emitter import Emitter
from .handlers import UDPLogHandler
from .models import LogRecord, PeerEndpoint
from .protocol import SeverityLevel
from .store import RecordStore, RecordStoreError
from .transport import TransportError

__all__ = [
    "Collector",
    "CollectorState",
    "Emitter",
    "LogRecord",
    "PeerEndpoint",
    "RecordStore",
    "RecordStoreError",
    "SeverityLevel",
    "TransportError",
    "UDPLogHandler",
]
