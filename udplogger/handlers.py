"""Bridge from the standard logging package to an Emitter."""

import logging
import threading

from .emitter import Emitter
from .protocol import SeverityLevel


def to_severity(levelno: int) -> SeverityLevel:
    """Map a logging level number onto the four wire severities."""
    if levelno >= logging.CRITICAL:
        return SeverityLevel.CRITICAL
    if levelno >= logging.ERROR:
        return SeverityLevel.ERROR
    if levelno >= logging.WARNING:
        return SeverityLevel.WARNING
    return SeverityLevel.DEBUG


class UDPLogHandler(logging.Handler):
    """Forwards LogRecords to the collector through an initialized Emitter.

    The emitter's own filter still applies, so a level pushed by the
    collector takes effect on top of the handler's level.
    """

    def __init__(self, emitter: Emitter, level: int = logging.NOTSET):
        super().__init__(level)
        self.emitter = emitter
        self._local = threading.local()

    def emit(self, record: logging.LogRecord) -> None:
        # Records logged by the emitter while shipping one are not shipped
        if getattr(self._local, "emitting", False):
            return
        self._local.emitting = True
        try:
            self.emitter.log(
                to_severity(record.levelno),
                record.filename,
                record.funcName,
                record.lineno,
                self.format(record),
            )
        except Exception:
            self.handleError(record)
        finally:
            self._local.emitting = False
