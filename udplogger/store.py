"""Append-only record store kept by the collector."""

import logging
import os
import threading
from typing import IO, Iterator, List, Optional

from pygtail import Pygtail

from .protocol import ENCODING


class RecordStoreError(Exception):
    """Base exception for record store operations."""

    pass


class DirectoryError(RecordStoreError):
    """Exception raised when directory operations fail."""

    pass


def ensure_dir(directory: str) -> None:
    """Create the store's (or an offset file's) parent directory if missing.

    Raises:
        DirectoryError: If the directory cannot be created
    """
    try:
        os.makedirs(directory, exist_ok=True)
    except OSError as e:
        raise DirectoryError(f"Failed to create directory {directory}: {e}")


class StoreTail(Pygtail):
    """Pygtail over the store, decoding undecodable bytes as U+FFFD.

    The store keeps payloads byte for byte, so a line may hold invalid
    UTF-8; a strict decode would fail on every poll and never advance the
    offset past it.
    """

    def _filehandle(self):
        fh = getattr(self, "_fh", None)
        if fh is None or fh.closed:
            filename = getattr(self, "_rotated_logfile", None) or self.filename
            self._fh = open(filename, "r", 1, encoding=ENCODING, errors="replace")
            self._fh.seek(getattr(self, "_offset", 0))
        return self._fh


class RecordStore:
    """Flat text file, one raw payload per line, flushed after every append."""

    def __init__(self, path: str):
        """
        Initialize the store.

        Args:
            path: Path to the store file; created on open if absent
        """
        self.path = path
        self.lock = threading.Lock()
        self._file: Optional[IO[bytes]] = None
        self.logger = logging.getLogger(self.__class__.__name__)

    @property
    def is_open(self) -> bool:
        return self._file is not None

    def open(self) -> None:
        """
        Open the file in append mode.

        Raises:
            RecordStoreError: If the file or its directory cannot be opened
        """
        directory = os.path.dirname(self.path)
        if directory:
            ensure_dir(directory)
        try:
            self._file = open(self.path, "ab")
        except OSError as e:
            raise RecordStoreError(f"Failed to open store {self.path}: {e}")

    def append(self, payload: bytes) -> None:
        """Write the payload unchanged plus a newline and flush it to disk."""
        with self.lock:
            if self._file is None:
                raise RecordStoreError(f"Store {self.path} is not open")
            self._file.write(payload + b"\n")
            self._file.flush()

    def dump(self) -> List[str]:
        """
        Read every stored line from the beginning of the file.

        Returns:
            List[str]: Lines in file order without trailing newlines; empty if
            the file does not exist
        """
        try:
            with open(self.path, "rb") as f:
                return [
                    line.rstrip(b"\n").decode(ENCODING, errors="replace")
                    for line in f
                ]
        except FileNotFoundError:
            self.logger.warning(f"Store file not found: {self.path}")
            return []

    def read_new(self, offset_path: Optional[str] = None) -> Iterator[str]:
        """
        Yield lines appended since the previous call with the same offset file.

        Args:
            offset_path: Where Pygtail keeps the read position; defaults to
                ``<path>.offset``

        Returns:
            Iterator[str]: New lines, trailing newline included
        """
        if not os.path.exists(self.path):
            return iter([])
        try:
            return StoreTail(self.path, offset_file=offset_path)
        except Exception as e:
            self.logger.error(f"Error reading store {self.path}: {e}")
            return iter([])

    def close(self) -> None:
        with self.lock:
            if self._file is not None:
                self._file.close()
                self._file = None
