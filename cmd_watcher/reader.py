"""Read access to the control file.

The control file is opened once and kept open for the lifetime of a
watch session.  Each read re-queries the size and reads the whole file
from the start.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import BinaryIO

logger = logging.getLogger(__name__)


class ControlFileReader:
    """Owns the open handle to the control file."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._fh: BinaryIO | None = None

    def open(self) -> "ControlFileReader":
        """Open the control file for reading.

        Raises FileNotFoundError or PermissionError when it cannot be opened.
        """
        if self._fh is None:
            self._fh = open(self.path, "rb", buffering=0)
            logger.debug("Opened control file %s", self.path)
        return self

    @property
    def is_open(self) -> bool:
        return self._fh is not None

    def read_all(self) -> bytes:
        """Return the current contents of the control file.

        The size comes from ``fstat`` on the open handle and may be stale by
        the time of the read (a single external writer is assumed); the
        returned length is what was actually read.
        """
        if self._fh is None:
            raise ValueError(f"Control file {self.path} is not open")

        size = os.fstat(self._fh.fileno()).st_size
        buf = bytearray(size)
        self._fh.seek(0)
        n = self._fh.readinto(buf) or 0
        return bytes(buf[:n])

    def close(self) -> None:
        """Release the handle (no-op when already closed)."""
        if self._fh is not None:
            self._fh.close()
            self._fh = None
            logger.debug("Closed control file %s", self.path)

    def __enter__(self) -> "ControlFileReader":
        return self.open()

    def __exit__(self, *exc_info) -> None:
        self.close()
