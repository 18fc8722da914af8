"""
Polling Control File Source

Tails the control file: every poll interval it checks the file's size
and identity and delivers whatever was appended since the last read.

- Missing file at start: wait until it appears
- File shrank, was replaced or removed: read again from byte 0 and flag
  the next chunk as `first`
"""

import asyncio
import os
from pathlib import Path
from typing import Optional, Union

import structlog

from domestic_ledger.services.control.interface import (
    ControlCallback,
    ControlData,
    ControlSource,
)


logger = structlog.get_logger(__name__)


class FileControlSource(ControlSource):
    """Control source backed by a file on disk."""

    def __init__(
        self,
        path: Union[str, Path],
        poll_interval_seconds: float = 0.5,
    ):
        self._path = Path(path)
        self._poll_interval = poll_interval_seconds
        self._identity: Optional[tuple[int, int]] = None
        self._offset = 0
        self._first = True

    @property
    def path(self) -> Path:
        return self._path

    async def run(self, emit: ControlCallback) -> None:
        logger.info("control_source_started", path=str(self._path))
        while True:
            chunk = self.poll()
            if chunk is not None:
                emit(chunk)
            await asyncio.sleep(self._poll_interval)

    def poll(self) -> Optional[ControlData]:
        """
        Check the file once and return the newly appended bytes, if any.

        Raises:
            OSError: the file exists but cannot be read
        """
        try:
            stat = os.stat(self._path)
        except FileNotFoundError:
            if self._identity is not None:
                logger.warning("control_file_removed", path=str(self._path))
                self._restart()
                self._identity = None
            return None

        identity = (stat.st_dev, stat.st_ino)
        if self._identity is not None and (
            identity != self._identity or stat.st_size < self._offset
        ):
            logger.warning("control_file_restarted", path=str(self._path))
            self._restart()
        self._identity = identity

        if stat.st_size <= self._offset:
            return None

        with open(self._path, "rb") as f:
            f.seek(self._offset)
            data = f.read()
        if not data:
            return None

        self._offset += len(data)
        chunk = ControlData(data=data, first=self._first)
        self._first = False
        return chunk

    def _restart(self) -> None:
        self._offset = 0
        self._first = True
