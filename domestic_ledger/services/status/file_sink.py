"""
File Status Sink

Writes the snapshot next to the target under a temporary name, flushes
it to disk, then renames it over the target. The rename is atomic on
POSIX and Windows, so readers see either the old or the new snapshot.
"""

import os
import tempfile
from pathlib import Path
from typing import Union

from domestic_ledger.services.status.interface import StatusSink


class FileStatusSink(StatusSink):
    """Status file on the local filesystem."""

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def write(self, data: bytes) -> None:
        fd, tmp_name = tempfile.mkstemp(
            dir=self._path.parent,
            prefix=f".{self._path.name}.",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "wb") as tmp:
                tmp.write(data)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, self._path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise
