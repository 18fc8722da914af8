"""
Status Publishing Package

The snapshot writer plus the sinks it can publish to.
"""

from domestic_ledger.services.status.interface import (
    InMemoryStatusSink,
    StatusSink,
)
from domestic_ledger.services.status.file_sink import FileStatusSink
from domestic_ledger.services.status.snapshot import (
    SnapshotWriteError,
    SnapshotWriter,
)

__all__ = [
    # Interfaces
    "StatusSink",
    # Implementations
    "FileStatusSink",
    "InMemoryStatusSink",
    # Writer
    "SnapshotWriteError",
    "SnapshotWriter",
]
