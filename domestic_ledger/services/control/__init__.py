"""Control file input package."""

from domestic_ledger.services.control.interface import (
    ControlCallback,
    ControlData,
    ControlSource,
    WatcherError,
)
from domestic_ledger.services.control.file_source import FileControlSource

__all__ = [
    "ControlCallback",
    "ControlData",
    "ControlSource",
    "FileControlSource",
    "WatcherError",
]
