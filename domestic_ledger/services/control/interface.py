"""
Control Source Interface

A control source delivers the raw bytes of the control file to the
engine, chunk by chunk, in file order. It knows nothing about lines or
commands; the control loop splits and parses.

`ControlData.first` marks the first chunk of a fresh read of the file
(engine start, or the file was truncated or replaced). The control loop
starts from an empty ledger when it sees it.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable


@dataclass(frozen=True)
class ControlData:
    """A chunk of control file bytes."""
    data: bytes
    first: bool = False


ControlCallback = Callable[[ControlData], None]


class WatcherError(Exception):
    """The control source failed; the engine cannot continue."""
    pass


class ControlSource(ABC):
    """Producer of control file bytes."""

    @abstractmethod
    async def run(self, emit: ControlCallback) -> None:
        """
        Deliver chunks to `emit` until cancelled.

        Any exception raised here is treated by the control loop as a
        fatal watcher error.
        """
        pass
