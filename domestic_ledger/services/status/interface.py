"""
Status Sink Interface

DESIGN DECISION: The snapshot writer only knows how to hand over a full
buffer. Where the bytes end up is behind this interface:
1. A file on disk in production (FileStatusSink)
2. Memory for tests (InMemoryStatusSink)

Every write replaces the whole previous content. A reader must never
see old and new bytes mixed.
"""

from abc import ABC, abstractmethod
from typing import Optional


class StatusSink(ABC):
    """Destination of the published snapshot."""

    @abstractmethod
    def write(self, data: bytes) -> None:
        """
        Replace the sink's content with `data`.

        Raises:
            OSError: if the write failed; the previous content is kept
        """
        pass


class InMemoryStatusSink(StatusSink):
    """Keeps every written buffer; `content` is the latest one."""

    def __init__(self):
        self.writes: list[bytes] = []

    def write(self, data: bytes) -> None:
        self.writes.append(bytes(data))

    @property
    def content(self) -> Optional[bytes]:
        return self.writes[-1] if self.writes else None
