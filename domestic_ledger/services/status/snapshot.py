"""
Snapshot Writer

Serializes Stats and hands the bytes to the status sink. A failed write
is reported as SnapshotWriteError and never retried here: the control
loop treats it as fatal.
"""

from domestic_ledger.models.stats import Stats
from domestic_ledger.services.status.interface import StatusSink


class SnapshotWriteError(Exception):
    """The status sink rejected the snapshot."""
    pass


class SnapshotWriter:
    """Publishes Stats to a StatusSink."""

    def __init__(self, sink: StatusSink):
        self._sink = sink

    def publish(self, stats: Stats) -> int:
        """
        Overwrite the sink with the serialized snapshot.

        Returns the number of bytes written.

        Raises:
            SnapshotWriteError: if the sink failed
        """
        data = stats.to_json_bytes()
        try:
            self._sink.write(data)
        except OSError as e:
            raise SnapshotWriteError(f"Could not write status snapshot: {e}") from e
        return len(data)
