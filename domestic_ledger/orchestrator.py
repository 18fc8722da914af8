"""
Control Loop for the Ledger Engine

This module ties the components together. One asyncio task (the
control loop) drains a single inbox of tagged messages:

1. ControlData       -> split lines -> tokenize -> interpret -> publish
2. TimerFired        -> scheduler.on_fire -> publish
3. RefreshTick       -> publish (keeps the month view current)
4. WatcherFailed     -> fatal, raises WatcherError
5. ShutdownRequested -> clean stop

DESIGN DECISION: The control loop is the ONLY place ledger state
changes. Wait tasks and the control source only post messages into the
inbox, so no locking is needed anywhere.

Rejected lines are logged and dropped. They never change state and
never trigger a publish. A failed snapshot write is fatal.
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, Union
from uuid import UUID

from domestic_ledger.audit import AuditLogger, create_correlation_id
from domestic_ledger.commands import CommandError, CommandInterpreter, tokenize
from domestic_ledger.config import LedgerSettings
from domestic_ledger.ledger import Ledger
from domestic_ledger.models.audit import AuditEventBuilder
from domestic_ledger.models.ledger import Event, TimerFiring, Transaction
from domestic_ledger.models.stats import Stats
from domestic_ledger.queries import aggregate
from domestic_ledger.services.control import (
    ControlData,
    ControlSource,
    FileControlSource,
    WatcherError,
)
from domestic_ledger.services.scheduling import EventScheduler
from domestic_ledger.services.status import (
    FileStatusSink,
    SnapshotWriteError,
    SnapshotWriter,
)


LINE_TERMINATOR = b"\n"


@dataclass(frozen=True)
class TimerFired:
    firing: TimerFiring


@dataclass(frozen=True)
class WatcherFailed:
    error: BaseException


@dataclass(frozen=True)
class ShutdownRequested:
    pass


@dataclass(frozen=True)
class RefreshTick:
    pass


InboxMessage = Union[ControlData, TimerFired, WatcherFailed, ShutdownRequested, RefreshTick]


class ControlLoop:
    """
    Single-task state machine driving the ledger.

    Flow for a control line:
    1. Bytes accumulate until a newline
    2. Tokenize and interpret the line
    3. On success, aggregate and publish the snapshot
    4. On failure, log the rejection and move on

    Flow for a firing:
    1. Scheduler realizes the occurrence and re-arms or retires
    2. Aggregate and publish
    """

    def __init__(
        self,
        ledger: Ledger,
        scheduler: EventScheduler,
        writer: SnapshotWriter,
        source: Optional[ControlSource] = None,
        audit_logger: Optional[AuditLogger] = None,
        clock: Callable[[], datetime] = datetime.now,
        refresh_interval_seconds: float = 0.0,
    ):
        self._ledger = ledger
        self._scheduler = scheduler
        self._writer = writer
        self._source = source
        self._audit_logger = audit_logger or AuditLogger()
        self._clock = clock
        self._refresh_interval = refresh_interval_seconds
        self._interpreter = CommandInterpreter(ledger, scheduler)
        self._inbox: asyncio.Queue = asyncio.Queue()
        self._buffer = bytearray()

    @property
    def ledger(self) -> Ledger:
        return self._ledger

    @property
    def scheduler(self) -> EventScheduler:
        return self._scheduler

    # ------------------------------------------------------------------
    # Inbox
    # ------------------------------------------------------------------

    def post(self, message: InboxMessage) -> None:
        """Queue a message for the control loop. Safe from any task."""
        self._inbox.put_nowait(message)

    def post_firing(self, firing: TimerFiring) -> None:
        self.post(TimerFired(firing))

    def request_shutdown(self) -> None:
        self.post(ShutdownRequested())

    async def run(self) -> None:
        """
        Run until shutdown.

        Raises:
            WatcherError: the control source failed
            SnapshotWriteError: the status snapshot could not be written
        """
        self._scheduler.bind(self.post_firing)

        feeders: list[asyncio.Task] = []
        if self._source is not None:
            feeders.append(asyncio.create_task(self._feed(self._source), name="control-source"))
        if self._refresh_interval > 0:
            feeders.append(asyncio.create_task(self._tick(), name="refresh-tick"))

        try:
            while True:
                message = await self._inbox.get()
                if not self.handle(message):
                    break
        finally:
            # pending waits are abandoned, the status file keeps its last state
            self._scheduler.cancel_all()
            for task in feeders:
                task.cancel()
            await asyncio.gather(*feeders, return_exceptions=True)

    async def _feed(self, source: ControlSource) -> None:
        try:
            await source.run(self.post)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.post(WatcherFailed(e))
        else:
            self.post(WatcherFailed(EOFError("control source stopped")))

    async def _tick(self) -> None:
        while True:
            await asyncio.sleep(self._refresh_interval)
            self.post(RefreshTick())

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def handle(self, message: InboxMessage) -> bool:
        """
        Process one inbox message.

        Returns False when the loop should stop.
        """
        if isinstance(message, ControlData):
            self._on_control_data(message)
        elif isinstance(message, TimerFired):
            self._on_firing(message.firing)
        elif isinstance(message, RefreshTick):
            self._publish()
        elif isinstance(message, WatcherFailed):
            self._audit_logger.log(AuditEventBuilder.watcher_failed(str(message.error)))
            raise WatcherError(f"Control file error: {message.error}") from message.error
        elif isinstance(message, ShutdownRequested):
            self._audit_logger.log(
                AuditEventBuilder.shutdown_requested(active_events=len(self._scheduler))
            )
            return False
        else:
            raise TypeError(f"Unexpected inbox message: {message!r}")
        return True

    # ------------------------------------------------------------------
    # Control lines
    # ------------------------------------------------------------------

    def _on_control_data(self, chunk: ControlData) -> None:
        if chunk.first:
            self._reset()

        self._buffer.extend(chunk.data)
        while True:
            index = self._buffer.find(LINE_TERMINATOR)
            if index < 0:
                break
            line = bytes(self._buffer[:index])
            del self._buffer[:index + 1]
            self.process_line(line)

    def _reset(self) -> None:
        self._buffer.clear()
        dropped_transactions = len(self._ledger)
        dropped_events = self._scheduler.clear()
        self._ledger.reset()

        if dropped_transactions or dropped_events:
            self._audit_logger.log(
                AuditEventBuilder.ledger_reset(dropped_transactions, dropped_events)
            )
            self._publish()

    def process_line(self, line: Union[str, bytes]) -> Optional[Union[Transaction, Event]]:
        """
        Apply one control line.

        Returns what was created, or None if the line was rejected.
        """
        correlation_id = create_correlation_id()
        text = line.decode("utf-8", errors="replace") if isinstance(line, bytes) else line
        self._audit_logger.log(AuditEventBuilder.command_received(text, correlation_id))

        try:
            created = self._interpreter.execute(tokenize(line))
        except CommandError as e:
            self._audit_logger.log(
                AuditEventBuilder.command_rejected(
                    line=text,
                    error_code=e.code,
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            )
            return None

        if isinstance(created, Transaction):
            self._audit_logger.log(
                AuditEventBuilder.transaction_recorded(
                    transaction_id=created.id,
                    name=created.name,
                    amount=created.amount,
                    on=created.date,
                    correlation_id=correlation_id,
                )
            )
        else:
            self._audit_logger.log(
                AuditEventBuilder.event_scheduled(
                    event_id=created.id,
                    name=created.name,
                    due=created.date,
                    remaining=created.remaining,
                    correlation_id=correlation_id,
                )
            )

        self._publish(correlation_id)
        return created

    # ------------------------------------------------------------------
    # Firings
    # ------------------------------------------------------------------

    def _on_firing(self, firing: TimerFiring) -> None:
        correlation_id = create_correlation_id()
        outcome = self._scheduler.on_fire(firing.event_id, self._ledger)

        if outcome is None:
            self._audit_logger.log(
                AuditEventBuilder.stale_firing_ignored(firing.event_id, correlation_id)
            )
            return

        event, transaction = outcome.event, outcome.transaction
        self._audit_logger.log(
            AuditEventBuilder.event_fired(
                event_id=event.id,
                transaction_id=transaction.id,
                fired_at=firing.fired_at,
                correlation_id=correlation_id,
            )
        )
        self._audit_logger.log(
            AuditEventBuilder.transaction_recorded(
                transaction_id=transaction.id,
                name=transaction.name,
                amount=transaction.amount,
                on=transaction.date,
                correlation_id=correlation_id,
            )
        )
        if outcome.retired:
            self._audit_logger.log(
                AuditEventBuilder.event_retired(event.id, event.name, correlation_id)
            )
        else:
            self._audit_logger.log(
                AuditEventBuilder.event_scheduled(
                    event_id=event.id,
                    name=event.name,
                    due=event.date,
                    remaining=event.remaining,
                    correlation_id=correlation_id,
                )
            )

        self._publish(correlation_id)

    # ------------------------------------------------------------------
    # Publishing
    # ------------------------------------------------------------------

    def snapshot(self) -> Stats:
        """Aggregate the current ledger state."""
        return aggregate(
            self._ledger.transactions,
            self._scheduler.active_events(),
            self._clock().date(),
        )

    def _publish(self, correlation_id: Optional[UUID] = None) -> None:
        try:
            size = self._writer.publish(self.snapshot())
        except SnapshotWriteError as e:
            self._audit_logger.log(AuditEventBuilder.snapshot_failed(str(e), correlation_id))
            raise
        self._audit_logger.log(AuditEventBuilder.snapshot_published(size, correlation_id))


def create_app_components(
    settings: LedgerSettings,
    audit_logger: Optional[AuditLogger] = None,
) -> ControlLoop:
    """
    Factory function to build a control loop wired to the filesystem.

    Args:
        settings: Paths and intervals to use

    Returns:
        A ControlLoop reading settings.ctl_file_path and publishing to
        settings.status_path
    """
    ledger = Ledger()
    scheduler = EventScheduler()
    writer = SnapshotWriter(FileStatusSink(settings.status_path))
    source = FileControlSource(
        settings.ctl_file_path,
        poll_interval_seconds=settings.poll_interval_seconds,
    )

    return ControlLoop(
        ledger=ledger,
        scheduler=scheduler,
        writer=writer,
        source=source,
        audit_logger=audit_logger or AuditLogger(),
        refresh_interval_seconds=settings.refresh_interval_seconds,
    )
