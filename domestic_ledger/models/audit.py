"""
Audit Models for the Ledger Engine

Every state change in the engine is recorded as an audit event:
commands received and rejected, transactions recorded, events
scheduled, fired and retired, snapshots published.

DESIGN DECISION: Audit events are emitted, never edited. The audit
trail is the only log output the engine produces.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Command processing
    COMMAND_RECEIVED = "command_received"
    COMMAND_REJECTED = "command_rejected"

    # Ledger mutations
    TRANSACTION_RECORDED = "transaction_recorded"
    EVENT_SCHEDULED = "event_scheduled"
    EVENT_FIRED = "event_fired"
    EVENT_RETIRED = "event_retired"
    STALE_FIRING_IGNORED = "stale_firing_ignored"
    LEDGER_RESET = "ledger_reset"

    # Publishing
    SNAPSHOT_PUBLISHED = "snapshot_published"
    SNAPSHOT_FAILED = "snapshot_failed"

    # Loop lifecycle
    WATCHER_FAILED = "watcher_failed"
    SHUTDOWN_REQUESTED = "shutdown_requested"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of the audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.now,
        description="When the event occurred (local time)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity ('transaction', 'event', 'snapshot', 'command')"
    )
    entity_id: Optional[int] = Field(
        default=None,
        description="Ledger id of the entity this event relates to"
    )

    # Correlation - all events caused by one input line share an id
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_recorded(tr, correlation_id)
        event = AuditEventBuilder.event_retired(event_id, name)
    """

    @staticmethod
    def command_received(line: str, correlation_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.COMMAND_RECEIVED,
            severity=AuditSeverity.DEBUG,
            entity_type="command",
            correlation_id=correlation_id,
            description="Command line received",
            details={"line": line},
        )

    @staticmethod
    def command_rejected(
        line: str,
        error_code: str,
        error_message: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.COMMAND_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="command",
            correlation_id=correlation_id,
            description=f"Command rejected: {error_code}",
            details={"line": line},
            error_code=error_code,
            error_message=error_message,
        )

    @staticmethod
    def transaction_recorded(
        transaction_id: int,
        name: str,
        amount: Decimal,
        on: date,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_RECORDED,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"Transaction recorded: {name}",
            details={
                "name": name,
                "amount": str(amount),
                "date": on.isoformat(),
            },
        )

    @staticmethod
    def event_scheduled(
        event_id: int,
        name: str,
        due: date,
        remaining: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EVENT_SCHEDULED,
            entity_type="event",
            entity_id=event_id,
            correlation_id=correlation_id,
            description=f"Event scheduled: {name}",
            details={
                "due": due.isoformat(),
                "remaining": remaining,
            },
        )

    @staticmethod
    def event_fired(
        event_id: int,
        transaction_id: int,
        fired_at: datetime,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EVENT_FIRED,
            entity_type="event",
            entity_id=event_id,
            correlation_id=correlation_id,
            description=f"Event {event_id} fired",
            details={
                "transaction_id": transaction_id,
                "fired_at": fired_at.isoformat(),
            },
        )

    @staticmethod
    def event_retired(event_id: int, name: str, correlation_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EVENT_RETIRED,
            entity_type="event",
            entity_id=event_id,
            correlation_id=correlation_id,
            description=f"Event retired: {name}",
        )

    @staticmethod
    def stale_firing_ignored(event_id: int, correlation_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STALE_FIRING_IGNORED,
            severity=AuditSeverity.DEBUG,
            entity_type="event",
            entity_id=event_id,
            correlation_id=correlation_id,
            description=f"Firing for inactive event {event_id} ignored",
        )

    @staticmethod
    def ledger_reset(dropped_transactions: int, dropped_events: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_RESET,
            severity=AuditSeverity.WARNING,
            description="Control file restarted, ledger cleared",
            details={
                "dropped_transactions": dropped_transactions,
                "dropped_events": dropped_events,
            },
        )

    @staticmethod
    def snapshot_published(
        size_bytes: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SNAPSHOT_PUBLISHED,
            severity=AuditSeverity.DEBUG,
            entity_type="snapshot",
            correlation_id=correlation_id,
            description="Snapshot published",
            details={"size_bytes": size_bytes},
        )

    @staticmethod
    def snapshot_failed(
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SNAPSHOT_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="snapshot",
            correlation_id=correlation_id,
            description="Snapshot could not be written",
            error_code="SnapshotWriteError",
            error_message=error_message,
        )

    @staticmethod
    def watcher_failed(error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.WATCHER_FAILED,
            severity=AuditSeverity.CRITICAL,
            description="Control file watcher failed",
            error_code="WatcherError",
            error_message=error_message,
        )

    @staticmethod
    def shutdown_requested(active_events: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SHUTDOWN_REQUESTED,
            description="Shutdown requested, pending waits abandoned",
            details={"active_events": active_events},
        )
