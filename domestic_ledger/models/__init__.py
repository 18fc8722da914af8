"""
Data Models Package

Pydantic models for the ledger (transactions, events), the published
snapshot, and the audit trail.
"""

from domestic_ledger.models.ledger import (
    INFINITE,
    Event,
    Step,
    TimerFiring,
    Transaction,
)
from domestic_ledger.models.stats import (
    Stats,
    StatsEntry,
    StatsSection,
)
from domestic_ledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "INFINITE",
    "Event",
    "Step",
    "TimerFiring",
    "Transaction",
    # Published view
    "Stats",
    "StatsEntry",
    "StatsSection",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
