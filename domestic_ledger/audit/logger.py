"""
Audit Logger

DESIGN DECISION: Every ledger mutation and every rejected command is
logged. This gives:
1. Complete traceability of how the ledger got into its current state
2. Debugging capability when a snapshot looks wrong
3. A record of lines that were dropped and why

The audit logger:
- Is synchronous: it only writes to the local structured log, and it is
  called from the single control task, so there is nothing to await
- Supports correlation IDs to trace all events caused by one input line
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from domestic_ledger.models.audit import AuditEvent, AuditSeverity


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Writes every audit event to the structured local log, at a level
    matching the event severity.
    """

    def __init__(self, logger_name: Optional[str] = None):
        self._logger = structlog.get_logger(logger_name or "domestic_ledger.audit")
        self._events: Optional[list[AuditEvent]] = None

    def log(self, event: AuditEvent) -> None:
        """Log an audit event."""
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._events is not None:
            self._events.append(event)

    def remember(self) -> list[AuditEvent]:
        """
        Start keeping a copy of every logged event in memory.

        Returns the (live) list the events are appended to. Meant for
        tests and diagnostics; the engine itself never reads it.
        """
        if self._events is None:
            self._events = []
        return self._events


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use one per input line or timer firing, and pass it to every
    audit event that line or firing causes.
    """
    return uuid4()
