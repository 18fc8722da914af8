"""Event scheduling package."""

from domestic_ledger.services.scheduling.scheduler import (
    MAX_SLEEP_SECONDS,
    EventScheduler,
    FiringOutcome,
)

__all__ = ["MAX_SLEEP_SECONDS", "EventScheduler", "FiringOutcome"]
