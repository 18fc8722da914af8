"""
Core Ledger Models

These models describe the money movements the engine keeps in memory:

1. Transaction - a realized movement, immutable once recorded
2. Event - a single or recurring future movement, re-armed in place
3. Step - the calendar distance between two occurrences of an event
4. TimerFiring - the notification sent when an event comes due

DESIGN DECISION: The sign of the amount is the only income/expense marker.
There is no separate "type" field anywhere in the core model.
"""

import calendar
from datetime import date, datetime, timedelta
from decimal import Decimal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    model_validator,
)


# Occurrence counter value for events that never run out
INFINITE = -1


class Step(BaseModel):
    """
    Calendar step between two occurrences of an event.

    Components are applied in order: years, then months, then days.
    """
    model_config = ConfigDict(frozen=True)

    years: int = Field(default=0, ge=0)
    months: int = Field(default=0, ge=0)
    days: int = Field(default=0, ge=0)

    @property
    def is_zero(self) -> bool:
        """True when applying the step would not move the date."""
        return self.years == 0 and self.months == 0 and self.days == 0

    def advance(self, start: date) -> date:
        """
        Return the date one step after `start`.

        Month overflow is clamped to the last day of the target month,
        so Jan 31 + 1 month is Feb 28 (or 29).

        Raises:
            OverflowError: the result is past the last representable date
        """
        try:
            shifted = _add_months(start, self.years * 12)
            shifted = _add_months(shifted, self.months)
        except ValueError as e:
            raise OverflowError(f"{start} + {self} is out of the date range") from e
        return shifted + timedelta(days=self.days)


def _add_months(d: date, count: int) -> date:
    if count == 0:
        return d
    month_index = (d.year * 12) + (d.month - 1) + count
    year = month_index // 12
    month = (month_index % 12) + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(d.day, last_day))


class Transaction(BaseModel):
    """
    A realized money movement.

    Transactions are owned by the ledger and never modified after
    creation. Readers (aggregation, snapshot) only look at them.
    """
    model_config = ConfigDict(frozen=True)

    id: int = Field(
        ...,
        ge=0,
        description="Ledger-scoped transaction id, never reused"
    )
    name: str
    description: str = ""
    date: date
    amount: Decimal = Field(
        ...,
        description="Signed amount (positive = income, negative = expense)"
    )


class Event(BaseModel):
    """
    A future money movement that has not happened yet.

    `date` always holds the NEXT due date and is moved forward in place
    every time the event is re-armed.

    `remaining` counts the firings still owed, including the next one:
    - INFINITE (-1): fires forever, never decremented
    - positive: fires that many more times, then is retired
    - 0: never stored
    """

    id: int = Field(
        ...,
        ge=0,
        description="Event id, independent from transaction ids"
    )
    name: str
    description: str = ""
    date: date
    amount: Decimal
    remaining: int
    step: Step = Field(default_factory=Step)

    @model_validator(mode='after')
    def validate_recurrence(self) -> 'Event':
        """Reject occurrence counts and steps that cannot be scheduled."""
        if self.remaining == 0 or self.remaining < INFINITE:
            raise ValueError(
                f"Occurrence count must be {INFINITE} or positive, got {self.remaining}"
            )
        if self.remaining > 1 and self.step.is_zero:
            raise ValueError("A repeating event needs a non-zero step")
        return self

    @property
    def is_infinite(self) -> bool:
        return self.remaining == INFINITE

    def to_transaction(self, transaction_id: int) -> Transaction:
        """Realize the current occurrence as a transaction."""
        return Transaction(
            id=transaction_id,
            name=self.name,
            description=self.description,
            date=self.date,
            amount=self.amount,
        )


class TimerFiring(BaseModel):
    """
    Notification that an event's wait has elapsed.

    Carries no ownership - the event itself stays with the scheduler.
    """
    model_config = ConfigDict(frozen=True)

    event_id: int
    fired_at: datetime = Field(default_factory=datetime.now)
