"""
Event Scheduler

Owns the active events and, for each one, a single wait task that
sleeps until the event's due date and then posts a TimerFiring.

Firing protocol (run on the control task via `on_fire`):
1. Realize the current occurrence as a transaction in the ledger
2. Endless event (-1): move the date one step and re-arm
3. Otherwise decrement; still > 0: move the date and re-arm,
   reached 0: retire (forget the event, no re-arm)
4. The next date would be past the last representable date: retire
   after this occurrence

IMPORTANT: A wait task never touches the ledger. It only posts a
notification; all mutation happens in `on_fire`, so an event can never
have two firings in flight. A firing for an id that is no longer
active is ignored.

A scheduler created without a `notify` callback starts no wait tasks.
Firings are then driven by calling `on_fire` directly.
"""

import asyncio
from datetime import date, datetime, time
from typing import Callable, Optional

import structlog
from pydantic import BaseModel

from domestic_ledger.ledger import Ledger
from domestic_ledger.models.ledger import Event, TimerFiring, Transaction


FiringCallback = Callable[[TimerFiring], None]
Clock = Callable[[], datetime]

# Waits re-check the clock at least this often, so wall-clock jumps
# (suspend, NTP) do not push a firing far past its date.
MAX_SLEEP_SECONDS = 3600.0

logger = structlog.get_logger(__name__)


class FiringOutcome(BaseModel):
    """What a processed firing did to the ledger and the event."""

    event: Event
    transaction: Transaction
    retired: bool


class EventScheduler:
    """
    Active event set plus one cancellable wait per event.

    Must be used from a single task (the control loop). Wait tasks are
    created on the running event loop.
    """

    def __init__(
        self,
        notify: Optional[FiringCallback] = None,
        clock: Clock = datetime.now,
    ):
        self._notify = notify
        self._clock = clock
        self._active: dict[int, Event] = {}
        self._waits: dict[int, asyncio.Task] = {}

    def bind(self, notify: FiringCallback) -> None:
        """Set where firings are posted. Re-arms every active event."""
        self._notify = notify
        for event in self._active.values():
            self.arm(event)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def active_events(self) -> list[Event]:
        """Active events in registration order."""
        return list(self._active.values())

    def get(self, event_id: int) -> Optional[Event]:
        return self._active.get(event_id)

    def __contains__(self, event_id: int) -> bool:
        return event_id in self._active

    def __len__(self) -> int:
        return len(self._active)

    @property
    def pending_waits(self) -> int:
        return sum(1 for task in self._waits.values() if not task.done())

    # ------------------------------------------------------------------
    # Arming
    # ------------------------------------------------------------------

    def register(self, event: Event) -> None:
        """Add a new event to the active set and arm its wait."""
        if event.id in self._active:
            raise ValueError(f"Event {event.id} is already active")
        self._active[event.id] = event
        self.arm(event)

    def arm(self, event: Event) -> None:
        """
        Schedule the wake-up for `event.date`.

        Any previous wait for the same id is cancelled first, so there is
        at most one pending wait per event.
        """
        self._cancel_wait(event.id)
        if self._notify is None:
            return

        task = asyncio.get_running_loop().create_task(
            self._wait(event.id, datetime.combine(event.date, time.min)),
            name=f"event-wait-{event.id}",
        )
        self._waits[event.id] = task

    async def _wait(self, event_id: int, due: datetime) -> None:
        while True:
            remaining = (due - self._clock()).total_seconds()
            if remaining <= 0:
                break
            await asyncio.sleep(min(remaining, MAX_SLEEP_SECONDS))

        if self._waits.get(event_id) is asyncio.current_task():
            del self._waits[event_id]
        if self._notify is not None:
            self._notify(TimerFiring(event_id=event_id, fired_at=self._clock()))

    def _cancel_wait(self, event_id: int) -> None:
        task = self._waits.pop(event_id, None)
        if task is not None and not task.done():
            task.cancel()

    # ------------------------------------------------------------------
    # Firing
    # ------------------------------------------------------------------

    def on_fire(self, event_id: int, ledger: Ledger) -> Optional[FiringOutcome]:
        """
        Process a firing for `event_id`.

        Returns None when the event is not active (already retired or
        never registered); that is not an error.
        """
        event = self.get(event_id)
        if event is None:
            logger.debug("stale_firing", event_id=event_id)
            return None

        next_date: Optional[date] = None
        if event.is_infinite or event.remaining > 1:
            next_date = self._next_date(event)

        transaction = ledger.realize(event)

        if next_date is None:
            if not event.is_infinite:
                event.remaining -= 1
            self._retire(event_id)
            return FiringOutcome(event=event, transaction=transaction, retired=True)

        if not event.is_infinite:
            event.remaining -= 1
        event.date = next_date
        self.arm(event)
        return FiringOutcome(event=event, transaction=transaction, retired=False)

    def _next_date(self, event: Event) -> Optional[date]:
        try:
            return event.step.advance(event.date)
        except OverflowError:
            # no representable next occurrence, this firing is the last one
            logger.warning(
                "event_date_overflow",
                event_id=event.id,
                date=event.date.isoformat(),
                remaining=event.remaining,
            )
            return None

    def _retire(self, event_id: int) -> None:
        self._cancel_wait(event_id)
        del self._active[event_id]

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------

    def cancel_all(self) -> None:
        """Cancel every pending wait. Active events are kept."""
        for event_id in list(self._waits):
            self._cancel_wait(event_id)

    def clear(self) -> int:
        """Cancel every wait and forget every event. Returns how many were dropped."""
        self.cancel_all()
        dropped = len(self._active)
        self._active.clear()
        return dropped
