"""
Stats Aggregation

DESIGN DECISION: Aggregation is a PURE function of the ledger state.
It reads transactions and active events, never changes them, and gives
the same Stats for the same inputs. It is simply re-run after every
mutation; nothing is cached between runs.

NOTE: income and expenses are built from the *events* due this month,
not from the month's realized transactions. A one-off `tr` therefore
only ever shows up in the treasury.
"""

from datetime import date
from decimal import Decimal
from typing import Iterable

from domestic_ledger.models.ledger import Event, Transaction
from domestic_ledger.models.stats import Stats, StatsEntry, StatsSection


def in_same_month(day: date, now: date) -> bool:
    """True when `day` falls in the calendar month of `now`."""
    return day.year == now.year and day.month == now.month


def _section(entries: list[StatsEntry]) -> StatsSection:
    total = sum((entry.amount for entry in entries), Decimal(0))
    return StatsSection(total=total, entries=entries)


def aggregate(
    transactions: Iterable[Transaction],
    events: Iterable[Event],
    now: date,
) -> Stats:
    """
    Build the published view.

    - treasury: every transaction, in ledger order
    - income: in-month events with amount >= 0
    - expenses: in-month events with amount < 0
    - balance: signed sum of all in-month event amounts
    """
    treasury = [
        StatsEntry(name=t.name, amount=t.amount, date=t.date)
        for t in transactions
    ]

    income: list[StatsEntry] = []
    expenses: list[StatsEntry] = []
    balance = Decimal(0)

    for event in events:
        if not in_same_month(event.date, now):
            continue

        entry = StatsEntry(name=event.name, amount=event.amount, date=event.date)
        if event.amount >= 0:
            income.append(entry)
        else:
            expenses.append(entry)
        balance += event.amount

    return Stats(
        treasury=_section(treasury),
        income=_section(income),
        expenses=_section(expenses),
        balance=balance,
    )
