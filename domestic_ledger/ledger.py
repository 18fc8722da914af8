"""
In-memory Ledger

Holds the realized transactions, in the order they were recorded, and
the id counters for both namespaces (transactions and events).

The counters belong to the ledger instance, so independent engines
(e.g. one per test) never share ids.
"""

import itertools
from datetime import date
from decimal import Decimal
from typing import Iterator

from domestic_ledger.models.ledger import Event, Transaction


class Ledger:
    """Append-only list of transactions plus id allocation."""

    def __init__(self):
        self._transactions: list[Transaction] = []
        self._transaction_ids: Iterator[int] = itertools.count()
        self._event_ids: Iterator[int] = itertools.count()

    @property
    def transactions(self) -> list[Transaction]:
        """Snapshot of the transactions in ledger order."""
        return list(self._transactions)

    def __len__(self) -> int:
        return len(self._transactions)

    def next_transaction_id(self) -> int:
        return next(self._transaction_ids)

    def next_event_id(self) -> int:
        return next(self._event_ids)

    def record(
        self,
        name: str,
        description: str,
        on: date,
        amount: Decimal,
    ) -> Transaction:
        """Create a transaction with a fresh id and append it."""
        transaction = Transaction(
            id=self.next_transaction_id(),
            name=name,
            description=description,
            date=on,
            amount=amount,
        )
        self._transactions.append(transaction)
        return transaction

    def realize(self, event: Event) -> Transaction:
        """Append a transaction for the event's current occurrence."""
        transaction = event.to_transaction(self.next_transaction_id())
        self._transactions.append(transaction)
        return transaction

    def total(self) -> Decimal:
        return sum((t.amount for t in self._transactions), Decimal(0))

    def reset(self) -> None:
        """Drop every transaction and restart both id counters."""
        self._transactions = []
        self._transaction_ids = itertools.count()
        self._event_ids = itertools.count()
