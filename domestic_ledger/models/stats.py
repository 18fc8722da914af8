"""
Published View Models

`Stats` is what the engine publishes to the status file after every
ledger mutation. It is derived and disposable: nothing reads it back.

Wire format (keys are PascalCase on the wire):

    {
      "Treasury": {"Total": 60.0, "Entries": [{"Name": .., "Amount": .., "Date": ..}]},
      "Income":   {"Total": .., "Entries": [...]},
      "Expenses": {"Total": .., "Entries": [...]},
      "Balance":  ..
    }

Amounts go out as JSON numbers and dates as ISO-8601 timestamps at
midnight UTC. Empty entry lists are always `[]`, never null.
"""

from datetime import date
from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_pascal


Money = Annotated[
    Decimal,
    PlainSerializer(float, return_type=float, when_used="json"),
]

Timestamp = Annotated[
    date,
    PlainSerializer(
        lambda d: f"{d.isoformat()}T00:00:00Z",
        return_type=str,
        when_used="json",
    ),
]


class _WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_pascal,
        populate_by_name=True,
        frozen=True,
    )


class StatsEntry(_WireModel):
    """One line of a section: where the money came from or went to."""

    name: str
    amount: Money
    date: Timestamp


class StatsSection(_WireModel):
    """A total plus the entries that make it up, in processing order."""

    total: Money = Decimal(0)
    entries: list[StatsEntry] = Field(default_factory=list)


class Stats(_WireModel):
    """
    The published snapshot.

    - treasury: every transaction ever recorded
    - income / expenses: events due in the current calendar month
    - balance: signed sum of the in-month events
    """

    treasury: StatsSection = Field(default_factory=StatsSection)
    income: StatsSection = Field(default_factory=StatsSection)
    expenses: StatsSection = Field(default_factory=StatsSection)
    balance: Money = Decimal(0)

    def to_json_bytes(self) -> bytes:
        """Serialize to the wire format."""
        return self.model_dump_json(by_alias=True).encode("utf-8")
