"""
Command Interpreter

Turns a tokenized control line into a ledger mutation:

    tr <name> <description> <YYYY-MM-DD> <amount>
    ev <name> <description> <YYYY-MM-DD> <times> <y,m,d> <amount>

DESIGN DECISION: Validation runs to completion BEFORE anything is
allocated or appended. A rejected line leaves the ledger, the id
counters and the scheduler exactly as they were.

`times` is -1 for an event that repeats forever, or the number of
occurrences still to come. The step is only looked at when there can
be more than one occurrence (`times != 1`); an all-zero step is only
refused when the count is finite.
"""

import re
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Optional, Sequence, Union

from domestic_ledger.commands.tokenizer import CommandError
from domestic_ledger.ledger import Ledger
from domestic_ledger.models.ledger import INFINITE, Event, Step, Transaction
from domestic_ledger.services.scheduling import EventScheduler


TRANSACTION_COMMAND = "tr"
EVENT_COMMAND = "ev"

TRANSACTION_ARITY = 4
EVENT_ARITY = 6

_DATE_PATTERN = re.compile(r"^[0-9]{4}-[0-9]{2}-[0-9]{2}\Z")


class UnknownCommand(CommandError):
    """The first token is not a known command keyword."""

    code = "UnknownCommand"


class MissingArguments(CommandError):
    """The command has fewer arguments than it needs."""

    code = "MissingArguments"

    def __init__(self, command: str, expected: int, got: int):
        self.command = command
        self.expected = expected
        self.got = got
        super().__init__(f"{command}: expected {expected} arguments, got {got}")


class InvalidValue(CommandError):
    """Base for a single argument that does not parse."""

    field = "value"

    def __init__(self, value: str, reason: str = ""):
        self.value = value
        message = f"Invalid {self.field}: {value!r}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class InvalidDate(InvalidValue):
    code = "InvalidDate"
    field = "date"


class InvalidAmount(InvalidValue):
    code = "InvalidAmount"
    field = "amount"


class InvalidOccurrenceCount(InvalidValue):
    code = "InvalidOccurrenceCount"
    field = "occurrence count"


class InvalidStep(InvalidValue):
    code = "InvalidStep"
    field = "step"


def parse_date(value: str) -> date:
    """Parse a strict YYYY-MM-DD calendar date."""
    if not _DATE_PATTERN.match(value):
        raise InvalidDate(value, "expected YYYY-MM-DD")
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise InvalidDate(value, str(e)) from e


def parse_amount(value: str) -> Decimal:
    """Parse a signed, finite decimal amount."""
    try:
        amount = Decimal(value.strip())
    except InvalidOperation as e:
        raise InvalidAmount(value) from e
    if not amount.is_finite():
        raise InvalidAmount(value, "must be finite")
    return amount


def parse_times(value: str) -> int:
    """Parse an occurrence count: -1 or a positive integer."""
    try:
        times = int(value)
    except ValueError as e:
        raise InvalidOccurrenceCount(value) from e
    if times == 0:
        raise InvalidOccurrenceCount(value, "an event must occur at least once")
    if times < INFINITE:
        raise InvalidOccurrenceCount(value, f"use {INFINITE} for an endless event")
    return times


def parse_step(value: str, times: int) -> Step:
    """
    Parse a `years,months,days` step.

    Raises:
        InvalidStep: wrong shape, a negative component, or an all-zero
            step for an event with more than one occurrence left
    """
    parts = value.split(",")
    if len(parts) != 3:
        raise InvalidStep(value, "expected years,months,days")

    try:
        years, months, days = (int(part) for part in parts)
    except ValueError as e:
        raise InvalidStep(value, "components must be integers") from e

    if min(years, months, days) < 0:
        raise InvalidStep(value, "components cannot be negative")

    step = Step(years=years, months=months, days=days)
    if times > 1 and step.is_zero:
        raise InvalidStep(value, "a repeating event needs a non-zero step")
    return step


class CommandInterpreter:
    """
    Applies control commands to a ledger and an event scheduler.

    `execute()` returns what was created: the recorded Transaction for
    `tr`, the registered Event for `ev`.
    """

    def __init__(self, ledger: Ledger, scheduler: EventScheduler):
        self._ledger = ledger
        self._scheduler = scheduler

    def execute(self, tokens: Sequence[str]) -> Union[Transaction, Event]:
        """
        Validate and apply one tokenized command.

        Raises:
            CommandError: any validation failure; nothing was changed
        """
        if not tokens:
            raise UnknownCommand("Empty command")

        command, args = tokens[0], list(tokens[1:])

        if command == TRANSACTION_COMMAND:
            return self._transaction(args)
        if command == EVENT_COMMAND:
            return self._event(args)

        raise UnknownCommand(f"Unknown command: {command!r}")

    def _transaction(self, args: list[str]) -> Transaction:
        """tr <name> <description> <date> <amount>"""
        if len(args) < TRANSACTION_ARITY:
            raise MissingArguments(TRANSACTION_COMMAND, TRANSACTION_ARITY, len(args))

        name, description = args[0], args[1]
        on = parse_date(args[2])
        amount = parse_amount(args[3])

        return self._ledger.record(
            name=name,
            description=description,
            on=on,
            amount=amount,
        )

    def _event(self, args: list[str]) -> Event:
        """ev <name> <description> <date> <times> <step> <amount>"""
        if len(args) < EVENT_ARITY:
            raise MissingArguments(EVENT_COMMAND, EVENT_ARITY, len(args))

        name, description = args[0], args[1]
        due = parse_date(args[2])
        times = parse_times(args[3])

        step: Optional[Step] = None
        if times != 1:
            step = parse_step(args[4], times)
            try:
                step.advance(due)
            except OverflowError as e:
                raise InvalidStep(args[4], "the next occurrence is out of the date range") from e

        amount = parse_amount(args[5])

        event = Event(
            id=self._ledger.next_event_id(),
            name=name,
            description=description,
            date=due,
            amount=amount,
            remaining=times,
            step=step or Step(),
        )
        self._scheduler.register(event)
        return event
