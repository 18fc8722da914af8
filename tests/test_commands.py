"""
Tests for the tokenizer and the command interpreter.

The interpreter is exercised with an unbound scheduler (no notify
callback), so registering an event starts no wait task.
"""

import pytest
from datetime import date
from decimal import Decimal

from domestic_ledger.commands import (
    CommandError,
    CommandInterpreter,
    FormatError,
    InvalidAmount,
    InvalidDate,
    InvalidOccurrenceCount,
    InvalidStep,
    MissingArguments,
    UnknownCommand,
    tokenize,
)
from domestic_ledger.ledger import Ledger
from domestic_ledger.models.ledger import INFINITE, Event, Step, Transaction
from domestic_ledger.services.scheduling import EventScheduler


@pytest.fixture
def ledger():
    return Ledger()


@pytest.fixture
def scheduler():
    return EventScheduler()


@pytest.fixture
def interpreter(ledger, scheduler):
    return CommandInterpreter(ledger, scheduler)


def run(interpreter, line):
    return interpreter.execute(tokenize(line))


class TestTokenizer:
    """Tests for splitting control lines into fields."""

    @pytest.mark.parametrize("line,expected", [
        ("foo b a r", ["foo", "b", "a", "r"]),
        ('foo "foo bar"', ["foo", "foo bar"]),
        ('foo "foo bar" bar', ["foo", "foo bar", "bar"]),
        ("foo", ["foo"]),
        ("a  b", ["a", "", "b"]),
        ('"say ""hi"""', ['say "hi"']),
    ])
    def test_split(self, line, expected):
        assert tokenize(line) == expected

    def test_empty_line_yields_single_empty_field(self):
        assert tokenize("") == [""]

    def test_unicode_fields(self):
        """Test multi-byte text survives, quoted or not."""
        assert tokenize('tr "café ☕" añejo') == ["tr", "café ☕", "añejo"]

    def test_bytes_input_is_decoded(self):
        assert tokenize("tr ñ".encode("utf-8")) == ["tr", "ñ"]

    def test_line_terminator_is_stripped(self):
        assert tokenize("tr a\r\n") == ["tr", "a"]

    def test_unterminated_quote_fails(self):
        with pytest.raises(FormatError):
            tokenize('foo "bar')

    def test_text_after_closing_quote_fails(self):
        with pytest.raises(FormatError):
            tokenize('foo "bar"baz')

    @pytest.mark.parametrize("line", [
        'tr na"me d 2020-01-01 1',
        'tr name" d 2020-01-01 1',
        'tr a b 2020-01-01 "1" 2"',
    ])
    def test_bare_quote_in_unquoted_field_fails(self, line):
        with pytest.raises(FormatError, match="Bare quote"):
            tokenize(line)

    def test_doubled_quote_inside_quoted_field_is_not_bare(self):
        assert tokenize('tr "a ""b"" c" d') == ["tr", 'a "b" c', "d"]

    def test_invalid_utf8_fails(self):
        with pytest.raises(FormatError):
            tokenize(b"tr \xff\xfe")

    def test_format_error_is_command_error(self):
        assert issubclass(FormatError, CommandError)


class TestTransactionCommand:
    """Tests for `tr <name> <description> <date> <amount>`."""

    def test_transaction_recorded(self, interpreter, ledger):
        tr = run(interpreter, "tr foo bar 2020-01-01 100")
        assert isinstance(tr, Transaction)
        assert (tr.id, tr.name, tr.description) == (0, "foo", "bar")
        assert tr.date == date(2020, 1, 1)
        assert tr.amount == Decimal(100)
        assert ledger.transactions == [tr]

    def test_each_transaction_increases_count_and_total(self, interpreter, ledger):
        """Test that a valid line adds exactly one transaction and its amount."""
        for line, amount in [
            ("tr a b 2020-01-01 100", Decimal("100")),
            ("tr c d 2020-01-02 -40.25", Decimal("-40.25")),
            ("tr e f 2020-01-03 1e3", Decimal("1000")),
        ]:
            before_count, before_total = len(ledger), ledger.total()
            run(interpreter, line)
            assert len(ledger) == before_count + 1
            assert ledger.total() == before_total + amount

    def test_ids_increase(self, interpreter):
        first = run(interpreter, "tr a b 2020-01-01 1")
        second = run(interpreter, "tr a b 2020-01-01 1")
        assert second.id == first.id + 1

    def test_quoted_fields(self, interpreter):
        tr = run(interpreter, 'tr "weekly shop" "corner store" 2020-01-02 -40')
        assert tr.name == "weekly shop"
        assert tr.description == "corner store"

    def test_extra_arguments_are_ignored(self, interpreter):
        tr = run(interpreter, "tr a b 2020-01-01 5 extra")
        assert tr.amount == Decimal(5)

    def test_missing_arguments(self, interpreter, ledger):
        with pytest.raises(MissingArguments):
            run(interpreter, "tr")
        with pytest.raises(MissingArguments):
            run(interpreter, "tr a b 2020-01-01")
        assert len(ledger) == 0

    @pytest.mark.parametrize("value", ["2020-13-01", "2020-02-30", "01-01-2020", "2020-1-1", "20200101", "soon"])
    def test_invalid_date(self, interpreter, ledger, value):
        with pytest.raises(InvalidDate):
            run(interpreter, f"tr a b {value} 5")
        assert len(ledger) == 0

    @pytest.mark.parametrize("value", ["abc", "", "NaN", "Infinity", "1,5"])
    def test_invalid_amount(self, interpreter, ledger, value):
        with pytest.raises(InvalidAmount):
            run(interpreter, f'tr a b 2020-01-01 "{value}"')
        assert len(ledger) == 0


class TestEventCommand:
    """Tests for `ev <name> <description> <date> <times> <step> <amount>`."""

    def test_event_registered(self, interpreter, scheduler, ledger):
        ev = run(interpreter, "ev rent desc 2020-01-01 2 0,1,0 -1000")
        assert isinstance(ev, Event)
        assert ev.remaining == 2
        assert ev.step == Step(months=1)
        assert ev.amount == Decimal(-1000)
        assert scheduler.active_events() == [ev]
        # events do not touch the transaction list
        assert len(ledger) == 0

    def test_event_ids_are_independent_of_transaction_ids(self, interpreter):
        run(interpreter, "tr a b 2020-01-01 1")
        run(interpreter, "tr a b 2020-01-01 1")
        ev = run(interpreter, "ev a b 2020-01-01 1 - 1")
        assert ev.id == 0

    def test_single_occurrence_ignores_step(self, interpreter):
        """Test that the step is not parsed when only one firing is owed."""
        ev = run(interpreter, "ev a b 2020-01-01 1 whatever 5")
        assert ev.remaining == 1
        assert ev.step.is_zero

    def test_endless_event_parses_step(self, interpreter):
        ev = run(interpreter, "ev a b 2020-01-01 -1 0,0,7 5")
        assert ev.remaining == INFINITE
        assert ev.step == Step(days=7)

    def test_endless_event_allows_zero_step(self, interpreter):
        ev = run(interpreter, "ev a b 2020-01-01 -1 0,0,0 5")
        assert ev.step.is_zero

    def test_endless_event_still_validates_step(self, interpreter):
        with pytest.raises(InvalidStep):
            run(interpreter, "ev a b 2020-01-01 -1 weekly 5")

    @pytest.mark.parametrize("value", ["0", "-2", "two", "1.5"])
    def test_invalid_occurrence_count(self, interpreter, scheduler, value):
        with pytest.raises(InvalidOccurrenceCount):
            run(interpreter, f"ev a b 2020-01-01 {value} 0,1,0 5")
        assert len(scheduler) == 0

    @pytest.mark.parametrize("value", ["0,0,0", "0,-1,0", "1,2", "1,2,3,4", "a,b,c", ""])
    def test_invalid_step(self, interpreter, scheduler, value):
        with pytest.raises(InvalidStep):
            run(interpreter, f'ev a b 2020-01-01 3 "{value}" 5')
        assert len(scheduler) == 0

    @pytest.mark.parametrize("line", [
        "ev big d 2020-01-01 3 10000,0,0 5",
        "ev x d 9999-12-31 -1 0,0,1 5",
        "ev x d 9999-12-15 2 0,1,0 5",
    ])
    def test_step_past_last_date_fails(self, interpreter, scheduler, line):
        with pytest.raises(InvalidStep, match="out of the date range"):
            run(interpreter, line)
        assert len(scheduler) == 0

    def test_single_occurrence_on_last_date(self, interpreter):
        ev = run(interpreter, "ev x d 9999-12-31 1 10000,0,0 5")
        assert ev.date == date(9999, 12, 31)

    def test_invalid_amount(self, interpreter, scheduler):
        with pytest.raises(InvalidAmount):
            run(interpreter, "ev a b 2020-01-01 2 0,1,0 lots")
        assert len(scheduler) == 0

    def test_missing_arguments(self, interpreter, scheduler):
        with pytest.raises(MissingArguments):
            run(interpreter, "ev foo")
        assert len(scheduler) == 0

    def test_rejected_line_does_not_consume_ids(self, interpreter):
        with pytest.raises(InvalidStep):
            run(interpreter, "ev a b 2020-01-01 2 0,0,0 5")
        ev = run(interpreter, "ev a b 2020-01-01 2 0,0,1 5")
        assert ev.id == 0


class TestUnknownCommand:
    """Tests for lines that do not start with a known keyword."""

    @pytest.mark.parametrize("line", ["xx a b c", "", "TR a b 2020-01-01 5", "in a 2020-01-01 5 0 x"])
    def test_unknown_command(self, interpreter, ledger, scheduler, line):
        with pytest.raises(UnknownCommand):
            run(interpreter, line)
        assert len(ledger) == 0
        assert len(scheduler) == 0

    def test_empty_token_list(self, interpreter):
        with pytest.raises(UnknownCommand):
            interpreter.execute([])
