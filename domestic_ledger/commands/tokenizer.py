"""
Command Line Tokenizer

Splits one control-file line into fields:

    tr "weekly shop" groceries 2020-01-02 -40
    -> ["tr", "weekly shop", "groceries", "2020-01-02", "-40"]

Fields are separated by single ASCII spaces (two spaces make an empty
field). A field wrapped in double quotes may contain spaces, and `""`
inside it stands for one literal quote. A quote anywhere else in an
unquoted field is a format error.
"""

import csv
from typing import Union


class CommandError(Exception):
    """Base exception for a command line that cannot be applied."""

    code = "CommandError"


class FormatError(CommandError):
    """The line's quoting is malformed or its bytes are not UTF-8."""

    code = "FormatError"


def tokenize(line: Union[str, bytes]) -> list[str]:
    """
    Split a command line into fields.

    Empty input yields a single empty field.

    Raises:
        FormatError: unterminated quote, text after a closing quote,
            a bare quote in an unquoted field, or undecodable bytes
    """
    if isinstance(line, bytes):
        try:
            line = line.decode("utf-8")
        except UnicodeDecodeError as e:
            raise FormatError(f"Line is not valid UTF-8: {e}") from e

    line = line.rstrip("\r\n")
    if not line:
        return [""]

    reader = csv.reader(
        [line],
        delimiter=" ",
        quotechar='"',
        doublequote=True,
        skipinitialspace=False,
        strict=True,
    )
    try:
        fields = next(reader)
    except csv.Error as e:
        raise FormatError(f"Malformed quoting in {line!r}: {e}") from e

    _reject_bare_quotes(line)
    return fields


def _reject_bare_quotes(line: str) -> None:
    """A quote may only open a field, close it, or be doubled inside it."""
    in_quotes = False
    quoted = False
    field_start = True

    for position, ch in enumerate(line):
        if in_quotes:
            if ch == '"':
                in_quotes = False
            continue
        if ch == " ":
            field_start, quoted = True, False
            continue
        if ch == '"':
            if not (field_start or quoted):
                raise FormatError(f"Bare quote at column {position + 1} in {line!r}")
            in_quotes = quoted = True
        field_start = False
