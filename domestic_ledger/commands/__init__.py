"""Command parsing package: tokenizer and interpreter."""

from domestic_ledger.commands.tokenizer import (
    CommandError,
    FormatError,
    tokenize,
)
from domestic_ledger.commands.interpreter import (
    CommandInterpreter,
    InvalidAmount,
    InvalidDate,
    InvalidOccurrenceCount,
    InvalidStep,
    InvalidValue,
    MissingArguments,
    UnknownCommand,
)

__all__ = [
    "CommandError",
    "CommandInterpreter",
    "FormatError",
    "InvalidAmount",
    "InvalidDate",
    "InvalidOccurrenceCount",
    "InvalidStep",
    "InvalidValue",
    "MissingArguments",
    "UnknownCommand",
    "tokenize",
]
