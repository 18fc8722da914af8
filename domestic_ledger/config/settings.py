"""
Configuration Management for the Ledger Engine

Uses pydantic-settings for type-safe configuration from environment
variables and an optional `.env` file. A classic `key = value` config
file can be layered on top with `load_settings()`:

    # where commands come from
    ctlfile = ./ctl
    statusfile = ./status.json
    refreshinterval = 3600

DESIGN DECISION: All configuration is centralized here. Paths are
resolved to absolute paths at load time so the engine does not depend
on the working directory once it is running.
"""

import re
from functools import lru_cache
from pathlib import Path
from typing import Optional, Union

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigFileError(Exception):
    """The config file could not be opened."""

    def __init__(self, path: Union[str, Path], message: str):
        self.path = Path(path)
        super().__init__(message)


class ConfigFormatError(Exception):
    """A config file line is malformed or names an unknown option."""

    def __init__(self, line_number: int, message: str):
        self.line_number = line_number
        super().__init__(f"Error in config file at line {line_number}: {message}")


class LedgerSettings(BaseSettings):
    """
    Engine settings.

    Loads configuration from LEDGER_* environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    ctl_file_path: Path = Field(
        default=Path("ctl"),
        description="Control file the command lines are read from"
    )
    status_path: Path = Field(
        default=Path("status.json"),
        description="Status file the JSON snapshot is written to"
    )
    poll_interval_seconds: float = Field(
        default=0.5,
        gt=0,
        description="How often the control file is checked for new bytes"
    )
    refresh_interval_seconds: float = Field(
        default=0.0,
        ge=0,
        description="Republish the snapshot this often (0 disables)"
    )
    log_level: str = Field(
        default="INFO",
        description="Root log level"
    )

    @field_validator('ctl_file_path', 'status_path')
    @classmethod
    def resolve_path(cls, v: Path) -> Path:
        """Make paths absolute relative to the current directory."""
        return v.expanduser().resolve()

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


# Config file option name -> settings field
CONFIG_FILE_OPTIONS = {
    "ctlfile": "ctl_file_path",
    "statusfile": "status_path",
    "pollinterval": "poll_interval_seconds",
    "refreshinterval": "refresh_interval_seconds",
    "loglevel": "log_level",
}

# Accepted for compatibility with older config files, value unused
IGNORED_CONFIG_FILE_OPTIONS = frozenset({"transactionslog"})

_LINE_PATTERN = re.compile(r"^\s*(#.*|([^=#\s]+)\s*=\s*(.+?))?\s*$")


def parse_config_text(text: str) -> dict[str, str]:
    """
    Parse `key = value` config text into settings field overrides.

    Blank lines and lines starting with `#` are skipped.

    Raises:
        ConfigFormatError: on a malformed line or an unknown option
    """
    overrides: dict[str, str] = {}

    for line_number, line in enumerate(text.splitlines(), start=1):
        match = _LINE_PATTERN.match(line)
        if match is None:
            raise ConfigFormatError(line_number, "wrongly formatted line")

        key, value = match.group(2), match.group(3)
        if key is None:
            # comment or blank line
            continue
        if key in IGNORED_CONFIG_FILE_OPTIONS:
            continue

        field_name = CONFIG_FILE_OPTIONS.get(key)
        if field_name is None:
            raise ConfigFormatError(line_number, f"{key} is not a valid option")
        overrides[field_name] = value

    return overrides


def load_settings(config_path: Optional[Union[str, Path]] = None) -> LedgerSettings:
    """
    Build settings from the environment plus an optional config file.

    Values from the config file win over environment variables. Without a
    config file the cached settings from get_settings() are returned.

    Raises:
        ConfigFileError: if the config file cannot be read
        ConfigFormatError: if the config file is malformed
    """
    if config_path is None:
        return get_settings()

    try:
        text = Path(config_path).read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigFileError(config_path, f"No valid configuration file path provided: {e}") from e

    return LedgerSettings(**parse_config_text(text))


@lru_cache()
def get_settings() -> LedgerSettings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return LedgerSettings()
