"""Configuration package."""

from domestic_ledger.config.settings import (
    CONFIG_FILE_OPTIONS,
    ConfigFileError,
    ConfigFormatError,
    LedgerSettings,
    get_settings,
    load_settings,
    parse_config_text,
)

__all__ = [
    "CONFIG_FILE_OPTIONS",
    "ConfigFileError",
    "ConfigFormatError",
    "LedgerSettings",
    "get_settings",
    "load_settings",
    "parse_config_text",
]
