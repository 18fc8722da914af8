"""
Tests for configuration loading.
"""

import pytest
from pathlib import Path

from pydantic import ValidationError

from domestic_ledger.config import (
    ConfigFileError,
    ConfigFormatError,
    LedgerSettings,
    get_settings,
    load_settings,
    parse_config_text,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Keep LEDGER_* variables and stray .env files out of the tests."""
    for name in (
        "LEDGER_CTL_FILE_PATH",
        "LEDGER_STATUS_PATH",
        "LEDGER_POLL_INTERVAL_SECONDS",
        "LEDGER_REFRESH_INTERVAL_SECONDS",
        "LEDGER_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestParseConfigText:
    """Tests for the `key = value` format."""

    def test_options_and_comments(self):
        text = "# engine\nctlfile = ./ctl\n\n   statusfile=/tmp/status.json  \n"
        assert parse_config_text(text) == {
            "ctl_file_path": "./ctl",
            "status_path": "/tmp/status.json",
        }

    def test_value_may_contain_spaces(self):
        assert parse_config_text("ctlfile = my ctl") == {"ctl_file_path": "my ctl"}

    def test_last_value_wins(self):
        assert parse_config_text("loglevel = info\nloglevel = debug") == {"log_level": "debug"}

    def test_transactions_log_option_is_ignored(self):
        text = "transactionslog = ./transactions_log.csv\nctlfile = ./ctl\n"
        assert parse_config_text(text) == {"ctl_file_path": "./ctl"}

    def test_unknown_option_reports_line(self):
        with pytest.raises(ConfigFormatError) as exc_info:
            parse_config_text("ctlfile = a\n# ok\ncolour = blue\n")
        assert exc_info.value.line_number == 3
        assert "colour" in str(exc_info.value)

    def test_malformed_line_reports_line(self):
        with pytest.raises(ConfigFormatError) as exc_info:
            parse_config_text("ctlfile = a\nstatusfile\n")
        assert exc_info.value.line_number == 2

    def test_empty_text(self):
        assert parse_config_text("") == {}


class TestLoadSettings:
    """Tests for building LedgerSettings."""

    def test_defaults_are_absolute(self, tmp_path):
        settings = load_settings()
        assert settings.ctl_file_path == (tmp_path / "ctl").resolve()
        assert settings.status_path == (tmp_path / "status.json").resolve()
        assert settings.refresh_interval_seconds == 0.0

    def test_config_file(self, tmp_path):
        config = tmp_path / "ledger.conf"
        config.write_text(
            "ctlfile = commands\nstatusfile = out/status.json\n"
            "pollinterval = 0.1\nrefreshinterval = 60\nloglevel = debug\n",
            encoding="utf-8",
        )
        settings = load_settings(config)

        assert settings.ctl_file_path == (tmp_path / "commands").resolve()
        assert settings.status_path.is_absolute()
        assert settings.poll_interval_seconds == 0.1
        assert settings.refresh_interval_seconds == 60.0
        assert settings.log_level == "DEBUG"

    def test_missing_config_file(self, tmp_path):
        with pytest.raises(ConfigFileError) as exc_info:
            load_settings(tmp_path / "nope.conf")
        assert exc_info.value.path == Path(tmp_path / "nope.conf")

    def test_malformed_config_file(self, tmp_path):
        config = tmp_path / "ledger.conf"
        config.write_text("what is this\n", encoding="utf-8")
        with pytest.raises(ConfigFormatError):
            load_settings(config)

    def test_invalid_value(self, tmp_path):
        config = tmp_path / "ledger.conf"
        config.write_text("pollinterval = 0\n", encoding="utf-8")
        with pytest.raises(ValidationError):
            load_settings(config)

    def test_unknown_log_level(self):
        with pytest.raises(ValidationError, match="Unknown log level"):
            LedgerSettings(log_level="chatty")

    def test_environment_variables(self, monkeypatch, tmp_path):
        monkeypatch.setenv("LEDGER_STATUS_PATH", "env-status.json")
        assert load_settings().status_path == (tmp_path / "env-status.json").resolve()

    def test_config_file_wins_over_environment(self, monkeypatch, tmp_path):
        monkeypatch.setenv("LEDGER_CTL_FILE_PATH", "from-env")
        config = tmp_path / "ledger.conf"
        config.write_text("ctlfile = from-file\n", encoding="utf-8")
        assert load_settings(config).ctl_file_path.name == "from-file"

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()

    def test_load_without_config_file_uses_cached_settings(self):
        assert load_settings() is get_settings()
