"""Unit tests for Config class configuration properties.

Each property is tested for:
- Default values when no environment variables set
- Environment variable overrides
- Invalid value handling (fallback to defaults with warning)
"""

import logging
from decimal import Decimal
from pathlib import Path

import pytest

from src.utils.config import Config, get_config, get_database_url, reset_config


class TestDatabaseConfigProperties:
    """Tests for database configuration properties."""

    def setup_method(self):
        """Reset config singleton before each test."""
        reset_config()

    def teardown_method(self):
        """Clean up after each test."""
        reset_config()

    def test_db_timeout_default(self):
        """Default db_timeout is 30."""
        config = Config()
        assert config.db_timeout == 30

    def test_db_timeout_env_override(self, monkeypatch):
        """db_timeout can be overridden via environment variable."""
        monkeypatch.setenv("FIFO_LEDGER_DB_TIMEOUT", "60")
        config = Config()
        assert config.db_timeout == 60

    def test_db_timeout_invalid_uses_default(self, monkeypatch, caplog):
        """Invalid db_timeout falls back to default with warning."""
        monkeypatch.setenv("FIFO_LEDGER_DB_TIMEOUT", "invalid")
        with caplog.at_level(logging.WARNING):
            config = Config()
            assert config.db_timeout == 30
        assert "Invalid FIFO_LEDGER_DB_TIMEOUT" in caplog.text

    def test_db_path_override(self, monkeypatch, tmp_path):
        """FIFO_LEDGER_DB_PATH replaces the default location."""
        db_file = tmp_path / "ledger.db"
        monkeypatch.setenv("FIFO_LEDGER_DB_PATH", str(db_file))

        config = Config()

        assert config.database_path == db_file
        assert config.database_url == f"sqlite:///{str(db_file).replace(chr(92), '/')}"
        assert not config.database_exists()

    def test_development_uses_project_data_dir(self, monkeypatch):
        monkeypatch.delenv("FIFO_LEDGER_DB_PATH", raising=False)
        config = Config("development")

        assert config.is_development
        assert config.database_path.parent.name == "data"

    def test_production_uses_home_dir(self, monkeypatch):
        monkeypatch.delenv("FIFO_LEDGER_DB_PATH", raising=False)
        config = Config("production")

        assert config.is_production
        assert config.database_path.parent == Path.home() / ".fifo_ledger"


class TestCostingConfigProperties:
    """Tests for costing defaults."""

    def setup_method(self):
        reset_config()

    def teardown_method(self):
        reset_config()

    def test_tax_rate_default(self):
        assert Config().default_tax_rate == Decimal("0.18")

    def test_tax_rate_env_override(self, monkeypatch):
        monkeypatch.setenv("FIFO_LEDGER_DEFAULT_TAX_RATE", "0.16")
        assert Config().default_tax_rate == Decimal("0.16")

    @pytest.mark.parametrize("raw", ["abc", "-0.1", "NaN"])
    def test_tax_rate_invalid_uses_default(self, monkeypatch, caplog, raw):
        monkeypatch.setenv("FIFO_LEDGER_DEFAULT_TAX_RATE", raw)
        with caplog.at_level(logging.WARNING):
            assert Config().default_tax_rate == Decimal("0.18")
        assert "Invalid FIFO_LEDGER_DEFAULT_TAX_RATE" in caplog.text

    def test_expiry_days_default(self):
        assert Config().expiry_warning_days == 7

    def test_expiry_days_negative_uses_default(self, monkeypatch, caplog):
        monkeypatch.setenv("FIFO_LEDGER_EXPIRY_DAYS", "-3")
        with caplog.at_level(logging.WARNING):
            assert Config().expiry_warning_days == 7
        assert "Invalid FIFO_LEDGER_EXPIRY_DAYS" in caplog.text


class TestConfigSingleton:
    """Tests for get_config()."""

    def setup_method(self):
        reset_config()

    def teardown_method(self):
        reset_config()

    def test_singleton(self):
        assert get_config() is get_config()

    def test_environment_from_env_var(self, monkeypatch):
        monkeypatch.setenv("FIFO_LEDGER_ENV", "development")
        assert get_config().is_development

    def test_environment_cannot_switch(self, caplog):
        get_config("development")
        with caplog.at_level(logging.WARNING):
            config = get_config("production")
        assert config.is_development
        assert "singleton" in caplog.text

    def test_database_url(self, monkeypatch, tmp_path):
        monkeypatch.setenv("FIFO_LEDGER_DB_PATH", str(tmp_path / "x.db"))
        assert get_database_url().startswith("sqlite:///")
        assert get_database_url().endswith("x.db")
