"""
Tests for configuration and logging setup.
"""

import logging
import pytest
from datetime import date

from ptacore.config import (
    CommoditySettings,
    JournalSettings,
    LoggingSettings,
    PricerSettings,
    get_settings,
    validate_all_settings,
)
from ptacore.diagnostics import configure_logging, get_logger
from ptacore.models.commodity import Commodity
from ptacore.models.currency import get_currency_registry
from ptacore.models.journal import Posting


class TestDefaults:
    """Tests for default configuration values."""

    def test_commodity_defaults(self):
        """Test CommoditySettings defaults."""
        settings = CommoditySettings()
        assert settings.default_minor_unit == 2
        assert settings.max_decimal_digits == 17

    def test_journal_defaults(self):
        """Test JournalSettings defaults."""
        settings = JournalSettings()
        assert settings.indent == 2
        assert settings.amount_gap == 4

    def test_pricer_defaults(self):
        """Test PricerSettings defaults."""
        settings = PricerSettings()
        assert settings.bidirectional is False
        assert settings.bypass_zero_quantity is True

    def test_logging_defaults(self):
        """Test LoggingSettings defaults."""
        settings = LoggingSettings()
        assert settings.level == "INFO"
        assert settings.json_output is True

    def test_all_valid(self):
        """Test validate_all_settings with a clean environment."""
        assert validate_all_settings() == {
            "commodity": True,
            "journal": True,
            "pricer": True,
            "logging": True,
        }


class TestEnvironment:
    """Tests for PTA_* environment overrides."""

    def test_env_override(self, monkeypatch):
        """Test that prefixed variables override defaults."""
        monkeypatch.setenv("PTA_PRICER_BIDIRECTIONAL", "true")
        monkeypatch.setenv("PTA_JOURNAL_AMOUNT_GAP", "6")
        assert PricerSettings().bidirectional is True
        assert JournalSettings().amount_gap == 6

    def test_amount_gap_minimum(self):
        """Test that the amount gap can't drop below two spaces."""
        with pytest.raises(ValueError):
            JournalSettings(amount_gap=1)

    def test_log_level_is_upper_cased(self):
        """Test level normalization."""
        assert LoggingSettings(level="debug").level == "DEBUG"

    def test_log_level_rejected(self):
        """Test unknown levels."""
        with pytest.raises(ValueError):
            LoggingSettings(level="verbose")

    def test_get_settings_is_cached(self):
        """Test that settings load once until the cache is cleared."""
        assert get_settings() is get_settings()
        first = get_settings()
        get_settings.cache_clear()
        assert get_settings() is not first

    def test_validate_reports_errors(self, monkeypatch):
        """Test that a bad value is reported, not raised."""
        monkeypatch.setenv("PTA_LOG_LEVEL", "chatty")
        get_settings.cache_clear()

        results = validate_all_settings()
        assert results["commodity"] is True
        assert results["logging"] is False
        assert "chatty" in results["logging_error"]


class TestSettingsInEffect:
    """Tests that the core reads its settings."""

    def _posting(self) -> Posting:
        posting = Posting(date=date(2023, 1, 3), description="Coffee Shop")
        posting.append_transfer("Expenses:Dining", Commodity.from_string("$ 4.50"))
        posting.append_transfer("Assets:Checking")
        return posting

    def test_journal_indent(self, monkeypatch):
        """Test that PTA_JOURNAL_INDENT changes serialized transfers."""
        monkeypatch.setenv("PTA_JOURNAL_INDENT", "4")
        get_settings.cache_clear()

        assert self._posting().to_ledger() == "\n".join([
            "2023-01-03 Coffee Shop",
            "    Expenses:Dining    $ 4.50",
            "    Assets:Checking",
        ])

    def test_journal_amount_gap(self, monkeypatch):
        """Test that PTA_JOURNAL_AMOUNT_GAP changes the amount column."""
        monkeypatch.setenv("PTA_JOURNAL_AMOUNT_GAP", "2")
        get_settings.cache_clear()

        assert self._posting().to_ledger().splitlines()[1] == "  Expenses:Dining  $ 4.50"

    def test_default_minor_unit(self, monkeypatch):
        """Test that unknown codes take PTA_COMMODITY_DEFAULT_MINOR_UNIT."""
        monkeypatch.setenv("PTA_COMMODITY_DEFAULT_MINOR_UNIT", "4")
        get_settings.cache_clear()
        get_currency_registry.cache_clear()

        assert Commodity.from_symbol_and_amount("AAPL", 1).to_s() == "1.0000 AAPL"
        assert Commodity.from_symbol_and_amount("USD", 1).to_s() == "1.00 USD"
        assert Commodity.from_symbol_and_amount("$", 1).to_s() == "$ 1.00"

    def test_max_decimal_digits(self, monkeypatch):
        """Test that scalar division keeps PTA_COMMODITY_MAX_DECIMAL_DIGITS digits."""
        monkeypatch.setenv("PTA_COMMODITY_MAX_DECIMAL_DIGITS", "4")
        get_settings.cache_clear()

        assert (Commodity.from_string("$ 1.00") / 3).to_s() == "$ 0.3333"


class TestLogging:
    """Tests for structlog configuration."""

    @pytest.fixture(autouse=True)
    def restore_logging(self):
        yield
        configure_logging(LoggingSettings())

    def test_configure_sets_package_level(self):
        """Test that the ptacore logger takes the configured level."""
        configure_logging(LoggingSettings(level="error", json_output=False))
        assert logging.getLogger("ptacore").level == logging.ERROR

    def test_get_logger_emits_events(self, caplog):
        """Test that events reach the stdlib logging tree."""
        configure_logging(LoggingSettings(level="DEBUG"))
        logger = get_logger("ptacore.tests")

        with caplog.at_level(logging.DEBUG, logger="ptacore"):
            logger.info("journal_parsed", postings=1)

        assert "journal_parsed" in caplog.text


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
