"""Tests for pydantic-settings configuration."""

import pytest

from paytrack.config import (
    AppSettings,
    LedgerSettings,
    RemoteStoreSettings,
    get_settings,
    validate_all_settings,
)
from paytrack.models.ledger import WeekStart


class TestLedgerSettings:
    """Tests for LedgerSettings."""

    def test_defaults(self, monkeypatch):
        for name in ("LEDGER_WEEK_START", "LEDGER_DEFAULT_CURRENCY", "LEDGER_WORKSPACE_ID"):
            monkeypatch.delenv(name, raising=False)
        settings = LedgerSettings()
        assert settings.week_start == WeekStart.SUNDAY
        assert settings.default_currency == "MAD"
        assert settings.workspace_id == "default"

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("LEDGER_WEEK_START", "monday")
        monkeypatch.setenv("LEDGER_DEFAULT_CURRENCY", " usd ")
        settings = LedgerSettings()
        assert settings.week_start == WeekStart.MONDAY
        assert settings.default_currency == "USD"


class TestRemoteStoreSettings:
    """Tests for RemoteStoreSettings."""

    def test_strips_trailing_slash(self):
        settings = RemoteStoreSettings(base_url="https://api.example.test/v1/")
        assert settings.base_url == "https://api.example.test/v1"

    def test_rejects_non_http_url(self):
        with pytest.raises(ValueError):
            RemoteStoreSettings(base_url="ftp://example.test")

    def test_retry_bounds(self):
        with pytest.raises(ValueError):
            RemoteStoreSettings(base_url="https://api.example.test", max_retries=0)


class TestAppSettings:
    """Tests for AppSettings."""

    def test_log_level_normalized(self):
        assert AppSettings(log_level="debug").log_level == "DEBUG"

    def test_unknown_log_level(self):
        with pytest.raises(ValueError):
            AppSettings(log_level="chatty")


class TestValidateAllSettings:
    """Tests for validate_all_settings()."""

    def test_reports_missing_remote_store(self, monkeypatch):
        monkeypatch.delenv("REMOTE_STORE_BASE_URL", raising=False)
        get_settings.cache_clear()
        try:
            results = validate_all_settings()
        finally:
            get_settings.cache_clear()

        assert results["ledger"] is True
        assert results["app"] is True
        assert results["remote_store"] is False
        assert "remote_store_error" in results
