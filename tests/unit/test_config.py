"""Unit tests for configuration loading."""

from decimal import Decimal

import pytest

from fintrack.services.config import Settings, get_settings, reset_settings


class TestSettings:
    """Tests for Settings and the lazy loader."""

    def test_defaults(self, monkeypatch):
        for name in ("DATABASE_URL", "LOG_LEVEL", "DEFAULT_CURRENCY"):
            monkeypatch.delenv(name, raising=False)

        settings = Settings(_env_file=None)

        assert settings.database_url == "sqlite:///./fintrack.db"
        assert settings.log_level == "INFO"
        assert settings.default_currency == "USD"
        assert settings.budget_alert_threshold == 85
        assert settings.budget_exceeded_threshold == 100
        assert settings.manual_distribution_tolerance == Decimal("0.01")

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("default_currency", "EUR")
        monkeypatch.setenv("BUDGET_ALERT_THRESHOLD", "75")

        settings = Settings(_env_file=None)

        assert settings.default_currency == "EUR"
        assert settings.budget_alert_threshold == 75

    def test_env_file_is_read(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("LOG_LEVEL=DEBUG\nUNRELATED_SETTING=ignored\n")

        settings = Settings(_env_file=str(env_file))

        assert settings.log_level == "DEBUG"

    def test_get_settings_is_cached_until_reset(self, monkeypatch):
        monkeypatch.setenv("DEFAULT_CURRENCY", "GBP")
        first = get_settings()

        monkeypatch.setenv("DEFAULT_CURRENCY", "JPY")
        assert get_settings() is first

        reset_settings()
        assert get_settings().default_currency == "JPY"

    def test_alert_threshold_above_exceeded_rejected(self):
        settings = Settings(_env_file=None, budget_alert_threshold=120)

        with pytest.raises(ValueError, match="BUDGET_ALERT_THRESHOLD"):
            settings.validate_thresholds()

    def test_get_settings_validates_thresholds(self, monkeypatch):
        monkeypatch.setenv("BUDGET_ALERT_THRESHOLD", "0")

        with pytest.raises(ValueError):
            get_settings()
