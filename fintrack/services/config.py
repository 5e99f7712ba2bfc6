"""Application configuration from environment variables and ``.env``."""

import logging
from decimal import Decimal
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Settings loaded from environment variables.

    Pydantic automatically loads values from:
    1. OS environment variables (at instantiation time)
    2. .env file in the working directory

    Variable names are case-insensitive (``DATABASE_URL`` or ``database_url``).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",  # Allow extra fields in .env file
    )

    database_url: str = "sqlite:///./fintrack.db"
    log_level: str = "INFO"
    log_file: str = "logs/fintrack.log"
    default_currency: str = "USD"

    # Budget notification thresholds (percent of total_amount)
    budget_alert_threshold: int = 85
    budget_exceeded_threshold: int = 100

    # Max |sum(manual amounts) - expense amount| accepted for multi-bucket manual distribution
    manual_distribution_tolerance: Decimal = Decimal("0.01")

    def validate_thresholds(self) -> None:
        """Validate notification thresholds are ordered and positive."""
        if not 0 < self.budget_alert_threshold <= self.budget_exceeded_threshold:
            raise ValueError(
                "BUDGET_ALERT_THRESHOLD must be positive and not above BUDGET_EXCEEDED_THRESHOLD"
            )


_settings_instance: Optional[Settings] = None


def get_settings() -> Settings:
    """Get or create the settings instance.

    Lazy-loaded so tests and scripts can set environment variables before the
    first access.
    """
    global _settings_instance
    if _settings_instance is None:
        settings = Settings()
        settings.validate_thresholds()
        _settings_instance = settings
        logger.debug("Loaded settings for database %s", _settings_instance.database_url)
    return _settings_instance


def reset_settings() -> None:
    """Drop the cached settings so the next ``get_settings()`` re-reads the environment."""
    global _settings_instance
    _settings_instance = None


__all__ = ["Settings", "get_settings", "reset_settings"]
