"""
Centralized configuration with environment variable overrides.

Collection names, timing, and display settings for the dashboard
metrics engine are configurable here. Nothing is hardcoded in the
engine or data source logic.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

from src.logging_context import session_handler

load_dotenv()

logger = logging.getLogger(__name__)


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_float(env_var: str, default: str) -> float:
    """Parse a float from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return float(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid float for {env_var}: {raw!r}"
        ) from None


@dataclass(frozen=True)
class DashboardConfig:
    """Timing and display settings for the metrics engine."""

    settle_delay_sec: float = _safe_float("VALIDATION_SETTLE_DELAY", "1.0")
    currency_label: str = os.getenv("CURRENCY_LABEL", "Ksh")
    notification_duration_ms: int = _safe_int("NOTIFICATION_DURATION_MS", "5000")
    timezone: str = os.getenv("DASHBOARD_TIMEZONE", "")

    def tzinfo(self) -> Optional[ZoneInfo]:
        """Resolve the configured zone; None means system local time."""
        if not self.timezone:
            return None
        return ZoneInfo(self.timezone)


@dataclass(frozen=True)
class CollectionConfig:
    """Names of the record collections the engine reads."""

    bookings: str = os.getenv("BOOKINGS_COLLECTION", "bookings")
    conversations: str = os.getenv("CONVERSATIONS_COLLECTION", "conversations")
    clients: str = os.getenv("CLIENTS_COLLECTION", "clients")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    dashboard: DashboardConfig = field(default_factory=DashboardConfig)
    collections: CollectionConfig = field(default_factory=CollectionConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    app_name: str = os.getenv("APP_NAME", "ops-dashboard")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    if config.dashboard.settle_delay_sec < 0:
        raise ValueError(
            f"VALIDATION_SETTLE_DELAY must be >= 0, got {config.dashboard.settle_delay_sec}"
        )
    if config.dashboard.notification_duration_ms < 0:
        raise ValueError(
            "NOTIFICATION_DURATION_MS must be >= 0, "
            f"got {config.dashboard.notification_duration_ms}"
        )
    if config.dashboard.timezone:
        try:
            config.dashboard.tzinfo()
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(
                f"DASHBOARD_TIMEZONE is not a known time zone: {config.dashboard.timezone!r}"
            ) from None

    for env_name, value in [
        ("BOOKINGS_COLLECTION", config.collections.bookings),
        ("CONVERSATIONS_COLLECTION", config.collections.conversations),
        ("CLIENTS_COLLECTION", config.collections.clients),
    ]:
        if not value or not value.strip():
            raise ValueError(f"{env_name} must not be empty")


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        handlers=[session_handler()],
    )
    logger.info("Configuration loaded for '%s'", config.app_name)
    return config


# Singleton instance
settings = load_config()
