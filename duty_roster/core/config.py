# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Core configuration — all env-driven, zero hardcode.
Single source of truth for every tunable parameter.
"""

import os
from typing import Optional


def _optional_int(name: str) -> Optional[int]:
    raw = os.getenv(name, "").strip()
    return int(raw) if raw else None


class Settings:
    """Application settings loaded from environment variables."""

    SERVICE_NAME: str = os.getenv("SERVICE_NAME", "duty-roster-service")
    SERVICE_VERSION: str = os.getenv("SERVICE_VERSION", "1.0.0")
    SERVICE_PORT: int = int(os.getenv("SERVICE_PORT", "8005"))

    # Organization-local calendar
    TIMEZONE: str = os.getenv("TIMEZONE", "Asia/Seoul")
    ROSTER_FILE: str = os.getenv("ROSTER_FILE", "config.json")

    # Outbound chat channel
    CHANNEL_WEBHOOK_URL: str = os.getenv("CHANNEL_WEBHOOK_URL", "")
    NOTIFICATION_TIMEOUT: float = float(os.getenv("NOTIFICATION_TIMEOUT", "5.0"))

    # Scheduling engine tunables
    WEEKEND_LOOKBACK_WEEKS: int = int(os.getenv("WEEKEND_LOOKBACK_WEEKS", "3"))
    MAX_WEEKDAY_ATTEMPTS: int = int(os.getenv("MAX_WEEKDAY_ATTEMPTS", "50"))
    WEEKEND_AUTHORIZED_PREFERENCE: float = float(
        os.getenv("WEEKEND_AUTHORIZED_PREFERENCE", "0.7")
    )
    WEEKEND_SECOND_REGULAR_PREFERENCE: float = float(
        os.getenv("WEEKEND_SECOND_REGULAR_PREFERENCE", "0.5")
    )
    WEEKDAY_AUTHORIZED_PREFERENCE: float = float(
        os.getenv("WEEKDAY_AUTHORIZED_PREFERENCE", "0.8")
    )
    WEEKDAY_SECOND_REGULAR_PREFERENCE: float = float(
        os.getenv("WEEKDAY_SECOND_REGULAR_PREFERENCE", "0.6")
    )
    RANDOM_SEED: Optional[int] = _optional_int("RANDOM_SEED")

    # Audit log bounds
    DEFAULT_HISTORY_LIMIT: int = int(os.getenv("DEFAULT_HISTORY_LIMIT", "100"))
    MAX_HISTORY_SIZE: int = int(os.getenv("MAX_HISTORY_SIZE", "10000"))
    MAX_CONFIRMED_IDS: int = int(os.getenv("MAX_CONFIRMED_IDS", "200"))

    CORS_ORIGINS: list[str] = os.getenv("CORS_ORIGINS", "*").split(",")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")


settings = Settings()
