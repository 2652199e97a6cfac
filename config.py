"""Application configuration module.

Reads settings from environment variables with defaults matching a
31-day, 10-person challenge starting on 2025-12-01 (America/Denver).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import date

from dotenv import load_dotenv

load_dotenv()


def _get_bool(name: str, default: bool = False) -> bool:
    """Get boolean from environment variable."""
    value = os.getenv(name)
    if value is None:
        return default
    return value.lower() in {"1", "true", "yes", "on"}


def _get_int(name: str, default: int) -> int:
    """Get integer from environment variable with fallback."""
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_float(name: str, default: float) -> float:
    """Get float from environment variable with fallback."""
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _get_str(name: str, default: str = "") -> str:
    """Get string from environment variable."""
    return os.getenv(name, default)


def _get_date(name: str, default: date) -> date:
    """Get ISO date (YYYY-MM-DD) from environment variable with fallback."""
    value = os.getenv(name)
    if not value:
        return default
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        return default


@dataclass(frozen=True)
class Config:
    environment: str
    debug: bool
    web_host: str
    web_port: int
    secret_key: str
    database_path: str
    log_folder: str
    db_pool_size: int
    db_busy_timeout: int

    # Slack
    slack_bot_token: str
    slack_channel_id: str
    slack_api_url: str
    slack_timeout: float
    notifications_enabled: bool
    app_url: str

    # Challenge window
    challenge_start: date
    challenge_days: int
    challenge_weeks: int
    timezone: str

    # Goals and thresholds
    daily_goal: int
    participant_count: int
    raffle_threshold_pct: float
    grand_prize_threshold_pct: float
    milestone_pct: float

    cache_ttl: int
    seed_roster: bool


def load_config() -> Config:
    """Load application configuration from environment variables.

    Returns:
        Config: Application configuration with validated values
    """
    return Config(
        environment=_get_str("ENVIRONMENT", "development"),
        debug=_get_bool("DEBUG", False),
        web_host=_get_str("WEB_HOST", "0.0.0.0"),
        web_port=_get_int("PORT", _get_int("WEB_PORT", 5000)),
        secret_key=_get_str("SECRET_KEY", "development_secret_key_change_me"),
        database_path=_get_str("DATABASE_PATH", "data/step_challenge.sqlite"),
        log_folder=_get_str("LOG_FOLDER", "logs"),
        db_pool_size=_get_int("DB_POOL_SIZE", 10),
        db_busy_timeout=_get_int("DB_BUSY_TIMEOUT", 5000),
        slack_bot_token=_get_str("SLACK_BOT_TOKEN", ""),
        slack_channel_id=_get_str("SLACK_CHANNEL_ID", ""),
        slack_api_url=_get_str("SLACK_API_URL", "https://slack.com/api/chat.postMessage"),
        slack_timeout=_get_float("SLACK_TIMEOUT", 10.0),
        notifications_enabled=_get_bool("NOTIFICATIONS_ENABLED", True),
        app_url=_get_str("APP_URL", ""),
        challenge_start=_get_date("CHALLENGE_START", date(2025, 12, 1)),
        challenge_days=_get_int("CHALLENGE_DAYS", 31),
        challenge_weeks=_get_int("CHALLENGE_WEEKS", 4),
        timezone=_get_str("CHALLENGE_TIMEZONE", "America/Denver"),
        daily_goal=_get_int("DAILY_GOAL", 7000),
        participant_count=_get_int("PARTICIPANT_COUNT", 10),
        raffle_threshold_pct=_get_float("RAFFLE_THRESHOLD_PCT", 0.6),
        grand_prize_threshold_pct=_get_float("GRAND_PRIZE_THRESHOLD_PCT", 0.7),
        milestone_pct=_get_float("MILESTONE_PCT", 0.5),
        cache_ttl=_get_int("CACHE_TTL", 30),
        seed_roster=_get_bool("SEED_ROSTER", True),
    )
