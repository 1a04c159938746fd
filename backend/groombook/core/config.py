"""
Centralized configuration module for application-wide settings.

Every setting is read from the environment once at import time and exposed
as a module-level constant, with a getter that tests can call (or reload
this module) to pick up a patched environment.
"""

import logging
import os
from zoneinfo import ZoneInfo

logger = logging.getLogger(__name__)

# ===========================
# Timezone Configuration
# ===========================


def get_app_timezone() -> ZoneInfo:
    """
    Get the application timezone from environment variable.

    Returns:
        ZoneInfo: Application timezone (defaults to UTC if not configured)

    Environment Variables:
        TZ: Timezone identifier (e.g., 'Europe/Madrid', 'UTC')
            Default: 'UTC'

    Businesses without an explicit timezone interpret their working hours
    in this zone.
    """
    tz_name = os.getenv("TZ", "UTC")

    try:
        return ZoneInfo(tz_name)
    except Exception as e:
        logger.warning(
            f"Invalid timezone '{tz_name}' specified in TZ environment variable. "
            f"Falling back to UTC. Error: {e}"
        )
        return ZoneInfo("UTC")


APP_TZ = get_app_timezone()


def log_timezone_config():
    """Log the active timezone configuration."""
    logger.info(
        "Timezone configuration initialized",
        extra={
            "context": {
                "timezone": str(APP_TZ),
                "tz_env_var": os.getenv("TZ", "UTC"),
            }
        },
    )


# ===========================
# Database Configuration
# ===========================


def get_database_url() -> str:
    """
    Get the SQLAlchemy database URL.

    Environment Variables:
        DATABASE_URL: Any SQLAlchemy URL. PostgreSQL is expected in
            production; SQLite is used for local development and tests.
            Default: 'sqlite:///./groombook.db'
    """
    return os.getenv("DATABASE_URL", "sqlite:///./groombook.db")


# ===========================
# Scheduling Configuration
# ===========================


def _get_positive_int(name: str, default: int) -> int:
    raw = os.getenv(name, str(default))
    try:
        value = int(raw)
    except (TypeError, ValueError):
        logger.warning(
            f"Invalid integer '{raw}' for {name}. Using default {default}.",
        )
        return default
    if value <= 0:
        logger.warning(f"{name} must be positive, got {value}. Using default {default}.")
        return default
    return value


def get_slot_step_minutes() -> int:
    """
    Get the stride between candidate slot start times.

    Environment Variables:
        SLOT_STEP_MINUTES: Minutes between candidate starts. Default: 15
    """
    return _get_positive_int("SLOT_STEP_MINUTES", 15)


def get_booking_max_retries() -> int:
    """
    Get how many times a booking transaction is attempted on transient
    storage conflicts before giving up.

    Environment Variables:
        BOOKING_MAX_RETRIES: Attempt count. Default: 3
    """
    return _get_positive_int("BOOKING_MAX_RETRIES", 3)


def get_booking_retry_backoff_ms() -> int:
    """
    Get the base backoff between booking attempts (multiplied by the
    attempt number).

    Environment Variables:
        BOOKING_RETRY_BACKOFF_MS: Milliseconds. Default: 50
    """
    return _get_positive_int("BOOKING_RETRY_BACKOFF_MS", 50)


SLOT_STEP_MINUTES = get_slot_step_minutes()
BOOKING_MAX_RETRIES = get_booking_max_retries()
BOOKING_RETRY_BACKOFF_MS = get_booking_retry_backoff_ms()


def log_scheduling_config():
    """Log the active scheduling configuration."""
    logger.info(
        "Scheduling configuration initialized",
        extra={
            "context": {
                "slot_step_minutes": SLOT_STEP_MINUTES,
                "booking_max_retries": BOOKING_MAX_RETRIES,
                "booking_retry_backoff_ms": BOOKING_RETRY_BACKOFF_MS,
            }
        },
    )


# ===========================
# Feature Flags Configuration
# ===========================


def get_rate_limit_enabled() -> bool:
    """
    Get whether Flask-Limiter rate limiting is enabled.

    Environment Variables:
        RATE_LIMIT_ENABLED: "1"/"true"/"yes" to enable. Default: '1'
    """
    flag_str = os.getenv("RATE_LIMIT_ENABLED", "1")
    return flag_str.strip().lower() in ("true", "1", "yes")
