"""Helpers for moving instants in and out of storage.

Timestamps are stored as UTC. Some backends (SQLite) drop tzinfo on the way
back, so everything read from the database goes through ``ensure_utc``.
"""

from datetime import datetime, timezone
from typing import Optional


def to_utc(value: datetime) -> datetime:
    """Convert an aware datetime to UTC; naive input is rejected."""
    if value.tzinfo is None:
        raise ValueError("Datetime must be timezone-aware")
    return value.astimezone(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Re-attach UTC to a naive value read from storage."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_iso_datetime(value: str) -> datetime:
    """Parse an ISO-8601 instant, requiring an explicit offset.

    A trailing ``Z`` is accepted as UTC.
    """
    if not isinstance(value, str) or not value:
        raise ValueError("Datetime must be an ISO-8601 string")
    text = value.strip()
    if text.endswith("Z") or text.endswith("z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        raise ValueError("Datetime must include a timezone offset")
    return parsed
