"""
Centralized datetime utilities.

The store keeps TIMESTAMP WITHOUT TIME ZONE columns in UTC, so every
timestamp written by the application goes through these helpers to stay
naive-UTC on the way in and explicit-UTC on the way out.
"""

from datetime import datetime
from typing import Optional
import pytz


def utc_now() -> datetime:
    """Get current time in UTC (naive)."""
    return datetime.now(pytz.UTC).replace(tzinfo=None)


def start_of_utc_day(now: Optional[datetime] = None) -> datetime:
    """Midnight of the current UTC calendar day (naive)."""
    now = now or utc_now()
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def to_naive_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Convert any datetime to naive UTC for database storage.

    Aware datetimes are converted to UTC first; naive datetimes are
    assumed to already be in UTC.
    """
    if dt is None:
        return None

    if dt.tzinfo is not None:
        return dt.astimezone(pytz.UTC).replace(tzinfo=None)

    return dt


def to_aware_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC tzinfo to a naive UTC datetime (for API responses)."""
    if dt is None:
        return None

    if dt.tzinfo is not None:
        return dt.astimezone(pytz.UTC)

    return pytz.UTC.localize(dt)


def isoformat_utc(dt: Optional[datetime]) -> Optional[str]:
    """Serialize a stored timestamp as ISO-8601 with a UTC offset."""
    aware = to_aware_utc(dt)
    return aware.isoformat() if aware else None


def from_timestamp_utc(timestamp: float) -> datetime:
    """POSIX timestamp (e.g. a file mtime) to naive UTC."""
    return datetime.fromtimestamp(timestamp, pytz.UTC).replace(tzinfo=None)
