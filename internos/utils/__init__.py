"""Utility modules for InternOS."""

from .datetime_utils import (
    utc_now,
    start_of_utc_day,
    to_naive_utc,
    to_aware_utc,
    isoformat_utc,
    from_timestamp_utc,
)

__all__ = [
    "utc_now",
    "start_of_utc_day",
    "to_naive_utc",
    "to_aware_utc",
    "isoformat_utc",
    "from_timestamp_utc",
]
