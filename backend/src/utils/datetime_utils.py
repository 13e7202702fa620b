"""
Datetime utilities for consistent timezone handling across the application.

All timestamps are stored and compared as timezone-aware UTC datetimes with
microsecond precision, so handoff lists sort deterministically.
"""

from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """
    Get current UTC datetime.

    Returns:
        Current datetime with UTC timezone
    """
    return datetime.now(timezone.utc)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Ensure a datetime is timezone-aware in UTC.

    Some backends (SQLite) hand back naive datetimes even for timezone-aware
    columns; those are assumed to already be UTC.

    Args:
        dt: Datetime to normalize

    Returns:
        Timezone-aware datetime in UTC, or None if input is None
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)
