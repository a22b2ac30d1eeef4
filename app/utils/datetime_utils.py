"""
Datetime utilities.

Provides timezone-aware datetime functions.
"""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """
    Get current UTC datetime with timezone info.

    Returns:
        Current datetime in UTC with timezone awareness
    """
    return datetime.now(UTC)


def elapsed_seconds(started_at: datetime) -> float:
    """Seconds since `started_at`, rounded to milliseconds."""
    return round((utc_now() - started_at).total_seconds(), 3)
