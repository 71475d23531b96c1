"""Helper functions for time windows and duration math."""

from datetime import datetime, timedelta, timezone
from typing import Iterable


def ensure_aware(ts: datetime) -> datetime:
    """Treat naive timestamps as UTC so they compare with aware ones."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts


def start_of_day(ts: datetime) -> datetime:
    """Midnight at the start of the timestamp's day, keeping its timezone."""
    return ts.replace(hour=0, minute=0, second=0, microsecond=0)


def window_start(now: datetime, days: int = 30) -> datetime:
    """
    Start of the trailing window ending at now.

    The start is normalized to midnight, so the window covers slightly more
    than `days` full days.
    """
    return start_of_day(now - timedelta(days=days))


def hours_between(start: datetime, end: datetime) -> float:
    """Signed hours from start to end (negative when end is earlier)."""
    return (end - start).total_seconds() / 3600


def mean_or_default(values: Iterable[float], default: float) -> float:
    """Arithmetic mean, or the default when there are no values."""
    values = list(values)
    if not values:
        return default
    return sum(values) / len(values)


def forecast_target_date(now: datetime, days_ahead: int) -> datetime:
    """Start of the day `days_ahead` days after now."""
    return start_of_day(now + timedelta(days=days_ahead))
