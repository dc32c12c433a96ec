"""Utility functions for time and calendar-date handling.

Bookkeeping timestamps are UTC and timezone-aware, persisted as ISO-8601
strings. Scheduling works on calendar dates only: any time of
day or UTC offset on a caller-supplied value is dropped, not converted, so
"watered at 23:00" and "watered at 01:00" on the same day are the same date.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Any


def utc_now() -> datetime:
    """Return current UTC time as an aware datetime."""
    return datetime.now(timezone.utc)


def today() -> date:
    """Return the device/server local calendar date."""
    return date.today()


def add_days(base: date, days: int) -> date:
    """Return *base* shifted by a whole number of days."""
    return base + timedelta(days=days)


def coerce_datetime(value: Any) -> datetime | None:
    """
    Coerce value to datetime, returning None on failure.

    Args:
        value: String or datetime to coerce

    Returns:
        Datetime in timezone.utc or None if invalid
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        raw = value.strip()
        if raw.endswith("Z"):
            raw = raw.replace("Z", "+00:00")
        try:
            parsed = datetime.fromisoformat(raw)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    else:
        parsed = parsed.replace(tzinfo=timezone.utc)

    return parsed


def coerce_date(value: Any) -> date | None:
    """
    Coerce value to a calendar date, returning None on failure.

    Accepts ``date``, ``datetime`` and ISO-8601 strings ("2026-03-01",
    "2026-03-01T23:30:00Z", "2026-03-01T23:30:00+02:00"). The calendar date
    is taken as written; offsets are never applied.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    raw = value.strip()
    if raw.endswith("Z"):
        raw = raw[:-1]
    try:
        if len(raw) == 10:
            return date.fromisoformat(raw)
        return datetime.fromisoformat(raw).date()
    except ValueError:
        return None
