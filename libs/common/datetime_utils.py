"""Datetime utilities for timezone-aware UTC timestamps.

Usage:
    from libs.common.datetime_utils import utc_now

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
"""

from datetime import datetime, timezone

from dateutil.relativedelta import relativedelta


def utc_now() -> datetime:
    """Return timezone-aware UTC datetime.

    This replaces the deprecated datetime.utcnow() which returns naive datetimes.
    Always use this for timestamps in the database.
    """
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes read back from the database as UTC.

    Some backends (SQLite) drop the offset on ``DateTime(timezone=True)``
    columns; every stored value is written in UTC.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def add_months(value: datetime, months: int) -> datetime:
    """Shift ``value`` by whole calendar months, clamping the day of month.

    ``add_months(Jan 31, 1)`` is the last day of February.
    """
    return value + relativedelta(months=months)


def months_until(start: datetime, end: datetime) -> int:
    """Whole calendar months from ``start`` until ``end``, rounded up.

    Returns 0 when ``end`` is not after ``start``.
    """
    start = ensure_utc(start)
    end = ensure_utc(end)
    if end <= start:
        return 0
    delta = relativedelta(end, start)
    months = delta.years * 12 + delta.months
    remainder = (delta.days, delta.hours, delta.minutes, delta.seconds)
    if any(remainder) or delta.microseconds:
        months += 1
    return months
