"""Date manipulation utilities"""

import calendar
from datetime import date, datetime, timezone
from typing import Optional


def to_utc(value: datetime) -> datetime:
    """Return an aware UTC datetime. Naive values are taken to already be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_calendar_date(value: Optional[date]) -> Optional[date]:
    """Strip time-of-day, keeping only the calendar date"""
    if value is None:
        return None
    # datetime is a subclass of date, check it first. The date is taken in
    # the value's own zone.
    if isinstance(value, datetime):
        return value.date()
    return value


def add_months(start_date: date, months: int) -> date:
    """Add months to a date, clamping to the last day of shorter months"""
    month = start_date.month - 1 + months
    year = start_date.year + month // 12
    month = month % 12 + 1
    day = min(start_date.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def days_between(start: Optional[date], end: Optional[date]) -> Optional[int]:
    """Whole days from start to end, floored at zero. None if either is missing."""
    if start is None or end is None:
        return None
    return max((end - start).days, 0)
