"""Calendar arithmetic on plain ``datetime.date`` values."""

from __future__ import annotations

import calendar
from datetime import date, timedelta
from typing import Final, Iterator

__all__ = [
    "EPOCH",
    "days_in_month",
    "clamp_day_to_month",
    "add_months",
    "month_start",
    "last_day_of_month",
    "day_of_month",
    "nth_weekday_of_month",
    "sunday_weekday",
    "days_since_epoch",
    "from_epoch_days",
    "iter_months",
]

EPOCH: Final[date] = date(1970, 1, 1)


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def clamp_day_to_month(year: int, month: int, day: int) -> int:
    """Clamp day to valid range for the given year/month."""
    return min(day, days_in_month(year, month))


def add_months(d: date, n: int) -> date:
    """Add n months to date d, clamping day to month end."""
    month = d.month - 1 + n
    year = d.year + month // 12
    month = month % 12 + 1
    day = clamp_day_to_month(year, month, d.day)
    return d.replace(year=year, month=month, day=day)


def month_start(d: date) -> date:
    return d.replace(day=1)


def last_day_of_month(year: int, month: int) -> date:
    return date(year, month, days_in_month(year, month))


def day_of_month(year: int, month: int, day: int) -> date | None:
    """Return the given day of the month, or ``None`` if the month is too short."""
    if day > days_in_month(year, month):
        return None
    return date(year, month, day)


def sunday_weekday(d: date) -> int:
    """Weekday index counting Sunday as 0 and Saturday as 6."""
    return (d.weekday() + 1) % 7


def nth_weekday_of_month(year: int, month: int, weekday: int, n: int) -> date | None:
    """Return the ``n``-th ``weekday`` (Sunday = 0) of a month.

    ``n = -1`` selects the last occurrence. ``None`` is returned when the
    month has no such occurrence, which only happens for ``n = 5``.
    """
    if n == -1:
        last = last_day_of_month(year, month)
        offset = (sunday_weekday(last) - weekday) % 7
        return last - timedelta(days=offset)

    first = date(year, month, 1)
    offset = (weekday - sunday_weekday(first)) % 7
    target = 1 + offset + (n - 1) * 7
    if target > days_in_month(year, month):
        return None
    return date(year, month, target)


def days_since_epoch(d: date) -> int:
    return (d - EPOCH).days


def from_epoch_days(days: int) -> date:
    return EPOCH + timedelta(days=days)


def iter_months(start: date, step: int = 1) -> Iterator[tuple[int, int]]:
    """Yield ``(year, month)`` tuples forever, starting at ``start``'s month."""
    year, month = start.year, start.month
    while True:
        yield year, month
        month += step
        while month > 12:
            month -= 12
            year += 1
