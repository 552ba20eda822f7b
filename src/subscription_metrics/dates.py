from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta
from typing import Iterator, Tuple, Union

DATE_FORMAT = "%Y-%m-%d"
ONE_DAY = timedelta(days=1)


def parse_date(value: Union[str, date]) -> date:
    """
    Parse a calendar date from ``YYYY-MM-DD`` (or pass a ``date`` through).

    ``datetime`` instances are rejected: the engine only works at calendar-day
    granularity and silently dropping a time component hides mistakes.
    """
    if isinstance(value, datetime):
        raise ValueError(f"expected a calendar date, got datetime {value!r}")
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValueError(f"expected a YYYY-MM-DD string, got {type(value).__name__}")
    text = value.strip()
    if len(text) != 10:
        raise ValueError(f"invalid date {value!r}")
    return datetime.strptime(text, DATE_FORMAT).date()


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    return date(year, month, 1), date(year, month, days_in_month(year, month))


def month_key(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def overlap_days(a_start: date, a_end: date, b_start: date, b_end: date) -> int:
    """
    Inclusive whole-day overlap between ``[a_start, a_end]`` and ``[b_start, b_end]``.

    Computed on calendar days, so an inverted range yields 0.
    """
    start = max(a_start, b_start)
    end = min(a_end, b_end)
    return max(0, (end - start).days + 1)


def next_month(year: int, month: int) -> Tuple[int, int]:
    if month == 12:
        return year + 1, 1
    return year, month + 1


def iter_months(start: date, end: date) -> Iterator[Tuple[int, int]]:
    """Yield ``(year, month)`` from ``start``'s month while its first day is <= ``end``."""
    year, month = start.year, start.month
    while date(year, month, 1) <= end:
        yield year, month
        year, month = next_month(year, month)
