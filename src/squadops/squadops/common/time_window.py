"""Date-range arithmetic shared by leave and attendance code.

All ranges are closed: both ``start`` and ``end`` days are included.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta
from typing import Iterator

from ..core.exceptions import InvalidRange, ValidationError


def inclusive_day_count(start: date, end: date) -> int:
    if end < start:
        raise InvalidRange(details={"start_date": start.isoformat(), "end_date": end.isoformat()})
    return (end - start).days + 1


def ranges_overlap(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    return a_start <= b_end and b_start <= a_end


def iter_days(start: date, end: date) -> Iterator[date]:
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def week_bounds(day: date) -> tuple[date, date]:
    """Monday..Sunday week containing ``day``."""
    monday = day - timedelta(days=day.weekday())
    return monday, monday + timedelta(days=6)


def month_bounds(year_month: str) -> tuple[date, date]:
    """First and last day of a ``YYYY-MM`` month."""
    try:
        first = datetime.strptime((year_month or "").strip(), "%Y-%m").date()
    except ValueError:
        raise ValidationError.for_field("month", "Month must use the YYYY-MM format")
    last_day = calendar.monthrange(first.year, first.month)[1]
    return first, first.replace(day=last_day)
