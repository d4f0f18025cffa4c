from __future__ import annotations

import calendar
from datetime import MAXYEAR, MINYEAR, date, datetime, time, timedelta
from typing import Iterator

from ..core.constants import WORKING_WEEKDAYS
from ..core.exceptions import ValidationError


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch it easily.
    """
    return datetime.now()


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min)


def at_time(day: date, hour: int, minute: int) -> datetime:
    return datetime.combine(day, time(hour=hour, minute=minute))


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First and last day of a month (month is 1-12)."""
    if month < 1 or month > 12:
        raise ValidationError("Bulan harus antara 1 dan 12")
    if year < MINYEAR or year > MAXYEAR:
        raise ValidationError(f"Tahun harus antara {MINYEAR} dan {MAXYEAR}")
    last = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last)


def iter_days(start: date, end: date) -> Iterator[date]:
    day = start
    while day <= end:
        yield day
        day += timedelta(days=1)


def is_working_day(day: date) -> bool:
    return day.weekday() in WORKING_WEEKDAYS
