"""Month arithmetic used by billing schedules and monthly ledgers."""
from __future__ import annotations

import calendar as _calendar
import re
from datetime import date, timedelta
from typing import Tuple

from billia.errors import ValidationError

_MONTH_KEY_RE = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")


def today() -> date:
    return date.today()


def month_key(value: date) -> str:
    """Return the "YYYY-MM" key for a date."""
    return f"{value.year}-{value.month:02d}"


def parse_month_key(key: str) -> Tuple[int, int]:
    if not key or not _MONTH_KEY_RE.match(key):
        raise ValidationError("month must use the YYYY-MM format")
    year, month = key.split("-")
    return int(year), int(month)


def add_months(year: int, month: int, delta: int) -> Tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def clamp_day(year: int, month: int, day: int) -> date:
    """Build a date, capping `day` to the last day of the month."""
    last = _calendar.monthrange(year, month)[1]
    return date(year, month, min(day, last))


def first_of_month(value: date) -> date:
    return value.replace(day=1)


def month_bounds(key: str) -> Tuple[date, date]:
    """Return [start, end) for a "YYYY-MM" key."""
    year, month = parse_month_key(key)
    next_year, next_month = add_months(year, month, 1)
    return date(year, month, 1), date(next_year, next_month, 1)


def end_of_next_month(value: date) -> date:
    year, month = add_months(value.year, value.month, 1)
    return clamp_day(year, month, 31)


def recent_month_keys(count: int, reference: date) -> list[str]:
    """Oldest-first list of the `count` month keys ending at `reference`."""
    keys = []
    for offset in range(count - 1, -1, -1):
        year, month = add_months(reference.year, reference.month, -offset)
        keys.append(f"{year}-{month:02d}")
    return keys


def days_between(start: date, end: date) -> int:
    return (end - start).days


def plus_days(value: date, days: int) -> date:
    return value + timedelta(days=days)
