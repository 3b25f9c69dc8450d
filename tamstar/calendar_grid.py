from __future__ import annotations

import calendar
from collections import Counter
from datetime import date
from typing import Iterable, Optional

from .intervals import local_day
from .models import Record

SUNDAY = 0
MONDAY = 1
SATURDAY = 6
MAX_DAY_MARKERS = 3

CalendarCell = Optional[date]
WEEKDAY_LABELS = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]
WEEKDAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]


def weekday_index(day: date) -> int:
    """Weekday with 0=Sunday through 6=Saturday."""
    return (day.weekday() + 1) % 7


def first_weekday_from_setting(value: int) -> int:
    return value if 0 <= value <= 6 else SUNDAY


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def start_of_month(day: date) -> date:
    return day.replace(day=1)


def change_month(month_start: date, delta: int) -> date:
    index = month_start.year * 12 + (month_start.month - 1) + delta
    year, month_zero = divmod(index, 12)
    return date(year, month_zero + 1, 1)


def weekday_labels(first_weekday: int = SUNDAY) -> list[str]:
    return [WEEKDAY_LABELS[(first_weekday + offset) % 7] for offset in range(7)]


def build_month_grid(
    year: int,
    month: int,
    first_weekday: int = SUNDAY,
) -> list[list[CalendarCell]]:
    first = date(year, month, 1)
    leading = (weekday_index(first) - first_weekday + 7) % 7

    cells: list[CalendarCell] = [None] * leading
    cells.extend(date(year, month, day) for day in range(1, days_in_month(year, month) + 1))
    if len(cells) % 7:
        cells.extend([None] * (7 - len(cells) % 7))

    return [cells[index:index + 7] for index in range(0, len(cells), 7)]


def day_marker_counts(
    records: Iterable[Record],
    year: int,
    month: int,
    cap: int = MAX_DAY_MARKERS,
) -> dict[date, int]:
    counts = Counter(
        day
        for day in (local_day(record.timestamp) for record in records)
        if day.year == year and day.month == month
    )
    return {day: min(count, cap) for day, count in counts.items()}
