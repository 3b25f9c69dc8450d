from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Iterable, Sequence

from .models import Record, RecordRow

MINUTE = timedelta(minutes=1)


def local_day(timestamp: datetime) -> date:
    if timestamp.tzinfo is not None:
        return timestamp.astimezone().date()
    return timestamp.date()


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min)


def records_for_day(records: Iterable[Record], day: date) -> list[Record]:
    return [record for record in records if local_day(record.timestamp) == day]


def sorted_by_time(records: Iterable[Record]) -> list[Record]:
    return sorted(records, key=lambda record: record.timestamp)


def interval_minutes(a: Record, b: Record) -> int:
    """Whole minutes from ``a`` to ``b``, floored. Negative when ``b`` is earlier."""
    return (b.timestamp - a.timestamp) // MINUTE


def average_interval_minutes(sorted_records: Sequence[Record]) -> int | None:
    if len(sorted_records) < 2:
        return None
    intervals = [
        interval_minutes(previous, current)
        for previous, current in zip(sorted_records, sorted_records[1:])
    ]
    return sum(intervals) // len(intervals)


def next_suggested_time(
    sorted_records: Sequence[Record],
    fallback_interval_hours: float,
    now: datetime | None = None,
) -> datetime:
    average = average_interval_minutes(sorted_records)
    if average is None:
        current = now if now is not None else datetime.now()
        return current + timedelta(hours=fallback_interval_hours)
    return sorted_records[-1].timestamp + timedelta(minutes=average)


def annotate(records: Iterable[Record]) -> list[RecordRow]:
    ordered = sorted_by_time(records)
    rows: list[RecordRow] = []
    for index, record in enumerate(ordered):
        minutes = interval_minutes(ordered[index - 1], record) if index > 0 else None
        rows.append(RecordRow(record=record, minutes_since_previous=minutes))
    return rows


def minutes_since(record: Record, now: datetime) -> int:
    return (now - record.timestamp) // MINUTE


def edit_window(record: Record, now: datetime) -> tuple[datetime, datetime]:
    # Edits stay on the record's original day and never move into the future.
    start = start_of_day(local_day(record.timestamp))
    if record.timestamp.tzinfo is not None:
        start = start.astimezone()
    return start, max(start, now)


def clamp_to_edit_window(candidate: datetime, record: Record, now: datetime) -> datetime:
    start, end = edit_window(record, now)
    return min(max(candidate, start), end)


def format_minutes(minutes: int) -> str:
    sign = "-" if minutes < 0 else ""
    hours, mins = divmod(abs(int(minutes)), 60)
    if hours:
        return f"{sign}{hours}h {mins:02d}m"
    return f"{sign}{mins}m"
