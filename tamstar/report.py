from __future__ import annotations

from datetime import date, datetime

from .intervals import annotate, average_interval_minutes, format_minutes, next_suggested_time, sorted_by_time
from .store import RecordStore


def format_clock(timestamp: datetime) -> str:
    return timestamp.strftime("%H:%M")


def day_summary_lines(store: RecordStore, day: date, now: datetime) -> list[str]:
    """Text lines for one day: each record with its "+N min", the average and the next suggestion."""
    day_records = sorted_by_time(store.list_records_for_day(day))
    lines = [
        format_clock(row.record.timestamp)
        + (f"  +{row.minutes_since_previous} min" if row.minutes_since_previous is not None else "")
        for row in annotate(day_records)
    ]
    if not lines:
        lines.append("No replacements logged.")
    average = average_interval_minutes(day_records)
    if average is not None:
        lines.append(f"Average interval: {format_minutes(average)}")
    suggested = next_suggested_time(day_records, store.current_settings().suggested_interval_hours, now)
    lines.append(f"Next suggested: {suggested:%Y-%m-%d %H:%M}")
    return lines
