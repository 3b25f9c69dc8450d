from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

DEFAULT_INTERVAL_HOURS = 3.0


@dataclass(frozen=True)
class Record:
    id: str
    timestamp: datetime


@dataclass(frozen=True)
class Settings:
    suggested_interval_hours: float = DEFAULT_INTERVAL_HOURS


@dataclass(frozen=True)
class RecordRow:
    record: Record
    minutes_since_previous: int | None
