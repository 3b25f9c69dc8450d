from __future__ import annotations

import json
import logging
import math
import threading
import uuid
from datetime import date, datetime
from typing import Any, Callable

from .database import TamStarDatabase
from .intervals import local_day, records_for_day, sorted_by_time
from .models import DEFAULT_INTERVAL_HOURS, Record, Settings

RECORDS_KEY = "records"
INTERVAL_KEY = "interval"

logger = logging.getLogger(__name__)


def encode_records(records: list[Record]) -> str:
    return json.dumps(
        [{"id": record.id, "timestamp": record.timestamp.isoformat()} for record in records]
    )


def decode_records(raw: str) -> list[Record]:
    """Parse the persisted records list.

    Raises ValueError when the payload is not a list of ``{id, timestamp}``
    objects. Timestamps may be ISO-8601 strings or epoch seconds; ids seen
    twice keep their first occurrence.
    """
    payload = json.loads(raw)
    if not isinstance(payload, list):
        raise ValueError(f"expected a list of records, got {type(payload).__name__}")

    records: list[Record] = []
    seen: set[str] = set()
    for item in payload:
        if not isinstance(item, dict) or "id" not in item or "timestamp" not in item:
            raise ValueError(f"malformed record entry: {item!r}")
        record_id = str(item["id"])
        if record_id in seen:
            logger.warning("Dropping duplicate record id %s", record_id)
            continue
        seen.add(record_id)
        records.append(Record(id=record_id, timestamp=_parse_timestamp(item["timestamp"])))
    return records


def naive_local(timestamp: datetime) -> datetime:
    """Stored timestamps are naive local time; aware values are converted."""
    if timestamp.tzinfo is None:
        return timestamp
    return timestamp.astimezone().replace(tzinfo=None)


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, bool):
        raise ValueError(f"invalid timestamp: {value!r}")
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value)
        except (OverflowError, OSError) as exc:
            raise ValueError(f"invalid timestamp: {value!r}") from exc
    if isinstance(value, str):
        return naive_local(datetime.fromisoformat(value))
    raise ValueError(f"invalid timestamp: {value!r}")


class RecordStore:
    """Single owner of the logged records and the suggested interval."""

    def __init__(
        self,
        db: TamStarDatabase,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._db = db
        self._clock = clock
        self._lock = threading.Lock()
        records, settings = self.load()
        self._records: dict[str, Record] = {record.id: record for record in records}
        self._settings = settings

    def load(self) -> tuple[list[Record], Settings]:
        records: list[Record] = []
        raw = self._db.get_value(RECORDS_KEY)
        if raw is not None:
            try:
                records = decode_records(raw)
            except ValueError as exc:
                logger.warning("Ignoring unreadable records in %s: %s", self._db.path, exc)
        hours = self._db.get_value_float(INTERVAL_KEY, DEFAULT_INTERVAL_HOURS)
        logger.debug("Loaded %d records, interval %.1fh", len(records), hours)
        return records, Settings(suggested_interval_hours=hours)

    def save(self) -> None:
        with self._lock:
            self._save_locked()

    def _save_locked(self) -> None:
        self._db.set_values(
            {
                RECORDS_KEY: encode_records(list(self._records.values())),
                INTERVAL_KEY: f"{self._settings.suggested_interval_hours}",
            }
        )

    def add(self, now: datetime | None = None) -> Record:
        timestamp = naive_local(now if now is not None else self._clock())
        record = Record(id=uuid.uuid4().hex, timestamp=timestamp)
        with self._lock:
            self._records[record.id] = record
            self._save_locked()
        logger.info("Logged replacement %s at %s", record.id, record.timestamp.isoformat())
        return record

    def delete(self, record_id: str) -> None:
        with self._lock:
            removed = self._records.pop(record_id, None)
            self._save_locked()
        if removed is not None:
            logger.info("Deleted record %s", record_id)

    def update(self, record_id: str, new_timestamp: datetime) -> None:
        new_timestamp = naive_local(new_timestamp)
        with self._lock:
            if record_id in self._records:
                self._records[record_id] = Record(id=record_id, timestamp=new_timestamp)
                logger.info("Moved record %s to %s", record_id, new_timestamp.isoformat())
            self._save_locked()

    def set_suggested_interval(self, hours: float) -> Settings:
        hours = float(hours)
        if not math.isfinite(hours) or hours <= 0:
            raise ValueError(f"Suggested interval must be a positive number of hours, got {hours}")
        with self._lock:
            self._settings = Settings(suggested_interval_hours=hours)
            self._save_locked()
        return self._settings

    def list_records(self) -> list[Record]:
        with self._lock:
            return list(self._records.values())

    def list_records_for_day(self, day: date) -> list[Record]:
        return records_for_day(self.list_records(), day)

    def records_for_month(self, year: int, month: int) -> list[Record]:
        return [
            record
            for record in self.list_records()
            if (local_day(record.timestamp).year, local_day(record.timestamp).month) == (year, month)
        ]

    def last_record(self) -> Record | None:
        ordered = sorted_by_time(self.list_records())
        return ordered[-1] if ordered else None

    def current_settings(self) -> Settings:
        return self._settings

    def now(self) -> datetime:
        return self._clock()
