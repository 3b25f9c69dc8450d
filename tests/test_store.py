from __future__ import annotations

import json
import tempfile
import unittest
from datetime import date, datetime, timedelta, timezone
from pathlib import Path

from tamstar.database import TamStarDatabase
from tamstar.intervals import next_suggested_time, sorted_by_time
from tamstar.models import Record, Settings
from tamstar.store import INTERVAL_KEY, RECORDS_KEY, RecordStore, decode_records


class _Clock:
    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


class RecordStoreTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.db_file = Path(self._tmp.name) / "tamstar.sqlite3"
        self.db = TamStarDatabase(self.db_file)
        self.clock = _Clock(datetime(2026, 4, 2, 9, 0, 0))

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _store(self) -> RecordStore:
        return RecordStore(TamStarDatabase(self.db_file), clock=self.clock)

    def test_empty_store_has_defaults(self) -> None:
        store = self._store()
        self.assertEqual(store.list_records(), [])
        self.assertEqual(store.current_settings(), Settings(suggested_interval_hours=3.0))
        self.assertIsNone(store.last_record())

    def test_add_uses_clock_and_persists(self) -> None:
        store = self._store()
        record = store.add()
        self.assertEqual(record.timestamp, datetime(2026, 4, 2, 9, 0, 0))
        reloaded = self._store()
        self.assertEqual(reloaded.list_records(), [record])

    def test_add_assigns_unique_ids(self) -> None:
        store = self._store()
        ids = {store.add().id for _ in range(20)}
        self.assertEqual(len(ids), 20)

    def test_save_load_round_trip(self) -> None:
        store = self._store()
        created = []
        for _ in range(5):
            created.append(store.add())
            self.clock.advance(minutes=37)
        store.set_suggested_interval(4.5)

        records, settings = self._store().load()
        self.assertEqual(
            sorted((r.id, r.timestamp) for r in records),
            sorted((r.id, r.timestamp) for r in created),
        )
        self.assertEqual(settings.suggested_interval_hours, 4.5)

    def test_delete_missing_id_is_noop(self) -> None:
        store = self._store()
        first = store.add()
        store.delete("no-such-id")
        self.assertEqual(store.list_records(), [first])
        self.assertEqual(self._store().list_records(), [first])

    def test_delete_removes_and_persists(self) -> None:
        store = self._store()
        first = store.add()
        self.clock.advance(minutes=5)
        second = store.add()
        store.delete(first.id)
        self.assertEqual(store.list_records(), [second])
        self.assertEqual(self._store().list_records(), [second])

    def test_update_keeps_identity(self) -> None:
        store = self._store()
        record = store.add()
        moved = datetime(2026, 4, 2, 7, 30, 0)
        store.update(record.id, moved)
        updated = self._store().list_records()
        self.assertEqual(len(updated), 1)
        self.assertEqual(updated[0].id, record.id)
        self.assertEqual(updated[0].timestamp, moved)

    def test_update_missing_id_is_noop(self) -> None:
        store = self._store()
        record = store.add()
        store.update("no-such-id", datetime(2020, 1, 1))
        self.assertEqual(store.list_records(), [record])

    def test_list_records_for_day(self) -> None:
        store = self._store()
        store.add(datetime(2026, 4, 1, 23, 50))
        kept = store.add(datetime(2026, 4, 2, 0, 10))
        self.assertEqual(store.list_records_for_day(date(2026, 4, 2)), [kept])

    def test_records_for_month_and_last_record(self) -> None:
        store = self._store()
        march = store.add(datetime(2026, 3, 31, 22, 0))
        april = store.add(datetime(2026, 4, 1, 6, 0))
        self.assertEqual(store.records_for_month(2026, 3), [march])
        self.assertEqual(store.last_record(), april)

    def test_rejects_non_positive_interval(self) -> None:
        store = self._store()
        with self.assertRaises(ValueError):
            store.set_suggested_interval(0)
        with self.assertRaises(ValueError):
            store.set_suggested_interval(-1.5)
        self.assertEqual(store.current_settings().suggested_interval_hours, 3.0)

    def test_rejects_non_finite_interval(self) -> None:
        store = self._store()
        for hours in (float("nan"), float("inf"), "nan"):
            with self.assertRaises(ValueError):
                store.set_suggested_interval(hours)
        self.assertEqual(store.current_settings().suggested_interval_hours, 3.0)
        self.assertEqual(self._store().current_settings().suggested_interval_hours, 3.0)

    def test_non_finite_stored_interval_falls_back(self) -> None:
        self.db.set_value(INTERVAL_KEY, "nan")
        store = self._store()
        self.assertEqual(store.current_settings().suggested_interval_hours, 3.0)
        store.add()
        suggested = next_suggested_time(
            sorted_by_time(store.list_records()),
            store.current_settings().suggested_interval_hours,
            now=self.clock(),
        )
        self.assertEqual(suggested, self.clock() + timedelta(hours=3))

    def test_offset_timestamps_sort_with_new_records(self) -> None:
        self.db.set_value(
            RECORDS_KEY,
            json.dumps([{"id": "a", "timestamp": "2026-01-01T08:00:00+00:00"}]),
        )
        store = self._store()
        added = store.add(datetime(2030, 1, 1, 9, 0))
        self.assertEqual(store.last_record(), added)
        self.assertTrue(all(record.timestamp.tzinfo is None for record in store.list_records()))
        loaded = {record.id: record for record in store.list_records()}
        expected = datetime(2026, 1, 1, 8, 0, tzinfo=timezone.utc).astimezone().replace(tzinfo=None)
        self.assertEqual(loaded["a"].timestamp, expected)

    def test_aware_timestamps_are_stored_naive(self) -> None:
        store = self._store()
        aware = datetime(2026, 4, 2, 6, 0, tzinfo=timezone.utc)
        record = store.add(aware)
        self.assertIsNone(record.timestamp.tzinfo)
        store.update(record.id, aware + timedelta(minutes=30))
        moved = self._store().list_records()[0]
        self.assertIsNone(moved.timestamp.tzinfo)
        self.assertEqual(moved.timestamp, (aware + timedelta(minutes=30)).astimezone().replace(tzinfo=None))
        self.assertEqual(len(sorted_by_time(store.list_records() + [Record(id="b", timestamp=datetime(2026, 4, 2))])), 2)

    def test_corrupt_records_load_as_empty(self) -> None:
        self.db.set_values({RECORDS_KEY: "{not json", INTERVAL_KEY: "2.5"})
        with self.assertLogs("tamstar.store", level="WARNING"):
            store = self._store()
        self.assertEqual(store.list_records(), [])
        self.assertEqual(store.current_settings().suggested_interval_hours, 2.5)

    def test_malformed_entry_loads_as_empty(self) -> None:
        self.db.set_value(RECORDS_KEY, json.dumps([{"id": "a"}]))
        with self.assertLogs("tamstar.store", level="WARNING"):
            store = self._store()
        self.assertEqual(store.list_records(), [])

    def test_zero_or_garbage_interval_falls_back(self) -> None:
        self.db.set_value(INTERVAL_KEY, "0")
        self.assertEqual(self._store().current_settings().suggested_interval_hours, 3.0)
        self.db.set_value(INTERVAL_KEY, "abc")
        self.assertEqual(self._store().current_settings().suggested_interval_hours, 3.0)


class DecodeRecordsTests(unittest.TestCase):
    def test_accepts_epoch_seconds(self) -> None:
        stamp = datetime(2026, 1, 2, 3, 4, 5)
        records = decode_records(json.dumps([{"id": "a", "timestamp": stamp.timestamp()}]))
        self.assertEqual(records[0].timestamp, stamp)

    def test_duplicate_ids_keep_first(self) -> None:
        raw = json.dumps(
            [
                {"id": "a", "timestamp": "2026-01-02T03:04:05"},
                {"id": "a", "timestamp": "2026-01-03T03:04:05"},
            ]
        )
        records = decode_records(raw)
        self.assertEqual(len(records), 1)
        self.assertEqual(records[0].timestamp, datetime(2026, 1, 2, 3, 4, 5))

    def test_rejects_non_list(self) -> None:
        with self.assertRaises(ValueError):
            decode_records(json.dumps({"id": "a"}))


if __name__ == "__main__":
    unittest.main()
