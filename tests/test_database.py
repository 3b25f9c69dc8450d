from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from tamstar.database import TamStarDatabase


class DatabaseTests(unittest.TestCase):
    def test_value_round_trip(self) -> None:
        with tempfile.TemporaryDirectory() as tmp_dir:
            db = TamStarDatabase(Path(tmp_dir) / "tamstar.sqlite3")
            self.assertIsNone(db.get_value("records"))
            self.assertEqual(db.get_value("records", "[]"), "[]")
            db.set_value("records", "[1]")
            db.set_value("records", "[2]")
            self.assertEqual(db.get_value("records"), "[2]")

    def test_set_values_writes_every_key(self) -> None:
        with tempfile.TemporaryDirectory() as tmp_dir:
            path = Path(tmp_dir) / "nested" / "tamstar.sqlite3"
            TamStarDatabase(path).set_values({"records": "[]", "interval": "4.0"})
            reopened = TamStarDatabase(path)
            self.assertEqual(reopened.get_value("records"), "[]")
            self.assertEqual(reopened.get_value_float("interval", 3.0), 4.0)

    def test_numeric_getters_fall_back(self) -> None:
        with tempfile.TemporaryDirectory() as tmp_dir:
            db = TamStarDatabase(Path(tmp_dir) / "tamstar.sqlite3")
            self.assertEqual(db.get_value_float("interval", 3.0), 3.0)
            db.set_value("interval", "-2")
            self.assertEqual(db.get_value_float("interval", 3.0), 3.0)
            for text in ("nan", "inf", "-inf"):
                db.set_value("interval", text)
                self.assertEqual(db.get_value_float("interval", 3.0), 3.0)
            db.set_value("first_weekday", "1")
            self.assertEqual(db.get_value_int("first_weekday", 0), 1)
            db.set_value("first_weekday", "x")
            self.assertEqual(db.get_value_int("first_weekday", 0), 0)


if __name__ == "__main__":
    unittest.main()
