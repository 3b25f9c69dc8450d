from __future__ import annotations

import logging
import math
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Mapping

logger = logging.getLogger(__name__)


class TamStarDatabase:
    """Opaque key-value blob store backed by a single sqlite table."""

    def __init__(self, db_file: Path):
        self._db_file = Path(db_file)
        self._db_file.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._init_schema()

    @property
    def path(self) -> Path:
        return self._db_file

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_file, timeout=30)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA synchronous=NORMAL")
        return conn

    @contextmanager
    def _connection(self):
        conn = self._connect()
        try:
            yield conn
        finally:
            conn.close()

    def _init_schema(self) -> None:
        with self._lock, self._connection() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS app_state (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                );
                """
            )
            conn.commit()

    def get_value(self, key: str, default: str | None = None) -> str | None:
        try:
            with self._lock, self._connection() as conn:
                row = conn.execute(
                    "SELECT value FROM app_state WHERE key = ?",
                    (key,),
                ).fetchone()
        except sqlite3.Error as exc:
            logger.warning("Could not read %r from %s: %s", key, self._db_file, exc)
            return default
        if row is None:
            return default
        return str(row["value"])

    def get_value_float(self, key: str, default: float) -> float:
        value = self.get_value(key)
        if value is None:
            return default
        try:
            parsed = float(value)
        except ValueError:
            return default
        if not math.isfinite(parsed) or parsed <= 0:
            return default
        return parsed

    def get_value_int(self, key: str, default: int) -> int:
        value = self.get_value(key)
        if value is None:
            return default
        try:
            return int(value)
        except ValueError:
            return default

    def set_value(self, key: str, value: str) -> None:
        self.set_values({key: value})

    def set_values(self, values: Mapping[str, str]) -> None:
        """Write every key in one transaction."""
        try:
            with self._lock, self._connection() as conn:
                conn.executemany(
                    """
                    INSERT INTO app_state(key, value)
                    VALUES(?, ?)
                    ON CONFLICT(key) DO UPDATE SET value = excluded.value
                    """,
                    list(values.items()),
                )
                conn.commit()
        except sqlite3.Error:
            logger.exception("Could not write %s to %s", sorted(values), self._db_file)
            raise
