from __future__ import annotations

import argparse
import logging
from pathlib import Path

from . import __version__
from .database import TamStarDatabase
from .logs import setup_logging
from .paths import data_directory, database_path, ensure_directories, log_directory
from .report import day_summary_lines
from .store import RecordStore


def _open_store(data_dir: Path) -> RecordStore:
    ensure_directories(data_dir)
    return RecordStore(TamStarDatabase(database_path(data_dir)))


def _log_now_cli(data_dir: Path) -> int:
    store = _open_store(data_dir)
    record = store.add()
    print(f"logged={record.id} at={record.timestamp:%Y-%m-%d %H:%M:%S}")
    return 0


def _today_cli(data_dir: Path) -> int:
    store = _open_store(data_dir)
    now = store.now()
    print(f"{now:%Y-%m-%d}")
    for line in day_summary_lines(store, now.date(), now):
        print(f"  {line}")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="tamstar")
    parser.add_argument("--log-now", action="store_true", help="Log one replacement now and exit")
    parser.add_argument("--today", action="store_true", help="Print today's replacements and exit")
    parser.add_argument("--data-dir", type=Path, default=None, help="Directory holding the database and logs")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--version", action="store_true", help="Print app version and exit")
    args = parser.parse_args(argv)
    if args.version:
        print(__version__)
        return 0

    data_dir = args.data_dir or data_directory()
    setup_logging(log_directory(data_dir), level=getattr(logging, args.log_level))
    if args.log_now:
        return _log_now_cli(data_dir)
    if args.today:
        return _today_cli(data_dir)

    from .app import TamStarApp

    app = TamStarApp(data_dir)
    app.mainloop()
    return 0
