from __future__ import annotations

import os
from pathlib import Path

APP_DIR_NAME = "TamStar"
DATA_DIR_ENV = "TAMSTAR_DATA_DIR"
DATABASE_FILENAME = "tamstar.sqlite3"


def data_directory() -> Path:
    override = os.environ.get(DATA_DIR_ENV)
    if override:
        return Path(override)
    local_appdata = os.environ.get("LOCALAPPDATA")
    if local_appdata:
        return Path(local_appdata) / APP_DIR_NAME
    return Path.home() / ".local" / "share" / APP_DIR_NAME


def database_path(base: Path | None = None) -> Path:
    return (base or data_directory()) / DATABASE_FILENAME


def log_directory(base: Path | None = None) -> Path:
    return (base or data_directory()) / "logs"


def ensure_directories(base: Path | None = None) -> None:
    log_directory(base).mkdir(parents=True, exist_ok=True)
