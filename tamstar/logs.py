from __future__ import annotations

import logging
from pathlib import Path

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(
    log_dir: Path,
    level: int = logging.INFO,
    console: bool = False,
    log_file: str = "tamstar.log",
) -> logging.Logger:
    """Attach file (and optionally console) handlers to the package logger once."""
    logger = logging.getLogger("tamstar")
    logger.setLevel(level)

    if not logger.handlers:
        log_dir.mkdir(parents=True, exist_ok=True)
        formatter = logging.Formatter(LOG_FORMAT)
        file_handler = logging.FileHandler(log_dir / log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

        if console:
            console_handler = logging.StreamHandler()
            console_handler.setFormatter(formatter)
            logger.addHandler(console_handler)

    return logger
