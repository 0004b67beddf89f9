"""Shared logging helper for the engine and its CLI.

One logger per process name; console output always, plus a timestamped file
under ``log_dir`` when one is configured.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _sanitize(value: str, fallback: str) -> str:
    candidate = value.strip() if value else ""
    if not candidate:
        return fallback
    safe = [ch if ch.isalnum() or ch in ("-", "_", ".") else "_" for ch in candidate]
    result = "".join(safe).strip("_.")
    return result or fallback


def init_engine_logger(
    name: str = "series_engine",
    *,
    level: int = logging.INFO,
    log_dir: Optional[Path] = None,
) -> logging.Logger:
    """Create (or reuse) a configured logger."""

    safe_name = _sanitize(name, "series_engine")
    logger = logging.getLogger(safe_name)
    if logger.handlers:
        return logger

    formatter = logging.Formatter(LOG_FORMAT, DATE_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    log_path: Optional[Path] = None
    if log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_path = log_dir / f"{safe_name}_{timestamp}.log"
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.setLevel(level)
    logger.propagate = False
    if log_path is not None:
        logger.info("logging to %s", log_path)
    return logger


__all__ = ["init_engine_logger", "LOG_FORMAT", "DATE_FORMAT"]
