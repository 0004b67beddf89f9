"""Engine settings and shared constants.

Settings are read from the process environment after ``load_dotenv()`` so a
local ``.env`` file can override the defaults below.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd
from dotenv import load_dotenv

from .exceptions import DataValidationError
from .schemas import Timeframe

load_dotenv()

DEFAULT_MAX_SERIES = 10
DEFAULT_RSI_PERIOD = 14

# Lookback window fetched for each frequency.
LOOKBACK_BY_TIMEFRAME: Dict[Timeframe, pd.DateOffset] = {
    Timeframe.DAILY: pd.DateOffset(months=3),
    Timeframe.WEEKLY: pd.DateOffset(years=1),
    Timeframe.MONTHLY: pd.DateOffset(years=5),
    Timeframe.QUARTERLY: pd.DateOffset(years=10),
    Timeframe.YEARLY: pd.DateOffset(years=30),
}

SERIES_PALETTE: List[str] = [
    "#8884d8",
    "#82ca9d",
    "#ffc658",
    "#ff8042",
    "#ff5722",
    "#8bc34a",
    "#03a9f4",
    "#9c27b0",
    "#ff9800",
    "#795548",
]


@dataclass(frozen=True)
class EngineSettings:
    max_series: int = DEFAULT_MAX_SERIES
    rsi_period: int = DEFAULT_RSI_PERIOD
    normalize_comparisons: bool = True
    log_level: int = logging.INFO
    log_dir: Optional[Path] = None

    @classmethod
    def from_env(cls) -> "EngineSettings":
        return cls(
            max_series=_env_int("SERIES_ENGINE_MAX_SERIES", DEFAULT_MAX_SERIES),
            rsi_period=_env_int("SERIES_ENGINE_RSI_PERIOD", DEFAULT_RSI_PERIOD),
            normalize_comparisons=_env_bool("SERIES_ENGINE_NORMALIZE", True),
            log_level=_env_log_level("SERIES_ENGINE_LOG_LEVEL", logging.INFO),
            log_dir=_env_path("SERIES_ENGINE_LOG_DIR"),
        )


def lookback_start(timeframe: Timeframe, today: Optional[date] = None) -> date:
    """First day fetched for ``timeframe`` when the window ends on ``today``."""
    anchor = pd.Timestamp(today or date.today())
    return (anchor - LOOKBACK_BY_TIMEFRAME[Timeframe(timeframe)]).date()


def palette_color(index: int) -> str:
    return SERIES_PALETTE[index % len(SERIES_PALETTE)]


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise DataValidationError(f"{name} must be an integer, got {raw!r}") from exc
    if value < 1:
        raise DataValidationError(f"{name} must be positive, got {value}")
    return value


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    lowered = raw.strip().lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    raise DataValidationError(f"{name} must be a boolean, got {raw!r}")


def _env_log_level(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    level = logging.getLevelName(raw.strip().upper())
    if not isinstance(level, int):
        raise DataValidationError(f"{name} is not a logging level: {raw!r}")
    return level


def _env_path(name: str) -> Optional[Path]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    return Path(raw.strip()).expanduser()


__all__ = [
    "DEFAULT_MAX_SERIES",
    "DEFAULT_RSI_PERIOD",
    "LOOKBACK_BY_TIMEFRAME",
    "SERIES_PALETTE",
    "EngineSettings",
    "lookback_start",
    "palette_color",
]
