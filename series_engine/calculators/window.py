"""Trailing window helpers shared by the indicator calculators."""

from __future__ import annotations

import numpy as np


def check_period(period: float) -> int:
    """Return ``period`` as a positive int or raise ``ValueError``."""
    if isinstance(period, bool) or period != period:
        raise ValueError(f"period must be a positive integer, got {period!r}")
    as_int = int(period)
    if as_int != period or as_int < 1:
        raise ValueError(f"period must be a positive integer, got {period!r}")
    return as_int


def window_start(index: int, period: int) -> int:
    return max(0, index - period + 1)


def trailing_window(values: np.ndarray, index: int, period: int) -> np.ndarray:
    """Non-missing values of the ``period`` points ending at ``index``."""
    window = values[window_start(index, period) : index + 1]
    return window[~np.isnan(window)]
