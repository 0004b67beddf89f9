"""Dispersion indicators evaluated at a single index."""

from __future__ import annotations

import math

import numpy as np

from .window import check_period, trailing_window


def stdev_at(values: np.ndarray, index: int, period: float) -> float:
    """Population standard deviation (ddof=0) of the trailing window."""
    window = trailing_window(values, index, check_period(period))
    if window.size == 0:
        return math.nan
    return float(np.std(window, ddof=0))


__all__ = ["stdev_at"]
