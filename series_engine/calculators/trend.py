"""Moving-average style indicators evaluated at a single index."""

from __future__ import annotations

import math

import numpy as np

from .window import check_period, trailing_window


def sma_at(values: np.ndarray, index: int, period: float) -> float:
    """Arithmetic mean of the last ``period`` values up to ``index``."""
    window = trailing_window(values, index, check_period(period))
    if window.size == 0:
        return math.nan
    return float(window.mean())


def ema_at(values: np.ndarray, index: int, period: float) -> float:
    """Exponential moving average at ``index``.

    Seeded with the value at ``index`` and blended backwards from ``index - 1``
    down to ``max(0, index - period)`` with ``k = 2 / (period + 1)``.
    """
    period = check_period(period)
    k = 2 / (period + 1)
    ema = float(values[index])
    for position in range(index - 1, max(0, index - period) - 1, -1):
        raw = values[position]
        if np.isnan(raw):
            continue
        ema = float(raw) * k + ema * (1 - k)
    return ema


__all__ = ["sma_at", "ema_at"]
