"""Momentum and oscillator style indicators evaluated at a single index."""

from __future__ import annotations

import math

import numpy as np

from .window import check_period, window_start


def roc_at(values: np.ndarray, index: int, period: float) -> float:
    """Percent change of the value at ``index`` versus ``index - period``."""
    period = check_period(period)
    past_index = index - period
    if past_index < 0:
        return math.nan
    past = float(values[past_index])
    if math.isnan(past) or past == 0:
        return math.nan
    return (float(values[index]) - past) / past * 100


def rsi_at(values: np.ndarray, index: int, period: float = 14) -> float:
    """Relative strength index over the window ending at ``index``.

    No losses gives 100, no gains (with losses) gives 0.
    """
    period = check_period(period)
    gains = 0.0
    losses = 0.0
    for position in range(max(1, window_start(index, period)), index + 1):
        current = values[position]
        previous = values[position - 1]
        if np.isnan(current) or np.isnan(previous):
            continue
        delta = float(current - previous)
        if delta > 0:
            gains += delta
        else:
            losses -= delta
    if losses == 0:
        return 100.0
    if gains == 0:
        return 0.0
    return 100 - 100 / (1 + gains / losses)


__all__ = ["roc_at", "rsi_at"]
