"""Convenience exports for indicator calculators."""

from .momentum import roc_at, rsi_at
from .risk import stdev_at
from .trend import ema_at, sma_at

__all__ = [
    "sma_at",
    "ema_at",
    "roc_at",
    "rsi_at",
    "stdev_at",
]
