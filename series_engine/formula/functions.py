"""Closed function registry available to formulas.

Three families: scalar math functions (lowercase), named multi-argument
series functions and technical indicators (uppercase). Names are
case-sensitive and nothing outside these tables can be called.
"""

from __future__ import annotations

import math
from typing import Callable, Dict, FrozenSet

import numpy as np

from ..calculators import ema_at, roc_at, rsi_at, sma_at, stdev_at

NAN = math.nan


def _is_nan(value: float) -> bool:
    return isinstance(value, float) and math.isnan(value)


def _max(*args: float) -> float:
    if any(_is_nan(arg) for arg in args):
        return NAN
    return float(max(args)) if args else -math.inf


def _min(*args: float) -> float:
    if any(_is_nan(arg) for arg in args):
        return NAN
    return float(min(args)) if args else math.inf


def _round(value: float) -> float:
    # half rounds up, -2.5 -> -2
    return float(math.floor(value + 0.5))


def _sign(value: float) -> float:
    return float(np.sign(value))


def _cbrt(value: float) -> float:
    return math.copysign(abs(value) ** (1 / 3), value)


def _log(value: float) -> float:
    if value == 0:
        return -math.inf
    return math.log(value)


MATH_FUNCTIONS: Dict[str, Callable[..., float]] = {
    "abs": lambda value: float(abs(value)),
    "acos": math.acos,
    "acosh": math.acosh,
    "asin": math.asin,
    "asinh": math.asinh,
    "atan": math.atan,
    "atan2": math.atan2,
    "atanh": math.atanh,
    "cbrt": _cbrt,
    "ceil": lambda value: float(math.ceil(value)),
    "cos": math.cos,
    "cosh": math.cosh,
    "exp": math.exp,
    "expm1": math.expm1,
    "floor": lambda value: float(math.floor(value)),
    "hypot": math.hypot,
    "log": _log,
    "log10": math.log10,
    "log1p": math.log1p,
    "log2": math.log2,
    "max": _max,
    "min": _min,
    "pow": lambda base, exponent: math.pow(float(base), float(exponent)),
    "round": _round,
    "sign": _sign,
    "sin": math.sin,
    "sinh": math.sinh,
    "sqrt": math.sqrt,
    "tan": math.tan,
    "tanh": math.tanh,
    "trunc": lambda value: float(math.trunc(value)),
}


def series_add(*args: float) -> float:
    if len(args) < 2:
        return NAN
    return float(sum(args))


def series_subtract(*args: float) -> float:
    if len(args) < 2:
        return NAN
    result = args[0]
    for value in args[1:]:
        result -= value
    return float(result)


def series_multiply(*args: float) -> float:
    if len(args) < 2:
        return NAN
    result = 1.0
    for value in args:
        result *= value
    return result


def series_divide(*args: float) -> float:
    if len(args) < 2:
        return NAN
    result = float(args[0])
    for value in args[1:]:
        if value == 0:
            return NAN
        result /= value
    return result


def series_ratio(*args: float) -> float:
    """First argument as a percentage of the second."""
    if len(args) < 2:
        return NAN
    numerator, denominator = args[0], args[1]
    if denominator == 0:
        return NAN
    return numerator / denominator * 100


def series_average(*args: float) -> float:
    valid = [value for value in args if not _is_nan(value)]
    if not valid:
        return NAN
    return float(sum(valid) / len(valid))


SERIES_FUNCTIONS: Dict[str, Callable[..., float]] = {
    "ADD": series_add,
    "SUBTRACT": series_subtract,
    "MULTIPLY": series_multiply,
    "DIVIDE": series_divide,
    "RATIO": series_ratio,
    "AVERAGE": series_average,
}

# Indicators receive the aligned values of one series, the current index and
# the window length.
INDICATOR_FUNCTIONS: Dict[str, Callable[[np.ndarray, int, float], float]] = {
    "SMA": sma_at,
    "EMA": ema_at,
    "ROC": roc_at,
    "RSI": rsi_at,
    "STDEV": stdev_at,
}

# Indicators whose window argument may be omitted.
OPTIONAL_PERIOD_INDICATORS: FrozenSet[str] = frozenset({"RSI"})

ALLOWED_FUNCTIONS: FrozenSet[str] = frozenset(MATH_FUNCTIONS) | frozenset(SERIES_FUNCTIONS) | frozenset(
    INDICATOR_FUNCTIONS
)


__all__ = [
    "MATH_FUNCTIONS",
    "SERIES_FUNCTIONS",
    "INDICATOR_FUNCTIONS",
    "OPTIONAL_PERIOD_INDICATORS",
    "ALLOWED_FUNCTIONS",
]
