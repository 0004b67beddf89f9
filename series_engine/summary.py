"""Headline statistics for the primary series."""

from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

import pandas as pd

from .models import PeriodChange, SeriesSummary
from .schemas import DataPoint, Series

PERIOD_OFFSETS = {
    "weekly": pd.DateOffset(weeks=1),
    "monthly": pd.DateOffset(months=1),
    "quarterly": pd.DateOffset(months=3),
    "yearly": pd.DateOffset(years=1),
}


def closest_point(points: Sequence[DataPoint], target: date) -> Optional[DataPoint]:
    """Non-missing point nearest to ``target``; the earlier one wins ties."""
    best: Optional[DataPoint] = None
    for point in points:
        if point.true_value is None:
            continue
        if best is None or abs((point.date - target).days) < abs((best.date - target).days):
            best = point
    return best


def _period_change(last_value: float, reference: Optional[float]) -> PeriodChange:
    if reference is None:
        return PeriodChange(change=0.0, percent=0.0)
    change = last_value - reference
    percent = change / reference * 100 if reference else 0.0
    return PeriodChange(change=change, percent=percent)


def summarize(series: Series) -> Optional[SeriesSummary]:
    if not series.points:
        return None
    last = series.points[-1]
    last_value = last.true_value
    if last_value is None:
        return None

    previous = series.points[-2].true_value if len(series.points) > 1 else None
    last_change = last_value - previous if previous is not None else 0.0
    last_change_percent = last_change / previous * 100 if previous else 0.0

    anchor = pd.Timestamp(last.date)
    periods = {}
    for label, offset in PERIOD_OFFSETS.items():
        reference = closest_point(series.points, (anchor - offset).date())
        periods[label] = _period_change(last_value, reference.true_value if reference else None)

    return SeriesSummary(
        as_of=last.date,
        last_value=last_value,
        last_change=last_change,
        last_change_percent=last_change_percent,
        **periods,
    )


__all__ = ["summarize", "closest_point"]
