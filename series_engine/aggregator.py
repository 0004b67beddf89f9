"""Re-aggregation of series onto a coarser calendar timeframe."""

from __future__ import annotations

from datetime import date, timedelta

import numpy as np
import pandas as pd

from .schemas import DataPoint, Series, Timeframe


def bucket_key(day: date, timeframe: Timeframe) -> str:
    """Grouping key of ``day`` for ``timeframe``.

    Weekly keys are the ISO week start (Monday), monthly ``YYYY-MM``,
    quarterly ``YYYY-Qn`` and yearly ``YYYY``.
    """
    timeframe = Timeframe(timeframe)
    if timeframe is Timeframe.WEEKLY:
        return (day - timedelta(days=day.weekday())).isoformat()
    if timeframe is Timeframe.MONTHLY:
        return f"{day.year:04d}-{day.month:02d}"
    if timeframe is Timeframe.QUARTERLY:
        return f"{day.year:04d}-Q{(day.month - 1) // 3 + 1}"
    if timeframe is Timeframe.YEARLY:
        return f"{day.year:04d}"
    return day.isoformat()


def aggregate(series: Series, timeframe: Timeframe) -> Series:
    """Average ``series`` into ``timeframe`` buckets.

    Each bucket is dated on its chronologically last member so the output
    dates are real observation dates. Missing values are excluded from the
    mean and a bucket without any valid value stays missing. ``daily`` is a
    passthrough.
    """
    timeframe = Timeframe(timeframe)
    if timeframe is Timeframe.DAILY or not series.points:
        return series.with_points(series.points)

    frame = pd.DataFrame(
        {
            "date": [point.date for point in series.points],
            "value": [np.nan if point.true_value is None else point.true_value for point in series.points],
            "bucket": [bucket_key(point.date, timeframe) for point in series.points],
        }
    )
    frame["value"] = frame["value"].astype(float)
    grouped = frame.groupby("bucket", sort=True).agg(date=("date", "max"), value=("value", "mean"))
    grouped = grouped.sort_values("date")

    points = [
        DataPoint(date=row.date, value=None if pd.isna(row.value) else float(row.value))
        for row in grouped.itertuples(index=False)
    ]
    return series.with_points(points, normalized=False)


__all__ = ["aggregate", "bucket_key"]
