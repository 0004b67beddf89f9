"""Rescale a comparison series onto the primary series' range."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from .schemas import DataPoint, Series


@dataclass(frozen=True)
class RangeStats:
    minimum: float
    maximum: float
    mean: float

    @property
    def span(self) -> float:
        return self.maximum - self.minimum


def range_stats(series: Series) -> Optional[RangeStats]:
    """Min / max / mean over non-missing true values, ``None`` if there are none."""
    values = np.array([value for value in series.true_values() if value is not None], dtype=float)
    if values.size == 0:
        return None
    return RangeStats(
        minimum=float(values.min()),
        maximum=float(values.max()),
        mean=float(values.mean()),
    )


def normalize(primary: Series, comparison: Series) -> Series:
    """Map ``comparison`` onto ``primary``'s range, centred on the means.

    ``new = (old - meanC) / rangeC * rangeP + meanP``. The pre-normalisation
    value is kept in ``original_value``. A flat or empty series on either side
    leaves ``comparison`` unchanged.
    """
    stats_p = range_stats(primary)
    stats_c = range_stats(comparison)
    if stats_p is None or stats_c is None or stats_p.span <= 0 or stats_c.span <= 0:
        return comparison

    points = []
    for point in comparison.points:
        original = point.true_value
        if original is None:
            points.append(DataPoint(date=point.date, value=None))
            continue
        points.append(
            DataPoint(
                date=point.date,
                value=(original - stats_c.mean) / stats_c.span * stats_p.span + stats_p.mean,
                original_value=original,
            )
        )
    return comparison.with_points(points, normalized=True)


__all__ = ["normalize", "range_stats", "RangeStats"]
