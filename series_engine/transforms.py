"""Change and percent-change transforms over a single series."""

from __future__ import annotations

from datetime import date
from typing import List, Optional, Sequence

from .schemas import CalculationType, ChangePoint, DataPoint, Series, TransformedSeries


def months_between(later: date, earlier: date) -> int:
    """Whole calendar months from ``earlier`` to ``later``."""
    months = (later.year - earlier.year) * 12 + (later.month - earlier.month)
    if months > 0 and later.day < earlier.day:
        months -= 1
    elif months < 0 and later.day > earlier.day:
        months += 1
    return months


def calendar_offset(later: date, earlier: date, unit: str) -> int:
    """Distance between two days expressed in whole ``unit`` steps."""
    if unit == "day":
        return (later - earlier).days
    if unit == "week":
        return (later - earlier).days // 7
    if unit == "quarter":
        return int(months_between(later, earlier) / 3)
    if unit == "year":
        return int(months_between(later, earlier) / 12)
    raise ValueError(f"unknown calendar unit {unit!r}")


def reference_index(points: Sequence[DataPoint], index: int, calculation: CalculationType) -> Optional[int]:
    """Index of the point ``points[index]`` is compared against.

    Period-to-period always uses the previous point. Offset-based variants
    use the previous point when it is at least one unit away, otherwise the
    first point of the series that is; ``None`` when no point qualifies.
    """
    if index <= 0:
        return None
    unit = calculation.offset_unit
    if unit is None:
        return index - 1
    current = points[index].date
    if calendar_offset(current, points[index - 1].date, unit) >= 1:
        return index - 1
    for candidate, point in enumerate(points):
        if calendar_offset(current, point.date, unit) >= 1:
            return candidate
    return None


def change_between(current: Optional[float], reference: Optional[float], *, percent: bool) -> Optional[float]:
    if current is None or reference is None:
        return None
    if not percent:
        return current - reference
    if reference == 0:
        return 0.0
    return (current - reference) / reference * 100


def transform(series: Series, calculation: CalculationType) -> TransformedSeries:
    """Apply ``calculation`` to ``series`` without touching the store."""
    calculation = CalculationType(calculation)
    points = series.points
    output: List[ChangePoint] = []
    for index, point in enumerate(points):
        if calculation is CalculationType.VALUE:
            change = point.value
        elif index == 0:
            change = 0.0
        else:
            ref = reference_index(points, index, calculation)
            if ref is None:
                change = 0.0
            else:
                change = change_between(point.value, points[ref].value, percent=calculation.is_percent)
        output.append(
            ChangePoint(
                date=point.date,
                value=point.value,
                original_value=point.original_value,
                change=change,
            )
        )
    return TransformedSeries(series_id=series.id, calculation=calculation, points=output)


__all__ = [
    "transform",
    "reference_index",
    "change_between",
    "calendar_offset",
    "months_between",
]
