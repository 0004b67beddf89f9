"""Merged chart rows for the rendering collaborator and their CSV export."""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from .normalizer import normalize
from .schemas import CalculationType, Series
from .transforms import transform


def _secondaries(series_list: Sequence[Series]) -> List[Series]:
    return [series for series in series_list[1:] if series.visible]


def build_chart_rows(
    series_list: Sequence[Series],
    calculation: CalculationType,
    *,
    normalize_comparisons: bool = True,
) -> List[Dict[str, Any]]:
    """Merge the primary (first) series with every visible secondary by date.

    Each row carries ``date``, ``value`` and ``change`` for the primary and,
    per secondary, ``<id>`` (true value), ``<id>_change`` and, when raw
    values are displayed and normalisation applies, ``<id>_normalized``.
    """
    if not series_list:
        return []
    calculation = CalculationType(calculation)
    primary = series_list[0]
    primary_view = transform(primary, calculation)

    lookups = []
    for secondary in _secondaries(series_list):
        values = {point.date: point.true_value for point in secondary.points}
        normalized: Optional[Dict[date, Optional[float]]] = None
        if normalize_comparisons and calculation is CalculationType.VALUE:
            rescaled = normalize(primary, secondary)
            if rescaled.normalized:
                normalized = {point.date: point.value for point in rescaled.points}
        changes = transform(secondary, calculation).change_by_date()
        lookups.append((secondary.id, values, normalized, changes))

    rows: List[Dict[str, Any]] = []
    for point in primary_view.points:
        row: Dict[str, Any] = {
            "date": point.date.isoformat(),
            "value": point.value,
            "change": point.change,
        }
        for series_id, values, normalized, changes in lookups:
            row[series_id] = values.get(point.date)
            if normalized is not None:
                row[f"{series_id}_normalized"] = normalized.get(point.date)
            row[f"{series_id}_change"] = changes.get(point.date)
        rows.append(row)
    return rows


def chart_rows_to_csv(
    rows: Sequence[Dict[str, Any]],
    series_list: Sequence[Series],
    calculation: CalculationType,
) -> str:
    """Render rows as ``Date,Value[,<secondary names>...][,Change]``.

    Missing secondary values are empty cells; a missing change is written as 0.
    """
    calculation = CalculationType(calculation)
    secondaries = _secondaries(series_list)
    with_change = calculation is not CalculationType.VALUE

    headers = ["Date", "Value"] + [series.name for series in secondaries]
    if with_change:
        headers.append("Change")

    records = []
    for row in rows:
        record = [row["date"], row.get("value")]
        record.extend(row.get(series.id) for series in secondaries)
        if with_change:
            change = row.get("change")
            record.append(0.0 if change is None else change)
        records.append(record)

    frame = pd.DataFrame(records, columns=headers)
    return frame.to_csv(index=False, na_rep="", lineterminator="\n")


__all__ = ["build_chart_rows", "chart_rows_to_csv"]
