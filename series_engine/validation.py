"""Input validation utilities shared across engine components."""

from __future__ import annotations

import math
import re
from datetime import date, datetime
from typing import Any, List, Optional, Sequence, TypeVar

import pandas as pd

from .exceptions import DataValidationError, SeriesIntegrityError

SERIES_ID_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.\-]*$")

PointT = TypeVar("PointT")


def normalize_date(value: Any) -> date:
    """Force ISO calendar days (YYYY-MM-DD); datetimes are truncated to the day."""

    if isinstance(value, pd.Timestamp):
        return value.date()
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise DataValidationError(f"date must be an ISO string, got {type(value).__name__}")
    candidate = value.strip()[:10]
    try:
        return datetime.strptime(candidate, "%Y-%m-%d").date()
    except ValueError as exc:
        raise DataValidationError(
            f"invalid date {value!r}, expected YYYY-MM-DD"
        ) from exc


def normalize_value(value: Any) -> Optional[float]:
    """Return a float observation, or ``None`` for missing / NaN values."""

    if value is None:
        return None
    if isinstance(value, bool):
        raise DataValidationError("boolean is not a numeric observation")
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped or stripped == ".":
            return None
        try:
            value = float(stripped)
        except ValueError as exc:
            raise DataValidationError(f"non-numeric value {value!r}") from exc
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise DataValidationError(f"non-numeric value {value!r}") from exc
    if math.isnan(number):
        return None
    return number


def normalize_series_id(series_id: str) -> str:
    if not isinstance(series_id, str):
        raise DataValidationError("series id must be a string")
    candidate = series_id.strip()
    if not SERIES_ID_PATTERN.fullmatch(candidate):
        raise DataValidationError(f"invalid series id {series_id!r}")
    return candidate


def ensure_ordered(points: Sequence[PointT]) -> List[PointT]:
    """Sort points ascending by date and reject duplicated dates."""

    ordered = sorted(points, key=lambda point: point.date)
    for previous, current in zip(ordered, ordered[1:]):
        if previous.date == current.date:
            raise SeriesIntegrityError(f"duplicate observation date {current.date.isoformat()}")
    return ordered


__all__ = [
    "normalize_date",
    "normalize_value",
    "normalize_series_id",
    "ensure_ordered",
]
