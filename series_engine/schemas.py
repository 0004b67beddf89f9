"""Pydantic schemas describing series, points and formulas."""

from __future__ import annotations

import datetime as dt
import string
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .validation import ensure_ordered, normalize_date, normalize_series_id, normalize_value

VARIABLE_LETTERS = string.ascii_uppercase


class Timeframe(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


class CalculationType(str, Enum):
    VALUE = "value"
    PERIOD_TO_PERIOD = "period-to-period"
    PERIOD_TO_PERIOD_PERCENT = "period-to-period-percent"
    DAY_TO_DAY = "day-to-day"
    DAY_TO_DAY_PERCENT = "day-to-day-percent"
    WEEK_TO_WEEK = "week-to-week"
    WEEK_TO_WEEK_PERCENT = "week-to-week-percent"
    QUARTER_TO_QUARTER = "quarter-to-quarter"
    QUARTER_TO_QUARTER_PERCENT = "quarter-to-quarter-percent"
    YEAR_TO_YEAR = "year-to-year"
    YEAR_TO_YEAR_PERCENT = "year-to-year-percent"

    @property
    def is_percent(self) -> bool:
        return self.value.endswith("-percent")

    @property
    def offset_unit(self) -> Optional[str]:
        """Calendar unit for offset-based variants, ``None`` otherwise."""
        base = self.value[: -len("-percent")] if self.is_percent else self.value
        return {
            "day-to-day": "day",
            "week-to-week": "week",
            "quarter-to-quarter": "quarter",
            "year-to-year": "year",
        }.get(base)


class DataPoint(BaseModel):
    """A single dated observation; ``value=None`` marks a missing observation."""

    model_config = ConfigDict(frozen=True)

    date: dt.date
    value: Optional[float] = None
    original_value: Optional[float] = None

    @field_validator("date", mode="before")
    @classmethod
    def _coerce_date(cls, value: Any) -> dt.date:
        return normalize_date(value)

    @field_validator("value", "original_value", mode="before")
    @classmethod
    def _coerce_value(cls, value: Any) -> Optional[float]:
        return normalize_value(value)

    @property
    def true_value(self) -> Optional[float]:
        """Pre-normalisation value when present, otherwise ``value``."""
        if self.original_value is not None:
            return self.original_value
        return self.value


class ChangePoint(DataPoint):
    change: Optional[float] = None

    @field_validator("change", mode="before")
    @classmethod
    def _coerce_change(cls, value: Any) -> Optional[float]:
        return normalize_value(value)


class Series(BaseModel):
    """A named, date-ordered sequence of observations."""

    id: str
    name: str
    points: List[DataPoint] = Field(default_factory=list)
    color: str = "#8884d8"
    visible: bool = True
    y_axis: str = "left"
    source_id: Optional[str] = None
    source_formula: Optional[str] = None
    normalized: bool = False

    @field_validator("id")
    @classmethod
    def _check_id(cls, value: str) -> str:
        return normalize_series_id(value)

    @field_validator("points")
    @classmethod
    def _check_points(cls, value: List[DataPoint]) -> List[DataPoint]:
        return ensure_ordered(value)

    @property
    def dates(self) -> List[dt.date]:
        return [point.date for point in self.points]

    def values(self) -> List[Optional[float]]:
        return [point.value for point in self.points]

    def true_values(self) -> List[Optional[float]]:
        return [point.true_value for point in self.points]

    def to_frame(self, *, original: bool = False) -> pd.DataFrame:
        """Date-indexed frame with one float ``value`` column (NaN for missing)."""
        values = self.true_values() if original else self.values()
        index = pd.DatetimeIndex(pd.to_datetime(self.dates), name="date")
        column = np.array([np.nan if value is None else value for value in values], dtype=float)
        return pd.DataFrame({"value": column}, index=index)

    def with_points(self, points: Sequence[DataPoint], **changes: Any) -> "Series":
        changes["points"] = ensure_ordered(points)
        return self.model_copy(update=changes)


class TransformedSeries(BaseModel):
    """Output of the transform engine for one series."""

    series_id: str
    calculation: CalculationType
    points: List[ChangePoint] = Field(default_factory=list)

    def change_by_date(self) -> Dict[dt.date, Optional[float]]:
        return {point.date: point.change for point in self.points}


class Formula(BaseModel):
    """Expression text plus the letter -> series id binding fixed at creation."""

    model_config = ConfigDict(frozen=True)

    expression_text: str
    binding: Tuple[Tuple[str, str], ...] = ()

    @classmethod
    def bind(cls, expression_text: str, series_ids: Sequence[str]) -> "Formula":
        if len(series_ids) > len(VARIABLE_LETTERS):
            raise ValueError(f"at most {len(VARIABLE_LETTERS)} series can be bound to a formula")
        pairs = tuple((VARIABLE_LETTERS[index], series_id) for index, series_id in enumerate(series_ids))
        return cls(expression_text=expression_text, binding=pairs)

    @property
    def letters(self) -> List[str]:
        return [letter for letter, _ in self.binding]

    def series_id_for(self, letter: str) -> Optional[str]:
        return dict(self.binding).get(letter)

    def as_dict(self) -> Dict[str, str]:
        return dict(self.binding)


__all__ = [
    "VARIABLE_LETTERS",
    "Timeframe",
    "CalculationType",
    "DataPoint",
    "ChangePoint",
    "Series",
    "TransformedSeries",
    "Formula",
]
