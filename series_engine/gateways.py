"""Gateway layer that supplies raw series points to the engine."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol

import pandas as pd

from .exceptions import DataValidationError, NetworkFetchFailure
from .schemas import DataPoint
from .validation import ensure_ordered, normalize_date, normalize_value


class SeriesGateway(Protocol):
    """Abstract asynchronous source of ``{date, value}`` observations."""

    async def fetch_series(
        self,
        source_id: str,
        *,
        start_date: date,
        end_date: date,
    ) -> List[DataPoint]:
        ...

    def get_metadata(self, source_id: str) -> Dict[str, str]:
        """Optional metadata hook (``name``, ``color``...)."""
        return {}


class DataFrameGateway(SeriesGateway):
    """Use an in-memory date-indexed frame with one column per source id.

    Rows where a column is empty are treated as dates without an observation
    for that source, since the wide layout mixes series of different
    frequencies.
    """

    def __init__(
        self,
        frame: pd.DataFrame,
        *,
        metadata: Optional[Mapping[str, Mapping[str, str]]] = None,
    ) -> None:
        frame = frame.copy()
        frame.index = pd.DatetimeIndex(pd.to_datetime(frame.index))
        self._frame = frame.sort_index()
        self._metadata = {key: dict(value) for key, value in (metadata or {}).items()}

    @property
    def source_ids(self) -> List[str]:
        return [str(column) for column in self._frame.columns]

    async def fetch_series(
        self,
        source_id: str,
        *,
        start_date: date,
        end_date: date,
    ) -> List[DataPoint]:
        if source_id not in self._frame.columns:
            raise NetworkFetchFailure(source_id, "unknown series")
        start_ts = _ensure_timestamp(start_date)
        end_ts = _ensure_timestamp(end_date)
        index = self._frame.index
        column = self._frame.loc[(index >= start_ts) & (index <= end_ts), source_id]
        column = pd.to_numeric(column, errors="coerce").dropna()
        return [DataPoint(date=ts.date(), value=float(value)) for ts, value in column.items()]

    def get_metadata(self, source_id: str) -> Dict[str, str]:
        return dict(self._metadata.get(source_id, {}))


def parse_points(payload: Iterable[Mapping[str, Any]]) -> List[DataPoint]:
    """Convert a collaborator payload of ``{"date", "value"}`` dicts into points."""
    points: List[DataPoint] = []
    for position, item in enumerate(payload):
        if "date" not in item:
            raise DataValidationError(f"payload item {position} has no date")
        points.append(
            DataPoint(
                date=normalize_date(item["date"]),
                value=normalize_value(item.get("value")),
            )
        )
    return ensure_ordered(points)


class RequestSequencer:
    """Monotonic request tokens; only the latest issued token may be applied."""

    def __init__(self) -> None:
        self._latest = 0

    @property
    def latest(self) -> int:
        return self._latest

    def issue(self) -> int:
        self._latest += 1
        return self._latest

    def is_latest(self, token: int) -> bool:
        return token == self._latest


def _ensure_timestamp(value: date | datetime) -> pd.Timestamp:
    if isinstance(value, pd.Timestamp):
        return value
    return pd.Timestamp(value)


__all__ = [
    "SeriesGateway",
    "DataFrameGateway",
    "RequestSequencer",
    "parse_points",
]
