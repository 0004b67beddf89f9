import asyncio
import os
import sys
from datetime import date
from typing import Dict, List, Optional, Sequence

import pandas as pd
import pytest

# Add parent directory to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from series_engine.config import EngineSettings
from series_engine.schemas import DataPoint, Series


def make_points(values: Sequence[Optional[float]], start: str = "2024-01-01", freq: str = "D") -> List[DataPoint]:
    dates = pd.date_range(start, periods=len(values), freq=freq)
    return [DataPoint(date=ts.date(), value=value) for ts, value in zip(dates, values)]


def make_series(series_id: str, values, start: str = "2024-01-01", freq: str = "D", **kwargs) -> Series:
    kwargs.setdefault("name", series_id)
    return Series(id=series_id, points=make_points(values, start, freq), **kwargs)


class StubGateway:
    """In-memory gateway that can hold every fetch until released."""

    def __init__(self, data: Dict[str, List[DataPoint]], metadata: Optional[Dict[str, Dict[str, str]]] = None):
        self.data = data
        self.metadata = metadata or {}
        self.calls = []
        self.pending: List[asyncio.Event] = []
        self.blocking = False
        self.errors: Dict[str, Exception] = {}

    async def fetch_series(self, source_id, *, start_date, end_date):
        self.calls.append((source_id, start_date, end_date))
        if self.blocking:
            event = asyncio.Event()
            self.pending.append(event)
            await event.wait()
        if source_id in self.errors:
            raise self.errors[source_id]
        return [point for point in self.data.get(source_id, []) if start_date <= point.date <= end_date]

    def get_metadata(self, source_id):
        return self.metadata.get(source_id, {})


@pytest.fixture
def series_factory():
    """Build a Series from a list of values on consecutive dates."""
    return make_series


@pytest.fixture
def points_factory():
    return make_points


@pytest.fixture
def gateway_factory():
    return StubGateway


@pytest.fixture
def settings():
    return EngineSettings()


@pytest.fixture
def today():
    return date(2024, 12, 31)


@pytest.fixture
def monthly_points():
    """Month starts from 2023-01 to 2024-12 with values 1..24."""
    return make_points([float(value) for value in range(1, 25)], start="2023-01-01", freq="MS")
