import asyncio
from datetime import date

import numpy as np
import pandas as pd
import pytest

from series_engine.exceptions import DataValidationError, NetworkFetchFailure, SeriesIntegrityError
from series_engine.gateways import DataFrameGateway, RequestSequencer, parse_points


@pytest.fixture
def frame():
    index = pd.to_datetime(["2024-01-31", "2024-02-29", "2024-03-31", "2024-04-30"])
    return pd.DataFrame({"GDP": [1.0, 2.0, 3.0, 4.0], "CPI": [10.0, np.nan, 30.0, "."]}, index=index)


def test_dataframe_gateway_slices_and_drops_empty_cells(frame):
    gateway = DataFrameGateway(frame, metadata={"GDP": {"name": "Gross domestic product"}})

    gdp = asyncio.run(gateway.fetch_series("GDP", start_date=date(2024, 2, 1), end_date=date(2024, 3, 31)))
    cpi = asyncio.run(gateway.fetch_series("CPI", start_date=date(2024, 1, 1), end_date=date(2024, 12, 31)))

    assert [(point.date, point.value) for point in gdp] == [(date(2024, 2, 29), 2.0), (date(2024, 3, 31), 3.0)]
    assert [point.value for point in cpi] == [10.0, 30.0]
    assert gateway.get_metadata("GDP") == {"name": "Gross domestic product"}
    assert gateway.get_metadata("CPI") == {}
    assert gateway.source_ids == ["GDP", "CPI"]


def test_dataframe_gateway_unknown_series(frame):
    gateway = DataFrameGateway(frame)
    with pytest.raises(NetworkFetchFailure) as excinfo:
        asyncio.run(gateway.fetch_series("UNRATE", start_date=date(2024, 1, 1), end_date=date(2024, 12, 31)))
    assert excinfo.value.source_id == "UNRATE"


def test_parse_points_normalises_payload():
    points = parse_points(
        [
            {"date": "2024-02-01", "value": "2.5"},
            {"date": "2024-01-01T00:00:00", "value": "."},
            {"date": "2024-03-01", "value": None},
        ]
    )
    assert [point.date for point in points] == [date(2024, 1, 1), date(2024, 2, 1), date(2024, 3, 1)]
    assert [point.value for point in points] == [None, 2.5, None]


def test_parse_points_rejects_bad_payloads():
    with pytest.raises(DataValidationError):
        parse_points([{"value": 1}])
    with pytest.raises(DataValidationError):
        parse_points([{"date": "01/02/2024", "value": 1}])
    with pytest.raises(DataValidationError):
        parse_points([{"date": "2024-01-01", "value": "n/a"}])
    with pytest.raises(SeriesIntegrityError):
        parse_points([{"date": "2024-01-01", "value": 1}, {"date": "2024-01-01", "value": 2}])


def test_request_sequencer_only_latest_applies():
    sequencer = RequestSequencer()
    first = sequencer.issue()
    second = sequencer.issue()
    assert second > first
    assert not sequencer.is_latest(first)
    assert sequencer.is_latest(second)
    assert sequencer.latest == second
