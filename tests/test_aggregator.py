from datetime import date

from series_engine.aggregator import aggregate, bucket_key
from series_engine.schemas import DataPoint, Series, Timeframe


def _series(pairs):
    return Series(id="s", name="s", points=[DataPoint(date=day, value=value) for day, value in pairs])


def test_bucket_keys():
    assert bucket_key(date(2024, 1, 3), Timeframe.WEEKLY) == "2024-01-01"
    assert bucket_key(date(2024, 1, 7), Timeframe.WEEKLY) == "2024-01-01"
    assert bucket_key(date(2024, 1, 8), Timeframe.WEEKLY) == "2024-01-08"
    assert bucket_key(date(2024, 1, 3), Timeframe.MONTHLY) == "2024-01"
    assert bucket_key(date(2024, 5, 15), Timeframe.QUARTERLY) == "2024-Q2"
    assert bucket_key(date(2024, 12, 31), Timeframe.QUARTERLY) == "2024-Q4"
    assert bucket_key(date(2024, 5, 15), Timeframe.YEARLY) == "2024"


def test_monthly_mean_dated_on_last_member():
    series = _series(
        [
            ("2024-01-05", 10),
            ("2024-01-20", 20),
            ("2024-02-10", None),
            ("2024-02-15", 30),
            ("2024-03-01", None),
        ]
    )
    result = aggregate(series, Timeframe.MONTHLY)

    assert result.dates == [date(2024, 1, 20), date(2024, 2, 15), date(2024, 3, 1)]
    assert result.values() == [15.0, 30.0, None]


def test_daily_is_passthrough(series_factory):
    series = series_factory("s", [1, None, 3])
    assert aggregate(series, Timeframe.DAILY).points == series.points


def test_aggregation_is_deterministic_and_idempotent(points_factory):
    series = Series(id="s", name="s", points=points_factory([float(v) for v in range(90)]))
    first = aggregate(series, Timeframe.WEEKLY)
    second = aggregate(series, Timeframe.WEEKLY)
    assert first.points == second.points
    assert aggregate(first, Timeframe.WEEKLY).points == first.points


def test_aggregates_true_values_of_normalised_points():
    series = Series(
        id="s",
        name="s",
        normalized=True,
        points=[
            DataPoint(date="2024-01-01", value=500, original_value=1),
            DataPoint(date="2024-01-02", value=900, original_value=3),
        ],
    )
    result = aggregate(series, Timeframe.MONTHLY)
    assert result.values() == [2.0]
    assert result.normalized is False


def test_empty_series():
    empty = Series(id="s", name="s")
    assert aggregate(empty, Timeframe.YEARLY).points == []
