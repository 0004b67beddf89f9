import pytest

from series_engine.export import build_chart_rows, chart_rows_to_csv
from series_engine.schemas import CalculationType, DataPoint, Series


@pytest.fixture
def primary(series_factory):
    return series_factory("gdp", [100, 110, 121], name="GDP")


@pytest.fixture
def sparse_secondary():
    return Series(
        id="cpi",
        name="CPI",
        points=[DataPoint(date="2024-01-01", value=1), DataPoint(date="2024-01-03", value=3)],
    )


def test_rows_merge_secondaries_by_primary_date(primary, sparse_secondary):
    rows = build_chart_rows([primary, sparse_secondary], CalculationType.PERIOD_TO_PERIOD)

    assert [row["date"] for row in rows] == ["2024-01-01", "2024-01-02", "2024-01-03"]
    assert [row["change"] for row in rows] == [0.0, 10.0, 11.0]
    assert [row["cpi"] for row in rows] == [1.0, None, 3.0]
    assert [row["cpi_change"] for row in rows] == [0.0, None, 2.0]
    assert "cpi_normalized" not in rows[0]


def test_rows_carry_normalised_values_for_raw_view(primary, sparse_secondary):
    rows = build_chart_rows([primary, sparse_secondary], CalculationType.VALUE)
    assert rows[0]["cpi_normalized"] == pytest.approx(331 / 3 - 10.5)
    assert rows[2]["cpi_normalized"] == pytest.approx(331 / 3 + 10.5)
    assert rows[1]["cpi_normalized"] is None

    plain = build_chart_rows([primary, sparse_secondary], CalculationType.VALUE, normalize_comparisons=False)
    assert "cpi_normalized" not in plain[0]


def test_hidden_secondaries_are_skipped(primary, sparse_secondary):
    hidden = sparse_secondary.model_copy(update={"visible": False})
    rows = build_chart_rows([primary, hidden], CalculationType.VALUE)
    assert set(rows[0]) == {"date", "value", "change"}
    assert build_chart_rows([], CalculationType.VALUE) == []


def test_csv_with_change_column(primary, sparse_secondary):
    series_list = [primary, sparse_secondary]
    rows = build_chart_rows(series_list, CalculationType.PERIOD_TO_PERIOD)
    text = chart_rows_to_csv(rows, series_list, CalculationType.PERIOD_TO_PERIOD)

    assert text.splitlines() == [
        "Date,Value,CPI,Change",
        "2024-01-01,100.0,1.0,0.0",
        "2024-01-02,110.0,,10.0",
        "2024-01-03,121.0,3.0,11.0",
    ]


def test_csv_without_change_column(primary):
    rows = build_chart_rows([primary], CalculationType.VALUE)
    text = chart_rows_to_csv(rows, [primary], CalculationType.VALUE)
    assert text.splitlines()[0] == "Date,Value"
    assert text.splitlines()[1] == "2024-01-01,100.0"


def test_csv_writes_missing_change_as_zero(series_factory):
    gappy = series_factory("gdp", [1, None, 3])
    rows = build_chart_rows([gappy], CalculationType.PERIOD_TO_PERIOD)
    text = chart_rows_to_csv(rows, [gappy], CalculationType.PERIOD_TO_PERIOD)
    assert text.splitlines()[2] == "2024-01-02,,0.0"
