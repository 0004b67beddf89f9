import logging
import math

import pytest

from series_engine.exceptions import (
    DataValidationError,
    InvalidFormulaSyntax,
    UnknownFunctionReference,
    UnknownVariableReference,
)
from series_engine.formula import FormulaEvaluator, compile_formula, parse, validate
from series_engine.formula.functions import series_average, series_ratio, series_subtract
from series_engine.formula.parser import BinaryOp, Call, Number, UnaryOp, Variable, referenced_variables
from series_engine.formula.validator import available_variables_text
from series_engine.schemas import DataPoint, Formula, Series


def test_parse_respects_precedence():
    tree = parse("A + B * 2")
    assert tree == BinaryOp("+", Variable("A"), BinaryOp("*", Variable("B"), Number(2.0)))


def test_parse_power_binds_tighter_than_unary_minus():
    assert parse("-A ** 2") == UnaryOp("-", BinaryOp("**", Variable("A"), Number(2.0)))


def test_parse_calls():
    assert parse("SMA(A, 3)") == Call("SMA", (Variable("A"), Number(3.0)))
    assert referenced_variables(parse("max(B, A) + B")) == ["B", "A"]


@pytest.mark.parametrize("text", ["", "A +", "(A", "A B", "foo", "A $ B", "__import__('os')"])
def test_syntax_errors(text):
    result = validate(text, 2)
    assert not result.ok
    assert result.error == "InvalidFormulaSyntax"


def test_unknown_variable_with_two_series():
    result = validate("A + C", 2)
    assert result.error == "UnknownVariableReference"
    assert result.variables == ("C",)
    assert result.message == "Unknown variable(s): C. Available variables: A through B"
    with pytest.raises(UnknownVariableReference):
        result.raise_for_error()


def test_unknown_function():
    result = validate("SQRT(A)", 1)
    assert result.error == "UnknownFunctionReference"
    assert result.functions == ("SQRT",)
    with pytest.raises(UnknownFunctionReference):
        compile_formula("SQRT(A)", 1)


def test_indicator_argument_checks():
    assert validate("RSI(A)", 1).ok
    assert validate("SMA(A)", 1).error == "InvalidFormulaSyntax"
    assert validate("SMA(2, 3)", 1).error == "InvalidFormulaSyntax"
    with pytest.raises(InvalidFormulaSyntax):
        compile_formula("EMA(A + 1, 3)", 1)


def test_valid_formula_lists_references():
    result = validate("sqrt(A) + RATIO(A, B)", 2)
    assert result.ok
    assert result.variables == ("A", "B")
    assert result.functions == ("sqrt", "RATIO")


def test_available_variables_text():
    assert available_variables_text(0) == "none (no active series)"
    assert available_variables_text(1) == "A"
    assert available_variables_text(3) == "A through C"


def test_series_functions():
    assert series_ratio(50, 200) == 25.0
    assert series_subtract(10, 3, 2) == 5.0
    assert series_average(1.0, float("nan"), 3.0) == 2.0
    assert series_ratio(1) != series_ratio(1)


def _evaluate(expression, *series):
    formula = Formula.bind(expression, [item.id for item in series])
    evaluator = FormulaEvaluator(logger=logging.getLogger("test"))
    return evaluator.evaluate(formula, dict(zip(formula.letters, series)), name="derived")


def test_evaluates_indicators(series_factory):
    a = series_factory("a", [100, 110, 121])
    assert _evaluate("SMA(A, 1)", a).values() == [100.0, 110.0, 121.0]
    roc = _evaluate("ROC(A, 1)", a).values()
    assert roc[0] is None
    assert roc[2] == pytest.approx(10.0)
    assert _evaluate("STDEV(A, 3)", a).values()[2] == pytest.approx(8.5765, abs=1e-3)


def test_division_by_zero_yields_missing(series_factory):
    a = series_factory("a", [1, 2, 3])
    b = series_factory("b", [1, 0, 2])
    assert _evaluate("A / B", a, b).values() == [1.0, None, 1.5]


def test_aligns_on_reference_dates(series_factory):
    a = series_factory("a", [1, 2, 3])
    b = Series(id="b", name="b", points=[DataPoint(date="2024-01-03", value=10)])
    derived = _evaluate("A + B", a, b)
    assert derived.dates == a.dates
    assert derived.values() == [None, None, 13.0]


def test_uses_true_values_of_normalised_series(series_factory):
    a = Series(
        id="a",
        name="a",
        points=[DataPoint(date="2024-01-01", value=999, original_value=4)],
    )
    assert _evaluate("A * 2", a).values() == [8.0]


def test_math_domain_error_only_affects_that_index(series_factory):
    a = series_factory("a", [4, -1, 9])
    assert _evaluate("sqrt(A)", a).values() == [2.0, None, 3.0]


def test_non_real_power_only_affects_that_index(series_factory):
    a = series_factory("a", [4, -8, 9])
    assert _evaluate("pow(A, 0.5)", a).values() == [2.0, None, 3.0]
    assert _evaluate("A ** 0.5", a).values() == [2.0, None, 3.0]


def test_named_series_functions_through_formulas(series_factory):
    a = series_factory("a", [10, 20, 30])
    b = series_factory("b", [2, 0, 5])
    assert _evaluate("DIVIDE(A, B)", a, b).values() == [5.0, None, 6.0]
    assert _evaluate("RATIO(A, B)", a, b).values() == [500.0, None, 600.0]
    assert _evaluate("DIVIDE(A, B, 2)", a, b).values() == [2.5, None, 3.0]
    assert _evaluate("ADD(A, B, 1)", a, b).values() == [13.0, 21.0, 36.0]
    assert _evaluate("MULTIPLY(A, B, 2)", a, b).values() == [40.0, 0.0, 300.0]
    assert _evaluate("ADD(A)", a, b).values() == [None, None, None]


def test_average_of_missing_values_is_missing(series_factory):
    a = series_factory("a", [1, None])
    b = series_factory("b", [3, None])
    assert _evaluate("AVERAGE(A, B)", a, b).values() == [2.0, None]
    assert math.isnan(series_average(float("nan"), float("nan")))


def test_ema_through_formula(series_factory):
    a = series_factory("a", [1, 2, 3])
    assert _evaluate("EMA(A, 2)", a).values() == pytest.approx([1.0, 4 / 3, 13 / 9])


def test_rsi_uses_default_period(series_factory):
    a = series_factory("a", [10, 11, 12, 11, 13, 12, 14, 15, 14, 16, 17, 16, 18, 19, 18, 20])
    default = _evaluate("RSI(A)", a).values()
    assert default == _evaluate("RSI(A, 14)", a).values()
    assert default[-1] == pytest.approx(1400 / 19)
    assert _evaluate("RSI(A, 2)", a).values()[-1] == pytest.approx(200 / 3)

    formula = Formula.bind("RSI(A)", ["a"])
    short = FormulaEvaluator(rsi_period=2).evaluate(formula, {"A": a}, name="rsi")
    assert short.values()[-1] == pytest.approx(200 / 3)


def test_derived_series_metadata(series_factory):
    a = series_factory("a", [1, 2])
    derived = _evaluate("A * 2", a)
    assert derived.id.startswith("custom_")
    assert derived.source_formula == "A * 2"
    assert derived.source_id is None


def test_missing_reference_series_rejected():
    formula = Formula.bind("A", [])
    with pytest.raises(DataValidationError):
        FormulaEvaluator().evaluate(formula, {}, name="x")
