"""Time-series comparison engine.

Aggregates observations onto calendar timeframes, computes change and
percent-change views, rescales comparison series onto a primary and derives
new series from validated formulas.
"""

from .exceptions import (
    DataUnavailableError,
    DataValidationError,
    FormulaEvaluationError,
    FormulaValidationError,
    InvalidFormulaSyntax,
    NetworkFetchFailure,
    SeriesIntegrityError,
    SeriesLimitError,
    SeriesNotFoundError,
    UnknownFunctionReference,
    UnknownVariableReference,
)
from .library import SeriesWorkspace
from .models import PeriodChange, SeriesSummary, ValidationResult
from .schemas import CalculationType, ChangePoint, DataPoint, Formula, Series, Timeframe, TransformedSeries

__all__ = [
    "SeriesWorkspace",
    "CalculationType",
    "ChangePoint",
    "DataPoint",
    "Formula",
    "Series",
    "Timeframe",
    "TransformedSeries",
    "PeriodChange",
    "SeriesSummary",
    "ValidationResult",
    "DataUnavailableError",
    "DataValidationError",
    "FormulaEvaluationError",
    "FormulaValidationError",
    "InvalidFormulaSyntax",
    "NetworkFetchFailure",
    "SeriesIntegrityError",
    "SeriesLimitError",
    "SeriesNotFoundError",
    "UnknownFunctionReference",
    "UnknownVariableReference",
]
