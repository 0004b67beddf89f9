"""Formula parsing, validation and evaluation."""

from .evaluator import FormulaEvaluator, align_series, new_series_id
from .functions import ALLOWED_FUNCTIONS
from .parser import parse
from .validator import compile_formula, validate

__all__ = [
    "FormulaEvaluator",
    "ALLOWED_FUNCTIONS",
    "align_series",
    "compile_formula",
    "new_series_id",
    "parse",
    "validate",
]
