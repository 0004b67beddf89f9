"""Tree-walking evaluation of validated formulas over bound series."""

from __future__ import annotations

import logging
import math
import uuid
from typing import Dict, List, Mapping, Optional

import numpy as np
import pandas as pd

from ..config import DEFAULT_RSI_PERIOD
from ..exceptions import DataValidationError, FormulaEvaluationError
from ..schemas import DataPoint, Formula, Series
from .functions import INDICATOR_FUNCTIONS, MATH_FUNCTIONS, SERIES_FUNCTIONS
from .parser import BinaryOp, Call, Node, Number, UnaryOp, Variable
from .validator import compile_formula


def new_series_id(prefix: str = "custom") -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


def align_series(reference: Series, series_by_letter: Mapping[str, Series], letters: List[str]) -> pd.DataFrame:
    """Original values of every bound series reindexed onto ``reference``'s dates."""
    index = pd.DatetimeIndex(pd.to_datetime(reference.dates), name="date")
    frame = pd.DataFrame(index=index)
    for letter in letters:
        series = series_by_letter.get(letter)
        if series is None:
            frame[letter] = np.nan
            continue
        frame[letter] = series.to_frame(original=True)["value"].reindex(index)
    return frame


class _IndexInterpreter:
    """Evaluates one tree at one aligned index."""

    def __init__(self, columns: Dict[str, np.ndarray], index: int, rsi_period: int) -> None:
        self.columns = columns
        self.index = index
        self.rsi_period = rsi_period

    def visit(self, node: Node) -> float:
        if isinstance(node, Number):
            return node.value
        if isinstance(node, Variable):
            column = self.columns.get(node.name)
            if column is None:
                raise FormulaEvaluationError(f"variable {node.name} is not bound")
            return float(column[self.index])
        if isinstance(node, UnaryOp):
            operand = self.visit(node.operand)
            return -operand if node.op == "-" else operand
        if isinstance(node, BinaryOp):
            return self._binary(node.op, self.visit(node.left), self.visit(node.right))
        if isinstance(node, Call):
            return self._call(node)
        raise FormulaEvaluationError(f"unsupported node {node!r}")

    @staticmethod
    def _binary(op: str, left: float, right: float) -> float:
        if op == "+":
            return left + right
        if op == "-":
            return left - right
        if op == "*":
            return left * right
        if op == "/":
            return math.nan if right == 0 else left / right
        if op == "%":
            return math.nan if right == 0 else math.fmod(left, right)
        if op == "**":
            return math.pow(left, right)
        raise FormulaEvaluationError(f"unsupported operator {op!r}")

    def _call(self, node: Call) -> float:
        if node.name in INDICATOR_FUNCTIONS:
            target = node.args[0] if node.args else None
            if not isinstance(target, Variable) or target.name not in self.columns:
                raise FormulaEvaluationError(f"{node.name} needs a bound series variable")
            period = self.visit(node.args[1]) if len(node.args) > 1 else self.rsi_period
            return INDICATOR_FUNCTIONS[node.name](self.columns[target.name], self.index, period)
        args = [self.visit(arg) for arg in node.args]
        if node.name in SERIES_FUNCTIONS:
            return SERIES_FUNCTIONS[node.name](*args)
        if node.name in MATH_FUNCTIONS:
            return MATH_FUNCTIONS[node.name](*args)
        raise FormulaEvaluationError(f"function {node.name} is not allowed")


def _finite_or_none(value: Optional[float]) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, complex):
        raise ValueError(f"non-real result {value!r}")
    value = float(value)
    if not math.isfinite(value):
        return None
    return value


class FormulaEvaluator:
    """Computes derived series from a :class:`Formula` and its bound series."""

    def __init__(
        self,
        *,
        rsi_period: int = DEFAULT_RSI_PERIOD,
        logger: logging.Logger | None = None,
    ) -> None:
        self.rsi_period = rsi_period
        self.logger = logger or logging.getLogger(self.__class__.__name__)

    def evaluate(
        self,
        formula: Formula,
        series_by_letter: Mapping[str, Series],
        *,
        name: str,
        series_id: Optional[str] = None,
        color: str = "#607d8b",
        y_axis: str = "right",
    ) -> Series:
        """Evaluate ``formula`` at every date of the series bound to ``A``.

        A failure at one index (bad window, math domain error, overflow or a
        non-finite result) leaves ``None`` at that index only.

        Raises:
            FormulaValidationError: the formula fails validation
            DataValidationError: no reference series is bound
        """
        tree = compile_formula(formula.expression_text, len(formula.binding))
        letters = formula.letters
        reference = series_by_letter.get(letters[0]) if letters else None
        if reference is None:
            raise DataValidationError("formula has no reference series bound to A")

        frame = align_series(reference, series_by_letter, letters)
        columns = {letter: frame[letter].to_numpy(dtype=float) for letter in letters}

        points: List[DataPoint] = []
        failures = 0
        for index, day in enumerate(reference.dates):
            try:
                value = _finite_or_none(_IndexInterpreter(columns, index, self.rsi_period).visit(tree))
            except (FormulaEvaluationError, ArithmeticError, ValueError, TypeError) as exc:
                failures += 1
                self.logger.debug("formula %r failed at %s: %s", formula.expression_text, day, exc)
                value = None
            points.append(DataPoint(date=day, value=value))

        if failures:
            self.logger.warning(
                "formula %r could not be evaluated at %d of %d dates",
                formula.expression_text,
                failures,
                len(points),
            )

        return Series(
            id=series_id or new_series_id(),
            name=name,
            points=points,
            color=color,
            y_axis=y_axis,
            source_formula=formula.expression_text,
        )


__all__ = ["FormulaEvaluator", "align_series", "new_series_id"]
