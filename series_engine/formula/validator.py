"""Static checks run on a formula before any series is created."""

from __future__ import annotations

from typing import List

from ..exceptions import InvalidFormulaSyntax, UnknownFunctionReference, UnknownVariableReference
from ..models import ValidationResult
from ..schemas import VARIABLE_LETTERS
from .functions import ALLOWED_FUNCTIONS, INDICATOR_FUNCTIONS, OPTIONAL_PERIOD_INDICATORS
from .parser import Call, Node, Variable, called_functions, parse, referenced_variables, walk


def available_variables_text(series_count: int) -> str:
    if series_count <= 0:
        return "none (no active series)"
    last = VARIABLE_LETTERS[min(series_count, len(VARIABLE_LETTERS)) - 1]
    if last == "A":
        return "A"
    return f"A through {last}"


def _indicator_shape_errors(tree: Node) -> List[str]:
    problems: List[str] = []
    for node in walk(tree):
        if not isinstance(node, Call) or node.name not in INDICATOR_FUNCTIONS:
            continue
        min_args = 1 if node.name in OPTIONAL_PERIOD_INDICATORS else 2
        if not min_args <= len(node.args) <= 2:
            expected = "1 or 2" if min_args == 1 else "2"
            problems.append(f"{node.name} expects {expected} arguments, got {len(node.args)}")
        elif not isinstance(node.args[0], Variable):
            problems.append(f"{node.name} expects a series variable as its first argument")
    return problems


def validate(expression_text: str, series_count: int) -> ValidationResult:
    """Check syntax, variable references and function names, in that order.

    Args:
        expression_text: formula as typed by the user
        series_count: number of series bound to letters A, B, C...

    Returns:
        ValidationResult whose ``error`` names the first failing check.
    """
    try:
        tree = parse(expression_text)
    except InvalidFormulaSyntax as exc:
        return ValidationResult(ok=False, error=InvalidFormulaSyntax.kind, message=str(exc))

    problems = _indicator_shape_errors(tree)
    if problems:
        return ValidationResult(ok=False, error=InvalidFormulaSyntax.kind, message="; ".join(problems))

    variables = referenced_variables(tree)
    unknown = [name for name in variables if VARIABLE_LETTERS.index(name) >= series_count]
    if unknown:
        return ValidationResult(
            ok=False,
            error=UnknownVariableReference.kind,
            message=(
                f"Unknown variable(s): {', '.join(unknown)}. "
                f"Available variables: {available_variables_text(series_count)}"
            ),
            variables=tuple(unknown),
        )

    functions = called_functions(tree)
    not_allowed = [name for name in functions if name not in ALLOWED_FUNCTIONS]
    if not_allowed:
        return ValidationResult(
            ok=False,
            error=UnknownFunctionReference.kind,
            message=f"Unknown function(s): {', '.join(not_allowed)}",
            functions=tuple(not_allowed),
        )

    return ValidationResult(ok=True, variables=tuple(variables), functions=tuple(functions))


def compile_formula(expression_text: str, series_count: int) -> Node:
    """Validate and return the parsed tree, raising on the first failure."""
    result = validate(expression_text, series_count)
    result.raise_for_error()
    return parse(expression_text)


__all__ = ["validate", "compile_formula", "available_variables_text"]
