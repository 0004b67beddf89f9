"""Custom exceptions for the series engine."""

from __future__ import annotations

from typing import Sequence


class DataValidationError(ValueError):
    """Raised when inbound parameters fail strict validation."""


class DataUnavailableError(RuntimeError):
    """Raised when upstream sources cannot provide reliable data."""


class NetworkFetchFailure(DataUnavailableError):
    """Raised when a fetch collaborator fails to deliver a series."""

    def __init__(self, source_id: str, message: str) -> None:
        super().__init__(f"{source_id}: {message}")
        self.source_id = source_id


class SeriesIntegrityError(ValueError):
    """Raised when a series violates the unique ascending date invariant."""


class SeriesNotFoundError(KeyError):
    """Raised when a series id is not present in the store."""


class SeriesLimitError(RuntimeError):
    """Raised when adding a series would exceed the configured limit."""


class FormulaValidationError(DataValidationError):
    """Base class for formula problems reported at creation time."""

    kind = "FormulaValidationError"


class InvalidFormulaSyntax(FormulaValidationError):
    kind = "InvalidFormulaSyntax"


class UnknownVariableReference(FormulaValidationError):
    kind = "UnknownVariableReference"

    def __init__(self, message: str, variables: Sequence[str] = ()) -> None:
        super().__init__(message)
        self.variables = tuple(variables)


class UnknownFunctionReference(FormulaValidationError):
    kind = "UnknownFunctionReference"

    def __init__(self, message: str, functions: Sequence[str] = ()) -> None:
        super().__init__(message)
        self.functions = tuple(functions)


class FormulaEvaluationError(RuntimeError):
    """Raised while evaluating a formula at a single index."""


__all__ = [
    "DataValidationError",
    "DataUnavailableError",
    "NetworkFetchFailure",
    "SeriesIntegrityError",
    "SeriesNotFoundError",
    "SeriesLimitError",
    "FormulaValidationError",
    "InvalidFormulaSyntax",
    "UnknownVariableReference",
    "UnknownFunctionReference",
    "FormulaEvaluationError",
]
