"""Typed containers for engine results."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Optional, Tuple, Type

from .exceptions import (
    FormulaValidationError,
    InvalidFormulaSyntax,
    UnknownFunctionReference,
    UnknownVariableReference,
)

_ERRORS: dict[str, Type[FormulaValidationError]] = {
    InvalidFormulaSyntax.kind: InvalidFormulaSyntax,
    UnknownVariableReference.kind: UnknownVariableReference,
    UnknownFunctionReference.kind: UnknownFunctionReference,
}


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of formula validation.

    Attributes:
        ok: True when every check passed
        error: failure kind (``InvalidFormulaSyntax``, ``UnknownVariableReference``
            or ``UnknownFunctionReference``), ``None`` when valid
        message: human readable reason
        variables: offending letters for ``UnknownVariableReference``, otherwise
            every letter the expression references
        functions: offending names for ``UnknownFunctionReference``, otherwise
            every function the expression calls
    """

    ok: bool
    error: Optional[str] = None
    message: str = ""
    variables: Tuple[str, ...] = field(default_factory=tuple)
    functions: Tuple[str, ...] = field(default_factory=tuple)

    def raise_for_error(self) -> None:
        if self.ok:
            return
        error_cls = _ERRORS.get(self.error or "", FormulaValidationError)
        if error_cls is UnknownVariableReference:
            raise UnknownVariableReference(self.message, self.variables)
        if error_cls is UnknownFunctionReference:
            raise UnknownFunctionReference(self.message, self.functions)
        raise error_cls(self.message)


@dataclass(frozen=True)
class PeriodChange:
    change: float
    percent: float


@dataclass(frozen=True)
class SeriesSummary:
    as_of: date
    last_value: float
    last_change: float
    last_change_percent: float
    weekly: PeriodChange
    monthly: PeriodChange
    quarterly: PeriodChange
    yearly: PeriodChange


__all__ = ["ValidationResult", "PeriodChange", "SeriesSummary"]
