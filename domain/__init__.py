"""
Domain layer: Business logic with minimal external dependencies.

Contains:
- schemas: Pydantic value objects for statistics results
- errors: Error kinds raised by the statistics core
- cohort: Derived cohort columns and predictor threshold rules
- evaluation: Diagnostic-accuracy statistics
"""

from domain.errors import DegenerateInputError, InsufficientDataError, Sepsis3EvalError, ShapeMismatchError
from domain.schemas import (
    Adjustment,
    AUROCResult,
    ComparisonMethod,
    ComparisonResult,
    ConfidenceInterval,
    ConfusionMatrixResult,
    ErrorPolicy,
    OperatingPointRow,
)

__all__ = [
    "ConfusionMatrixResult",
    "ConfidenceInterval",
    "AUROCResult",
    "ComparisonResult",
    "OperatingPointRow",
    "Adjustment",
    "ComparisonMethod",
    "ErrorPolicy",
    "Sepsis3EvalError",
    "ShapeMismatchError",
    "DegenerateInputError",
    "InsufficientDataError",
]
