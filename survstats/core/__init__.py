"""
Core infrastructure for survstats.

Shared abstractions used by every domain subpackage (survival, prediction,
metrics, montecarlo).

Key components:
    result: Generic Result[P] envelope
    exceptions: Exception hierarchy
    validation: Input validators
    compute: Timing and numerical tolerances
"""

from survstats.core.result import Result
from survstats.core.exceptions import (
    SurvStatsError,
    ValidationError,
    InvalidInputError,
    DimensionError,
    DomainError,
    InsufficientDataError,
    NumericalError,
    SingularMatrixError,
    SingularHessianError,
    ConvergenceError,
    InvariantViolationError,
    UndefinedMetricError,
    UndefinedWeightError,
)

__all__ = [
    # Result
    "Result",
    # Exceptions
    "SurvStatsError",
    "ValidationError",
    "InvalidInputError",
    "DimensionError",
    "DomainError",
    "InsufficientDataError",
    "NumericalError",
    "SingularMatrixError",
    "SingularHessianError",
    "ConvergenceError",
    "InvariantViolationError",
    "UndefinedMetricError",
    "UndefinedWeightError",
]
