"""
Exception hierarchy for survstats.

All exceptions inherit from SurvStatsError to allow catching any
library-specific error. Each failure mode of the survival estimators,
the Cox fit and the evaluation metrics has its own type so callers can
tell them apart without parsing messages.

Design principles:
    - Exceptions carry diagnostic information as attributes
    - Error messages are actionable with actual vs expected values
    - Never catch and re-raise with less information
    - Undefined results are raised, never coerced to a default value
"""


class SurvStatsError(Exception):
    """Base exception for all survstats errors."""
    pass


class ValidationError(SurvStatsError):
    """
    Input validation failed.

    Raised when user-provided inputs fail validation checks.
    """
    pass


class InvalidInputError(ValidationError):
    """
    Input data is malformed.

    Raised for negative or non-finite times, an empty cohort, event
    indicators outside {0, 1}, or a formula that does not match the table.
    """
    pass


class DimensionError(InvalidInputError):
    """
    Array dimensions are incorrect or inconsistent.

    Raised when array shapes don't match expected dimensions or
    when multiple arrays have inconsistent shapes.
    """
    pass


class DomainError(ValidationError):
    """
    A parameter is outside its valid range.

    Examples: a non-positive RMST horizon, a bootstrap tail level outside
    (0, 0.5), too few bootstrap replicates.
    """
    pass


class InsufficientDataError(ValidationError):
    """
    The data cannot support the requested analysis.

    Raised when a test needs more groups or events than are present
    (e.g. a log-rank test where fewer than two groups have an event).
    """
    pass


class NumericalError(SurvStatsError):
    """
    Numerical computation failed.

    Base class for errors arising from numerical issues during computation.
    """
    pass


class SingularMatrixError(NumericalError):
    """
    Matrix is singular or nearly singular.

    Attributes:
        matrix_name: Name/description of the problematic matrix
        condition_number: Estimated condition number, if available
        rank: Numerical rank, if computed
        expected_rank: Expected rank
    """

    def __init__(
        self,
        message: str,
        matrix_name: str | None = None,
        condition_number: float | None = None,
        rank: int | None = None,
        expected_rank: int | None = None
    ):
        super().__init__(message)
        self.matrix_name = matrix_name
        self.condition_number = condition_number
        self.rank = rank
        self.expected_rank = expected_rank


class SingularHessianError(SingularMatrixError):
    """
    The Cox information matrix (negative Hessian) is not invertible.

    Typically caused by collinear or constant covariates.
    """
    pass


class ConvergenceError(NumericalError):
    """
    Iterative algorithm failed to converge.

    Raised when Newton-Raphson (Cox) or a parametric likelihood optimizer
    fails to meet its convergence criterion within the iteration cap.

    Attributes:
        iterations: Number of iterations completed
        final_change: Final gradient norm or objective change
        reason: Why convergence failed (e.g., 'max_iterations')
        threshold: The convergence threshold that was not met
    """

    def __init__(
        self,
        message: str,
        iterations: int,
        final_change: float | None = None,
        reason: str | None = None,
        threshold: float | None = None
    ):
        super().__init__(message)
        self.iterations = iterations
        self.final_change = final_change
        self.reason = reason
        self.threshold = threshold


class InvariantViolationError(NumericalError):
    """
    A post-condition on a computed result does not hold.

    Raised when predicted survival probabilities leave [0, 1] or increase
    along the time axis.

    Attributes:
        n_violations: Number of offending entries
        max_violation: Largest violation magnitude
    """

    def __init__(
        self,
        message: str,
        n_violations: int | None = None,
        max_violation: float | None = None
    ):
        super().__init__(message)
        self.n_violations = n_violations
        self.max_violation = max_violation


class UndefinedMetricError(NumericalError):
    """
    A metric is mathematically undefined for the given data.

    Raised instead of returning NaN or a neutral value, e.g. a
    concordance index with zero comparable pairs.
    """
    pass


class UndefinedWeightError(UndefinedMetricError):
    """
    An IPCW weight is undefined because the censoring survival is zero.

    Attributes:
        time: Query time at which the weight was requested
        subjects: Indices of the subjects whose weight is undefined
    """

    def __init__(
        self,
        message: str,
        time: float | None = None,
        subjects: tuple[int, ...] = ()
    ):
        super().__init__(message)
        self.time = time
        self.subjects = subjects
