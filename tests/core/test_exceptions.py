"""
Tests for the survstats exception hierarchy.

Validates:
    - Inheritance chain (all exceptions catchable via SurvStatsError)
    - Diagnostic attributes on SingularMatrixError, ConvergenceError,
      InvariantViolationError and UndefinedWeightError
    - Default attribute values (None for optional attributes)
"""

import pytest

from survstats.core.exceptions import (
    ConvergenceError,
    DimensionError,
    DomainError,
    InsufficientDataError,
    InvalidInputError,
    InvariantViolationError,
    NumericalError,
    SingularHessianError,
    SingularMatrixError,
    SurvStatsError,
    UndefinedMetricError,
    UndefinedWeightError,
    ValidationError,
)


# ═══════════════════════════════════════════════════════════════════════
# Inheritance hierarchy
# ═══════════════════════════════════════════════════════════════════════


class TestInheritance:
    """Every exception is catchable via SurvStatsError."""

    @pytest.mark.parametrize("cls", [
        ValidationError, InvalidInputError, DimensionError, DomainError,
        InsufficientDataError, NumericalError, SingularMatrixError,
        SingularHessianError, InvariantViolationError, UndefinedMetricError,
    ])
    def test_catchable_as_base(self, cls):
        with pytest.raises(SurvStatsError):
            raise cls("failure")

    def test_dimension_error_is_invalid_input(self):
        with pytest.raises(InvalidInputError):
            raise DimensionError("wrong shape")

    def test_domain_error_is_validation_error(self):
        assert issubclass(DomainError, ValidationError)
        assert not issubclass(DomainError, InvalidInputError)

    def test_singular_hessian_is_singular_matrix(self):
        with pytest.raises(SingularMatrixError):
            raise SingularHessianError("singular")

    def test_convergence_error_is_numerical_error(self):
        err = ConvergenceError("did not converge", iterations=50)
        assert isinstance(err, NumericalError)

    def test_undefined_weight_is_undefined_metric(self):
        with pytest.raises(UndefinedMetricError):
            raise UndefinedWeightError("G = 0", time=5.0)

    def test_validation_and_numerical_are_disjoint(self):
        assert not issubclass(NumericalError, ValidationError)
        assert not issubclass(ValidationError, NumericalError)


# ═══════════════════════════════════════════════════════════════════════
# Diagnostic attributes
# ═══════════════════════════════════════════════════════════════════════


class TestSingularMatrixError:

    def test_attributes(self):
        err = SingularHessianError(
            "rank deficient", matrix_name="information", rank=1,
            expected_rank=2,
        )
        assert err.matrix_name == "information"
        assert err.rank == 1
        assert err.expected_rank == 2
        assert err.condition_number is None
        assert "rank deficient" in str(err)

    def test_defaults(self):
        err = SingularMatrixError("singular")
        assert err.matrix_name is None
        assert err.rank is None
        assert err.expected_rank is None


class TestConvergenceError:

    def test_attributes(self):
        err = ConvergenceError(
            "stopped", iterations=50, final_change=1e-3,
            reason="max_iterations", threshold=1e-9,
        )
        assert err.iterations == 50
        assert err.final_change == 1e-3
        assert err.reason == "max_iterations"
        assert err.threshold == 1e-9

    def test_defaults(self):
        err = ConvergenceError("stopped", iterations=3)
        assert err.final_change is None
        assert err.reason is None
        assert err.threshold is None


class TestInvariantViolationError:

    def test_attributes(self):
        err = InvariantViolationError(
            "increasing curve", n_violations=4, max_violation=0.2
        )
        assert err.n_violations == 4
        assert err.max_violation == 0.2


class TestUndefinedWeightError:

    def test_attributes(self):
        err = UndefinedWeightError("G = 0", time=7.5, subjects=(1, 4))
        assert err.time == 7.5
        assert err.subjects == (1, 4)

    def test_default_subjects_empty(self):
        err = UndefinedWeightError("G = 0")
        assert err.time is None
        assert err.subjects == ()
