"""
Tests for SurvivalDesign and the risk-set table.

Risk-set convention: all records at one time are simultaneous, and
subjects censored at t_i are still counted in n_i.
"""

import numpy as np
import pytest
from numpy.testing import assert_allclose, assert_array_equal

from survstats.core.exceptions import DimensionError, InvalidInputError
from survstats.survival import SurvivalDesign


# ── Fixtures ─────────────────────────────────────────────────────────

TABLE = {
    "time": np.array([5.0, 8.0, 12.0, 3.0, 9.0, 14.0]),
    "status": np.array([1, 0, 1, 1, 1, 0]),
    "age": np.array([61.0, 54.0, 70.0, 66.0, 48.0, 59.0]),
    "sex": np.array([0.0, 1.0, 1.0, 0.0, 1.0, 0.0]),
    "arm": np.array(["a", "b", "a", "b", "a", "b"]),
}


class TestRiskSetTable:
    """Distinct times with at-risk, event and censoring counts."""

    def test_toy_cohort(self, toy_cohort):
        table = toy_cohort.risk_set_table()
        assert_allclose(table.time, [2, 3, 4, 6, 7, 8, 10])
        assert_allclose(table.n_risk, [10, 9, 7, 5, 4, 3, 2])
        assert_allclose(table.n_events, [1, 1, 2, 0, 1, 0, 1])
        assert_allclose(table.n_censored, [0, 1, 0, 1, 0, 1, 1])
        assert len(table) == 7

    def test_invariants(self, rng):
        time = rng.integers(0, 20, size=200).astype(np.float64)
        event = rng.binomial(1, 0.6, size=200)
        table = SurvivalDesign.for_survival(time, event).risk_set_table()
        assert np.all(np.diff(table.time) > 0)
        assert np.all(np.diff(table.n_risk) <= 0)
        assert np.all(table.n_events <= table.n_risk)
        assert table.n_risk[0] == 200
        assert table.n_events.sum() == event.sum()

    def test_censored_at_event_time_is_at_risk(self):
        design = SurvivalDesign.for_survival([4, 4, 4], [1, 0, 0])
        table = design.risk_set_table()
        assert_allclose(table.n_risk, [3])
        assert_allclose(table.n_events, [1])
        assert_allclose(table.n_censored, [2])

    def test_event_times(self, toy_cohort):
        assert_allclose(
            toy_cohort.risk_set_table().event_times, [2, 3, 4, 7, 10]
        )


class TestForSurvival:

    def test_counts(self, toy_cohort):
        assert toy_cohort.n == 10
        assert toy_cohort.n_events == 6
        assert toy_cohort.n_censored == 4
        assert toy_cohort.p is None

    def test_boolean_events(self):
        design = SurvivalDesign.for_survival([1, 2], [True, False])
        assert_array_equal(design.event, [1.0, 0.0])

    def test_covariate_vector_becomes_column(self):
        design = SurvivalDesign.for_survival([1, 2, 3], [1, 1, 0], [0.5, 1, 2])
        assert design.X.shape == (3, 1)
        assert design.p == 1

    def test_zero_time_allowed(self):
        design = SurvivalDesign.for_survival([0, 1], [1, 0])
        assert design.time[0] == 0.0

    @pytest.mark.parametrize("time, event", [
        ([], []),
        ([-1.0, 2.0], [1, 0]),
        ([np.nan, 2.0], [1, 0]),
        ([np.inf, 2.0], [1, 0]),
        ([1.0, 2.0], [1, 2]),
        ([1.0, 2.0], [0.5, 1]),
    ])
    def test_invalid_input(self, time, event):
        with pytest.raises(InvalidInputError):
            SurvivalDesign.for_survival(time, event)

    def test_length_mismatch(self):
        with pytest.raises(DimensionError):
            SurvivalDesign.for_survival([1, 2, 3], [1, 0])

    def test_covariate_rows_mismatch(self):
        with pytest.raises(DimensionError):
            SurvivalDesign.for_survival([1, 2, 3], [1, 0, 1], np.ones((2, 2)))

    def test_three_dimensional_covariates(self):
        with pytest.raises(DimensionError, match="2D"):
            SurvivalDesign.for_survival([1, 2], [1, 0], np.ones((2, 2, 2)))

    def test_group_length_mismatch(self):
        with pytest.raises(DimensionError):
            SurvivalDesign.for_survival([1, 2, 3], [1, 0, 1], group=[0, 1])

    def test_non_finite_covariates(self):
        with pytest.raises(InvalidInputError):
            SurvivalDesign.for_survival([1, 2], [1, 0], [[1.0], [np.nan]])

    def test_covariate_names_must_match(self):
        with pytest.raises(DimensionError):
            SurvivalDesign.for_survival(
                [1, 2], [1, 0], np.ones((2, 2)), covariate_names=["a"]
            )

    def test_frozen(self, toy_cohort):
        with pytest.raises(AttributeError):
            toy_cohort.time = np.zeros(10)


class TestSubsetReverse:

    def test_subset_with_repeats(self, toy_cohort):
        sub = toy_cohort.subset([0, 0, 9])
        assert_allclose(sub.time, [2, 2, 10])
        assert_allclose(sub.event, [1, 1, 1])
        assert sub.n == 3

    def test_subset_carries_covariates(self):
        design = SurvivalDesign.for_survival(
            [1, 2, 3], [1, 0, 1], [[1.0], [2.0], [3.0]], group=["a", "b", "c"]
        )
        sub = design.subset([2, 1])
        assert_allclose(sub.X[:, 0], [3.0, 2.0])
        assert list(sub.group) == ["c", "b"]

    def test_empty_subset(self, toy_cohort):
        with pytest.raises(InvalidInputError):
            toy_cohort.subset([])

    def test_reverse(self, toy_cohort):
        rev = toy_cohort.reverse()
        assert_allclose(rev.event, 1 - toy_cohort.event)
        assert_allclose(rev.time, toy_cohort.time)
        assert rev.n_events == toy_cohort.n_censored


class TestFromTable:

    def test_named_covariates(self):
        design = SurvivalDesign.from_table(TABLE, "Surv(time, status) ~ age + sex")
        assert design.covariate_names == ("age", "sex")
        assert design.X.shape == (6, 2)
        assert_allclose(design.X[:, 0], TABLE["age"])
        assert design.n_events == 4
        assert str(design.formula) == "Surv(time, status) ~ age + sex"

    def test_dot_excludes_group(self):
        design = SurvivalDesign.from_table(
            {k: v for k, v in TABLE.items()},
            "Surv(time, status) ~ .",
            group="arm",
        )
        assert design.covariate_names == ("age", "sex")
        assert list(design.group) == list(TABLE["arm"])

    def test_intercept_only(self):
        design = SurvivalDesign.from_table(TABLE, "Surv(time, status) ~ 1")
        assert design.X is None
        assert design.covariate_names is None

    def test_unknown_column(self):
        with pytest.raises(InvalidInputError, match="weight"):
            SurvivalDesign.from_table(TABLE, "Surv(time, status) ~ weight")

    def test_unknown_group(self):
        with pytest.raises(InvalidInputError):
            SurvivalDesign.from_table(
                TABLE, "Surv(time, status) ~ age", group="site"
            )

    def test_structured_array(self):
        data = np.zeros(3, dtype=[("t", float), ("d", int), ("x", float)])
        data["t"] = [1.0, 2.0, 3.0]
        data["d"] = [1, 0, 1]
        data["x"] = [0.1, 0.2, 0.3]
        design = SurvivalDesign.from_table(data, "Surv(t, d) ~ x")
        assert_allclose(design.X[:, 0], [0.1, 0.2, 0.3])
        assert design.n_events == 2
