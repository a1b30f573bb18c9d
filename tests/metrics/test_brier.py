"""
Tests for IPCW weights, the Brier score and the integrated Brier score.

Hand-worked example, time = 1 2 3 4, event = 1 0 1 1. The censoring
distribution (reverse Kaplan-Meier) drops at the one censoring:
G(t) = 1 for t < 2 and 2/3 from t = 2 on. At t = 2.5:

    subject 0  failed at 1      weight 1 / G(1)   = 1
    subject 1  censored at 2    weight 0
    subject 2  alive            weight 1 / G(2.5) = 3/2
    subject 3  alive            weight 1 / G(2.5) = 3/2

With predicted S(2.5) = 0.2 0.5 0.6 0.9:

    BS = (0.2^2 + 0 + 1.5 * 0.4^2 + 1.5 * 0.1^2) / 4 = 0.07375

R reference code:
    library(pec)
    pec(list(model), Surv(time, event) ~ 1, data=test, cens.model="marginal")
"""

import numpy as np
import pytest
from numpy.testing import assert_allclose
from scipy.integrate import trapezoid

from survstats.core.exceptions import (
    DimensionError,
    DomainError,
    InvalidInputError,
    UndefinedWeightError,
)
from survstats.metrics import (
    BrierSolution,
    brier_curve,
    brier_score,
    censoring_distribution,
    integrated_brier_score,
    ipcw_weights,
)
from survstats.prediction import PredictionMatrix
from survstats.survival import SurvivalDesign, kaplan_meier


# ── Fixtures ─────────────────────────────────────────────────────────

TIME = np.array([1.0, 2.0, 3.0, 4.0])
EVENT = np.array([1.0, 0.0, 1.0, 1.0])
TEST = SurvivalDesign.for_survival(TIME, EVENT)


def flat(values, times=(0.0,)):
    values = np.asarray(values, dtype=np.float64)
    return PredictionMatrix(
        times=np.asarray(times, dtype=np.float64),
        survival=np.tile(values, (len(times), 1)),
        model_name="flat",
    )


def oracle(time, grid):
    """S_i(t_k) = 1[time_i > t_k]: the observed status itself."""
    grid = np.asarray(grid, dtype=np.float64)
    survival = (time[np.newaxis, :] > grid[:, np.newaxis]).astype(np.float64)
    return PredictionMatrix(times=grid, survival=survival, model_name="oracle")


# ═══════════════════════════════════════════════════════════════════════
# IPCW weights
# ═══════════════════════════════════════════════════════════════════════


class TestIPCW:

    def test_censoring_distribution(self):
        G = censoring_distribution(TEST)
        assert G.survival_at(1.5) == 1.0
        assert G.survival_at(2.0) == pytest.approx(2 / 3)
        assert G.survival_at(10.0) == pytest.approx(2 / 3)

    def test_weights_hand_worked(self):
        G = censoring_distribution(TEST)
        assert_allclose(ipcw_weights(TEST, G, 2.5), [1.0, 0.0, 1.5, 1.5])

    def test_weights_before_any_censoring(self):
        G = censoring_distribution(TEST)
        assert_allclose(ipcw_weights(TEST, G, 0.5), [1.0, 1.0, 1.0, 1.0])

    def test_failed_subject_uses_own_time(self):
        G = censoring_distribution(TEST)
        w = ipcw_weights(TEST, G, 3.5)
        # Subject 2 failed at 3 (G = 2/3); subject 3 still alive at 3.5
        assert_allclose(w, [1.0, 0.0, 1.5, 1.5])

    def test_zero_censoring_survival(self):
        train = SurvivalDesign.for_survival([1.0, 2.0], [1, 0])
        G = censoring_distribution(train)
        test = SurvivalDesign.for_survival([1.0, 5.0], [1, 1])
        with pytest.raises(UndefinedWeightError) as exc_info:
            ipcw_weights(test, G, 3.0)
        assert exc_info.value.time == 3.0
        assert exc_info.value.subjects == (1,)


# ═══════════════════════════════════════════════════════════════════════
# Brier score
# ═══════════════════════════════════════════════════════════════════════


class TestBrierScore:

    def test_hand_worked(self):
        bs = brier_score(TEST, flat([0.2, 0.5, 0.6, 0.9]), 2.5)
        assert bs == pytest.approx(0.07375, rel=1e-12)

    def test_constant_half(self):
        """Every weighted residual is 1/4; weights sum to 4."""
        assert brier_score(TEST, flat([0.5] * 4), 2.5) == pytest.approx(0.25)

    def test_time_zero_with_full_survival(self):
        assert brier_score(TEST, flat([1.0] * 4), 0.0) == 0.0

    def test_tuple_outcome(self):
        a = brier_score((TIME, EVENT), flat([0.2, 0.5, 0.6, 0.9]), 2.5)
        assert a == pytest.approx(0.07375)

    def test_train_censoring(self):
        """No censoring in train: G = 1 and the censored subject still gets 0."""
        train = (np.array([1.0, 2.0, 3.0]), np.ones(3))
        bs = brier_score(TEST, flat([0.2, 0.5, 0.6, 0.9]), 2.5, train=train)
        assert bs == pytest.approx((0.04 + 0.16 + 0.01) / 4)

    def test_explicit_censoring_curve(self):
        G = kaplan_meier(TEST.reverse())
        a = brier_score(TEST, flat([0.2, 0.5, 0.6, 0.9]), 2.5, censoring=G)
        assert a == pytest.approx(0.07375)

    def test_train_and_censoring_conflict(self):
        G = censoring_distribution(TEST)
        with pytest.raises(InvalidInputError):
            brier_score(TEST, flat([0.5] * 4), 1.0, train=TEST, censoring=G)

    def test_undefined_weight_propagates(self):
        train = (np.array([1.0, 2.0]), np.array([1.0, 0.0]))
        with pytest.raises(UndefinedWeightError):
            brier_score(([1.0, 5.0], [1, 1]), flat([0.5, 0.5]), 3.0, train=train)

    @pytest.mark.parametrize("t", [-1.0, np.nan, np.inf])
    def test_bad_time(self, t):
        with pytest.raises(DomainError):
            brier_score(TEST, flat([0.5] * 4), t)

    def test_subject_mismatch(self):
        with pytest.raises(DimensionError):
            brier_score(TEST, flat([0.5] * 3), 1.0)

    def test_oracle_is_zero(self):
        pm = oracle(TIME, [1.0, 2.0, 3.0, 4.0])
        for t in (0.0, 1.0, 1.5, 2.5, 3.0, 3.9):
            assert brier_score(TEST, pm, t) == 0.0


class TestBrierCurve:

    def test_default_grid(self):
        pm = flat([0.2, 0.5, 0.6, 0.9], times=[0.5, 2.5])
        result = brier_curve(TEST, pm)
        assert isinstance(result, BrierSolution)
        assert_allclose(result.times, [0.5, 2.5])
        assert result.scores[1] == pytest.approx(0.07375)
        assert result.ibs is None

    def test_explicit_times(self):
        result = brier_curve(TEST, flat([0.5] * 4), times=[0.5, 1.5, 2.5])
        assert len(result.scores) == 3
        assert result.score_at(2.0) == pytest.approx(result.scores[1])
        assert np.isnan(result.score_at(0.1))

    def test_bad_times(self):
        with pytest.raises(InvalidInputError):
            brier_curve(TEST, flat([0.5] * 4), times=[2.0, 1.0])


# ═══════════════════════════════════════════════════════════════════════
# Integrated Brier score
# ═══════════════════════════════════════════════════════════════════════


class TestIntegratedBrier:

    def test_grid_and_trapezoid(self):
        pm = flat([0.2, 0.5, 0.6, 0.9], times=[1.0, 2.0, 3.0])
        result = integrated_brier_score(TEST, pm, 3.0)
        assert_allclose(result.times, [0.0, 1.0, 2.0, 3.0])
        expected = [brier_score(TEST, pm, t) for t in result.times]
        assert_allclose(result.scores, expected)
        assert result.ibs == pytest.approx(trapezoid(expected, result.times) / 3.0)
        assert result.tau_max == 3.0
        assert result.warnings == ()

    def test_tau_between_grid_points(self):
        pm = flat([0.5] * 4, times=[1.0, 2.0, 3.0])
        result = integrated_brier_score(TEST, pm, 2.5)
        assert_allclose(result.times, [0.0, 1.0, 2.0, 2.5])

    def test_tau_past_grid_warns(self):
        pm = flat([0.5] * 4, times=[1.0, 2.0])
        result = integrated_brier_score(TEST, pm, 3.5)
        assert_allclose(result.times, [0.0, 1.0, 2.0, 3.5])
        assert any("exceeds the last prediction time" in w for w in result.warnings)

    def test_oracle_is_zero(self):
        pm = oracle(TIME, [1.0, 2.0, 3.0, 4.0])
        assert integrated_brier_score(TEST, pm, 4.0).ibs == 0.0

    def test_oracle_beats_constant(self, rng):
        time = rng.exponential(2.0, 100)
        event = rng.binomial(1, 0.8, 100).astype(np.float64)
        test = SurvivalDesign.for_survival(time, event)
        grid = np.sort(time)
        good = integrated_brier_score(test, oracle(time, grid), 3.0).ibs
        bad = integrated_brier_score(test, flat(np.full(100, 0.5)), 3.0).ibs
        assert good < bad

    @pytest.mark.parametrize("tau", [0.0, -2.0, np.nan])
    def test_bad_tau(self, tau):
        with pytest.raises(DomainError):
            integrated_brier_score(TEST, flat([0.5] * 4), tau)

    def test_summary(self):
        pm = flat([0.5] * 4, times=[1.0, 2.0, 3.0])
        text = integrated_brier_score(TEST, pm, 3.0).summary()
        assert "Integrated Brier score" in text
