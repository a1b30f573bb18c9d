"""
Tests for the concordance index and the pair-comparability predicates.

Hand-worked example, time = 1 2 3 4, event = 1 1 0 1:

    comparable pairs (earlier subject failed, times differ)
        (0,1) (0,2) (0,3) (1,2) (1,3)
    subject 2 is censored at 3 before subject 3 fails at 4: not comparable
    subject 3 fails last: nobody to compare it with

With predicted survival 0.2 0.5 0.4 0.9 (constant over time) the pair
(1,2) is discordant and the other four concordant: C = 4/5.
"""

import numpy as np
import pytest

from survstats.core.exceptions import DimensionError, UndefinedMetricError
from survstats.metrics import (
    ConcordanceSolution,
    both_censored,
    censored_before_event,
    concordance_from_risk,
    concordance_index,
    is_comparable,
    is_same_subject,
    tied_times,
)
from survstats.prediction import PredictionMatrix
from survstats.survival import SurvivalDesign


# ── Fixtures ─────────────────────────────────────────────────────────

TIME = np.array([1.0, 2.0, 3.0, 4.0])
EVENT = np.array([1.0, 1.0, 0.0, 1.0])


def flat(values, times=(0.0,)):
    """Predictions constant in time."""
    values = np.asarray(values, dtype=np.float64)
    return PredictionMatrix(
        times=np.asarray(times, dtype=np.float64),
        survival=np.tile(values, (len(times), 1)),
        model_name="flat",
    )


# ═══════════════════════════════════════════════════════════════════════
# Predicates
# ═══════════════════════════════════════════════════════════════════════


class TestPredicates:

    def test_same_subject(self):
        assert is_same_subject(3, 3)
        assert not is_same_subject(3, 4)

    def test_both_censored(self):
        assert both_censored(0, 0)
        assert not both_censored(1, 0)

    def test_tied_times(self):
        assert tied_times(2.0, 2.0)
        assert not tied_times(2.0, 2.5)

    def test_censored_before_event(self):
        assert censored_before_event(1.0, 0, 2.0, 1)
        assert censored_before_event(2.0, 1, 1.0, 0)
        assert not censored_before_event(1.0, 1, 2.0, 0)

    def test_is_comparable(self):
        assert is_comparable(0, 1.0, 1, 1, 2.0, 0)
        assert is_comparable(0, 1.0, 1, 1, 2.0, 1)
        assert not is_comparable(0, 1.0, 0, 1, 2.0, 1)
        assert not is_comparable(0, 2.0, 1, 1, 2.0, 1)
        assert not is_comparable(0, 1.0, 0, 1, 2.0, 0)
        assert not is_comparable(0, 1.0, 1, 0, 1.0, 1)

    def test_vectorised(self):
        j = np.arange(4)
        mask = is_comparable(0, TIME[0], EVENT[0], j, TIME, EVENT)
        assert list(mask) == [False, True, True, True]
        mask = is_comparable(2, TIME[2], EVENT[2], j, TIME, EVENT)
        assert list(mask) == [True, True, False, False]


# ═══════════════════════════════════════════════════════════════════════
# concordance_index()
# ═══════════════════════════════════════════════════════════════════════


class TestConcordanceIndex:

    def test_hand_worked(self):
        result = concordance_index((TIME, EVENT), flat([0.2, 0.5, 0.4, 0.9]))
        assert isinstance(result, ConcordanceSolution)
        assert result.comparable == 5
        assert result.concordant == 4
        assert result.discordant == 1
        assert result.tied == 0
        assert result.c_index == pytest.approx(0.8)
        assert float(result) == pytest.approx(0.8)
        assert result.model_name == "flat"

    def test_perfect(self):
        result = concordance_index((TIME, EVENT), flat([0.1, 0.2, 0.3, 0.4]))
        assert result.c_index == 1.0

    def test_reversed(self):
        result = concordance_index((TIME, EVENT), flat([0.4, 0.3, 0.2, 0.1]))
        assert result.c_index == 0.0

    def test_constant_predictions_half(self):
        result = concordance_index((TIME, EVENT), flat([0.5] * 4))
        assert result.tied == 5
        assert result.c_index == 0.5

    def test_uses_survival_at_failure_time(self):
        """Subject i is compared at time_i, not at the end of the grid."""
        pm = PredictionMatrix(
            times=np.array([1.0, 2.0]),
            survival=np.array([
                [0.3, 0.8, 0.8, 0.8],
                [0.3, 0.1, 0.7, 0.2],
            ]),
        )
        result = concordance_index((TIME, EVENT), pm)
        assert result.c_index == 1.0

    def test_design_input(self):
        design = SurvivalDesign.for_survival(TIME, EVENT)
        a = concordance_index(design, flat([0.2, 0.5, 0.4, 0.9]))
        assert a.c_index == pytest.approx(0.8)

    def test_tied_times_ignored(self):
        time = np.array([1.0, 1.0, 2.0])
        event = np.array([1.0, 1.0, 0.0])
        result = concordance_index((time, event), flat([0.9, 0.1, 0.5]))
        # Only (0,2) and (1,2): 0.9 > 0.5 discordant, 0.1 < 0.5 concordant
        assert result.comparable == 2
        assert result.c_index == 0.5

    def test_no_comparable_pairs(self):
        with pytest.raises(UndefinedMetricError):
            concordance_index(
                (np.array([1.0, 2.0, 3.0]), np.zeros(3)), flat([0.1, 0.2, 0.3])
            )

    def test_single_event_last(self):
        with pytest.raises(UndefinedMetricError, match="no comparable pairs"):
            concordance_index(
                (np.array([1.0, 2.0, 3.0]), np.array([0.0, 0.0, 1.0])),
                flat([0.1, 0.2, 0.3]),
            )

    def test_subject_count_mismatch(self):
        with pytest.raises(DimensionError):
            concordance_index((TIME, EVENT), flat([0.5, 0.5]))

    def test_summary(self):
        text = concordance_index((TIME, EVENT), flat([0.2, 0.5, 0.4, 0.9])).summary()
        assert "C = 0.800000" in text
        assert "comparable pairs = 5" in text


class TestConcordanceFromRisk:

    def test_negated_survival(self):
        c = concordance_from_risk(TIME, EVENT, np.array([0.8, 0.5, 0.6, 0.1]))
        assert c == pytest.approx(0.8)

    def test_scale_invariant(self, rng):
        time = rng.exponential(2.0, 60)
        event = rng.binomial(1, 0.7, 60).astype(np.float64)
        risk = rng.standard_normal(60)
        a = concordance_from_risk(time, event, risk)
        b = concordance_from_risk(time, event, 3.0 * risk + 1.0)
        assert a == pytest.approx(b)
        assert 0.0 <= a <= 1.0

    def test_agrees_with_matrix_form(self, rng):
        time = rng.exponential(2.0, 40)
        event = rng.binomial(1, 0.7, 40).astype(np.float64)
        risk = rng.standard_normal(40)
        c_risk = concordance_from_risk(time, event, risk)
        c_matrix = concordance_index((time, event), flat(np.exp(-np.exp(risk)))).c_index
        assert c_risk == pytest.approx(c_matrix)
