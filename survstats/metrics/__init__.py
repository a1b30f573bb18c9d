"""
Prediction-quality metrics for survival models.

Public API:
    concordance_index(test, predictions) -> ConcordanceSolution
    concordance_from_risk(time, event, risk) -> float
    censoring_distribution(train) -> KMSolution
    ipcw_weights(test, censoring, t) -> ndarray
    brier_score(test, predictions, t) -> float
    brier_curve(test, predictions) -> BrierSolution
    integrated_brier_score(test, predictions, tau_max) -> BrierSolution
    evaluate(predictions, test, train=..., times=...) -> EvaluationSolution
"""

from survstats.metrics._common import MetricRecord
from survstats.metrics._concordance import (
    both_censored,
    censored_before_event,
    concordance_from_risk,
    is_comparable,
    is_same_subject,
    tied_times,
)
from survstats.metrics._ipcw import censoring_distribution, ipcw_weights
from survstats.metrics.evaluation import evaluate
from survstats.metrics.solution import (
    BrierSolution,
    ConcordanceSolution,
    EvaluationSolution,
)
from survstats.metrics.solvers import (
    brier_curve,
    brier_score,
    concordance_index,
    integrated_brier_score,
)

__all__ = [
    "concordance_index",
    "concordance_from_risk",
    "is_same_subject",
    "both_censored",
    "tied_times",
    "censored_before_event",
    "is_comparable",
    "censoring_distribution",
    "ipcw_weights",
    "brier_score",
    "brier_curve",
    "integrated_brier_score",
    "evaluate",
    "MetricRecord",
    "ConcordanceSolution",
    "BrierSolution",
    "EvaluationSolution",
]
