"""
Public API for prediction-quality metrics.

    concordance_index(test, predictions) → ConcordanceSolution
    brier_score(test, predictions, t) → float
    brier_curve(test, predictions) → BrierSolution
    integrated_brier_score(test, predictions, tau_max) → BrierSolution

``test`` is a SurvivalDesign or a ``(time, event)`` pair; ``predictions``
a PredictionMatrix with one column per test subject. The censoring
distribution for IPCW comes from ``censoring`` (a reverse-KM curve), else
is estimated from ``train``, else from ``test`` itself.
"""

from __future__ import annotations

import numpy as np

from survstats.core.compute.timing import Timer
from survstats.core.exceptions import (
    DimensionError,
    DomainError,
    InvalidInputError,
)
from survstats.core.result import Result
from survstats.metrics._brier import (
    brier_at,
    brier_grid,
    integrate_brier,
    integration_grid,
)
from survstats.metrics._common import BrierParams
from survstats.metrics._concordance import concordance_counts
from survstats.metrics._ipcw import censoring_distribution
from survstats.metrics.solution import BrierSolution, ConcordanceSolution
from survstats.prediction.matrix import PredictionMatrix
from survstats.prediction.solvers import check_times
from survstats.survival.design import SurvivalDesign
from survstats.survival.solution import KMSolution


def as_outcome(test) -> SurvivalDesign:
    """Coerce a design or a ``(time, event)`` pair to a SurvivalDesign."""
    if isinstance(test, SurvivalDesign):
        return test
    if isinstance(test, tuple) and len(test) == 2:
        return SurvivalDesign.for_survival(test[0], test[1])
    raise InvalidInputError(
        f"test must be a SurvivalDesign or a (time, event) pair, "
        f"got {type(test).__name__}"
    )


def _check_predictions(
    test: SurvivalDesign, predictions: PredictionMatrix
) -> None:
    if not isinstance(predictions, PredictionMatrix):
        raise InvalidInputError(
            f"predictions must be a PredictionMatrix, got "
            f"{type(predictions).__name__}"
        )
    if predictions.n_subjects != test.n:
        raise DimensionError(
            f"predictions cover {predictions.n_subjects} subjects but the "
            f"test set has {test.n}"
        )


def resolve_censoring(
    test: SurvivalDesign,
    train=None,
    censoring: KMSolution | None = None,
) -> KMSolution:
    """Censoring survival G for IPCW."""
    if censoring is not None:
        if train is not None:
            raise InvalidInputError("pass either train or censoring, not both")
        if not isinstance(censoring, KMSolution):
            raise InvalidInputError(
                f"censoring must be a KMSolution, got "
                f"{type(censoring).__name__}"
            )
        return censoring
    if train is not None:
        return censoring_distribution(as_outcome(train))
    return censoring_distribution(test)


def concordance_index(test, predictions: PredictionMatrix) -> ConcordanceSolution:
    """Concordance of predicted survival with observed failure order.

    For each comparable pair with i failing first, the predicted survival
    of i and j at time_i are compared: lower for i is concordant, higher
    discordant, equal counted as 1/2.

    Raises
    ------
    UndefinedMetricError
        If there are no comparable pairs.
    """
    test = as_outcome(test)
    _check_predictions(test, predictions)

    timer = Timer()
    timer.start()

    with timer.section('pairs'):
        params = concordance_counts(
            test.time, test.event,
            lambda i: predictions.survival_at(test.time[i]),
        )

    timer.stop()

    result = Result(
        params=params,
        info={"method": "concordance", "model": predictions.model_name},
        timing=timer.result(),
        backend_name="cpu_concordance",
        warnings=(),
    )
    return ConcordanceSolution(_result=result)


def brier_score(
    test,
    predictions: PredictionMatrix,
    t: float,
    *,
    train=None,
    censoring: KMSolution | None = None,
) -> float:
    """IPCW Brier score at time ``t``.

    Raises
    ------
    UndefinedWeightError
        If the censoring survival is 0 where a weight needs it.
    """
    test = as_outcome(test)
    _check_predictions(test, predictions)
    t = float(t)
    if not np.isfinite(t) or t < 0:
        raise DomainError(f"t must be a finite value >= 0, got {t}")
    G = resolve_censoring(test, train, censoring)
    return brier_at(test, predictions, G, t)


def brier_curve(
    test,
    predictions: PredictionMatrix,
    times=None,
    *,
    train=None,
    censoring: KMSolution | None = None,
) -> BrierSolution:
    """IPCW Brier score at every time of ``times`` (default: the grid)."""
    test = as_outcome(test)
    _check_predictions(test, predictions)
    times = predictions.times if times is None else check_times(times)
    G = resolve_censoring(test, train, censoring)

    timer = Timer()
    timer.start()

    scores = brier_grid(test, predictions, G, times)

    timer.stop()

    params = BrierParams(
        times=np.asarray(times, dtype=np.float64),
        scores=scores,
        ibs=None,
        tau_max=None,
        n_subjects=test.n,
    )
    result = Result(
        params=params,
        info={"method": "IPCW Brier", "model": predictions.model_name},
        timing=timer.result(),
        backend_name="cpu_brier",
        warnings=(),
    )
    return BrierSolution(_result=result)


def integrated_brier_score(
    test,
    predictions: PredictionMatrix,
    tau_max: float,
    *,
    train=None,
    censoring: KMSolution | None = None,
) -> BrierSolution:
    """Integrated Brier score over [0, tau_max], normalised by tau_max.

    The Brier curve is evaluated at 0, at every grid time <= tau_max and
    at tau_max, and integrated with the trapezoid rule.

    Raises
    ------
    DomainError
        If tau_max is not a finite value > 0.
    UndefinedWeightError
        If the censoring survival is 0 where a weight needs it.
    """
    tau_max = float(tau_max)
    if not np.isfinite(tau_max) or tau_max <= 0:
        raise DomainError(f"tau_max must be a finite value > 0, got {tau_max}")
    test = as_outcome(test)
    _check_predictions(test, predictions)
    G = resolve_censoring(test, train, censoring)

    timer = Timer()
    timer.start()

    times = integration_grid(predictions.times, tau_max)
    with timer.section('brier_curve'):
        scores = brier_grid(test, predictions, G, times)
    ibs = integrate_brier(times, scores, tau_max)

    timer.stop()

    warnings_list = []
    if tau_max > predictions.times[-1]:
        warnings_list.append(
            f"tau_max={tau_max:.4g} exceeds the last prediction time "
            f"{float(predictions.times[-1]):.4g}; predictions held flat"
        )

    params = BrierParams(
        times=times,
        scores=scores,
        ibs=ibs,
        tau_max=tau_max,
        n_subjects=test.n,
    )
    result = Result(
        params=params,
        info={"method": "integrated Brier", "model": predictions.model_name},
        timing=timer.result(),
        backend_name="cpu_brier",
        warnings=tuple(warnings_list),
    )
    return BrierSolution(_result=result)
