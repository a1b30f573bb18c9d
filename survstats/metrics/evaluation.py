"""
Batch evaluation of several models' predictions on one test set.

Every (model, metric, time point) combination is computed independently:
a metric that cannot be computed (an undefined weight, no comparable
pairs, a shape mismatch) is recorded with its error and the batch moves
on.
"""

from __future__ import annotations

from typing import Callable, Mapping

import numpy as np

from survstats.core.compute.timing import Timer
from survstats.core.exceptions import (
    DomainError,
    InvalidInputError,
    SurvStatsError,
)
from survstats.core.result import Result
from survstats.metrics._common import EvaluationParams, MetricRecord
from survstats.metrics.solution import EvaluationSolution
from survstats.metrics.solvers import (
    as_outcome,
    brier_score,
    concordance_index,
    integrated_brier_score,
    resolve_censoring,
)
from survstats.prediction.matrix import PredictionMatrix
from survstats.prediction.solvers import check_times


def _record(
    model: str,
    metric: str,
    time: float | None,
    compute: Callable[[], float],
) -> MetricRecord:
    try:
        value = float(compute())
    except SurvStatsError as exc:
        return MetricRecord(model, metric, time, None, exc)
    return MetricRecord(model, metric, time, value, None)


def evaluate(
    predictions: Mapping[str, PredictionMatrix],
    test,
    *,
    train,
    times,
    tau_max: float | None = None,
) -> EvaluationSolution:
    """Brier scores, concordance and integrated Brier score per model.

    Parameters
    ----------
    predictions : mapping of str to PredictionMatrix
        Predictions for the test subjects, keyed by model name.
    test : SurvivalDesign or (time, event)
        Held-out outcomes.
    train : SurvivalDesign or (time, event)
        Training outcomes; the censoring distribution for IPCW is
        estimated from them once and shared by every model.
    times : array-like
        Time points for the Brier score.
    tau_max : float or None
        Upper limit of the integrated Brier score (default: last of
        ``times``).

    Returns
    -------
    EvaluationSolution
        One record per (model, "brier", t), per (model, "concordance")
        and per (model, "ibs").
    """
    if len(predictions) == 0:
        raise InvalidInputError("predictions must contain at least one model")
    test = as_outcome(test)
    times = check_times(times)
    if tau_max is None:
        tau_max = float(times[-1])
    tau_max = float(tau_max)
    if not np.isfinite(tau_max) or tau_max <= 0:
        raise DomainError(f"tau_max must be a finite value > 0, got {tau_max}")

    timer = Timer()
    timer.start()

    with timer.section('censoring'):
        G = resolve_censoring(test, train)

    records: list[MetricRecord] = []
    with timer.section('metrics'):
        for key, matrix in predictions.items():
            name = str(key)
            for t in times:
                records.append(_record(
                    name, "brier", float(t),
                    lambda: brier_score(test, matrix, t, censoring=G),
                ))
            records.append(_record(
                name, "concordance", None,
                lambda: concordance_index(test, matrix).c_index,
            ))
            records.append(_record(
                name, "ibs", tau_max,
                lambda: integrated_brier_score(
                    test, matrix, tau_max, censoring=G
                ).ibs,
            ))

    timer.stop()

    n_failed = sum(1 for r in records if r.error is not None)
    warnings_list = []
    if n_failed:
        warnings_list.append(
            f"{n_failed} of {len(records)} metrics could not be computed"
        )

    params = EvaluationParams(
        records=tuple(records),
        model_names=tuple(str(k) for k in predictions),
        times=times,
        tau_max=tau_max,
    )
    result = Result(
        params=params,
        info={"method": "evaluation", "n_test": test.n},
        timing=timer.result(),
        backend_name="cpu_evaluation",
        warnings=tuple(warnings_list),
    )
    return EvaluationSolution(_result=result)
