"""
Public API for survival prediction.

    fit_model(model, formula, data) → FittedModel
    predict(fitted, new_data, times) → PredictionMatrix

``predict`` is the only way a PredictionMatrix leaves a model: the raw
model output is shape-checked, transposed to time-grid x subject and
verified to be a valid family of survival curves.
"""

from __future__ import annotations

import warnings

import numpy as np
from numpy.typing import NDArray

from survstats.core.compute.tolerances import MONOTONE_TOL
from survstats.core.exceptions import (
    DimensionError,
    InvalidInputError,
    InvariantViolationError,
)
from survstats.core.validation import check_1d, check_array, check_finite
from survstats.prediction.matrix import PredictionMatrix
from survstats.prediction.models import FittedModel, SurvivalModel
from survstats.survival._formula import table_length


def fit_model(model: SurvivalModel, formula, data) -> FittedModel:
    """Fit ``model`` to ``data``; ``formula`` is ``Surv(time, status) ~ ...``."""
    if not isinstance(model, SurvivalModel):
        raise InvalidInputError(
            f"model must provide fit() and predict(), got "
            f"{type(model).__name__}"
        )
    return model.fit(formula, data)


def check_times(times) -> NDArray:
    """Validate a prediction grid: 1D, non-empty, finite, >= 0, increasing."""
    times = check_array(times, "times")
    if times.ndim == 0:
        times = times.reshape(1)
    check_1d(times, "times")
    if len(times) == 0:
        raise InvalidInputError("times must contain at least one time point")
    check_finite(times, "times")
    if np.any(times < 0):
        raise InvalidInputError(
            f"times must be >= 0, got min {float(np.min(times))}"
        )
    if np.any(np.diff(times) <= 0):
        raise InvalidInputError("times must be strictly increasing")
    return times


def predict(
    fitted: FittedModel,
    new_data,
    times,
    *,
    clip: bool = False,
) -> PredictionMatrix:
    """Predicted survival curves for the rows of ``new_data``.

    Parameters
    ----------
    fitted : FittedModel
        Result of ``model.fit(formula, data)``.
    new_data : mapping
        Covariate table (dict of arrays, DataFrame or structured array).
    times : array-like
        Strictly increasing, non-negative query times.
    clip : bool
        If True, repair out-of-range or increasing predictions (clip to
        [0, 1], then running minimum along time) and emit a
        RuntimeWarning instead of raising.

    Returns
    -------
    PredictionMatrix
        Shape (n_times, n_subjects).

    Raises
    ------
    DimensionError
        If the model returns a matrix that is not (n_subjects, n_times).
    InvariantViolationError
        If predictions are non-finite, or (without ``clip``) outside
        [0, 1] or increasing in time beyond MONOTONE_TOL.
    """
    if not isinstance(fitted, FittedModel):
        raise InvalidInputError(
            f"fitted must be a FittedModel, got {type(fitted).__name__}"
        )
    times = check_times(times)
    n = table_length(new_data)
    m = len(times)

    raw = np.asarray(fitted.model.predict(fitted, new_data, times),
                     dtype=np.float64)
    if raw.shape != (n, m):
        raise DimensionError(
            f"{fitted.name} returned predictions of shape {raw.shape}, "
            f"expected (n_subjects, n_times) = ({n}, {m})"
        )

    survival = raw.T

    n_nonfinite = int(np.sum(~np.isfinite(survival)))
    if n_nonfinite > 0:
        raise InvariantViolationError(
            f"{fitted.name} produced {n_nonfinite} non-finite predictions",
            n_violations=n_nonfinite,
            max_violation=float('inf'),
        )

    n_violations, max_violation = _survival_violations(survival)
    n_clipped = 0
    if n_violations > 0:
        if not clip:
            raise InvariantViolationError(
                f"{fitted.name} predictions are not valid survival curves: "
                f"{n_violations} entries outside [0, 1] or increasing in "
                f"time (largest violation {max_violation:.3g})",
                n_violations=n_violations,
                max_violation=max_violation,
            )
        repaired = np.minimum.accumulate(np.clip(survival, 0.0, 1.0), axis=0)
        n_clipped = int(np.sum(repaired != survival))
        survival = repaired
        warnings.warn(
            f"{fitted.name}: clipped {n_clipped} predictions to a "
            f"non-increasing curve in [0, 1] "
            f"(largest violation {max_violation:.3g})",
            RuntimeWarning,
            stacklevel=2,
        )

    return PredictionMatrix(
        times=times,
        survival=np.ascontiguousarray(survival),
        model_name=fitted.name,
        n_clipped=n_clipped,
    )


def _survival_violations(survival: NDArray) -> tuple[int, float]:
    """Count entries outside [0, 1] or above their predecessor in time."""
    below = np.maximum(-survival, 0.0)
    above = np.maximum(survival - 1.0, 0.0)
    range_excess = np.maximum(below, above)

    rise = np.zeros_like(survival)
    if survival.shape[0] > 1:
        rise[1:] = np.maximum(np.diff(survival, axis=0), 0.0)

    excess = np.maximum(range_excess, rise)
    bad = excess > MONOTONE_TOL
    n_violations = int(np.sum(bad))
    max_violation = float(np.max(excess)) if excess.size else 0.0
    return n_violations, max_violation
