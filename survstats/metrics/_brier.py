"""
IPCW Brier score (Graf et al., 1999) and its time integral.

    BS(t) = (1/n) Σ_i w_i(t) (1[time_i > t] - S_i(t))^2

with w_i(t) the IPCW weights of ``_ipcw``. The integrated Brier score
over [0, tau_max] uses the trapezoid rule on {0} ∪ {grid <= tau_max} ∪
{tau_max} and is divided by tau_max.

References:
    Graf, E., Schmoor, C., Sauerbrei, W. and Schumacher, M. (1999).
        Assessment and comparison of prognostic classification schemes for
        survival data. Statistics in Medicine, 18, 2529-2545.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray
from scipy.integrate import trapezoid

from survstats.metrics._ipcw import ipcw_weights
from survstats.prediction.matrix import PredictionMatrix
from survstats.survival.design import SurvivalDesign
from survstats.survival.solution import KMSolution


def brier_at(
    test: SurvivalDesign,
    predictions: PredictionMatrix,
    censoring: KMSolution,
    t: float,
) -> float:
    """IPCW Brier score at a single time ``t``."""
    weights = ipcw_weights(test, censoring, t)
    alive = (test.time > t).astype(np.float64)
    residual = alive - predictions.survival_at(t)
    return float(np.mean(weights * residual ** 2))


def brier_grid(
    test: SurvivalDesign,
    predictions: PredictionMatrix,
    censoring: KMSolution,
    times: NDArray,
) -> NDArray:
    """Brier scores at every time in ``times``."""
    return np.array(
        [brier_at(test, predictions, censoring, t) for t in times],
        dtype=np.float64,
    )


def integration_grid(grid: NDArray, tau_max: float) -> NDArray:
    """{0} ∪ {grid <= tau_max} ∪ {tau_max}, sorted and de-duplicated."""
    inside = grid[grid <= tau_max]
    return np.unique(np.concatenate(([0.0], inside, [tau_max])))


def integrate_brier(times: NDArray, scores: NDArray, tau_max: float) -> float:
    """Trapezoid integral of the Brier curve over [0, tau_max] / tau_max."""
    return float(trapezoid(scores, times) / tau_max)
