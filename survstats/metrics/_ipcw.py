"""
Inverse probability of censoring weights.

The censoring survival G(t) = P(C > t) is the Kaplan-Meier estimate with
the event indicator reversed. At time t, subject i gets weight

    1 / G(t)          if time_i > t                  (still under observation)
    1 / G(time_i)     if time_i <= t and event_i = 1 (failed by t)
    0                 if time_i <= t and event_i = 0 (status at t unknown)

A weight that needs G = 0 is undefined and raises UndefinedWeightError.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from survstats.core.exceptions import UndefinedWeightError
from survstats.survival.design import SurvivalDesign
from survstats.survival.solution import KMSolution
from survstats.survival.solvers import kaplan_meier


def censoring_distribution(train: SurvivalDesign) -> KMSolution:
    """Marginal censoring survival G as a reverse Kaplan-Meier curve."""
    return kaplan_meier(train.reverse())


def ipcw_weights(
    test: SurvivalDesign,
    censoring: KMSolution,
    t: float,
) -> NDArray:
    """(n,) IPCW weights of the test subjects at time ``t``."""
    t = float(t)
    time = test.time
    alive = time > t
    failed = (time <= t) & (test.event == 1)

    weights = np.zeros(test.n, dtype=np.float64)

    if np.any(alive):
        G_t = float(censoring.survival_at(t))
        if G_t <= 0:
            raise UndefinedWeightError(
                f"censoring survival G({t:.4g}) = 0: weights of the "
                f"{int(np.sum(alive))} subjects still at risk are undefined",
                time=t,
                subjects=tuple(int(i) for i in np.flatnonzero(alive)),
            )
        weights[alive] = 1.0 / G_t

    if np.any(failed):
        G_i = np.asarray(censoring.survival_at(time[failed]), dtype=np.float64)
        zero = G_i <= 0
        if np.any(zero):
            subjects = np.flatnonzero(failed)[zero]
            raise UndefinedWeightError(
                f"censoring survival is 0 at the event times of "
                f"{len(subjects)} subject(s) failing by t={t:.4g}",
                time=t,
                subjects=tuple(int(i) for i in subjects),
            )
        weights[failed] = 1.0 / G_i

    return weights
