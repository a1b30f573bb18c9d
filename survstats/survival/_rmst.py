"""
Restricted mean survival time: the area under S(t) on [0, tau].

The Kaplan-Meier curve is a right-continuous step function, so the
integral is exact: Σ S(t_k) (t_{k+1} - t_k) with S = 1 before the first
time. Past the last observed time the curve is held at its last value
(no extrapolated decay).

Variance (Klein & Moeschberger, 2003, §4.5):
    Var = Σ_{t_i <= tau} A_i^2 d_i / (n_i (n_i - d_i)),
    A_i = ∫_{t_i}^{tau} S(u) du
"""

from __future__ import annotations

import numpy as np
from scipy import stats

from survstats.survival._common import KMParams, RMSTParams


def rmst_fit(curve: KMParams, tau: float, conf_level: float) -> RMSTParams:
    """Integrate a Kaplan-Meier curve from 0 to ``tau``.

    Parameters
    ----------
    curve : KMParams
        Survival curve (distinct times, S(t), risk-set counts).
    tau : float
        Horizon, already validated as finite and > 0.
    conf_level : float
        Confidence level for the normal CI.
    """
    below = curve.time < tau
    t_below = curve.time[below]

    knots = np.concatenate(([0.0], t_below, [tau]))
    values = np.concatenate(([1.0], curve.survival[below]))
    segments = values * np.diff(knots)
    area = float(np.sum(segments))

    # A_k = area from t_k to tau: tail sums of segments[k+1:]
    tail = np.cumsum(segments[::-1])[::-1]
    A = tail[1:]

    n = curve.n_risk[below]
    d = curve.n_events[below]
    exhausted = n == d
    denom = np.where(exhausted, 1.0, n * (n - d))
    term = np.where(exhausted, 0.0, A ** 2 * d / denom)
    variance = float(np.sum(term))
    se = float(np.sqrt(variance))

    z = stats.norm.ppf((1.0 + conf_level) / 2.0)

    return RMSTParams(
        rmst=area,
        tau=float(tau),
        variance=variance,
        se=se,
        ci_lower=max(area - z * se, 0.0),
        ci_upper=min(area + z * se, float(tau)),
        conf_level=conf_level,
        last_time=float(curve.time[-1]),
    )
