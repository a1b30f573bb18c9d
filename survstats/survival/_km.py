"""
Kaplan-Meier product-limit and Nelson-Aalen estimators.

Both work off the shared risk-set table:
- Product-limit survival estimate: S(t) = ∏_{t_i<=t} (1 - d_i / n_i)
- Greenwood variance: Var(S(t)) = S(t)^2 * Σ d_i / (n_i * (n_i - d_i))
- Nelson-Aalen cumulative hazard: H(t) = Σ_{t_i<=t} d_i / n_i
- Aalen variance: Var(H(t)) = Σ d_i / n_i^2

Once the risk set is exhausted by events (n_i = d_i), S = 0 with
variance 0 for that and every later time.
Events at t = 0 are an ordinary first step: S(0) < 1, and the curve
reported by KMSolution.steps() still opens with S = 1 at the origin.

References:
    Kaplan, E. L., & Meier, P. (1958). Nonparametric estimation from
        incomplete observations. JASA, 53(282), 457-481.
    Greenwood, M. (1926). The natural duration of cancer.
    Aalen, O. (1978). Nonparametric inference for a family of counting
        processes. Annals of Statistics, 6(4), 701-726.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray
from scipy import stats

from survstats.survival._common import KMParams, NelsonAalenParams
from survstats.survival.design import RiskSetTable


def kaplan_meier_fit(
    table: RiskSetTable,
    conf_level: float,
    conf_type: str,
) -> KMParams:
    """Compute the Kaplan-Meier survival curve from a risk-set table.

    Parameters
    ----------
    table : RiskSetTable
        Distinct times with n_risk / n_events / n_censored.
    conf_level : float
        Confidence level for CI (e.g. 0.95).
    conf_type : str
        CI type: "log" (default), "plain", "log-log".

    Returns
    -------
    KMParams
    """
    n_risk = table.n_risk
    n_events = table.n_events

    survival = np.cumprod(1.0 - n_events / n_risk)

    # d / (n (n - d)) is infinite when the risk set is exhausted; S is
    # already 0 from there on, so the term is dropped.
    exhausted = n_risk == n_events
    denom = np.where(exhausted, 1.0, n_risk * (n_risk - n_events))
    greenwood_term = np.where(exhausted, 0.0, n_events / denom)
    variance = survival ** 2 * np.cumsum(greenwood_term)
    variance = np.where(survival > 0, variance, 0.0)
    se = np.sqrt(variance)

    z = stats.norm.ppf((1.0 + conf_level) / 2.0)
    ci_lower, ci_upper = _compute_ci(survival, se, z, conf_type)

    return KMParams(
        time=table.time,
        survival=survival,
        variance=variance,
        se=se,
        ci_lower=ci_lower,
        ci_upper=ci_upper,
        n_risk=n_risk,
        n_events=n_events,
        n_censored=table.n_censored,
        conf_level=conf_level,
        conf_type=conf_type,
        n_observations=int(n_risk[0]),
        n_events_total=int(np.sum(n_events)),
    )


def nelson_aalen_fit(
    table: RiskSetTable,
    conf_level: float,
) -> NelsonAalenParams:
    """Compute the Nelson-Aalen cumulative hazard from a risk-set table.

    The CI is formed on the log scale, exp(log H ± z se / H), which keeps
    the lower bound positive.
    """
    n_risk = table.n_risk
    n_events = table.n_events

    cumulative_hazard = np.cumsum(n_events / n_risk)
    variance = np.cumsum(n_events / n_risk ** 2)
    se = np.sqrt(variance)

    z = stats.norm.ppf((1.0 + conf_level) / 2.0)
    with np.errstate(divide='ignore', invalid='ignore'):
        se_log = se / cumulative_hazard
        ci_lower = cumulative_hazard * np.exp(-z * se_log)
        ci_upper = cumulative_hazard * np.exp(z * se_log)
    # H = 0 before the first event: the band collapses onto 0
    ci_lower = np.where(cumulative_hazard > 0, ci_lower, 0.0)
    ci_upper = np.where(cumulative_hazard > 0, ci_upper, 0.0)

    return NelsonAalenParams(
        time=table.time,
        cumulative_hazard=cumulative_hazard,
        variance=variance,
        ci_lower=ci_lower,
        ci_upper=ci_upper,
        n_risk=n_risk,
        n_events=n_events,
        conf_level=conf_level,
        n_observations=int(n_risk[0]),
        n_events_total=int(np.sum(n_events)),
    )


def step_lookup(
    grid: NDArray,
    values: NDArray,
    t,
    before: float,
) -> NDArray:
    """Evaluate a right-continuous step function at ``t``.

    ``values[k]`` holds on [grid[k], grid[k+1]); ``before`` is returned for
    t < grid[0]; the last value is held past the end of the grid.
    Works along the first axis of ``values``, so a (m, n) matrix gives
    rows of length n.
    """
    t = np.asarray(t, dtype=np.float64)
    idx = np.searchsorted(grid, t, side='right') - 1
    safe = np.clip(idx, 0, None)
    out = np.asarray(values)[safe]
    if np.ndim(idx) == 0:
        return out if idx >= 0 else np.full_like(out, before, dtype=np.float64)
    mask = idx < 0
    if np.any(mask):
        out = np.array(out, dtype=np.float64, copy=True)
        out[mask] = before
    return out


def _compute_ci(
    survival: NDArray,
    se: NDArray,
    z: float,
    conf_type: str,
) -> tuple[NDArray, NDArray]:
    """Compute CI for survival function.

    Parameters
    ----------
    survival : S(t) values
    se : Greenwood standard errors
    z : normal quantile (e.g. 1.96 for 95%)
    conf_type : "log", "plain", or "log-log"

    Returns
    -------
    (ci_lower, ci_upper) clipped to [0, 1]
    """
    if conf_type == "plain":
        # Plain: S(t) ± z * se
        ci_lower = survival - z * se
        ci_upper = survival + z * se

    elif conf_type == "log":
        # exp(log(S) ± z * se / S)
        with np.errstate(divide='ignore', invalid='ignore'):
            log_s = np.log(survival)
            se_log = se / survival
            ci_lower = np.exp(log_s - z * se_log)
            ci_upper = np.exp(log_s + z * se_log)

    elif conf_type == "log-log":
        # exp(-exp(log(-log(S)) ± z * se / (S * |log(S)|)))
        with np.errstate(divide='ignore', invalid='ignore'):
            log_s = np.log(survival)
            log_neg_log_s = np.log(-log_s)
            se_loglog = se / (survival * np.abs(log_s))
            ci_lower = np.exp(-np.exp(log_neg_log_s + z * se_loglog))
            ci_upper = np.exp(-np.exp(log_neg_log_s - z * se_loglog))
    else:
        raise ValueError(
            f"Unknown conf_type '{conf_type}'. "
            f"Choose from 'log', 'plain', 'log-log'."
        )

    ci_lower = np.clip(ci_lower, 0.0, 1.0)
    ci_upper = np.clip(ci_upper, 0.0, 1.0)

    # No sampling variability (before the first event, or S = 0): the
    # band collapses onto the estimate.
    degenerate = se == 0
    ci_lower = np.where(degenerate, survival, ci_lower)
    ci_upper = np.where(degenerate, survival, ci_upper)

    # Handle NaN from the transforms at S = 0 or S = 1
    ci_lower = np.where(np.isnan(ci_lower), 0.0, ci_lower)
    ci_upper = np.where(np.isnan(ci_upper), 1.0, ci_upper)

    return ci_lower, ci_upper
