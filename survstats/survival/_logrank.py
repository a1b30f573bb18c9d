"""
Log-rank test (G-rho family) for comparing survival curves across groups.

Matches R's survival::survdiff(Surv(time, event) ~ group, rho=0):
- Standard log-rank test (rho=0): Mantel-Haenszel
- G-rho family (rho>0): Fleming-Harrington weighted variant.
  When rho=1, gives the Peto & Peto modification of the Gehan-Wilcoxon test.

Algorithm:
    At each distinct event time t_i of the pooled cohort:
       - n_gi = number at risk in group g, d_gi = events in group g
       - n_i = total at risk, d_i = total events
       - Expected events: E_gi = d_i * n_gi / n_i
       - Variance: V_gi = d_i (n_i - d_i) n_gi (n_i - n_gi) / (n_i^2 (n_i - 1))
         (0 when n_i = 1); off-diagonal -d_i (n_i - d_i) n_gi n_hi / (...)
       - Weight w_i = S_hat(t_i-)^rho (pooled KM just before t_i)
    Statistic: (O - E)' V^{-1} (O - E) over the first k-1 groups, df = k-1.

References:
    Mantel, N. (1966). Evaluation of survival data and two new rank order
        statistics arising in its consideration. Cancer Chemotherapy
        Reports, 50(3), 163-170.
    Harrington, D. P. & Fleming, T. R. (1982). A class of rank test
        procedures for censored survival data. Biometrika, 69(3), 553-566.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray
from scipy import stats

from survstats.core.exceptions import InsufficientDataError, SingularMatrixError
from survstats.survival._common import LogRankParams


def logrank_test(
    time: NDArray,
    event: NDArray,
    group: NDArray,
    rho: float = 0.0,
) -> LogRankParams:
    """Compute log-rank test (G-rho family).

    Parameters
    ----------
    time : NDArray
        (n,) time to event or censoring.
    event : NDArray
        (n,) event indicator (1=event, 0=censored).
    group : NDArray
        (n,) group labels.
    rho : float
        G-rho weight parameter: rho=0 is standard log-rank,
        rho=1 is Peto & Peto / Gehan-Wilcoxon.

    Returns
    -------
    LogRankParams

    Raises
    ------
    InsufficientDataError
        If fewer than two groups have at least one event, or the variance
        of O - E is zero.
    SingularMatrixError
        If the (k-1)-group covariance block cannot be inverted.
    """
    unique_groups, group_idx = np.unique(group, return_inverse=True)
    n_groups = len(unique_groups)

    events_per_group = np.bincount(group_idx, weights=event, minlength=n_groups)
    n_with_events = int(np.sum(events_per_group > 0))
    if n_groups < 2 or n_with_events < 2:
        raise InsufficientDataError(
            f"log-rank test needs at least 2 groups with an event; "
            f"got {n_groups} group(s), {n_with_events} with events"
        )

    unique_event_times = np.unique(time[event == 1])
    m = len(unique_event_times)

    # Per event time x per group: at risk (time >= t) and events (time == t)
    n_kg = np.zeros((m, n_groups), dtype=np.float64)
    d_kg = np.zeros((m, n_groups), dtype=np.float64)
    for k in range(n_groups):
        in_group = group_idx == k
        t_k = np.sort(time[in_group])
        n_kg[:, k] = len(t_k) - np.searchsorted(t_k, unique_event_times, side='left')

        ev_k = time[in_group & (event == 1)]
        pos = np.searchsorted(unique_event_times, ev_k)
        d_kg[:, k] = np.bincount(pos, minlength=m)

    D_j = d_kg.sum(axis=1)     # (m,) total events at each time
    N_j = n_kg.sum(axis=1)     # (m,) total at risk at each time

    # --- Weights for G-rho family ---
    if rho == 0.0:
        weights = np.ones(m, dtype=np.float64)
    else:
        # S_hat(t_j-) from the pooled product-limit estimate
        cum_surv = np.cumprod(1.0 - D_j / N_j)
        s_before = np.ones(m, dtype=np.float64)
        s_before[1:] = cum_surv[:-1]
        weights = s_before ** rho

    observed = weights @ d_kg
    expected = weights @ (n_kg * (D_j / N_j)[:, np.newaxis])

    # --- Variance-covariance of O - E ---
    # V = Σ_j f_j * (N_j diag(n_j) - n_j n_j'),
    # f_j = w_j^2 D_j (N_j - D_j) / (N_j^2 (N_j - 1)), 0 when N_j = 1
    multi = N_j > 1
    factor = np.zeros(m, dtype=np.float64)
    factor[multi] = (
        weights[multi] ** 2 * D_j[multi] * (N_j[multi] - D_j[multi])
        / (N_j[multi] ** 2 * (N_j[multi] - 1.0))
    )
    V = np.diag((factor * N_j) @ n_kg) - (n_kg * factor[:, np.newaxis]).T @ n_kg

    # --- Chi-squared statistic ---
    # The last group is dropped: Σ_g (O_g - E_g) = 0 makes V singular
    df = n_groups - 1
    oe_diff = (observed - expected)[:df]

    if df == 1:
        if V[0, 0] <= 0:
            raise InsufficientDataError(
                "log-rank variance is zero: no event time has more than "
                "one subject at risk"
            )
        statistic = float(oe_diff[0] ** 2 / V[0, 0])
    else:
        V_sub = V[:df, :df]
        try:
            statistic = float(oe_diff @ np.linalg.solve(V_sub, oe_diff))
        except np.linalg.LinAlgError as e:
            raise SingularMatrixError(
                f"log-rank covariance matrix is singular: {e}",
                matrix_name="V",
                rank=int(np.linalg.matrix_rank(V_sub)),
                expected_rank=df,
            ) from e

    p_value = float(stats.chi2.sf(statistic, df))

    n_per_group = np.bincount(group_idx, minlength=n_groups).astype(np.float64)

    return LogRankParams(
        statistic=statistic,
        df=df,
        p_value=p_value,
        n_groups=n_groups,
        observed=observed,
        expected=expected,
        variance=V,
        n_per_group=n_per_group,
        rho=rho,
        group_labels=unique_groups,
    )
