"""
Parameter payloads for survival analysis results.

Each dataclass is a frozen payload carried inside a Result[P] envelope.
"""

from __future__ import annotations

from dataclasses import dataclass

from numpy.typing import NDArray


@dataclass(frozen=True)
class KMParams:
    """Kaplan-Meier survival curve parameters.

    One row per distinct observed time (event or censoring), so the curve
    also carries the censoring marks.
    """

    time: NDArray                # (m,) distinct observed times
    survival: NDArray            # (m,) S(t) at each time
    variance: NDArray            # (m,) Greenwood variance of S(t)
    se: NDArray                  # (m,) sqrt(variance)
    ci_lower: NDArray            # (m,) lower CI for S(t)
    ci_upper: NDArray            # (m,) upper CI for S(t)
    n_risk: NDArray              # (m,) number at risk at each time
    n_events: NDArray            # (m,) events at each time
    n_censored: NDArray          # (m,) censorings at each time
    conf_level: float            # confidence level (e.g. 0.95)
    conf_type: str               # CI type: "log" (default), "plain", "log-log"
    n_observations: int          # total n
    n_events_total: int          # total events


@dataclass(frozen=True)
class NelsonAalenParams:
    """Nelson-Aalen cumulative hazard parameters."""

    time: NDArray                # (m,) distinct observed times
    cumulative_hazard: NDArray   # (m,) H(t) at each time
    variance: NDArray            # (m,) Aalen variance sum d/n^2
    ci_lower: NDArray            # (m,) lower CI for H(t)
    ci_upper: NDArray            # (m,) upper CI for H(t)
    n_risk: NDArray
    n_events: NDArray
    conf_level: float
    n_observations: int
    n_events_total: int


@dataclass(frozen=True)
class LogRankParams:
    """Log-rank test parameters.

    Matches the output of R's survival::survdiff().
    """

    statistic: float             # chi-squared statistic
    df: int                      # degrees of freedom (n_groups - 1)
    p_value: float
    n_groups: int
    observed: NDArray            # (n_groups,) observed (weighted) events
    expected: NDArray            # (n_groups,) expected (weighted) events
    variance: NDArray            # (n_groups, n_groups) covariance of O - E
    n_per_group: NDArray         # (n_groups,) subjects per group
    rho: float                   # weight parameter (0=log-rank, 1=Peto-Peto)
    group_labels: NDArray        # unique group labels


@dataclass(frozen=True)
class RMSTParams:
    """Restricted mean survival time parameters."""

    rmst: float                  # integral of S(t) over [0, tau]
    tau: float                   # truncation horizon
    variance: float              # Greenwood-type variance of the integral
    se: float
    ci_lower: float
    ci_upper: float
    conf_level: float
    last_time: float             # last time on the curve (held flat past it)


@dataclass(frozen=True)
class CoxParams:
    """Cox proportional hazards model parameters.

    Matches the output of R's survival::coxph(), plus the Breslow baseline
    cumulative hazard needed for prediction.
    """

    coefficients: NDArray        # (p,) log hazard ratios
    hazard_ratios: NDArray       # (p,) exp(coef)
    standard_errors: NDArray     # (p,) from observed information matrix
    z_statistics: NDArray        # (p,) coef / se
    p_values: NDArray            # (p,) two-sided Wald test
    covariance: NDArray          # (p, p) inverse information
    loglik: tuple[float, float]  # (null log-lik, model log-lik)
    concordance: float           # Harrell's C on the training data
    baseline_time: NDArray       # (k,) distinct event times
    baseline_cumulative_hazard: NDArray  # (k,) Breslow H0(t)
    n_events: int
    n_observations: int
    n_iter: int                  # Newton-Raphson iterations
    converged: bool
    gradient_norm: float         # ||score||_2 at the solution
    ties: str                    # "breslow" or "efron"
    covariate_names: tuple[str, ...]
