"""
Solution wrappers for survival analysis results.

Each Solution wraps a Result[Params] and exposes user-friendly properties
with R-style summary() methods.
"""

from __future__ import annotations

import numpy as np

from survstats.core.result import Result
from survstats.survival._common import (
    CoxParams,
    KMParams,
    LogRankParams,
    NelsonAalenParams,
    RMSTParams,
)
from survstats.survival._km import step_lookup


class KMSolution:
    """Kaplan-Meier survival curve solution.

    A right-continuous, non-increasing step function with S(0) = 1. Rows
    are the distinct observed times; times with only censorings carry a
    censoring mark and leave S unchanged.
    """

    __slots__ = ('_result',)

    def __init__(self, _result: Result[KMParams]) -> None:
        self._result = _result

    # -- Properties delegating to KMParams --

    @property
    def params(self) -> KMParams:
        return self._result.params

    @property
    def time(self):
        """Distinct observed times."""
        return self._result.params.time

    @property
    def survival(self):
        """S(t) at each time."""
        return self._result.params.survival

    @property
    def variance(self):
        """Greenwood variance of S(t)."""
        return self._result.params.variance

    @property
    def se(self):
        """Greenwood standard error of S(t)."""
        return self._result.params.se

    @property
    def ci_lower(self):
        """Lower confidence bound for S(t)."""
        return self._result.params.ci_lower

    @property
    def ci_upper(self):
        """Upper confidence bound for S(t)."""
        return self._result.params.ci_upper

    @property
    def n_risk(self):
        """Number at risk at each time."""
        return self._result.params.n_risk

    @property
    def n_events(self):
        """Number of events at each time."""
        return self._result.params.n_events

    @property
    def n_censored(self):
        """Number censored at each time."""
        return self._result.params.n_censored

    @property
    def is_censoring_mark(self):
        """True where at least one subject was censored."""
        return self._result.params.n_censored > 0

    @property
    def conf_level(self) -> float:
        return self._result.params.conf_level

    @property
    def conf_type(self) -> str:
        return self._result.params.conf_type

    @property
    def n_observations(self) -> int:
        return self._result.params.n_observations

    @property
    def n_events_total(self) -> int:
        return self._result.params.n_events_total

    @property
    def median_survival(self) -> float | None:
        """Median survival time (smallest t where S(t) <= 0.5)."""
        idx = self.survival <= 0.5
        if not idx.any():
            return None
        return float(self.time[idx][0])

    @property
    def backend_name(self) -> str:
        return self._result.backend_name

    @property
    def timing(self):
        return self._result.timing

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    # -- Evaluation --

    def survival_at(self, t):
        """S(t) for scalar or array ``t`` (1.0 before the first time)."""
        return step_lookup(self.time, self.survival, t, before=1.0)

    def variance_at(self, t):
        """Greenwood variance at ``t`` (0.0 before the first time)."""
        return step_lookup(self.time, self.variance, t, before=0.0)

    def steps(self) -> list[tuple[float, float, float, bool]]:
        """(time, survival, variance, is_censoring_mark) rows from the origin.

        The first row is always (0, 1, 0, False). Events at time 0 follow
        as a second row at t = 0, so survival_at(0) (right-continuous) is
        already below 1 while the curve still starts at 1.
        """
        rows = [(0.0, 1.0, 0.0, False)]
        for t, s, v, c in zip(self.time, self.survival, self.variance,
                              self.is_censoring_mark):
            rows.append((float(t), float(s), float(v), bool(c)))
        return rows

    def summary(self) -> str:
        """R-style summary of Kaplan-Meier fit."""
        lines = []
        lines.append("Call: kaplan_meier()")
        lines.append("")
        lines.append(
            f"  n={self.n_observations}, "
            f"events={self.n_events_total}"
        )
        lines.append("")

        median = self.median_survival
        median_str = f"{median:.4g}" if median is not None else "NA"
        lines.append(f"  median survival = {median_str}")
        lines.append("")

        ci_pct = int(round(self.conf_level * 100))
        lines.append(
            f"  {'time':>8s}  {'n.risk':>8s}  {'n.event':>8s}  "
            f"{'survival':>10s}  {'se':>10s}  "
            f"{f'lower {ci_pct}%':>10s}  {f'upper {ci_pct}%':>10s}"
        )

        # Event rows only, as R's summary(survfit) prints them
        rows = np.flatnonzero(self.n_events > 0)
        show = rows[:20]
        for i in show:
            lines.append(
                f"  {self.time[i]:8.4g}  {self.n_risk[i]:8.0f}  "
                f"{self.n_events[i]:8.0f}  "
                f"{self.survival[i]:10.6f}  {self.se[i]:10.6f}  "
                f"{self.ci_lower[i]:10.6f}  {self.ci_upper[i]:10.6f}"
            )
        if len(rows) > 20:
            lines.append(f"  ... ({len(rows) - 20} more rows)")

        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"KMSolution(n={self.n_observations}, "
            f"events={self.n_events_total}, "
            f"median={self.median_survival})"
        )


class NelsonAalenSolution:
    """Nelson-Aalen cumulative hazard solution."""

    __slots__ = ('_result',)

    def __init__(self, _result: Result[NelsonAalenParams]) -> None:
        self._result = _result

    @property
    def time(self):
        return self._result.params.time

    @property
    def cumulative_hazard(self):
        """H(t) at each distinct time."""
        return self._result.params.cumulative_hazard

    @property
    def variance(self):
        return self._result.params.variance

    @property
    def se(self):
        return np.sqrt(self._result.params.variance)

    @property
    def ci_lower(self):
        return self._result.params.ci_lower

    @property
    def ci_upper(self):
        return self._result.params.ci_upper

    @property
    def survival(self):
        """Fleming-Harrington survival estimate exp(-H(t))."""
        return np.exp(-self.cumulative_hazard)

    @property
    def n_risk(self):
        return self._result.params.n_risk

    @property
    def n_events(self):
        return self._result.params.n_events

    @property
    def conf_level(self) -> float:
        return self._result.params.conf_level

    @property
    def n_observations(self) -> int:
        return self._result.params.n_observations

    @property
    def n_events_total(self) -> int:
        return self._result.params.n_events_total

    @property
    def backend_name(self) -> str:
        return self._result.backend_name

    @property
    def timing(self):
        return self._result.timing

    def cumulative_hazard_at(self, t):
        """H(t) for scalar or array ``t`` (0.0 before the first time)."""
        return step_lookup(self.time, self.cumulative_hazard, t, before=0.0)

    def summary(self) -> str:
        lines = [
            "Call: nelson_aalen()",
            "",
            f"  n={self.n_observations}, events={self.n_events_total}",
            "",
            f"  {'time':>8s}  {'n.risk':>8s}  {'n.event':>8s}  "
            f"{'cumhaz':>10s}  {'se':>10s}",
        ]
        rows = np.flatnonzero(self.n_events > 0)
        for i in rows[:20]:
            lines.append(
                f"  {self.time[i]:8.4g}  {self.n_risk[i]:8.0f}  "
                f"{self.n_events[i]:8.0f}  "
                f"{self.cumulative_hazard[i]:10.6f}  {self.se[i]:10.6f}"
            )
        if len(rows) > 20:
            lines.append(f"  ... ({len(rows) - 20} more rows)")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"NelsonAalenSolution(n={self.n_observations}, "
            f"events={self.n_events_total})"
        )


class LogRankSolution:
    """Log-rank test solution.

    Properties mirror R's survdiff() output.
    """

    __slots__ = ('_result',)

    def __init__(self, _result: Result[LogRankParams]) -> None:
        self._result = _result

    @property
    def statistic(self) -> float:
        return self._result.params.statistic

    @property
    def df(self) -> int:
        return self._result.params.df

    @property
    def p_value(self) -> float:
        return self._result.params.p_value

    @property
    def n_groups(self) -> int:
        return self._result.params.n_groups

    @property
    def observed(self):
        return self._result.params.observed

    @property
    def expected(self):
        return self._result.params.expected

    @property
    def variance(self):
        """Covariance matrix of O - E across groups."""
        return self._result.params.variance

    @property
    def n_per_group(self):
        return self._result.params.n_per_group

    @property
    def rho(self) -> float:
        return self._result.params.rho

    @property
    def group_labels(self):
        return self._result.params.group_labels

    @property
    def backend_name(self) -> str:
        return self._result.backend_name

    @property
    def timing(self):
        return self._result.timing

    def summary(self) -> str:
        """R-style summary of log-rank test."""
        lines = []
        lines.append("Call: survdiff()")
        lines.append("")

        lines.append(f"  {'':>12s}  {'N':>6s}  {'Observed':>10s}  {'Expected':>10s}  {'(O-E)^2/E':>10s}")
        for i in range(self.n_groups):
            oe = ((self.observed[i] - self.expected[i]) ** 2
                  / self.expected[i]) if self.expected[i] > 0 else 0
            label = str(self.group_labels[i])
            lines.append(
                f"  {label:>12s}  {self.n_per_group[i]:6.0f}  "
                f"{self.observed[i]:10.1f}  {self.expected[i]:10.1f}  "
                f"{oe:10.3f}"
            )

        lines.append("")
        lines.append(
            f"  Chisq= {self.statistic:.4f} on {self.df} degrees of freedom, "
            f"p= {self.p_value:.4g}"
        )

        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"LogRankSolution(chisq={self.statistic:.4f}, "
            f"df={self.df}, p={self.p_value:.4g})"
        )


class RMSTSolution:
    """Restricted mean survival time solution."""

    __slots__ = ('_result',)

    def __init__(self, _result: Result[RMSTParams]) -> None:
        self._result = _result

    @property
    def rmst(self) -> float:
        return self._result.params.rmst

    @property
    def tau(self) -> float:
        return self._result.params.tau

    @property
    def variance(self) -> float:
        return self._result.params.variance

    @property
    def se(self) -> float:
        return self._result.params.se

    @property
    def ci_lower(self) -> float:
        return self._result.params.ci_lower

    @property
    def ci_upper(self) -> float:
        return self._result.params.ci_upper

    @property
    def conf_level(self) -> float:
        return self._result.params.conf_level

    @property
    def extrapolated(self) -> bool:
        """True when tau lies past the last time (curve held flat)."""
        return self.tau > self._result.params.last_time

    @property
    def backend_name(self) -> str:
        return self._result.backend_name

    @property
    def timing(self):
        return self._result.timing

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    def __float__(self) -> float:
        return self.rmst

    def summary(self) -> str:
        ci_pct = int(round(self.conf_level * 100))
        return "\n".join([
            "Call: rmst()",
            "",
            f"  tau = {self.tau:.4g}",
            f"  RMST = {self.rmst:.6f}  (se {self.se:.6f})",
            f"  {ci_pct}% CI: ({self.ci_lower:.6f}, {self.ci_upper:.6f})",
        ])

    def __repr__(self) -> str:
        return f"RMSTSolution(tau={self.tau:.4g}, rmst={self.rmst:.6g})"


class CoxSolution:
    """Cox proportional hazards solution.

    Properties mirror R's coxph() output; the Breslow baseline cumulative
    hazard is kept for prediction.
    """

    __slots__ = ('_result',)

    def __init__(self, _result: Result[CoxParams]) -> None:
        self._result = _result

    @property
    def params(self) -> CoxParams:
        return self._result.params

    @property
    def coefficients(self):
        return self._result.params.coefficients

    @property
    def hazard_ratios(self):
        return self._result.params.hazard_ratios

    @property
    def standard_errors(self):
        return self._result.params.standard_errors

    @property
    def z_statistics(self):
        return self._result.params.z_statistics

    @property
    def p_values(self):
        return self._result.params.p_values

    @property
    def covariance(self):
        return self._result.params.covariance

    @property
    def loglik(self):
        return self._result.params.loglik

    @property
    def concordance(self) -> float:
        return self._result.params.concordance

    @property
    def baseline_time(self):
        return self._result.params.baseline_time

    @property
    def baseline_cumulative_hazard(self):
        return self._result.params.baseline_cumulative_hazard

    @property
    def covariate_names(self) -> tuple[str, ...]:
        return self._result.params.covariate_names

    @property
    def formula(self):
        """The formula the model was fitted with, or None."""
        return self._result.info.get("formula")

    @property
    def n_events(self) -> int:
        return self._result.params.n_events

    @property
    def n_observations(self) -> int:
        return self._result.params.n_observations

    @property
    def n_iter(self) -> int:
        return self._result.params.n_iter

    @property
    def converged(self) -> bool:
        return self._result.params.converged

    @property
    def gradient_norm(self) -> float:
        return self._result.params.gradient_norm

    @property
    def ties(self) -> str:
        return self._result.params.ties

    @property
    def backend_name(self) -> str:
        return self._result.backend_name

    @property
    def timing(self):
        return self._result.timing

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    def baseline_hazard_at(self, t):
        """Breslow H0(t) for scalar or array ``t`` (0.0 before the first event)."""
        return step_lookup(
            self.baseline_time, self.baseline_cumulative_hazard, t, before=0.0
        )

    def linear_predictor(self, X):
        """x @ β for each row of X."""
        X = np.asarray(X, dtype=np.float64)
        if X.ndim == 1:
            X = X.reshape(1, -1)
        return X @ self.coefficients

    def summary(self) -> str:
        """R-style summary of Cox PH fit."""
        lines = []
        lines.append("Call: coxph()")
        lines.append("")
        lines.append(
            f"  n= {self.n_observations}, "
            f"number of events= {self.n_events}, ties= {self.ties}"
        )
        lines.append("")

        lines.append(
            f"  {'':>10s}  {'coef':>10s}  {'exp(coef)':>10s}  "
            f"{'se(coef)':>10s}  {'z':>10s}  {'Pr(>|z|)':>12s}"
        )
        for i, name in enumerate(self.covariate_names):
            lines.append(
                f"  {name:>10s}  {self.coefficients[i]:10.6f}  "
                f"{self.hazard_ratios[i]:10.6f}  "
                f"{self.standard_errors[i]:10.6f}  "
                f"{self.z_statistics[i]:10.4f}  "
                f"{self.p_values[i]:12.4g}"
            )

        lines.append("")
        lines.append(
            f"  Concordance= {self.concordance:.4f}"
        )
        lr_stat = 2 * (self.loglik[1] - self.loglik[0])
        lines.append(
            f"  Likelihood ratio test= {lr_stat:.4f} on "
            f"{len(self.coefficients)} df"
        )
        lines.append(
            f"  Newton-Raphson iterations= {self.n_iter}, "
            f"||score||= {self.gradient_norm:.3g}"
        )

        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"CoxSolution(n={self.n_observations}, "
            f"events={self.n_events}, "
            f"concordance={self.concordance:.4f})"
        )
