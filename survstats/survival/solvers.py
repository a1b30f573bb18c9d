"""
Public API for survival analysis.

    kaplan_meier(time, event) → KMSolution
    nelson_aalen(time, event) → NelsonAalenSolution
    survdiff(time, event, group) → LogRankSolution
    rmst(curve, tau) → RMSTSolution
    coxph(time, event, X) → CoxSolution
    coxph_formula(formula, data) → CoxSolution

Each function validates inputs, creates a SurvivalDesign, runs the kernel
and wraps the Result in a Solution. Wherever ``time`` is accepted, a
ready-made SurvivalDesign may be passed in its place (leave ``event``
as None).
"""

from __future__ import annotations

from typing import Literal

import numpy as np

from survstats.core.compute.timing import Timer
from survstats.core.compute.tolerances import COX_GRADIENT_TOL, COX_MAX_ITER
from survstats.core.exceptions import (
    DimensionError,
    DomainError,
    InvalidInputError,
)
from survstats.core.result import Result
from survstats.survival._cox import cox_fit
from survstats.survival._formula import SurvivalFormula
from survstats.survival._km import kaplan_meier_fit, nelson_aalen_fit
from survstats.survival._logrank import logrank_test
from survstats.survival._rmst import rmst_fit
from survstats.survival.design import SurvivalDesign
from survstats.survival.solution import (
    CoxSolution,
    KMSolution,
    LogRankSolution,
    NelsonAalenSolution,
    RMSTSolution,
)


def as_design(time, event=None, X=None) -> SurvivalDesign:
    """Return ``time`` if it is already a design, else build one."""
    if isinstance(time, SurvivalDesign):
        if event is not None or X is not None:
            raise InvalidInputError(
                "pass either a SurvivalDesign or time/event arrays, not both"
            )
        return time
    if event is None:
        raise InvalidInputError("event is required when time is an array")
    return SurvivalDesign.for_survival(time, event, X)


def _check_conf_level(conf_level: float) -> None:
    if not 0 < conf_level < 1:
        raise DomainError(
            f"conf_level must be in (0, 1), got {conf_level}"
        )


def kaplan_meier(
    time,
    event=None,
    *,
    conf_level: float = 0.95,
    conf_type: Literal["log", "plain", "log-log"] = "log",
) -> KMSolution:
    """Kaplan-Meier survival curve estimation.

    Matches R's survival::survfit(Surv(time, event) ~ 1).

    Parameters
    ----------
    time : array-like or SurvivalDesign
        Time to event or censoring.
    event : array-like
        Event indicator (1=event, 0=censored).
    conf_level : float
        Confidence level for CI (default 0.95).
    conf_type : str
        CI transformation: "log" (R default), "plain" (symmetric),
        "log-log".

    Returns
    -------
    KMSolution
    """
    design = as_design(time, event)

    _check_conf_level(conf_level)

    if conf_type not in ("log", "plain", "log-log"):
        raise InvalidInputError(
            f"conf_type must be 'log', 'plain', or 'log-log', "
            f"got '{conf_type}'"
        )

    timer = Timer()
    timer.start()

    with timer.section('risk_sets'):
        table = design.risk_set_table()

    with timer.section('product_limit'):
        params = kaplan_meier_fit(
            table,
            conf_level=conf_level,
            conf_type=conf_type,
        )

    timer.stop()

    warnings_list = []
    if params.n_events_total == 0:
        warnings_list.append("no events observed: S(t) = 1 everywhere")

    result = Result(
        params=params,
        info={"method": "Kaplan-Meier"},
        timing=timer.result(),
        backend_name="cpu_km",
        warnings=tuple(warnings_list),
    )

    return KMSolution(_result=result)


def nelson_aalen(
    time,
    event=None,
    *,
    conf_level: float = 0.95,
) -> NelsonAalenSolution:
    """Nelson-Aalen cumulative hazard estimation.

    Parameters
    ----------
    time : array-like or SurvivalDesign
        Time to event or censoring.
    event : array-like
        Event indicator (1=event, 0=censored).
    conf_level : float
        Confidence level for the log-transformed CI.

    Returns
    -------
    NelsonAalenSolution
    """
    design = as_design(time, event)
    _check_conf_level(conf_level)

    timer = Timer()
    timer.start()

    with timer.section('risk_sets'):
        table = design.risk_set_table()

    params = nelson_aalen_fit(table, conf_level=conf_level)

    timer.stop()

    result = Result(
        params=params,
        info={"method": "Nelson-Aalen"},
        timing=timer.result(),
        backend_name="cpu_nelson_aalen",
        warnings=(),
    )

    return NelsonAalenSolution(_result=result)


def survdiff(
    time,
    event=None,
    group=None,
    *,
    rho: float = 0.0,
) -> LogRankSolution:
    """Log-rank test (and G-rho family).

    Matches R's survival::survdiff().

    Parameters
    ----------
    time : array-like or SurvivalDesign
        Time to event or censoring.
    event : array-like
        Event indicator (1=event, 0=censored).
    group : array-like
        Group labels (e.g. treatment vs control). Defaults to the
        design's group labels.
    rho : float
        G-rho weight parameter. rho=0 (default) gives the standard
        log-rank test. rho=1 gives Peto & Peto / Gehan-Wilcoxon.

    Returns
    -------
    LogRankSolution
    """
    design = as_design(time, event)
    if group is None:
        group = design.group
    if group is None:
        raise InvalidInputError("group labels are required for survdiff()")
    group = np.asarray(group).ravel()

    if len(group) != design.n:
        raise DimensionError(
            f"group must have {design.n} elements to match time, "
            f"got {len(group)}"
        )

    if not np.isfinite(rho) or rho < 0:
        raise DomainError(f"rho must be a finite value >= 0, got {rho}")

    timer = Timer()
    timer.start()

    params = logrank_test(
        design.time, design.event, group,
        rho=rho,
    )

    timer.stop()

    result = Result(
        params=params,
        info={"method": "Log-rank test", "rho": rho},
        timing=timer.result(),
        backend_name="cpu_logrank",
        warnings=(),
    )

    return LogRankSolution(_result=result)


def rmst(
    curve,
    tau: float,
    *,
    event=None,
    conf_level: float = 0.95,
) -> RMSTSolution:
    """Restricted mean survival time up to ``tau``.

    Parameters
    ----------
    curve : KMSolution, SurvivalDesign or array-like
        A fitted Kaplan-Meier curve, or data to fit one from (pass
        ``event`` alongside a time array).
    tau : float
        Truncation horizon, > 0. Past the last observed time the curve is
        held at its last value.
    conf_level : float
        Confidence level for the normal CI.

    Returns
    -------
    RMSTSolution

    Raises
    ------
    DomainError
        If tau is not a finite positive number.
    """
    tau = float(tau)
    if not np.isfinite(tau) or tau <= 0:
        raise DomainError(f"tau must be a finite value > 0, got {tau}")
    _check_conf_level(conf_level)

    if not isinstance(curve, KMSolution):
        curve = kaplan_meier(curve, event)
    elif event is not None:
        raise InvalidInputError("event cannot be given with a fitted curve")

    timer = Timer()
    timer.start()

    params = rmst_fit(curve.params, tau, conf_level)

    timer.stop()

    warnings_list = []
    if tau > params.last_time:
        warnings_list.append(
            f"tau={tau:.4g} exceeds the last observed time "
            f"{params.last_time:.4g}; survival held at "
            f"{float(curve.survival[-1]):.4g}"
        )

    result = Result(
        params=params,
        info={"method": "RMST"},
        timing=timer.result(),
        backend_name="cpu_rmst",
        warnings=tuple(warnings_list),
    )

    return RMSTSolution(_result=result)


def coxph(
    time,
    event=None,
    X=None,
    *,
    ties: Literal["breslow", "efron"] = "breslow",
    tol: float = COX_GRADIENT_TOL,
    max_iter: int = COX_MAX_ITER,
) -> CoxSolution:
    """Cox proportional hazards model.

    Parameters
    ----------
    time : array-like or SurvivalDesign
        Time to event or censoring.
    event : array-like
        Event indicator (1=event, 0=censored).
    X : array-like
        Covariate matrix (n, p). No intercept: the Cox model has none.
    ties : str
        Method for tied event times: "breslow" (default) or "efron".
    tol : float
        Convergence tolerance on ||score||_2.
    max_iter : int
        Maximum Newton-Raphson iterations.

    Returns
    -------
    CoxSolution

    Raises
    ------
    ConvergenceError, SingularHessianError, InsufficientDataError
    """
    design = as_design(time, event, X)

    if design.X is None:
        raise InvalidInputError("X (covariates) is required for coxph()")

    if ties not in ("breslow", "efron"):
        raise InvalidInputError(
            f"ties must be 'breslow' or 'efron', got '{ties}'"
        )

    if tol <= 0:
        raise DomainError(f"tol must be > 0, got {tol}")
    if max_iter < 1:
        raise DomainError(f"max_iter must be >= 1, got {max_iter}")

    timer = Timer()
    timer.start()

    with timer.section('newton_raphson'):
        params = cox_fit(
            design.time, design.event, design.X,
            ties=ties,
            tol=tol,
            max_iter=max_iter,
            covariate_names=design.covariate_names,
        )

    timer.stop()

    warnings_list = []
    large = np.abs(params.coefficients) > 10
    if np.any(large):
        names = [n for n, flag in zip(params.covariate_names, large) if flag]
        warnings_list.append(
            f"coefficients {names} exceed 10 in magnitude: possible "
            f"monotone likelihood (separation)"
        )
    if np.isnan(params.concordance):
        warnings_list.append(
            "training concordance is undefined: no comparable pairs"
        )

    result = Result(
        params=params,
        info={
            "method": "Cox PH",
            "ties": ties,
            "n_iter": params.n_iter,
            "formula": design.formula,
        },
        timing=timer.result(),
        backend_name="cpu_cox",
        warnings=tuple(warnings_list),
    )

    return CoxSolution(_result=result)


def coxph_formula(
    formula: str | SurvivalFormula,
    data,
    *,
    ties: Literal["breslow", "efron"] = "breslow",
    tol: float = COX_GRADIENT_TOL,
    max_iter: int = COX_MAX_ITER,
) -> CoxSolution:
    """Cox model from a table: ``coxph_formula("Surv(time, status) ~ age + sex", df)``."""
    design = SurvivalDesign.from_table(data, formula)
    return coxph(design, ties=ties, tol=tol, max_iter=max_iter)
