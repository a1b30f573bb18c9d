"""
Cox Proportional Hazards model via Newton-Raphson.

Ties are handled with Breslow's method by default (all events tied at t_j
share the full risk-set denominator); Efron's approximation is available
as an explicit alternative. The two give different coefficients on tied
data.

Algorithm:
    Initialize β = 0
    Repeat:
        Compute: partial log-likelihood L(β), score U(β), information I(β)
        Stop if ||U(β)||_2 < tol
        β_new = β + I(β)^{-1} @ U(β), capped and step-halved until
        L(β_new) >= L(β)

Breslow's partial likelihood:
    L(β) = Σ_j [ Σ_{i ∈ D_j} x_i @ β - d_j log Σ_{l ∈ R_j} exp(x_l @ β) ]

Efron's partial likelihood:
    L(β) = Σ_j [ Σ_{i ∈ D_j} x_i @ β
            - Σ_{s=0}^{d_j-1} log(Σ_{l ∈ R_j} exp(x_l @ β)
                - (s/d_j) * Σ_{i ∈ D_j} exp(x_i @ β)) ]

    where D_j = set of events at time t_j, d_j = |D_j|,
          R_j = risk set at time t_j (time >= t_j).

Breslow baseline cumulative hazard:
    H0(t) = Σ_{t_j <= t} d_j / Σ_{l ∈ R_j} exp(x_l @ β)

References:
    Cox, D. R. (1972). Regression models and life-tables. JRSS-B, 34(2), 187-220.
    Breslow, N. (1974). Covariance analysis of censored survival data.
        Biometrics, 30(1), 89-99.
    Efron, B. (1977). The efficiency of Cox's likelihood function for
        censored data. JASA, 72(359), 557-565.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray
from scipy import stats

from survstats.core.compute.tolerances import COX_MAX_HALVINGS, COX_MAX_STEP
from survstats.core.exceptions import (
    ConvergenceError,
    InsufficientDataError,
    SingularHessianError,
    UndefinedMetricError,
)
from survstats.survival._common import CoxParams


def cox_fit(
    time: NDArray,
    event: NDArray,
    X: NDArray,
    ties: str,
    tol: float,
    max_iter: int,
    covariate_names: tuple[str, ...] | None = None,
) -> CoxParams:
    """Fit Cox proportional hazards model.

    Parameters
    ----------
    time : NDArray
        (n,) time to event or censoring.
    event : NDArray
        (n,) event indicator (1=event, 0=censored).
    X : NDArray
        (n, p) covariate matrix (NO intercept).
    ties : str
        "breslow" or "efron".
    tol : float
        Convergence tolerance on the Euclidean norm of the score.
    max_iter : int
        Maximum Newton-Raphson iterations.
    covariate_names : tuple of str or None
        Names for the coefficients; defaults to x0..x{p-1}.

    Returns
    -------
    CoxParams

    Raises
    ------
    InsufficientDataError
        If there are no events.
    SingularHessianError
        If the information matrix is rank-deficient (collinear or constant
        covariates).
    ConvergenceError
        If the score norm is still >= tol after max_iter iterations.
    """
    n, p = X.shape

    n_events_total = int(np.sum(event))
    if n_events_total == 0:
        raise InsufficientDataError(
            "Cox model needs at least one event, got 0"
        )

    if covariate_names is None:
        covariate_names = tuple(f"x{i}" for i in range(p))

    unique_event_times = np.unique(time[event == 1])

    # --- Newton-Raphson ---
    beta = np.zeros(p, dtype=np.float64)
    loglik, score, info_matrix = _score_and_information(
        beta, time, event, X, unique_event_times, ties
    )
    null_loglik = loglik

    n_iter = 0
    while True:
        gradient_norm = float(np.linalg.norm(score))
        if gradient_norm < tol:
            break

        if n_iter >= max_iter:
            raise ConvergenceError(
                f"Newton-Raphson did not converge in {max_iter} iterations "
                f"(||score|| = {gradient_norm:.3g}, tol = {tol:.3g})",
                iterations=n_iter,
                final_change=gradient_norm,
                reason='max_iterations',
                threshold=tol,
            )

        step = _newton_step(info_matrix, score, p)

        # Limit step size so exp(X @ beta) doesn't overflow
        max_step = np.max(np.abs(step))
        if max_step > COX_MAX_STEP:
            step = step * (COX_MAX_STEP / max_step)

        # Step-halving: never accept a step that lowers the likelihood
        for _ in range(COX_MAX_HALVINGS + 1):
            beta_new = beta + step
            loglik_new, score_new, info_new = _score_and_information(
                beta_new, time, event, X, unique_event_times, ties
            )
            if loglik_new >= loglik - 1e-12 * (abs(loglik) + 1.0):
                break
            step = step / 2.0

        beta = beta_new
        loglik, score, info_matrix = loglik_new, score_new, info_new
        n_iter += 1

    # Standard errors from observed information matrix
    var_matrix = _invert_information(info_matrix, p)
    se = np.sqrt(np.maximum(np.diag(var_matrix), 0.0))

    # Wald z-statistics and p-values
    z = np.where(se > 0, beta / np.where(se > 0, se, 1.0), 0.0)
    p_values = 2.0 * stats.norm.sf(np.abs(z))

    baseline_cumhaz = _baseline_cumulative_hazard(
        beta, time, event, X, unique_event_times, ties
    )

    from survstats.metrics._concordance import concordance_from_risk
    try:
        concordance = concordance_from_risk(time, event, X @ beta)
    except UndefinedMetricError:
        # reported as a warning by coxph()
        concordance = float("nan")

    return CoxParams(
        coefficients=beta,
        hazard_ratios=np.exp(beta),
        standard_errors=se,
        z_statistics=z,
        p_values=p_values,
        covariance=var_matrix,
        loglik=(float(null_loglik), float(loglik)),
        concordance=concordance,
        baseline_time=unique_event_times,
        baseline_cumulative_hazard=baseline_cumhaz,
        n_events=n_events_total,
        n_observations=n,
        n_iter=n_iter,
        converged=True,
        gradient_norm=gradient_norm,
        ties=ties,
        covariate_names=tuple(covariate_names),
    )


def _newton_step(info_matrix: NDArray, score: NDArray, p: int) -> NDArray:
    """Solve I(β) step = U(β), refusing rank-deficient information."""
    rank = int(np.linalg.matrix_rank(info_matrix))
    if rank < p:
        raise SingularHessianError(
            f"information matrix is rank-deficient (rank={rank}, "
            f"expected={p}); covariates are collinear or constant",
            matrix_name="information",
            rank=rank,
            expected_rank=p,
        )
    try:
        return np.linalg.solve(info_matrix, score)
    except np.linalg.LinAlgError as e:
        raise SingularHessianError(
            f"information matrix is singular: {e}",
            matrix_name="information",
            rank=rank,
            expected_rank=p,
        ) from e


def _invert_information(info_matrix: NDArray, p: int) -> NDArray:
    rank = int(np.linalg.matrix_rank(info_matrix))
    if rank < p:
        raise SingularHessianError(
            f"information matrix at the solution is rank-deficient "
            f"(rank={rank}, expected={p})",
            matrix_name="information",
            rank=rank,
            expected_rank=p,
        )
    try:
        return np.linalg.inv(info_matrix)
    except np.linalg.LinAlgError as e:
        raise SingularHessianError(
            f"information matrix at the solution is singular: {e}",
            matrix_name="information",
            rank=rank,
            expected_rank=p,
        ) from e


def _score_and_information(
    beta: NDArray,
    time: NDArray,
    event: NDArray,
    X: NDArray,
    unique_event_times: NDArray,
    ties: str,
) -> tuple[float, NDArray, NDArray]:
    """Compute log-likelihood, score vector, and observed information matrix.

    Returns
    -------
    (loglik, score, info_matrix)
        loglik : float
        score : (p,) gradient of log-likelihood
        info_matrix : (p, p) negative Hessian (observed information)
    """
    n, p = X.shape
    eta = X @ beta

    # Center eta for numerical stability; the shift cancels in each term
    # except the log-denominator, which is corrected below
    eta_max = np.max(eta)
    eta_c = eta - eta_max
    exp_eta = np.exp(eta_c)

    loglik = 0.0
    score = np.zeros(p, dtype=np.float64)
    info_matrix = np.zeros((p, p), dtype=np.float64)

    for t_j in unique_event_times:
        risk_mask = time >= t_j
        risk_exp = exp_eta[risk_mask]
        risk_X = X[risk_mask]

        S0 = np.sum(risk_exp)
        S1 = risk_X.T @ risk_exp
        S2 = (risk_X * risk_exp[:, np.newaxis]).T @ risk_X

        event_at_tj = (time == t_j) & (event == 1)
        d_j = int(np.sum(event_at_tj))

        event_X = X[event_at_tj]
        event_X_sum = np.sum(event_X, axis=0)
        event_eta_sum = np.sum(eta[event_at_tj])

        if ties == "breslow" or d_j == 1:
            loglik += event_eta_sum - d_j * (np.log(S0) + eta_max)
            score += event_X_sum - d_j * S1 / S0
            info_matrix += d_j * (S2 / S0 - np.outer(S1, S1) / S0**2)

        elif ties == "efron":
            event_exp = exp_eta[event_at_tj]
            death_S0 = np.sum(event_exp)
            death_S1 = event_X.T @ event_exp
            death_S2 = (event_X * event_exp[:, np.newaxis]).T @ event_X

            loglik += event_eta_sum

            for s in range(d_j):
                frac = s / d_j
                denom = S0 - frac * death_S0
                s1_adj = S1 - frac * death_S1
                s2_adj = S2 - frac * death_S2
                mean = s1_adj / denom

                loglik -= np.log(denom) + eta_max
                score -= mean
                info_matrix += s2_adj / denom - np.outer(mean, mean)

            score += event_X_sum

        else:
            raise ValueError(f"Unknown ties method '{ties}'")

    return float(loglik), score, info_matrix


def _baseline_cumulative_hazard(
    beta: NDArray,
    time: NDArray,
    event: NDArray,
    X: NDArray,
    unique_event_times: NDArray,
    ties: str,
) -> NDArray:
    """Baseline cumulative hazard H0 at each distinct event time.

    Breslow: increment d_j / Σ_{R_j} exp(x β).
    Efron: increment Σ_{s<d_j} 1 / (Σ_{R_j} exp(x β) - (s/d_j) Σ_{D_j} exp(x β)).
    """
    eta = X @ beta
    eta_max = np.max(eta)
    exp_eta = np.exp(eta - eta_max)
    scale = np.exp(-eta_max)

    increments = np.empty(len(unique_event_times), dtype=np.float64)
    for j, t_j in enumerate(unique_event_times):
        S0 = np.sum(exp_eta[time >= t_j])
        event_at_tj = (time == t_j) & (event == 1)
        d_j = int(np.sum(event_at_tj))
        if ties == "efron" and d_j > 1:
            death_S0 = np.sum(exp_eta[event_at_tj])
            fracs = np.arange(d_j) / d_j
            increments[j] = np.sum(1.0 / (S0 - fracs * death_S0)) * scale
        else:
            increments[j] = d_j / S0 * scale

    return np.cumsum(increments)
