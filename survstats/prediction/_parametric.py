"""
Censored maximum likelihood for exponential and Weibull regression.

Proportional-hazards parametrisation:

    H(t | x) = exp(a + x @ β) * t^k,     k = exp(s)
    S(t | x) = exp(-H(t | x))

The censored log-likelihood (δ = event indicator, u = H(t_i | x_i)) is

    ℓ = Σ δ_i (η_i + log k + (k - 1) log t_i) - u_i,    η_i = a + x_i @ β

with gradient

    ∂ℓ/∂a = Σ (δ_i - u_i)
    ∂ℓ/∂β = Σ (δ_i - u_i) x_i
    ∂ℓ/∂s = Σ δ_i (1 + k log t_i) - u_i k log t_i

The exponential model fixes k = 1 and drops the s coordinate. The mean
negative log-likelihood is minimized with BFGS on centered covariates, so
the tolerance does not scale with n.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray
from scipy.optimize import minimize

from survstats.core.compute.tolerances import PARAMETRIC_ACCEPT_GRADIENT
from survstats.core.exceptions import (
    ConvergenceError,
    InsufficientDataError,
    InvalidInputError,
)
from survstats.prediction._common import ParametricParams

# exp() argument cap; keeps trial points of the line search finite
_MAX_EXP = 700.0


def parametric_fit(
    time: NDArray,
    event: NDArray,
    X: NDArray | None,
    distribution: str,
    tol: float,
    max_iter: int,
    covariate_names: tuple[str, ...] | None = None,
) -> ParametricParams:
    """Fit an exponential or Weibull PH model by maximum likelihood.

    Parameters
    ----------
    time, event : NDArray
        (n,) clean survival outcome.
    X : NDArray or None
        (n, p) covariates, None for an intercept-only model.
    distribution : str
        "exponential" or "weibull".
    tol : float
        BFGS gradient tolerance on the mean log-likelihood.
    max_iter : int
        BFGS iteration cap.

    Raises
    ------
    InsufficientDataError
        If there are no events.
    InvalidInputError
        If the times do not support the model (Weibull needs t > 0).
    ConvergenceError
        If the optimizer stops away from a stationary point.
    """
    if distribution not in ("exponential", "weibull"):
        raise ValueError(f"Unknown distribution '{distribution}'")
    weibull = distribution == "weibull"

    n = len(time)
    n_events = int(np.sum(event))
    if n_events == 0:
        raise InsufficientDataError(
            f"{distribution} model needs at least one event, got 0"
        )
    if weibull and np.any(time <= 0):
        raise InvalidInputError(
            f"Weibull model needs strictly positive times, got "
            f"{int(np.sum(time <= 0))} time(s) equal to 0"
        )
    total_time = float(np.sum(time))
    if total_time <= 0:
        raise InvalidInputError("total follow-up time must be > 0")

    if X is None:
        X = np.empty((n, 0), dtype=np.float64)
    p = X.shape[1]
    if covariate_names is None:
        covariate_names = tuple(f"x{i}" for i in range(p))

    x_mean = X.mean(axis=0)
    Xc = X - x_mean
    log_t = np.log(time) if weibull else None

    def cumulative_hazard(theta):
        eta = theta[0] + Xc @ theta[1:1 + p]
        if weibull:
            k = np.exp(theta[-1])
            u = np.exp(np.minimum(eta + k * log_t, _MAX_EXP))
        else:
            k = 1.0
            u = np.exp(np.minimum(eta, _MAX_EXP)) * time
        return eta, k, u

    def objective(theta):
        eta, k, u = cumulative_hazard(theta)
        loglik = np.sum(event * eta) - np.sum(u)
        if weibull:
            loglik += np.sum(event * (theta[-1] + (k - 1.0) * log_t))
        return -loglik / n

    def gradient(theta):
        eta, k, u = cumulative_hazard(theta)
        resid = event - u
        parts = [np.array([np.sum(resid)]), Xc.T @ resid]
        if weibull:
            klog = k * log_t
            parts.append(np.array([np.sum(event * (1.0 + klog) - u * klog)]))
        return -np.concatenate(parts) / n

    theta0 = np.zeros(1 + p + (1 if weibull else 0), dtype=np.float64)
    theta0[0] = np.log(n_events / total_time)

    opt_result = minimize(
        objective,
        theta0,
        jac=gradient,
        method='BFGS',
        options={'maxiter': max_iter, 'gtol': tol, 'disp': False},
    )

    grad_norm = float(np.max(np.abs(gradient(opt_result.x))))
    message = str(getattr(opt_result, 'message', ''))
    n_iter = int(getattr(opt_result, 'nit', 0))

    if not np.all(np.isfinite(opt_result.x)) or (
        not opt_result.success and grad_norm > PARAMETRIC_ACCEPT_GRADIENT
    ):
        raise ConvergenceError(
            f"{distribution} likelihood optimization did not converge: "
            f"{message} (max|gradient| = {grad_norm:.3g})",
            iterations=n_iter,
            final_change=grad_norm,
            reason=message,
            threshold=tol,
        )

    theta = opt_result.x
    beta = theta[1:1 + p].copy()
    intercept = float(theta[0] - x_mean @ beta)
    shape = float(np.exp(theta[-1])) if weibull else 1.0

    return ParametricParams(
        distribution=distribution,
        intercept=intercept,
        coefficients=beta,
        shape=shape,
        loglik=float(-opt_result.fun * n),
        n_observations=n,
        n_events=n_events,
        n_iter=n_iter,
        converged=bool(opt_result.success),
        gradient_norm=grad_norm,
        message=message,
        covariate_names=tuple(covariate_names),
    )


def parametric_survival(
    params: ParametricParams,
    X: NDArray | None,
    times: NDArray,
    n: int,
) -> NDArray:
    """(n, m) survival S(t | x) = exp(-exp(a + x @ β) t^k)."""
    eta = np.full(n, params.intercept, dtype=np.float64)
    if X is not None and len(params.coefficients) > 0:
        eta = eta + X @ params.coefficients
    return np.exp(-np.outer(np.exp(eta), np.power(times, params.shape)))
