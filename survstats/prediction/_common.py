"""
Parameter payloads for fitted prediction models.
"""

from __future__ import annotations

from dataclasses import dataclass

from numpy.typing import NDArray


@dataclass(frozen=True)
class ParametricParams:
    """Proportional-hazards parametric fit.

    Cumulative hazard H(t | x) = exp(intercept + x @ coefficients) * t**shape.
    The exponential model is the special case shape = 1.
    """

    distribution: str            # "exponential" or "weibull"
    intercept: float             # log baseline rate
    coefficients: NDArray        # (p,) log hazard ratios
    shape: float                 # Weibull shape k (1.0 for exponential)
    loglik: float                # maximized log-likelihood
    n_observations: int
    n_events: int
    n_iter: int
    converged: bool              # optimizer reported success
    gradient_norm: float         # max |gradient| of the mean log-likelihood
    message: str                 # optimizer termination message
    covariate_names: tuple[str, ...]
