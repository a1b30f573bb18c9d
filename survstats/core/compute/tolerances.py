"""
Numerical tolerances and algorithm defaults.

Single place for the constants that govern convergence, post-condition
checks and resampling limits. Solvers take these as keyword defaults so
callers can override them per call; the test suite compares against the
tolerance tiers.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ToleranceTier:
    """Tolerance specification for numerical comparison."""
    rtol: float
    atol: float
    name: str
    description: str


# Closed-form results (product-limit, Nelson-Aalen, log-rank sums)
CPU_FP64 = ToleranceTier(
    rtol=1e-10,
    atol=1e-12,
    name='cpu_fp64',
    description='CPU double precision, closed-form estimators',
)

# Iteratively fitted results (Newton-Raphson, quasi-Newton MLE)
CPU_FP64_ITERATIVE = ToleranceTier(
    rtol=1e-6,
    atol=1e-8,
    name='cpu_fp64_iterative',
    description='CPU double precision, iterative optimizers',
)

# Cox Newton-Raphson: converged when ||score||_2 < COX_GRADIENT_TOL
COX_GRADIENT_TOL = 1e-9
COX_MAX_ITER = 50

# Largest coordinate of a single Newton step; keeps exp(X @ beta) finite
COX_MAX_STEP = 5.0

# Step-halvings tried when a Newton step lowers the partial likelihood
COX_MAX_HALVINGS = 10

# Parametric (exponential / Weibull) likelihood optimizer, on the
# per-subject mean log-likelihood scale
PARAMETRIC_GRADIENT_TOL = 1e-6
PARAMETRIC_MAX_ITER = 500

# BFGS can stop on precision loss next to the optimum; such a stop is
# accepted when max|gradient| is below this
PARAMETRIC_ACCEPT_GRADIENT = 1e-4

# Fewer replicates than this give unstable tail order statistics
BOOTSTRAP_MIN_REPLICATES = 20

# Slack allowed when checking predicted survival for monotonicity/range
MONOTONE_TOL = 1e-10


def select_tolerance(iterative: bool = False) -> ToleranceTier:
    """Select the tolerance tier for closed-form or iterative results."""
    if iterative:
        return CPU_FP64_ITERATIVE
    return CPU_FP64
