"""
Bootstrap resampling.

Usage:
    from survstats.montecarlo import bootstrap_ci

    result = bootstrap_ci(x, np.mean, B=1000, alpha=0.025, seed=0)
    result.low, result.high
"""

from survstats.montecarlo.design import BootstrapDesign
from survstats.montecarlo.solution import BootstrapSolution
from survstats.montecarlo.solvers import bootstrap_ci

__all__ = [
    "bootstrap_ci",
    "BootstrapDesign",
    "BootstrapSolution",
]
