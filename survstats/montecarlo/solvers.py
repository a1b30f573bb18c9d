"""
Public API for bootstrap confidence intervals.

    bootstrap_ci(sample, statistic, B, alpha, seed=...) → BootstrapSolution
"""

from __future__ import annotations

from typing import Any, Callable

from survstats.montecarlo.backends.cpu import CPUBootstrapBackend
from survstats.montecarlo.design import BootstrapDesign
from survstats.montecarlo.solution import BootstrapSolution


def bootstrap_ci(
    sample,
    statistic: Callable[[Any], float],
    B: int = 1000,
    alpha: float = 0.025,
    *,
    seed,
) -> BootstrapSolution:
    """
    Percentile bootstrap confidence interval.

    Draws B resamples of the rows of ``sample`` (or the subjects of a
    SurvivalDesign) with replacement, evaluates ``statistic`` on each and
    reports the order statistics t_(floor(B*alpha)) and
    t_(floor(B*(1-alpha))) of the sorted replicates.

    Args:
        sample: Array (n,) or (n, p), or a SurvivalDesign.
        statistic: fn(resample) -> float.
        B: Number of replicates, at least BOOTSTRAP_MIN_REPLICATES.
        alpha: Per-tail level in (0, 0.5); 0.025 gives a 95% interval.
        seed: int, None for OS entropy, or a numpy Generator. Required:
            there is no global seed.

    Returns:
        BootstrapSolution with t0, t, bias, se, low, high.

    Raises:
        DomainError: For alpha or B out of range.
        UndefinedMetricError: If the statistic is non-finite on the sample
            or on any resample.
    """
    design = BootstrapDesign.for_bootstrap(
        sample, statistic, B, alpha, seed=seed,
    )
    backend = CPUBootstrapBackend()
    result = backend.solve(design)
    return BootstrapSolution(_result=result, _design=design)
