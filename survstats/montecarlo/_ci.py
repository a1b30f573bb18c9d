"""
Bootstrap percentile confidence interval.

With B sorted replicates t_(1) <= ... <= t_(B) and per-tail level alpha,
the interval is

    (t_(floor(B * alpha)), t_(floor(B * (1 - alpha))))

using 1-based order statistics. No interpolation between replicates.
"""

from __future__ import annotations

import math

import numpy as np
from numpy.typing import NDArray

# absorbs representation error in B * alpha (1000 * 0.975 etc.)
_INDEX_EPS = 1e-9


def tail_index(B: int, level: float) -> int:
    """1-based order-statistic index floor(B * level)."""
    return int(math.floor(B * level + _INDEX_EPS))


def percentile_interval(t: NDArray, alpha: float) -> tuple[float, float]:
    """Percentile interval of the replicates ``t`` at per-tail ``alpha``."""
    ordered = np.sort(np.asarray(t, dtype=np.float64))
    B = len(ordered)
    low = ordered[tail_index(B, alpha) - 1]
    high = ordered[tail_index(B, 1.0 - alpha) - 1]
    return float(low), float(high)
