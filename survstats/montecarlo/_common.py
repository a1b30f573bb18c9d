"""
Common data structures for bootstrap results.

BootParams is the parameter payload wrapped by Result[P] and exposed
through BootstrapSolution.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray


@dataclass(frozen=True)
class BootParams:
    """
    Parameter payload for bootstrap results.

    - t0: statistic on the original sample
    - t: the B bootstrap replicates, in draw order
    - bias: mean(t) - t0
    - se: sd(t)
    - low, high: percentile interval at per-tail level alpha
    """
    t0: float
    t: NDArray[np.floating[Any]]                # shape (B,)
    B: int
    alpha: float
    bias: float
    se: float
    low: float
    high: float
