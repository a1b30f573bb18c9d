"""
Design class for bootstrap resampling.

BootstrapDesign holds everything the backend needs to draw resamples.
Immutable, validated at construction.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

import numpy as np
from numpy.typing import NDArray

from survstats.core.compute.tolerances import BOOTSTRAP_MIN_REPLICATES
from survstats.core.exceptions import DomainError, InvalidInputError
from survstats.core.validation import check_array
from survstats.montecarlo._ci import tail_index
from survstats.survival.design import SurvivalDesign


@dataclass(frozen=True)
class BootstrapDesign:
    """
    Frozen design for nonparametric bootstrap resampling.

    Attributes:
        sample: Array of shape (n,) or (n, p) whose rows are resampled, or a
            SurvivalDesign whose subjects are resampled.
        statistic: fn(resample) -> float.
        B: Number of bootstrap replicates.
        alpha: Per-tail level of the percentile interval.
        seed: int, None (OS entropy) or a numpy Generator.
    """
    sample: NDArray[np.floating[Any]] | SurvivalDesign
    statistic: Callable[[Any], float]
    B: int
    alpha: float
    seed: Any

    @classmethod
    def for_bootstrap(
        cls,
        sample,
        statistic: Callable[[Any], float],
        B: int = 1000,
        alpha: float = 0.025,
        *,
        seed,
    ) -> BootstrapDesign:
        """
        Create a bootstrap design with validation.

        Raises:
            InvalidInputError: If the sample is empty or not 1D/2D, or the
                statistic is not callable.
            DomainError: If alpha is outside (0, 0.5), B is below the
                minimum, or B * alpha leaves no replicate in a tail.
        """
        if not callable(statistic):
            raise InvalidInputError(
                f"statistic must be callable, got {type(statistic).__name__}"
            )

        if isinstance(sample, SurvivalDesign):
            data = sample
        else:
            data = check_array(sample, "sample")
            if data.ndim not in (1, 2):
                raise InvalidInputError(
                    f"sample must be 1D or 2D, got {data.ndim}D"
                )
            if data.shape[0] < 1:
                raise InvalidInputError(
                    "sample must have at least 1 observation"
                )

        if isinstance(B, bool) or int(B) != B:
            raise DomainError(f"B must be an integer, got {B!r}")
        B = int(B)
        if B < BOOTSTRAP_MIN_REPLICATES:
            raise DomainError(
                f"B must be >= {BOOTSTRAP_MIN_REPLICATES}, got {B}"
            )

        alpha = float(alpha)
        if not 0 < alpha < 0.5:
            raise DomainError(f"alpha must be in (0, 0.5), got {alpha}")
        if tail_index(B, alpha) < 1:
            raise DomainError(
                f"B * alpha = {B * alpha:.3g} < 1: no replicate falls in the "
                f"lower tail; increase B or alpha"
            )

        return cls(
            sample=data,
            statistic=statistic,
            B=B,
            alpha=alpha,
            seed=seed,
        )

    @property
    def n(self) -> int:
        """Number of resampling units (rows or subjects)."""
        if isinstance(self.sample, SurvivalDesign):
            return self.sample.n
        return self.sample.shape[0]

    def resample(self, indices: NDArray) -> Any:
        """The sample restricted to ``indices`` (repeats allowed)."""
        if isinstance(self.sample, SurvivalDesign):
            return self.sample.subset(indices)
        return self.sample[indices]
