"""
Parameter payloads for prediction-quality metrics.
"""

from __future__ import annotations

from dataclasses import dataclass

from numpy.typing import NDArray


@dataclass(frozen=True)
class ConcordanceParams:
    """Harrell-type concordance counts.

    ``c_index = (concordant + tied / 2) / comparable``.
    """

    c_index: float
    concordant: int
    discordant: int
    tied: int                    # comparable pairs with equal predictions
    comparable: int
    n_subjects: int


@dataclass(frozen=True)
class BrierParams:
    """IPCW Brier scores on a time grid, optionally integrated."""

    times: NDArray               # (k,) evaluation times
    scores: NDArray              # (k,) Brier score at each time
    ibs: float | None            # integrated score / tau_max
    tau_max: float | None
    n_subjects: int


@dataclass(frozen=True)
class MetricRecord:
    """One metric value (or failure) for one model.

    ``time`` is None for metrics without a time point (concordance) and
    holds ``tau_max`` for the integrated Brier score. Exactly one of
    ``value`` and ``error`` is set.
    """

    model: str
    metric: str
    time: float | None
    value: float | None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class EvaluationParams:
    """Every record of a batch evaluation, in evaluation order."""

    records: tuple[MetricRecord, ...]
    model_names: tuple[str, ...]
    times: NDArray
    tau_max: float
