"""
PredictionMatrix: predicted survival probabilities on a time grid.

Layout is time-grid x subject: ``survival[k, i]`` is the predicted
probability that subject i is event-free at ``times[k]``. Every column is
non-increasing along the time axis with values in [0, 1]; ``predict()``
enforces this before a matrix is handed out.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from survstats.survival._km import step_lookup


@dataclass(frozen=True)
class PredictionMatrix:
    """Survival probabilities, shape (n_times, n_subjects).

    Attributes
    ----------
    times : NDArray
        (m,) strictly increasing, non-negative query times.
    survival : NDArray
        (m, n) survival probabilities.
    model_name : str
        Name of the model that produced the predictions.
    n_clipped : int
        Entries altered by clipping mode (0 unless ``clip=True`` was used
        and the raw predictions violated range or monotonicity).
    """

    times: NDArray
    survival: NDArray
    model_name: str = "model"
    n_clipped: int = 0

    @property
    def n_times(self) -> int:
        return self.survival.shape[0]

    @property
    def n_subjects(self) -> int:
        return self.survival.shape[1]

    def survival_at(self, t) -> NDArray:
        """(n,) predicted survival at time ``t`` for every subject.

        Right-continuous step lookup on the grid: the value at the last
        grid time <= t, 1.0 before the first grid time.
        """
        return step_lookup(self.times, self.survival, float(t), before=1.0)

    def subject(self, i: int) -> NDArray:
        """(m,) predicted survival curve for subject ``i``."""
        return self.survival[:, i]

    def for_subjects(self, indices) -> PredictionMatrix:
        """Matrix restricted to the given subject columns (repeats allowed)."""
        idx = np.asarray(indices, dtype=np.intp).ravel()
        return PredictionMatrix(
            times=self.times,
            survival=self.survival[:, idx],
            model_name=self.model_name,
            n_clipped=self.n_clipped,
        )

    def __repr__(self) -> str:
        return (
            f"PredictionMatrix(model={self.model_name!r}, "
            f"n_times={self.n_times}, n_subjects={self.n_subjects})"
        )
