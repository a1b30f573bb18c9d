"""
CPU backend for the nonparametric bootstrap.

All resamples come from a single generator seeded from the design, so a
given seed reproduces the replicates exactly.
"""

from __future__ import annotations

import numpy as np

from survstats.core.compute.timing import Timer
from survstats.core.exceptions import UndefinedMetricError
from survstats.core.result import Result
from survstats.montecarlo._ci import percentile_interval
from survstats.montecarlo._common import BootParams
from survstats.montecarlo.design import BootstrapDesign


class CPUBootstrapBackend:
    """
    CPU backend for ordinary bootstrap resampling (with replacement).
    """

    @property
    def name(self) -> str:
        return 'cpu_bootstrap'

    def solve(self, design: BootstrapDesign) -> Result[BootParams]:
        """Run the bootstrap and return Result[BootParams]."""
        timer = Timer()
        timer.start()

        statistic = design.statistic
        B = design.B
        n = design.n
        rng = np.random.default_rng(design.seed)

        with timer.section('t0_computation'):
            t0 = _as_scalar(statistic(design.sample), "original sample")

        t = np.empty(B, dtype=np.float64)
        with timer.section('bootstrap_replicates'):
            for b in range(B):
                indices = rng.choice(n, size=n, replace=True)
                t[b] = _as_scalar(
                    statistic(design.resample(indices)), f"replicate {b + 1}"
                )

        with timer.section('summary_statistics'):
            bias = float(np.mean(t) - t0)
            se = float(np.std(t, ddof=1))
            low, high = percentile_interval(t, design.alpha)

        timer.stop()

        warnings_list: list[str] = []
        if se == 0.0:
            warnings_list.append(
                "all bootstrap replicates are equal: degenerate interval"
            )

        params = BootParams(
            t0=t0,
            t=t,
            B=B,
            alpha=design.alpha,
            bias=bias,
            se=se,
            low=low,
            high=high,
        )

        return Result(
            params=params,
            info={
                'sim': 'ordinary',
                'n': n,
                'interval': 'percentile',
            },
            timing=timer.result(),
            backend_name=self.name,
            warnings=tuple(warnings_list),
        )


def _as_scalar(value, where: str) -> float:
    arr = np.asarray(value, dtype=np.float64)
    if arr.size != 1:
        raise UndefinedMetricError(
            f"statistic must return a single number, got shape {arr.shape} "
            f"on the {where}"
        )
    out = float(arr.reshape(()))
    if not np.isfinite(out):
        raise UndefinedMetricError(
            f"statistic returned a non-finite value ({out}) on the {where}"
        )
    return out
