"""
Solution wrapper for bootstrap results.

BootstrapSolution wraps Result[BootParams] and provides accessors and an
R-style summary.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from survstats.core.result import Result
from survstats.montecarlo._common import BootParams

if TYPE_CHECKING:
    from survstats.montecarlo.design import BootstrapDesign


@dataclass
class BootstrapSolution:
    """
    User-facing bootstrap results.

    t0, replicates, bias, SE and the percentile interval (low, high).
    """
    _result: Result[BootParams]
    _design: 'BootstrapDesign'

    @property
    def t0(self) -> float:
        """Statistic on the original sample."""
        return self._result.params.t0

    @property
    def t(self) -> NDArray[np.floating[Any]]:
        """Bootstrap replicates, shape (B,)."""
        return self._result.params.t

    @property
    def B(self) -> int:
        """Number of bootstrap replicates."""
        return self._result.params.B

    @property
    def alpha(self) -> float:
        """Per-tail level of the interval."""
        return self._result.params.alpha

    @property
    def conf_level(self) -> float:
        """Nominal coverage, 1 - 2 * alpha."""
        return 1.0 - 2.0 * self._result.params.alpha

    @property
    def bias(self) -> float:
        """Bootstrap bias estimate: mean(t) - t0."""
        return self._result.params.bias

    @property
    def se(self) -> float:
        """Bootstrap standard error: sd(t)."""
        return self._result.params.se

    @property
    def low(self) -> float:
        return self._result.params.low

    @property
    def high(self) -> float:
        return self._result.params.high

    @property
    def interval(self) -> tuple[float, float]:
        return (self.low, self.high)

    @property
    def seed(self):
        return self._design.seed

    @property
    def info(self) -> dict[str, Any]:
        return self._result.info

    @property
    def timing(self) -> dict[str, float] | None:
        return self._result.timing

    @property
    def backend_name(self) -> str:
        return self._result.backend_name

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    def summary(self) -> str:
        """
        R-style bootstrap summary.

        Produces:
            ORDINARY NONPARAMETRIC BOOTSTRAP

            Bootstrap Statistics :
                   original        bias    std. error
            t1*     5.12345     0.01234       0.56789

            95% percentile CI: (4.01234, 6.23456)
        """
        lines = ["\nORDINARY NONPARAMETRIC BOOTSTRAP\n"]
        lines.append(f"Call: bootstrap_ci(sample, statistic, B={self.B})")
        lines.append("")
        lines.append("Bootstrap Statistics :")
        lines.append(
            f"{'':>8s} {'original':>14s} {'bias':>14s} {'std. error':>14s}"
        )
        lines.append(
            f"{'t1*':>8s} {self.t0:14.5f} {self.bias:14.5f} {self.se:14.5f}"
        )
        lines.append("")
        conf_pct = round(self.conf_level * 100, 2)
        lines.append(
            f"{conf_pct:g}% percentile CI: ({self.low:.5f}, {self.high:.5f})"
        )
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"BootstrapSolution(B={self.B}, t0={self.t0:.5g}, "
            f"interval=({self.low:.5g}, {self.high:.5g}))"
        )
