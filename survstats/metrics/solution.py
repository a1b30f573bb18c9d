"""
Solution wrappers for prediction-quality metrics.
"""

from __future__ import annotations

import numpy as np

from survstats.core.result import Result
from survstats.metrics._common import (
    BrierParams,
    ConcordanceParams,
    EvaluationParams,
    MetricRecord,
)
from survstats.survival._km import step_lookup


class ConcordanceSolution:
    """Concordance index with its pair counts."""

    __slots__ = ('_result',)

    def __init__(self, _result: Result[ConcordanceParams]) -> None:
        self._result = _result

    @property
    def params(self) -> ConcordanceParams:
        return self._result.params

    @property
    def c_index(self) -> float:
        return self._result.params.c_index

    @property
    def concordant(self) -> int:
        return self._result.params.concordant

    @property
    def discordant(self) -> int:
        return self._result.params.discordant

    @property
    def tied(self) -> int:
        return self._result.params.tied

    @property
    def comparable(self) -> int:
        return self._result.params.comparable

    @property
    def model_name(self) -> str:
        return self._result.info.get("model", "model")

    @property
    def timing(self):
        return self._result.timing

    def __float__(self) -> float:
        return self.c_index

    def summary(self) -> str:
        return "\n".join([
            f"Concordance ({self.model_name})",
            "",
            f"  C = {self.c_index:.6f}",
            f"  comparable pairs = {self.comparable}",
            f"  concordant = {self.concordant}, discordant = "
            f"{self.discordant}, tied predictions = {self.tied}",
        ])

    def __repr__(self) -> str:
        return (
            f"ConcordanceSolution(c_index={self.c_index:.4f}, "
            f"comparable={self.comparable})"
        )


class BrierSolution:
    """IPCW Brier curve, with the integrated score when requested."""

    __slots__ = ('_result',)

    def __init__(self, _result: Result[BrierParams]) -> None:
        self._result = _result

    @property
    def params(self) -> BrierParams:
        return self._result.params

    @property
    def times(self):
        return self._result.params.times

    @property
    def scores(self):
        return self._result.params.scores

    @property
    def ibs(self) -> float | None:
        """Integrated Brier score over [0, tau_max] / tau_max."""
        return self._result.params.ibs

    @property
    def tau_max(self) -> float | None:
        return self._result.params.tau_max

    @property
    def model_name(self) -> str:
        return self._result.info.get("model", "model")

    @property
    def timing(self):
        return self._result.timing

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    def score_at(self, t):
        """Brier score at the last evaluated time <= t."""
        return step_lookup(self.times, self.scores, t, before=np.nan)

    def summary(self) -> str:
        lines = [f"IPCW Brier score ({self.model_name})", ""]
        lines.append(f"  {'time':>10s}  {'brier':>10s}")
        for t, s in zip(self.times, self.scores):
            lines.append(f"  {t:10.4g}  {s:10.6f}")
        if self.ibs is not None:
            lines.append("")
            lines.append(
                f"  Integrated Brier score (0, {self.tau_max:.4g}] = "
                f"{self.ibs:.6f}"
            )
        return "\n".join(lines)

    def __repr__(self) -> str:
        if self.ibs is not None:
            return (
                f"BrierSolution(n_times={len(self.times)}, ibs={self.ibs:.4f})"
            )
        return f"BrierSolution(n_times={len(self.times)})"


class EvaluationSolution:
    """Metric records of a batch evaluation, successes and failures."""

    __slots__ = ('_result',)

    def __init__(self, _result: Result[EvaluationParams]) -> None:
        self._result = _result

    @property
    def params(self) -> EvaluationParams:
        return self._result.params

    @property
    def records(self) -> tuple[MetricRecord, ...]:
        return self._result.params.records

    @property
    def model_names(self) -> tuple[str, ...]:
        return self._result.params.model_names

    @property
    def timing(self):
        return self._result.timing

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    def values(self) -> dict[str, dict]:
        """Successful values as ``{model: {metric: value}}``.

        Brier scores are nested one level deeper, keyed by time:
        ``{model: {"brier": {t: value}, "concordance": c, "ibs": v}}``.
        """
        out: dict[str, dict] = {name: {} for name in self.model_names}
        for record in self.records:
            if not record.ok:
                continue
            if record.metric == "brier":
                out[record.model].setdefault("brier", {})[record.time] = (
                    record.value
                )
            else:
                out[record.model][record.metric] = record.value
        return out

    def failures(self) -> list[MetricRecord]:
        """Records whose computation raised."""
        return [r for r in self.records if not r.ok]

    def summary(self) -> str:
        lines = ["Survival model evaluation", ""]
        lines.append(
            f"  {'model':>12s}  {'metric':>12s}  {'time':>10s}  "
            f"{'value':>10s}"
        )
        for r in self.records:
            time = "" if r.time is None else f"{r.time:10.4g}"
            if r.ok:
                value = f"{r.value:10.6f}"
            else:
                value = f"{type(r.error).__name__}"
            lines.append(
                f"  {r.model:>12s}  {r.metric:>12s}  {time:>10s}  {value:>10s}"
            )
        n_failed = len(self.failures())
        if n_failed:
            lines.append("")
            lines.append(f"  {n_failed} metric(s) could not be computed")
        return "\n".join(lines)

    def __repr__(self) -> str:
        n_ok = sum(1 for r in self.records if r.ok)
        return (
            f"EvaluationSolution(models={len(self.model_names)}, "
            f"ok={n_ok}, failed={len(self.records) - n_ok})"
        )
