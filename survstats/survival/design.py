"""
SurvivalDesign: immutable container for a cohort of time-to-event records.

Wraps time, event indicator, optional covariates and optional group labels.
Validates inputs at construction time; all downstream code trusts clean data.

The risk-set table is the one primitive shared by Kaplan-Meier,
Nelson-Aalen, the log-rank test and the censoring-distribution estimate.
All records at an identical time are simultaneous: subjects censored at
t_i are counted in the risk set n_i and leave immediately after.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from survstats.core.exceptions import DimensionError, InvalidInputError
from survstats.core.validation import (
    check_2d,
    check_array,
    check_binary,
    check_consistent_length,
    check_finite,
    check_min_samples,
    check_non_negative,
)
from survstats.survival._formula import (
    SurvivalFormula,
    outcome_columns,
    parse_formula,
    table_columns,
)


@dataclass(frozen=True)
class RiskSetTable:
    """Risk-set decomposition at every distinct observed time.

    All arrays have length m (number of distinct times), ordered by time.
    """

    time: NDArray                # (m,) distinct times, increasing
    n_risk: NDArray              # (m,) subjects with time >= t_i
    n_events: NDArray            # (m,) events exactly at t_i
    n_censored: NDArray          # (m,) censorings exactly at t_i

    def __len__(self) -> int:
        return len(self.time)

    @property
    def event_times(self) -> NDArray:
        """Distinct times with at least one event."""
        return self.time[self.n_events > 0]


@dataclass(frozen=True)
class SurvivalDesign:
    """Immutable survival data container.

    Parameters
    ----------
    time : NDArray
        Time to event or censoring. Finite and non-negative.
    event : NDArray
        Event indicator: 1 = event observed, 0 = right-censored.
    X : NDArray or None
        Covariate matrix (n, p). None for KM / log-rank.
    group : NDArray or None
        Group labels (e.g. treatment arm) for group comparisons.
    covariate_names : tuple of str or None
        Column names of X, when built from a table.
    formula : SurvivalFormula or None
        The formula the design was built from, if any.
    """

    time: NDArray
    event: NDArray
    X: NDArray | None
    group: NDArray | None
    covariate_names: tuple[str, ...] | None = None
    formula: SurvivalFormula | None = None

    @classmethod
    def for_survival(
        cls,
        time,
        event,
        X=None,
        *,
        group=None,
        covariate_names=None,
        formula=None,
    ) -> SurvivalDesign:
        """Create and validate survival data.

        Parameters
        ----------
        time : array-like
            Time to event or censoring.
        event : array-like
            Event indicator (0/1 or False/True).
        X : array-like or None
            Optional covariate matrix.
        group : array-like or None
            Optional group labels.
        covariate_names : sequence of str or None
            Optional names for the columns of X.

        Returns
        -------
        SurvivalDesign

        Raises
        ------
        InvalidInputError
            If the cohort is empty, a time is negative or non-finite, or an
            event indicator is not 0/1.
        DimensionError
            If array lengths disagree.
        """
        time = check_array(time, "time").ravel()
        event = check_array(event, "event").ravel()

        check_min_samples(time, 1, "time")
        check_consistent_length(time, event, names=("time", "event"))
        check_finite(time, "time")
        check_non_negative(time, "time")
        check_finite(event, "event")
        check_binary(event, "event")

        n = len(time)

        X_arr = None
        if X is not None:
            X_arr = check_array(X, "X")
            if X_arr.ndim == 1:
                X_arr = X_arr.reshape(-1, 1)
            check_2d(X_arr, "X")
            if X_arr.shape[0] != n:
                raise DimensionError(
                    f"X must have {n} rows to match time, "
                    f"got {X_arr.shape[0]}"
                )
            check_finite(X_arr, "X")

        group_arr = None
        if group is not None:
            group_arr = np.asarray(group).ravel()
            if len(group_arr) != n:
                raise DimensionError(
                    f"group must have {n} elements to match time, "
                    f"got {len(group_arr)}"
                )

        names = None
        if covariate_names is not None:
            names = tuple(str(c) for c in covariate_names)
            if X_arr is None or len(names) != X_arr.shape[1]:
                raise DimensionError(
                    f"covariate_names has {len(names)} entries but X has "
                    f"{0 if X_arr is None else X_arr.shape[1]} columns"
                )

        return cls(
            time=time,
            event=event,
            X=X_arr,
            group=group_arr,
            covariate_names=names,
            formula=formula,
        )

    @classmethod
    def from_table(
        cls,
        data,
        formula: str | SurvivalFormula,
        *,
        group: str | None = None,
    ) -> SurvivalDesign:
        """Build a design from a column table and a survival formula.

        Parameters
        ----------
        data : mapping
            dict of arrays, pandas DataFrame or numpy structured array.
        formula : str
            ``Surv(time, status) ~ x1 + x2``. The right-hand side takes the
            full formulaic grammar (``a:b``, ``. - x``, ``C(arm)``); ``~ .``
            selects all other columns and ``~ 1`` none.
        group : str or None
            Optional column holding group labels.
        """
        parsed = parse_formula(formula)
        exclude: tuple[str, ...] = ()
        group_arr = None
        if group is not None:
            if group not in table_columns(data):
                raise InvalidInputError(f"group column {group!r} not in data")
            exclude = (group,)
            group_arr = np.asarray(data[group]).ravel()
        parsed, X = parsed.bind(data, exclude=exclude)
        time, event = outcome_columns(data, parsed)
        return cls.for_survival(
            time, event, X,
            group=group_arr,
            covariate_names=parsed.covariates if X is not None else None,
            formula=parsed,
        )

    @property
    def n(self) -> int:
        """Number of subjects."""
        return len(self.time)

    @property
    def p(self) -> int | None:
        """Number of covariates (None if no covariates)."""
        return self.X.shape[1] if self.X is not None else None

    @property
    def n_events(self) -> int:
        """Number of observed events."""
        return int(np.sum(self.event))

    @property
    def n_censored(self) -> int:
        """Number of right-censored subjects."""
        return self.n - self.n_events

    def risk_set_table(self) -> RiskSetTable:
        """Distinct times with event, censoring and at-risk counts.

        Returns
        -------
        RiskSetTable
            For each distinct time t_i (ties collapsed, increasing):
            d_i events at t_i, c_i censorings at t_i and n_i subjects
            with time >= t_i.
        """
        return risk_set_table(self.time, self.event)

    def subset(self, indices) -> SurvivalDesign:
        """Design restricted to ``indices`` (repeats allowed)."""
        idx = np.asarray(indices, dtype=np.intp).ravel()
        if len(idx) == 0:
            raise InvalidInputError("subset must select at least one subject")
        return SurvivalDesign(
            time=self.time[idx],
            event=self.event[idx],
            X=self.X[idx] if self.X is not None else None,
            group=self.group[idx] if self.group is not None else None,
            covariate_names=self.covariate_names,
            formula=self.formula,
        )

    def reverse(self) -> SurvivalDesign:
        """Design with the event indicator flipped (censoring as event)."""
        return SurvivalDesign(
            time=self.time,
            event=1.0 - self.event,
            X=self.X,
            group=self.group,
            covariate_names=self.covariate_names,
            formula=self.formula,
        )


def risk_set_table(time: NDArray, event: NDArray) -> RiskSetTable:
    """Risk-set decomposition of clean (time, event) arrays."""
    unique_times, inverse = np.unique(time, return_inverse=True)
    m = len(unique_times)

    n_events = np.bincount(inverse, weights=event, minlength=m)
    n_total = np.bincount(inverse, minlength=m).astype(np.float64)
    n_censored = n_total - n_events

    # n_i = number with time >= t_i: reverse cumulative count
    n_risk = np.cumsum(n_total[::-1])[::-1]

    return RiskSetTable(
        time=unique_times,
        n_risk=n_risk,
        n_events=n_events,
        n_censored=n_censored,
    )
