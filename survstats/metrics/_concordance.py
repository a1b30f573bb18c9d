"""
Concordance index with explicit pair-comparability rules.

A pair (i, j) is comparable when the two records are different subjects,
their observed times differ and the subject with the earlier time had the
event. Pairs with tied times, both censored, or where the earlier time is
a censoring are not comparable. Every predicate below is vectorised and
works on scalars as well as arrays.

For a comparable pair where i failed first, the prediction is
concordant when it ranks i as worse off than j, discordant when it ranks
j as worse, and tied when it cannot tell them apart (counted as 1/2).

Pairs are enumerated row by row: O(n^2) time, O(n) memory.
"""

from __future__ import annotations

from typing import Callable

import numpy as np
from numpy.typing import NDArray

from survstats.core.exceptions import UndefinedMetricError
from survstats.metrics._common import ConcordanceParams


def is_same_subject(i, j):
    """A record is never compared with itself."""
    return np.asarray(i) == np.asarray(j)


def both_censored(event_i, event_j):
    """Neither subject had the event."""
    return (np.asarray(event_i) == 0) & (np.asarray(event_j) == 0)


def tied_times(time_i, time_j):
    """Observed at the same time: the ordering of the failures is unknown."""
    return np.asarray(time_i) == np.asarray(time_j)


def censored_before_event(time_i, event_i, time_j, event_j):
    """The earlier of the two observed times is a censoring."""
    time_i = np.asarray(time_i)
    time_j = np.asarray(time_j)
    return (
        ((time_i < time_j) & (np.asarray(event_i) == 0))
        | ((time_j < time_i) & (np.asarray(event_j) == 0))
    )


def is_comparable(i, time_i, event_i, j, time_j, event_j):
    """Whether the order of failure of subjects i and j is known."""
    return (
        ~is_same_subject(i, j)
        & ~tied_times(time_i, time_j)
        & ~both_censored(event_i, event_j)
        & ~censored_before_event(time_i, event_i, time_j, event_j)
    )


def concordance_counts(
    time: NDArray,
    event: NDArray,
    scores_for: Callable[[int], NDArray],
) -> ConcordanceParams:
    """Count concordant, discordant and tied comparable pairs.

    Parameters
    ----------
    time, event : NDArray
        (n,) observed outcome.
    scores_for : callable
        ``scores_for(i)`` returns the (n,) scores to rank the subjects by
        when subject i is the earlier failure; a lower score means
        predicted to fail sooner (a survival probability at time_i, or a
        negated risk).

    Raises
    ------
    UndefinedMetricError
        If there is no comparable pair.
    """
    n = len(time)
    index = np.arange(n)
    concordant = discordant = tied = 0

    for i in np.flatnonzero(event == 1):
        later = is_comparable(
            i, time[i], event[i], index, time, event
        ) & (time > time[i])
        if not np.any(later):
            continue
        scores = np.asarray(scores_for(i), dtype=np.float64)
        own = scores[i]
        others = scores[later]
        concordant += int(np.sum(own < others))
        discordant += int(np.sum(own > others))
        tied += int(np.sum(own == others))

    comparable = concordant + discordant + tied
    if comparable == 0:
        raise UndefinedMetricError(
            f"concordance is undefined: no comparable pairs among {n} "
            f"subjects ({int(np.sum(event))} events)"
        )

    return ConcordanceParams(
        c_index=(concordant + 0.5 * tied) / comparable,
        concordant=concordant,
        discordant=discordant,
        tied=tied,
        comparable=comparable,
        n_subjects=n,
    )


def concordance_from_risk(time: NDArray, event: NDArray, risk: NDArray) -> float:
    """Harrell's C for risk scores (higher risk = earlier failure)."""
    negated = -np.asarray(risk, dtype=np.float64)
    return concordance_counts(time, event, lambda i: negated).c_index
