"""
pytest configuration and shared fixtures.
"""

import pytest
import numpy as np

from survstats.survival import SurvivalDesign


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return np.random.default_rng(42)


@pytest.fixture
def toy_cohort():
    """Ten subjects with tied event and censoring times.

    time  = 2  3  3  4  4  6  7  8  10 10
    event = 1  1  0  1  1  0  1  0  0  1
    """
    time = np.array([2, 3, 3, 4, 4, 6, 7, 8, 10, 10], dtype=np.float64)
    event = np.array([1, 1, 0, 1, 1, 0, 1, 0, 0, 1], dtype=np.float64)
    return SurvivalDesign.for_survival(time, event)


@pytest.fixture
def ph_data(rng):
    """Proportional-hazards data with known coefficients.

    Weibull baseline H0(t) = 0.1 t^1.5, beta = (0.7, -0.5), uniform
    administrative censoring on (0, 15).
    """
    n = 2000
    beta = np.array([0.7, -0.5])
    x1 = rng.standard_normal(n)
    x2 = rng.binomial(1, 0.5, n).astype(np.float64)
    X = np.column_stack([x1, x2])
    u = rng.uniform(size=n)
    # S(t|x) = exp(-0.1 t^1.5 exp(x beta)) inverted at u
    t_event = (-np.log(u) / (0.1 * np.exp(X @ beta))) ** (1.0 / 1.5)
    t_cens = rng.uniform(0.0, 15.0, n)
    time = np.minimum(t_event, t_cens)
    event = (t_event <= t_cens).astype(np.float64)
    return {"time": time, "event": event, "x1": x1, "x2": x2}
