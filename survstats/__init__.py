"""
survstats: survival analysis for Python.

Estimation, regression and evaluation for right-censored time-to-event
data, built on numpy and scipy.

Submodules:
    survival: Risk sets, Kaplan-Meier / Nelson-Aalen, log-rank, RMST, Cox PH
    prediction: Survival-probability matrices from fitted models
    metrics: Concordance index, IPCW Brier score, batch evaluation
    montecarlo: Bootstrap percentile confidence intervals
"""

__version__ = "0.1.0"

from survstats import survival
from survstats import prediction
from survstats import metrics
from survstats import montecarlo

__all__ = [
    "__version__",
    "survival",
    "prediction",
    "metrics",
    "montecarlo",
]
