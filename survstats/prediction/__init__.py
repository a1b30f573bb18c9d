"""
Survival prediction.

Public API:
    CoxPHModel / ExponentialModel / WeibullModel / ExternalModel
    fit_model(model, formula, data) -> FittedModel
    predict(fitted, new_data, times) -> PredictionMatrix
"""

from survstats.prediction.matrix import PredictionMatrix
from survstats.prediction.models import (
    CoxPHModel,
    ExponentialModel,
    ExternalModel,
    FittedModel,
    SurvivalModel,
    WeibullModel,
)
from survstats.prediction.solvers import check_times, fit_model, predict

__all__ = [
    "PredictionMatrix",
    "SurvivalModel",
    "FittedModel",
    "CoxPHModel",
    "ExponentialModel",
    "WeibullModel",
    "ExternalModel",
    "fit_model",
    "predict",
    "check_times",
]
