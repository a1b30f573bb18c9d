"""
Survival models behind one fit/predict interface.

Every model turns ``(formula, data)`` into a FittedModel and a FittedModel
plus new covariate rows into raw survival predictions of shape
(n_subjects, n_times). Range and monotonicity of those raw predictions are
checked by ``predict()``, not here.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Literal, Protocol, runtime_checkable

import numpy as np
from numpy.typing import NDArray

from survstats.core.compute.tolerances import (
    COX_GRADIENT_TOL,
    COX_MAX_ITER,
    PARAMETRIC_GRADIENT_TOL,
    PARAMETRIC_MAX_ITER,
)
from survstats.core.exceptions import InvalidInputError
from survstats.prediction._parametric import parametric_fit, parametric_survival
from survstats.survival._formula import (
    SurvivalFormula,
    parse_formula,
    table_length,
)
from survstats.survival.design import SurvivalDesign
from survstats.survival.solvers import coxph


@dataclass(frozen=True)
class FittedModel:
    """A model fitted to training data.

    Attributes
    ----------
    model : SurvivalModel
        The model that produced this fit; ``predict()`` dispatches to it.
    handle : Any
        Model-specific fitted state (a CoxSolution, ParametricParams or
        whatever an external fit function returned).
    formula : SurvivalFormula
        Formula with covariates resolved against the training data.
    name : str
        Label used in prediction matrices and evaluation reports.
    """

    model: Any
    handle: Any
    formula: SurvivalFormula
    name: str


@runtime_checkable
class SurvivalModel(Protocol):
    """Anything that can be fitted to a table and predict survival."""

    name: str

    def fit(self, formula, data) -> FittedModel:
        ...

    def predict(self, fitted: FittedModel, new_data, times) -> NDArray:
        ...


def _covariates_for(fitted: FittedModel, new_data) -> tuple[NDArray | None, int]:
    """Covariate rows of ``new_data`` in training column order."""
    n = table_length(new_data)
    X = fitted.formula.covariate_matrix(new_data)
    if X is not None and X.shape[0] != n:
        raise InvalidInputError(
            f"new_data columns have inconsistent lengths ({X.shape[0]} vs {n})"
        )
    return X, n


@dataclass(frozen=True)
class CoxPHModel:
    """Cox model with Breslow baseline: S(t | x) = exp(-H0(t) exp(x @ β))."""

    ties: Literal["breslow", "efron"] = "breslow"
    tol: float = COX_GRADIENT_TOL
    max_iter: int = COX_MAX_ITER
    name: str = "coxph"

    def fit(self, formula, data) -> FittedModel:
        design = SurvivalDesign.from_table(data, formula)
        solution = coxph(
            design, ties=self.ties, tol=self.tol, max_iter=self.max_iter
        )
        return FittedModel(
            model=self,
            handle=solution,
            formula=design.formula,
            name=self.name,
        )

    def predict(self, fitted: FittedModel, new_data, times) -> NDArray:
        solution = fitted.handle
        X, _ = _covariates_for(fitted, new_data)
        if X is None:
            raise InvalidInputError("Cox predictions need covariate columns")
        risk = np.exp(solution.linear_predictor(X))
        H0 = solution.baseline_hazard_at(np.asarray(times, dtype=np.float64))
        return np.exp(-np.outer(risk, H0))


@dataclass(frozen=True)
class _ParametricModel:
    tol: float = PARAMETRIC_GRADIENT_TOL
    max_iter: int = PARAMETRIC_MAX_ITER

    distribution = ""

    def fit(self, formula, data) -> FittedModel:
        design = SurvivalDesign.from_table(data, formula)
        params = parametric_fit(
            design.time, design.event, design.X,
            distribution=self.distribution,
            tol=self.tol,
            max_iter=self.max_iter,
            covariate_names=design.covariate_names,
        )
        return FittedModel(
            model=self,
            handle=params,
            formula=design.formula,
            name=self.name,
        )

    def predict(self, fitted: FittedModel, new_data, times) -> NDArray:
        X, n = _covariates_for(fitted, new_data)
        return parametric_survival(
            fitted.handle, X, np.asarray(times, dtype=np.float64), n
        )


@dataclass(frozen=True)
class ExponentialModel(_ParametricModel):
    """Exponential PH regression: H(t | x) = exp(a + x @ β) t."""

    name: str = "exponential"

    distribution = "exponential"


@dataclass(frozen=True)
class WeibullModel(_ParametricModel):
    """Weibull PH regression: H(t | x) = exp(a + x @ β) t^k."""

    name: str = "weibull"

    distribution = "weibull"


@dataclass(frozen=True)
class ExternalModel:
    """Adapter for a model implemented elsewhere (e.g. a survival forest).

    ``fit_fn(formula, data)`` returns any fitted object;
    ``predict_fn(handle, new_data, times)`` returns an array of shape
    (n_subjects, n_times).
    """

    fit_fn: Callable[[SurvivalFormula, Any], Any]
    predict_fn: Callable[[Any, Any, NDArray], Any]
    name: str = "external"

    def fit(self, formula, data) -> FittedModel:
        parsed = parse_formula(formula).resolve(data)
        handle = self.fit_fn(parsed, data)
        return FittedModel(
            model=self, handle=handle, formula=parsed, name=self.name
        )

    def predict(self, fitted: FittedModel, new_data, times) -> NDArray:
        raw = self.predict_fn(
            fitted.handle, new_data, np.asarray(times, dtype=np.float64)
        )
        return np.asarray(raw, dtype=np.float64)
