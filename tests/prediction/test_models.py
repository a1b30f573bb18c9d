"""
Tests for the fit/predict model adapters.

Intercept-only exponential MLE: rate = d / Σ t, so the fitted intercept
(log rate) is log(d / Σ t) exactly.

ph_data is simulated from H(t | x) = 0.1 t^1.5 exp(0.7 x1 - 0.5 x2), so a
Weibull PH fit should find intercept log(0.1), shape 1.5 and the same
coefficients as the Cox model.
"""

import numpy as np
import pytest
from numpy.testing import assert_allclose

from survstats.core.exceptions import (
    InsufficientDataError,
    InvalidInputError,
)
from survstats.prediction import (
    CoxPHModel,
    ExponentialModel,
    ExternalModel,
    FittedModel,
    SurvivalModel,
    WeibullModel,
    fit_model,
)


FORMULA = "Surv(time, event) ~ x1 + x2"

SMALL = {
    "time": np.array([2.0, 3.0, 5.0, 7.0, 11.0, 13.0]),
    "event": np.array([1, 0, 1, 1, 0, 1]),
    "x": np.array([0.2, -0.4, 1.1, 0.0, -1.3, 0.6]),
}


class TestProtocol:

    @pytest.mark.parametrize("model", [
        CoxPHModel(),
        ExponentialModel(),
        WeibullModel(),
        ExternalModel(fit_fn=lambda f, d: None, predict_fn=lambda h, d, t: None),
    ])
    def test_models_satisfy_protocol(self, model):
        assert isinstance(model, SurvivalModel)

    def test_default_names(self):
        assert CoxPHModel().name == "coxph"
        assert ExponentialModel().name == "exponential"
        assert WeibullModel().name == "weibull"
        assert WeibullModel(name="wb2").name == "wb2"

    def test_fit_model_rejects_non_model(self):
        with pytest.raises(InvalidInputError):
            fit_model(object(), FORMULA, SMALL)


class TestCoxPHModel:

    def test_fit_returns_handle(self, ph_data):
        fitted = fit_model(CoxPHModel(), FORMULA, ph_data)
        assert isinstance(fitted, FittedModel)
        assert fitted.name == "coxph"
        assert fitted.handle.covariate_names == ("x1", "x2")

    def test_predict_formula(self, ph_data):
        model = CoxPHModel()
        fitted = model.fit(FORMULA, ph_data)
        new = {"x1": np.array([0.0, 1.0]), "x2": np.array([0.0, 1.0])}
        times = np.array([1.0, 3.0, 6.0])
        raw = model.predict(fitted, new, times)
        assert raw.shape == (2, 3)

        sol = fitted.handle
        H0 = sol.baseline_hazard_at(times)
        lp = sol.linear_predictor(np.array([[0.0, 0.0], [1.0, 1.0]]))
        assert_allclose(raw, np.exp(-np.outer(np.exp(lp), H0)))

    def test_efron_option(self, ph_data):
        fitted = CoxPHModel(ties="efron").fit(FORMULA, ph_data)
        assert fitted.handle.ties == "efron"

    def test_intercept_only_rejected(self, ph_data):
        with pytest.raises(InvalidInputError):
            CoxPHModel().fit("Surv(time, event) ~ 1", ph_data)


class TestExponentialModel:

    def test_intercept_only_closed_form(self):
        fitted = ExponentialModel().fit("Surv(time, event) ~ 1", SMALL)
        params = fitted.handle
        d = SMALL["event"].sum()
        assert params.intercept == pytest.approx(np.log(d / SMALL["time"].sum()),
                                                 abs=1e-6)
        assert params.shape == 1.0
        assert params.n_events == 4
        assert len(params.coefficients) == 0

    def test_intercept_only_loglik(self):
        """ℓ = d log(rate) - rate Σ t = d (log(d / Σ t) - 1)."""
        params = ExponentialModel().fit("Surv(time, event) ~ 1", SMALL).handle
        d = SMALL["event"].sum()
        rate = d / SMALL["time"].sum()
        assert params.loglik == pytest.approx(d * (np.log(rate) - 1.0), rel=1e-8)

    def test_predict_constant_hazard(self):
        model = ExponentialModel()
        fitted = model.fit("Surv(time, event) ~ 1", SMALL)
        rate = np.exp(fitted.handle.intercept)
        raw = model.predict(fitted, {"x": np.zeros(3)}, np.array([0.0, 1.0, 4.0]))
        assert raw.shape == (3, 3)
        assert_allclose(raw[0], np.exp(-rate * np.array([0.0, 1.0, 4.0])))
        assert_allclose(raw[0], raw[2])

    def test_covariate_effect(self, rng):
        n = 3000
        x = rng.binomial(1, 0.5, n).astype(np.float64)
        time = rng.exponential(1.0 / (0.2 * np.exp(0.8 * x)))
        data = {"time": time, "event": np.ones(n), "x": x}
        params = ExponentialModel().fit("Surv(time, event) ~ x", data).handle
        assert params.coefficients[0] == pytest.approx(0.8, abs=0.1)
        assert params.intercept == pytest.approx(np.log(0.2), abs=0.1)
        assert params.covariate_names == ("x",)

    def test_no_events(self):
        data = dict(SMALL, event=np.zeros(6))
        with pytest.raises(InsufficientDataError):
            ExponentialModel().fit("Surv(time, event) ~ x", data)

    def test_zero_time_allowed(self):
        data = dict(SMALL, time=np.array([0.0, 3.0, 5.0, 7.0, 11.0, 13.0]))
        params = ExponentialModel().fit("Surv(time, event) ~ 1", data).handle
        assert np.isfinite(params.intercept)


class TestWeibullModel:

    def test_recovers_simulation(self, ph_data):
        params = WeibullModel().fit(FORMULA, ph_data).handle
        assert params.distribution == "weibull"
        assert params.shape == pytest.approx(1.5, abs=0.1)
        assert params.intercept == pytest.approx(np.log(0.1), abs=0.2)
        assert_allclose(params.coefficients, [0.7, -0.5], atol=0.15)

    def test_agrees_with_cox(self, ph_data):
        weibull = WeibullModel().fit(FORMULA, ph_data).handle
        cox = CoxPHModel().fit(FORMULA, ph_data).handle
        assert_allclose(weibull.coefficients, cox.coefficients, atol=0.05)

    def test_exponential_data_shape_near_one(self, rng):
        time = rng.exponential(2.0, 2000)
        data = {"time": time, "event": np.ones(2000)}
        params = WeibullModel().fit("Surv(time, event) ~ 1", data).handle
        assert params.shape == pytest.approx(1.0, abs=0.06)

    def test_zero_time_rejected(self):
        data = dict(SMALL, time=np.array([0.0, 3.0, 5.0, 7.0, 11.0, 13.0]))
        with pytest.raises(InvalidInputError, match="positive"):
            WeibullModel().fit("Surv(time, event) ~ x", data)

    def test_predict_shape_and_bounds(self, ph_data):
        model = WeibullModel()
        fitted = model.fit(FORMULA, ph_data)
        new = {"x1": np.array([-1.0, 0.0, 2.0]), "x2": np.array([0.0, 1.0, 1.0])}
        raw = model.predict(fitted, new, np.array([0.5, 2.0, 8.0]))
        assert raw.shape == (3, 3)
        assert np.all((raw > 0) & (raw <= 1))
        assert np.all(np.diff(raw, axis=1) <= 0)


class TestExternalModel:

    def test_fit_passes_resolved_formula(self):
        seen = {}

        def fit_fn(formula, data):
            seen["covariates"] = formula.covariates
            return "handle"

        model = ExternalModel(fit_fn=fit_fn, predict_fn=lambda h, d, t: None,
                              name="forest")
        fitted = model.fit("Surv(time, event) ~ .", SMALL)
        assert seen["covariates"] == ("x",)
        assert fitted.handle == "handle"
        assert fitted.name == "forest"

    def test_predict_forwards_times(self):
        def predict_fn(handle, data, times):
            return np.tile(np.exp(-times), (len(data["x"]), 1))

        model = ExternalModel(fit_fn=lambda f, d: None, predict_fn=predict_fn)
        fitted = model.fit("Surv(time, event) ~ x", SMALL)
        raw = model.predict(fitted, SMALL, [0.0, 1.0])
        assert raw.shape == (6, 2)
        assert_allclose(raw[:, 1], np.exp(-1.0))
