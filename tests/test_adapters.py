"""Tests for model adapters against real fitting libraries."""

import numpy as np
import pandas as pd
import pytest
from sklearn.linear_model import LinearRegression, Ridge

from core import FittedModel, Link, ModelAdapterError, TermKind, UnsupportedTermKind
from parsing import (
    encode_dummies,
    from_coefficients,
    infer_factors,
    list_adapters,
    parse,
    to_fitted_model,
)
from scoring import predict_frame
from validation import validate


class TestFactorHelpers:
    """Test factor inference and dummy encoding."""

    def test_infer_factors(self):
        """Test object columns become sorted factors and bools stay continuous."""
        df = pd.DataFrame({
            "x": [1.0, 2.0, 3.0],
            "season": ["Winter", "Fall", "Winter"],
            "flag": [True, False, True],
        })

        factors = infer_factors(df)

        assert factors == {"season": ["Fall", "Winter"]}

    def test_bool_column_passes_through_encoding(self):
        """Test bool columns are left for the model to read as 0/1."""
        df = pd.DataFrame({"flag": [True, False], "season": ["Spring", "Fall"]})

        encoded = encode_dummies(df)

        assert list(encoded.columns) == ["flag", "season_Spring"]

    def test_infer_factors_unknown_column(self):
        """Test asking for a missing column fails."""
        with pytest.raises(ModelAdapterError):
            infer_factors(pd.DataFrame({"x": [1]}), columns=["season"])

    def test_encode_dummies_drops_first_level(self):
        """Test the first sorted level is the reference."""
        df = pd.DataFrame({"x": [1.0, 2.0], "season": ["Spring", "Fall"]})

        encoded = encode_dummies(df, {"season": ["Fall", "Spring", "Winter"]})

        assert list(encoded.columns) == ["x", "season_Spring", "season_Winter"]
        assert encoded["season_Spring"].tolist() == [1.0, 0.0]
        assert encoded["season_Winter"].tolist() == [0.0, 0.0]


class TestRegistry:
    """Test adapter dispatch."""

    def test_builtin_adapters(self):
        """Test the built-in adapters are registered in lookup order."""
        assert list_adapters()[:3] == ["statsmodels", "sklearn", "coefficients"]

    def test_fitted_model_passes_through(self, flights_fitted):
        """Test an existing FittedModel is returned unchanged."""
        assert to_fitted_model(flights_fitted) is flights_fitted

    def test_unknown_object(self):
        """Test an unrecognised object raises ModelAdapterError."""
        with pytest.raises(ModelAdapterError) as exc_info:
            to_fitted_model(42)

        assert exc_info.value.code == "MODEL_ADAPTER_ERROR"

    def test_series_of_coefficients(self):
        """Test a pandas Series is read like a mapping."""
        fitted = to_fitted_model(pd.Series({"Intercept": 1.0, "x": 2.0}))

        assert fitted.intercept == 1.0
        assert fitted.coefficients == {"x": 2.0}
        assert fitted.source == "coefficients"


class TestSklearnAdapter:
    """Test scikit-learn estimators."""

    def test_linear_regression_roundtrip(self, flights_training):
        """Test a get_dummies fit parses into levels and validates."""
        raw = flights_training[["depdelay", "season"]]
        X = encode_dummies(raw)
        model = LinearRegression().fit(X, flights_training["arrdelay"])

        fitted = to_fitted_model(model, training_frame=raw, response="arrdelay")
        parsed = parse(fitted)

        assert isinstance(fitted, FittedModel)
        assert fitted.source == "sklearn"
        assert parsed.reference_levels == {"season": "Fall"}
        assert parsed.terms["season_Spring"].kind is TermKind.CATEGORICAL_LEVEL
        assert parsed.terms["depdelay"].kind is TermKind.CONTINUOUS
        assert parsed.terms["depdelay"].coefficient == pytest.approx(0.9, abs=0.05)

        report = validate(fitted, raw, tolerance=1e-8)
        assert report.fail_count == 0
        assert report.pass_count == len(raw)

    def test_local_matches_sklearn_predict(self, flights_training):
        """Test local scores equal estimator.predict on encoded rows."""
        raw = flights_training[["depdelay", "season"]]
        X = encode_dummies(raw)
        model = Ridge(alpha=1.0).fit(X, flights_training["arrdelay"])

        parsed = parse(model, training_frame=raw)

        np.testing.assert_allclose(predict_frame(parsed, raw), model.predict(X), rtol=1e-10)

    def test_numpy_fit_needs_feature_names(self):
        """Test arrays without names need explicit feature_names."""
        X = np.array([[1.0, 2.0], [2.0, 1.0], [3.0, 5.0], [4.0, 3.0]])
        y = X @ np.array([2.0, -1.0]) + 3.0
        model = LinearRegression().fit(X, y)

        with pytest.raises(ModelAdapterError):
            to_fitted_model(model)

        parsed = parse(model, feature_names=["a", "b"])
        assert parsed.intercept == pytest.approx(3.0)
        assert parsed.terms["a"].coefficient == pytest.approx(2.0)
        assert parsed.terms["b"].coefficient == pytest.approx(-1.0)

    def test_unfitted_estimator(self):
        """Test an unfitted estimator is rejected."""
        with pytest.raises(ModelAdapterError):
            to_fitted_model(LinearRegression())

    def test_feature_name_count_mismatch(self):
        """Test wrong number of feature names is rejected."""
        X = np.array([[1.0], [2.0], [3.0]])
        model = LinearRegression().fit(X, [1.0, 2.0, 3.0])

        with pytest.raises(ModelAdapterError):
            to_fitted_model(model, feature_names=["a", "b"])


class TestStatsmodelsAdapter:
    """Test statsmodels results objects."""

    def test_formula_ols(self, flights_training):
        """Test treatment-coded formula fits parse and validate."""
        smf = pytest.importorskip("statsmodels.formula.api")
        results = smf.ols("arrdelay ~ depdelay + season", data=flights_training).fit()

        fitted = to_fitted_model(results)
        parsed = parse(fitted)

        assert fitted.source == "statsmodels"
        assert parsed.response == "arrdelay"
        assert parsed.intercept == pytest.approx(float(results.params["Intercept"]))
        assert parsed.terms["season[T.Spring]"].variable == "season"
        assert parsed.terms["season[T.Spring]"].level == "Spring"
        assert parsed.reference_levels == {"season": "Fall"}

        report = validate(results, flights_training, tolerance=1e-8)
        assert report.passed

    def test_formula_interaction_rejected(self, flights_training):
        """Test interaction terms from a formula are rejected."""
        smf = pytest.importorskip("statsmodels.formula.api")
        results = smf.ols("arrdelay ~ depdelay * season", data=flights_training).fit()

        with pytest.raises(UnsupportedTermKind):
            parse(results)

    def test_factor_by_factor_interaction_rejected(self):
        """Test a pure two-factor interaction is rejected."""
        smf = pytest.importorskip("statsmodels.formula.api")
        rng = np.random.default_rng(5)
        df = pd.DataFrame({
            "a": rng.choice(["x", "y"], 80),
            "b": rng.choice(["p", "q"], 80),
            "y": rng.normal(size=80),
        })
        results = smf.ols("y ~ a:b", data=df).fit()

        with pytest.raises(UnsupportedTermKind):
            parse(results)

    def test_array_ols_with_constant(self, flights_training):
        """Test the array API with sm.add_constant."""
        sm = pytest.importorskip("statsmodels.api")
        df = flights_training.assign(distance=np.linspace(100, 900, len(flights_training)))
        X = sm.add_constant(df[["depdelay", "distance"]])
        results = sm.OLS(df["arrdelay"], X).fit()

        parsed = parse(results)

        assert list(parsed.terms) == ["depdelay", "distance"]
        assert parsed.intercept == pytest.approx(float(results.params["const"]))
        assert validate(results, df[["depdelay", "distance"]], tolerance=1e-8).passed

    def test_glm_logit(self, flights_training):
        """Test a binomial GLM keeps its logit link."""
        smf = pytest.importorskip("statsmodels.formula.api")
        sm = pytest.importorskip("statsmodels.api")
        rng = np.random.default_rng(3)
        df = flights_training.copy()
        p = 1.0 / (1.0 + np.exp(-(df["depdelay"] - 45.0) / 15.0))
        df["late"] = (rng.random(len(df)) < p).astype(int)

        results = smf.glm("late ~ depdelay + season", data=df, family=sm.families.Binomial()).fit()
        parsed = parse(results)

        assert parsed.link is Link.LOGIT
        assert validate(results, df, tolerance=1e-8).passed

    def test_glm_poisson_log(self):
        """Test a Poisson GLM keeps its log link."""
        smf = pytest.importorskip("statsmodels.formula.api")
        sm = pytest.importorskip("statsmodels.api")
        rng = np.random.default_rng(11)
        df = pd.DataFrame({"x": rng.uniform(0, 2, 200)})
        df["count"] = rng.poisson(np.exp(0.3 + 0.8 * df["x"]))

        results = smf.glm("count ~ x", data=df, family=sm.families.Poisson()).fit()
        parsed = parse(results)

        assert parsed.link is Link.LOG
        assert validate(results, df, tolerance=1e-8).passed


class TestFromCoefficients:
    """Test plain mappings."""

    def test_explicit_intercept_keeps_all_names(self):
        """Test an explicit intercept leaves every mapping entry as a term."""
        fitted = from_coefficients({"x": 1.0, "y": 2.0}, intercept=0.25)

        assert fitted.intercept == 0.25
        assert fitted.coefficients == {"x": 1.0, "y": 2.0}

    def test_no_intercept(self):
        """Test a mapping without intercept gets zero."""
        assert from_coefficients({"x": 1.0}).intercept == 0.0

    def test_link_from_string(self):
        """Test link names are coerced to Link."""
        assert from_coefficients({"x": 1.0}, link="logit").link is Link.LOGIT
