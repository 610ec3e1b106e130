"""
Model adapters -- turn fitted estimators into ``FittedModel`` views.

Adapters register themselves by name together with a predicate that
recognises the objects they handle.  ``to_fitted_model`` walks the
registry and hands the object to the first adapter that claims it.

Ships with:
  - ``statsmodels`` -- OLS / WLS / GLM results (formula or array API)
  - ``sklearn``     -- any fitted linear estimator with ``coef_`` / ``intercept_``
  - ``coefficients``-- plain mappings or pandas Series of coefficients

Categorical predictors are expected in treatment (dummy) coding: one
coefficient per non-reference level.  ``encode_dummies`` produces that
coding for scikit-learn fits so the parser can read the names back.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any, Callable

import numpy as np
import pandas as pd
from loguru import logger
from sklearn.base import BaseEstimator
from sklearn.exceptions import NotFittedError
from sklearn.utils.validation import check_is_fitted

from core.contracts import FittedModel, Link
from core.exceptions import ModelAdapterError


INTERCEPT_NAMES = ("(Intercept)", "Intercept", "intercept", "const")

# patsy wraps explicit factors as C(var) or C(var, Treatment(...))
_PATSY_FACTOR = re.compile(r"^C\(\s*([^,()]+?)\s*(?:,.*)?\)$")


# ---------------------------------------------------------------------------
# Registry storage
# ---------------------------------------------------------------------------

Predicate = Callable[[Any], bool]
Builder = Callable[..., FittedModel]

_ADAPTERS: dict[str, tuple[Predicate, Builder]] = {}


def register_adapter(name: str, predicate: Predicate, builder: Builder) -> None:
    """
    Register an adapter under *name*.

    *predicate* decides whether the adapter handles an object and
    *builder* converts it: ``builder(obj, **kwargs) -> FittedModel``.
    """
    _ADAPTERS[name.lower()] = (predicate, builder)
    logger.debug(f"Registered model adapter: {name}")


def list_adapters() -> list[str]:
    """Return the names of all registered adapters, in lookup order."""
    return list(_ADAPTERS)


def to_fitted_model(obj: Any, **kwargs: Any) -> FittedModel:
    """
    Convert a fitted model object into a ``FittedModel``.

    Args:
        obj:      A statsmodels results object, a fitted scikit-learn
                  linear estimator, a coefficient mapping, or an
                  existing ``FittedModel`` (returned unchanged).
        **kwargs: Passed to the adapter (``factors``, ``feature_names``,
                  ``training_frame``, ``response`` ...).

    Raises:
        ModelAdapterError: If no adapter recognises *obj*.
    """
    if isinstance(obj, FittedModel):
        return obj

    for name, (predicate, builder) in _ADAPTERS.items():
        if predicate(obj):
            logger.debug(f"Converting {type(obj).__name__} with adapter '{name}'")
            return builder(obj, **kwargs)

    available = ", ".join(_ADAPTERS) or "(none)"
    raise ModelAdapterError(
        f"Don't know how to read a fitted model from {type(obj).__name__}. "
        f"Available adapters: {available}",
        source=type(obj).__name__,
    )


# ---------------------------------------------------------------------------
# Factor helpers
# ---------------------------------------------------------------------------

def infer_factors(
    frame: pd.DataFrame,
    columns: list[str] | None = None,
) -> dict[str, list[str]]:
    """
    Return ``variable -> sorted levels`` for the categorical columns of *frame*.

    Without *columns*, every object, string or category column is treated
    as categorical.  Bool columns stay continuous 0/1.  Levels are rendered
    as strings and sorted, so the first level is the one dropped as
    reference by ``encode_dummies``.
    """
    if columns is None:
        columns = [
            c for c in frame.columns
            if frame[c].dtype == object
            or isinstance(frame[c].dtype, (pd.CategoricalDtype, pd.StringDtype))
        ]

    factors: dict[str, list[str]] = {}
    for col in columns:
        if col not in frame.columns:
            raise ModelAdapterError(f"Column '{col}' not found in frame", source="infer_factors")
        values = frame[col].dropna().unique()
        factors[col] = sorted({str(v) for v in values})
    return factors


def encode_dummies(
    frame: pd.DataFrame,
    factors: dict[str, list[str]] | None = None,
    drop_first: bool = True,
) -> pd.DataFrame:
    """
    One-hot encode the factor columns of *frame* as ``<variable>_<level>``.

    With ``drop_first=True`` the first (sorted) level of every factor is
    the reference level and gets no column.  Continuous columns pass
    through untouched.
    """
    if factors is None:
        factors = infer_factors(frame)

    out = frame.copy()
    present = [v for v in factors if v in out.columns]
    for var in present:
        out[var] = pd.Categorical(
            out[var].map(lambda v: v if pd.isna(v) else str(v)),
            categories=factors[var],
        )
    return pd.get_dummies(out, columns=present, drop_first=drop_first, dtype=float)


def _factor_name(term: str) -> str:
    """Strip a patsy ``C(...)`` wrapper from a factor name."""
    m = _PATSY_FACTOR.match(term)
    return m.group(1) if m else term


def _split_intercept(
    names: list[str],
    values: list[float],
) -> tuple[dict[str, float], float, str | None]:
    coefficients: dict[str, float] = {}
    intercept = 0.0
    intercept_name = None
    for name, value in zip(names, values):
        if intercept_name is None and name in INTERCEPT_NAMES:
            intercept = float(value)
            intercept_name = name
        else:
            coefficients[str(name)] = float(value)
    return coefficients, intercept, intercept_name


# ---------------------------------------------------------------------------
# Plain coefficient mappings
# ---------------------------------------------------------------------------

def from_coefficients(
    coefficients: Mapping[str, float] | pd.Series,
    intercept: float | None = None,
    factors: dict[str, list[str]] | None = None,
    response: str | None = None,
    link: Link | str = Link.IDENTITY,
    predict_fn: Callable[[Any], Any] | None = None,
) -> FittedModel:
    """
    Build a ``FittedModel`` from ``name -> coefficient`` pairs.

    When *intercept* is None it is taken from a coefficient named
    ``(Intercept)``, ``Intercept``, ``intercept`` or ``const``; a model
    without one has an intercept of zero.
    """
    pairs = list(coefficients.items())
    names = [str(k) for k, _ in pairs]
    values = [float(v) for _, v in pairs]

    if intercept is None:
        coefs, found, intercept_name = _split_intercept(names, values)
        if intercept_name is None:
            logger.debug("No intercept term found; using 0.0")
    else:
        coefs, found = dict(zip(names, values)), float(intercept)

    return FittedModel(
        coefficients=coefs,
        intercept=found,
        factors={k: [str(level) for level in v] for k, v in (factors or {}).items()},
        response=response,
        link=Link(link),
        predict_fn=predict_fn,
        source="coefficients",
    )


def _is_mapping(obj: Any) -> bool:
    return isinstance(obj, (Mapping, pd.Series))


# ---------------------------------------------------------------------------
# scikit-learn
# ---------------------------------------------------------------------------

def from_sklearn(
    estimator: Any,
    feature_names: list[str] | None = None,
    factors: dict[str, list[str]] | None = None,
    training_frame: pd.DataFrame | None = None,
    response: str | None = None,
) -> FittedModel:
    """
    Read a fitted scikit-learn linear estimator.

    Feature names come from *feature_names* or ``feature_names_in_``
    (present when the estimator was fit on a DataFrame).  Factor levels
    come from *factors* or are inferred from the raw *training_frame*.

    The native predictor one-hot encodes raw rows with ``encode_dummies``
    and aligns them to the estimator's columns before calling
    ``estimator.predict``.
    """
    try:
        check_is_fitted(estimator)
    except NotFittedError as exc:
        raise ModelAdapterError(str(exc), source="sklearn") from exc

    if not hasattr(estimator, "coef_") or not hasattr(estimator, "intercept_"):
        raise ModelAdapterError(
            f"{type(estimator).__name__} is not a linear model (no coef_/intercept_)",
            source="sklearn",
        )

    coef = np.asarray(estimator.coef_, dtype=float)
    if coef.ndim == 2 and coef.shape[0] == 1:
        coef = coef.ravel()
    if coef.ndim != 1:
        raise ModelAdapterError(
            f"Only single-output models are supported, coef_ has shape {coef.shape}",
            source="sklearn",
        )

    intercept = np.ravel(np.asarray(estimator.intercept_, dtype=float))
    if intercept.size > 1:
        raise ModelAdapterError("Only single-output models are supported", source="sklearn")
    intercept_value = float(intercept[0]) if intercept.size else 0.0

    uses_frame_names = feature_names is None
    if feature_names is None:
        if not hasattr(estimator, "feature_names_in_"):
            raise ModelAdapterError(
                "Estimator was not fit on a DataFrame; pass feature_names=[...]",
                source="sklearn",
            )
        feature_names = [str(n) for n in estimator.feature_names_in_]
    if len(feature_names) != coef.size:
        raise ModelAdapterError(
            f"Got {len(feature_names)} feature names for {coef.size} coefficients",
            source="sklearn",
        )

    if factors is None:
        factors = infer_factors(training_frame) if training_frame is not None else {}

    names = list(feature_names)

    def predict(frame: pd.DataFrame) -> np.ndarray:
        encoded = encode_dummies(frame, factors, drop_first=False)
        X = encoded.reindex(columns=names, fill_value=0.0).astype(float)
        return np.asarray(estimator.predict(X if uses_frame_names else X.to_numpy()), dtype=float)

    logger.debug(f"Read {len(names)} coefficients from {type(estimator).__name__}")
    return FittedModel(
        coefficients=dict(zip(names, coef.tolist())),
        intercept=intercept_value,
        factors=factors,
        response=response,
        link=Link.IDENTITY,
        predict_fn=predict,
        source="sklearn",
    )


def _is_sklearn(obj: Any) -> bool:
    return isinstance(obj, BaseEstimator)


# ---------------------------------------------------------------------------
# statsmodels
# ---------------------------------------------------------------------------

_STATSMODELS_LINKS = {
    "identity": Link.IDENTITY,
    "log": Link.LOG,
    "logit": Link.LOGIT,
}


def _statsmodels_link(results: Any) -> Link:
    family = getattr(results.model, "family", None)
    if family is None:
        return Link.IDENTITY
    link_name = type(family.link).__name__.lower()
    if link_name not in _STATSMODELS_LINKS:
        raise ModelAdapterError(
            f"GLM link '{type(family.link).__name__}' is not supported "
            f"(supported: {', '.join(_STATSMODELS_LINKS)})",
            source="statsmodels",
        )
    return _STATSMODELS_LINKS[link_name]


def _statsmodels_factors(results: Any) -> dict[str, list[str]]:
    design_info = getattr(getattr(results.model, "data", None), "design_info", None)
    if design_info is None:
        return {}
    factors: dict[str, list[str]] = {}
    for factor, info in design_info.factor_infos.items():
        if info.type == "categorical":
            factors[_factor_name(factor.name())] = [str(c) for c in info.categories]
    return factors


def from_statsmodels(
    results: Any,
    factors: dict[str, list[str]] | None = None,
    response: str | None = None,
) -> FittedModel:
    """
    Read a statsmodels regression results object.

    Coefficient names come from ``model.exog_names`` (patsy names such as
    ``season[T.Spring]`` for formula fits).  GLM results carry their link
    function through to the ``FittedModel``.
    """
    model = results.model
    names = [str(n) for n in model.exog_names]
    values = np.asarray(results.params, dtype=float).ravel().tolist()
    if len(names) != len(values):
        raise ModelAdapterError(
            f"Got {len(names)} exog names for {len(values)} parameters",
            source="statsmodels",
        )

    coefficients, intercept, intercept_name = _split_intercept(names, values)
    link = _statsmodels_link(results)
    formula_fit = getattr(getattr(model, "data", None), "design_info", None) is not None

    def predict(frame: pd.DataFrame) -> np.ndarray:
        if formula_fit:
            return np.asarray(results.predict(frame), dtype=float)
        exog = frame.copy()
        if intercept_name is not None:
            exog[intercept_name] = 1.0
        return np.asarray(results.predict(exog[names]), dtype=float)

    if factors is None:
        factors = _statsmodels_factors(results)

    logger.debug(f"Read {len(coefficients)} coefficients from {type(model).__name__}")
    return FittedModel(
        coefficients=coefficients,
        intercept=intercept,
        factors=factors,
        response=response or getattr(model, "endog_names", None),
        link=link,
        predict_fn=predict,
        source="statsmodels",
    )


def _is_statsmodels(obj: Any) -> bool:
    return (
        type(obj).__module__.startswith("statsmodels")
        and hasattr(obj, "params")
        and hasattr(obj, "model")
    )


# ---------------------------------------------------------------------------
# Built-in registrations
# ---------------------------------------------------------------------------

register_adapter("statsmodels", _is_statsmodels, from_statsmodels)
register_adapter("sklearn", _is_sklearn, from_sklearn)
register_adapter("coefficients", _is_mapping, from_coefficients)
