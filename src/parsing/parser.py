"""
Model parser -- classify every coefficient of a fitted linear model.

Each coefficient name becomes either a continuous column reference or a
categorical level tagged with its ``variable`` and ``level``.  Three
dummy-coding conventions are recognised:

    season[T.Spring]     patsy / statsmodels treatment coding
    season_Spring        pandas.get_dummies / OneHotEncoder
    season.Spring        dotted prefix
    seasonSpring         R model.matrix

The last three need the factor's levels (``FittedModel.factors``) so a
plain column that happens to contain an underscore is never mistaken
for a factor level.  Interactions and transformed terms are rejected.
"""

from __future__ import annotations

import re
from typing import Any

from loguru import logger

from core.contracts import FittedModel, ParsedModel, ParsedTerm, TermKind
from core.exceptions import UnsupportedTermKind
from parsing.adapters import INTERCEPT_NAMES, _factor_name, to_fitted_model


_TREATMENT = re.compile(r"^(?P<variable>.+?)\[T\.(?P<level>[^\]]*)\]$")

# Interaction, arithmetic and function-call syntax from R / patsy formulas.
_UNSUPPORTED_MARKERS = (":", "*", "(", ")", "^", "/", "+", "~", "|", "[", "]")

_LEVEL_SEPARATORS = ("_", ".", "")


def parse(fitted_model: FittedModel | Any, **kwargs: Any) -> ParsedModel:
    """
    Classify the coefficients of *fitted_model* into a ``ParsedModel``.

    Args:
        fitted_model: A ``FittedModel`` or anything ``to_fitted_model``
                      understands (statsmodels results, fitted sklearn
                      estimator, coefficient mapping).
        **kwargs:     Forwarded to the adapter when conversion is needed.

    Raises:
        UnsupportedTermKind: If a coefficient is an interaction, a
            transformed term, or names a factor without a level.
    """
    fitted = to_fitted_model(fitted_model, **kwargs)

    intercept = float(fitted.intercept)
    terms: dict[str, ParsedTerm] = {}
    seen_levels: dict[tuple[str, str], str] = {}

    for name, coefficient in fitted.coefficients.items():
        if name in INTERCEPT_NAMES:
            intercept += float(coefficient)
            continue

        term = classify(name, float(coefficient), fitted.factors)
        if term.is_categorical:
            key = (term.variable, term.level)
            if key in seen_levels:
                raise UnsupportedTermKind(
                    name, f"duplicates level already read from '{seen_levels[key]}'"
                )
            seen_levels[key] = name
        terms[name] = term
        logger.debug(f"Term {name!r}: {term.kind.value}")

    parsed = ParsedModel(
        intercept=intercept,
        terms=terms,
        response=fitted.response,
        link=fitted.link,
        reference_levels=_reference_levels(fitted.factors, terms),
    )
    n_cat = len(parsed.categorical_terms)
    logger.info(
        f"Parsed {fitted.source} model: {len(terms)} terms "
        f"({len(terms) - n_cat} continuous, {n_cat} categorical levels), "
        f"link={parsed.link.value}"
    )
    return parsed


def classify(
    name: str,
    coefficient: float,
    factors: dict[str, list[str]] | None = None,
) -> ParsedTerm:
    """Classify a single coefficient name."""
    factors = factors or {}

    m = _TREATMENT.match(name)
    if m:
        variable = _factor_name(m.group("variable"))
        if not _has_marker(variable):
            return ParsedTerm(
                coefficient=coefficient,
                kind=TermKind.CATEGORICAL_LEVEL,
                variable=variable,
                level=m.group("level"),
            )

    if _has_marker(name):
        reason = "interaction term" if ":" in name else "transformed or compound term"
        raise UnsupportedTermKind(name, reason)

    if name in factors:
        raise UnsupportedTermKind(name, "names a categorical variable without a level")

    # Longest factor name first so 'season_type' beats 'season'.
    for variable in sorted(factors, key=len, reverse=True):
        if not name.startswith(variable):
            continue
        rest = name[len(variable):]
        levels = set(factors[variable])
        for sep in _LEVEL_SEPARATORS:
            if rest.startswith(sep) and rest[len(sep):] in levels:
                return ParsedTerm(
                    coefficient=coefficient,
                    kind=TermKind.CATEGORICAL_LEVEL,
                    variable=variable,
                    level=rest[len(sep):],
                )

    if not name.strip():
        raise UnsupportedTermKind(name, "empty term name")

    return ParsedTerm(coefficient=coefficient, kind=TermKind.CONTINUOUS)


def _has_marker(name: str) -> bool:
    return any(marker in name for marker in _UNSUPPORTED_MARKERS)


def _reference_levels(
    factors: dict[str, list[str]],
    terms: dict[str, ParsedTerm],
) -> dict[str, str]:
    """Levels of each factor that received no coefficient, when unambiguous."""
    used: dict[str, set[str]] = {}
    for term in terms.values():
        if term.is_categorical:
            used.setdefault(term.variable, set()).add(term.level)

    reference: dict[str, str] = {}
    for variable, levels in factors.items():
        if variable not in used:
            continue
        missing = [lv for lv in levels if lv not in used[variable]]
        if len(missing) == 1:
            reference[variable] = missing[0]
    return reference
