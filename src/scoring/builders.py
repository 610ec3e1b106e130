"""
Expression builders.

Turn a ``ParsedModel`` into something that scores rows:

    build_local(parsed)              -> callable(row) -> float
    build_remote(parsed, "postgres") -> SQL expression text
    build_select(parsed, "flights")  -> full SELECT statement
    predict_frame(parsed, df)        -> pandas Series of predictions

All of them go through ``build_expression`` so local and remote scores
come from one tree.  Builders are deterministic: the same model always
produces the same SQL bytes and the same local numbers.
"""

from __future__ import annotations

from typing import Any

import pandas as pd
from loguru import logger

from config import get_config
from core.contracts import Link, ParsedModel
from core.expression import (
    Column,
    Constant,
    Indicator,
    Linked,
    Node,
    Scaled,
    ScoringExpression,
    Sum,
)
from dialects import Dialect, get_dialect


def build_expression(
    parsed_model: ParsedModel,
    include_zero_terms: bool | None = None,
) -> ScoringExpression:
    """
    Build the expression tree ``intercept + sum(coefficient * input)``.

    Continuous terms read their column; categorical terms read an
    indicator of ``variable == level``.  A non-identity link wraps the
    sum in its inverse.
    """
    if include_zero_terms is None:
        include_zero_terms = get_config().scoring.include_zero_terms

    nodes: list[Node] = [Constant(parsed_model.intercept)]
    for name, term in parsed_model.terms.items():
        if term.coefficient == 0.0 and not include_zero_terms:
            continue
        operand: Node = (
            Indicator(term.variable, term.level) if term.is_categorical else Column(name)
        )
        nodes.append(Scaled(term.coefficient, operand))

    root: Node = Sum(tuple(nodes))
    if parsed_model.link is not Link.IDENTITY:
        root = Linked(parsed_model.link, root)
    return ScoringExpression(root=root, variables=tuple(parsed_model.variables))


def build_local(parsed_model: ParsedModel) -> ScoringExpression:
    """
    Return a callable that scores one row.

    The row is any mapping from variable name to value (numeric for
    continuous variables, anything string-comparable for categorical
    ones).  Raises ``MissingVariable`` when a required variable is absent
    or null, ``InvalidRowValue`` when a continuous value is not numeric.
    """
    return build_expression(parsed_model)


def build_remote(
    parsed_model: ParsedModel,
    dialect: str | Dialect | None = None,
    float_format: str | None = None,
) -> str:
    """
    Render the model as a SQL arithmetic expression.

    Args:
        parsed_model: Model to translate.
        dialect:      Dialect name or instance (config default if None).
        float_format: ``repr`` or ``fixed17`` (config default if None).

    Raises:
        DialectUnsupported: If *dialect* is unknown.
    """
    cfg = get_config().scoring
    target = get_dialect(dialect if dialect is not None else cfg.dialect)
    sql = target.render(build_expression(parsed_model), float_format or cfg.float_format)
    logger.debug(f"Built {target.name} expression ({len(sql)} chars, {len(parsed_model.terms)} terms)")
    return sql


def build_select(
    parsed_model: ParsedModel,
    table: str,
    dialect: str | Dialect | None = None,
    column: str | None = None,
    columns: list[str] | None = None,
    float_format: str | None = None,
) -> str:
    """
    Build ``SELECT <columns>, <expression> AS <column> FROM <table>``.

    *columns* defaults to ``*``.  *table* may be schema-qualified
    (``analytics.flights``); each part is quoted separately.
    """
    cfg = get_config().scoring
    target = get_dialect(dialect if dialect is not None else cfg.dialect)
    alias = column or cfg.prediction_column
    expression = build_remote(parsed_model, target, float_format)

    projection = ", ".join(target.quote_identifier(c) for c in columns) if columns else "*"
    sql = (
        f"SELECT {projection}, {expression} AS {target.quote_identifier(alias)} "
        f"FROM {target.quote_qualified(table)}"
    )
    logger.info(f"Built {target.name} SELECT scoring {table} into '{alias}'")
    return sql


def predict_frame(
    parsed_model: ParsedModel,
    frame: pd.DataFrame,
    column: str | None = None,
) -> pd.Series:
    """
    Score every row of *frame* locally.

    Returns a float Series aligned to ``frame.index`` and named after the
    prediction column.
    """
    expr = build_expression(parsed_model)
    values = expr.evaluate_frame(frame)
    return pd.Series(values, index=frame.index, name=column or get_config().scoring.prediction_column)


def add_prediction(
    parsed_model: ParsedModel,
    frame: pd.DataFrame,
    column: str | None = None,
) -> pd.DataFrame:
    """Return a copy of *frame* with the prediction appended as a column."""
    preds = predict_frame(parsed_model, frame, column)
    out = frame.copy()
    out[preds.name] = preds
    return out


def score_rows(parsed_model: ParsedModel, rows: Any) -> list[float]:
    """Score an iterable of mappings one row at a time."""
    expr = build_local(parsed_model)
    return [expr(row) for row in rows]
