"""
Scoring expression tree.

A ``ScoringExpression`` is a tiny immutable arithmetic tree built once
from a ``ParsedModel``.  The same tree is

  - evaluated in-process, one row (``expr(row)``) or a whole DataFrame
    (``expr.evaluate_frame(df)``) at a time, and
  - rendered to SQL text by a ``Dialect``.

Because local and remote scoring walk the same nodes in the same order,
they cannot drift apart.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import numpy as np
import pandas as pd

from core.contracts import Link
from core.exceptions import InvalidRowValue, MissingVariable


def _is_null(value: Any) -> bool:
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _lookup(row: Mapping[str, Any], variable: str) -> Any:
    if variable not in row:
        raise MissingVariable(variable)
    value = row[variable]
    if _is_null(value):
        raise MissingVariable(variable)
    return value


def _column(frame: pd.DataFrame, variable: str) -> pd.Series:
    if variable not in frame.columns:
        raise MissingVariable(variable)
    col = frame[variable]
    if col.isna().any():
        raise MissingVariable(variable)
    return col


# ---------------------------------------------------------------------------
# Nodes
# ---------------------------------------------------------------------------

class Node(ABC):
    """Base class of every expression node."""

    @abstractmethod
    def evaluate(self, row: Mapping[str, Any]) -> float:
        ...

    @abstractmethod
    def evaluate_frame(self, frame: pd.DataFrame) -> np.ndarray:
        ...


@dataclass(frozen=True)
class Constant(Node):
    value: float

    def evaluate(self, row: Mapping[str, Any]) -> float:
        return self.value

    def evaluate_frame(self, frame: pd.DataFrame) -> np.ndarray:
        return np.full(len(frame), self.value, dtype=float)


@dataclass(frozen=True)
class Column(Node):
    """Numeric value of a continuous variable."""

    name: str

    def evaluate(self, row: Mapping[str, Any]) -> float:
        value = _lookup(row, self.name)
        if isinstance(value, (str, bytes)):
            raise InvalidRowValue(self.name, value)
        try:
            return float(value)
        except (TypeError, ValueError) as exc:
            raise InvalidRowValue(self.name, value) from exc

    def evaluate_frame(self, frame: pd.DataFrame) -> np.ndarray:
        col = _column(frame, self.name)
        if not (pd.api.types.is_numeric_dtype(col) or pd.api.types.is_bool_dtype(col)):
            bad = col.iloc[0] if len(col) else None
            raise InvalidRowValue(self.name, bad)
        return col.to_numpy(dtype=float)


@dataclass(frozen=True)
class Indicator(Node):
    """
    1.0 when *variable* equals *level*, else 0.0.

    Booleans are rejected: engines store them as 0/1 or TRUE/FALSE, so a
    text comparison against 'True' would not agree with SQL.  Treat bool
    columns as continuous 0/1 instead.
    """

    variable: str
    level: str

    def evaluate(self, row: Mapping[str, Any]) -> float:
        value = _lookup(row, self.variable)
        if isinstance(value, (bool, np.bool_)):
            raise InvalidRowValue(self.variable, value, expected="a text or numeric level")
        return 1.0 if str(value) == self.level else 0.0

    def evaluate_frame(self, frame: pd.DataFrame) -> np.ndarray:
        col = _column(frame, self.variable)
        if pd.api.types.is_bool_dtype(col):
            raise InvalidRowValue(self.variable, col.iloc[0], expected="a text or numeric level")
        return (col.astype(object).map(str) == self.level).to_numpy(dtype=float)


@dataclass(frozen=True)
class Scaled(Node):
    """coefficient * operand"""

    coefficient: float
    operand: Node

    def evaluate(self, row: Mapping[str, Any]) -> float:
        return self.coefficient * self.operand.evaluate(row)

    def evaluate_frame(self, frame: pd.DataFrame) -> np.ndarray:
        return self.coefficient * self.operand.evaluate_frame(frame)


@dataclass(frozen=True)
class Sum(Node):
    """Left-to-right sum of its terms."""

    terms: tuple[Node, ...]

    def evaluate(self, row: Mapping[str, Any]) -> float:
        total = 0.0
        for i, term in enumerate(self.terms):
            value = term.evaluate(row)
            total = value if i == 0 else total + value
        return total

    def evaluate_frame(self, frame: pd.DataFrame) -> np.ndarray:
        total = np.zeros(len(frame), dtype=float)
        for i, term in enumerate(self.terms):
            value = term.evaluate_frame(frame)
            total = value if i == 0 else total + value
        return total


@dataclass(frozen=True)
class Linked(Node):
    """Inverse link applied to a linear predictor."""

    link: Link
    operand: Node

    def evaluate(self, row: Mapping[str, Any]) -> float:
        eta = self.operand.evaluate(row)
        if self.link is Link.LOG:
            return math.exp(eta)
        if self.link is Link.LOGIT:
            e = math.exp(-abs(eta))
            return 1.0 / (1.0 + e) if eta >= 0 else e / (1.0 + e)
        return eta

    def evaluate_frame(self, frame: pd.DataFrame) -> np.ndarray:
        eta = self.operand.evaluate_frame(frame)
        if self.link is Link.LOG:
            return np.exp(eta)
        if self.link is Link.LOGIT:
            e = np.exp(-np.abs(eta))
            return np.where(eta >= 0, 1.0 / (1.0 + e), e / (1.0 + e))
        return eta


# ---------------------------------------------------------------------------
# Wrapper
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ScoringExpression:
    """
    Callable scoring expression.

    ``expr(row)`` scores one mapping (dict, pandas Series ...);
    ``expr.evaluate_frame(df)`` scores every row of a DataFrame.
    """

    root: Node
    variables: tuple[str, ...] = ()

    def __call__(self, row: Mapping[str, Any]) -> float:
        return self.root.evaluate(row)

    def evaluate(self, row: Mapping[str, Any]) -> float:
        return self.root.evaluate(row)

    def evaluate_frame(self, frame: pd.DataFrame) -> np.ndarray:
        return self.root.evaluate_frame(frame)
