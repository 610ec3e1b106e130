"""
Canonical data contracts for tidyscore.

These models define every boundary in the translator:

  - ``FittedModel``  -- a neutral view of an estimator someone else fitted
    (coefficient names and values, intercept, factor levels, native predict).
  - ``ParsedModel``  -- the classified, serialisable form every builder reads.
    Categorical levels are tagged once here so nothing downstream ever
    re-parses coefficient names.
  - ``ValidationReport`` -- outcome of comparing local scores to native ones.

Design principles:
  - Everything is immutable once constructed.
  - Coefficients are plain Python floats and must be finite.
  - Term order is preserved from the fitting library so generated SQL is
    stable across runs.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class TermKind(str, Enum):
    CONTINUOUS = "continuous"
    CATEGORICAL_LEVEL = "categorical_level"


class Link(str, Enum):
    IDENTITY = "identity"
    LOG = "log"
    LOGIT = "logit"


# ---------------------------------------------------------------------------
# Input contract  (what adapters hand to the parser)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FittedModel:
    """
    Neutral view of a fitted linear model.

    Adapters in ``parsing.adapters`` build this from scikit-learn,
    statsmodels, or a plain coefficient mapping.  The parser only needs
    ``coefficients``, ``intercept`` and ``factors``; ``predict_fn`` is
    used by the validator to obtain the fitting library's own answer.
    """

    coefficients: dict[str, float]
    intercept: float = 0.0
    factors: dict[str, list[str]] = field(default_factory=dict)
    response: str | None = None
    link: Link = Link.IDENTITY
    predict_fn: Callable[[Any], Any] | None = field(default=None, compare=False, repr=False)
    source: str = "coefficients"

    def native_predict(self, frame: Any) -> Any:
        """Run the fitting library's prediction on a DataFrame of raw rows."""
        if self.predict_fn is None:
            return None
        return self.predict_fn(frame)


# ---------------------------------------------------------------------------
# Parsed model  (what builders, serializer and validator consume)
# ---------------------------------------------------------------------------

class ParsedTerm(BaseModel):
    """One coefficient, tagged with how it reads its input."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    coefficient: float
    kind: TermKind
    variable: str | None = None
    level: str | None = None

    @field_validator("coefficient")
    @classmethod
    def _finite(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError(f"coefficient must be finite, got {v}")
        return v

    @model_validator(mode="after")
    def _check_kind_fields(self) -> "ParsedTerm":
        if self.kind is TermKind.CATEGORICAL_LEVEL:
            if not self.variable or self.level is None:
                raise ValueError("categorical_level terms need both variable and level")
        elif self.variable is not None or self.level is not None:
            raise ValueError("continuous terms must not carry variable or level")
        return self

    @property
    def is_categorical(self) -> bool:
        return self.kind is TermKind.CATEGORICAL_LEVEL


class ParsedModel(BaseModel):
    """
    Serialisation-neutral linear model.

    ``terms`` maps the original coefficient name to its ``ParsedTerm``.
    A continuous term reads the column named like the term; a categorical
    term reads ``variable`` and compares it to ``level``.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    intercept: float = 0.0
    terms: dict[str, ParsedTerm] = Field(default_factory=dict)
    response: str | None = None
    link: Link = Link.IDENTITY
    reference_levels: dict[str, str] = Field(default_factory=dict)

    @field_validator("intercept")
    @classmethod
    def _finite_intercept(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError(f"intercept must be finite, got {v}")
        return v

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------

    @property
    def variables(self) -> list[str]:
        """Input columns the model reads, in first-use order."""
        seen: dict[str, None] = {}
        for name, term in self.terms.items():
            seen.setdefault(term.variable if term.is_categorical else name, None)
        return list(seen)

    @property
    def continuous_terms(self) -> dict[str, ParsedTerm]:
        return {n: t for n, t in self.terms.items() if not t.is_categorical}

    @property
    def categorical_terms(self) -> dict[str, ParsedTerm]:
        return {n: t for n, t in self.terms.items() if t.is_categorical}

    def levels(self, variable: str) -> list[str]:
        """Non-reference levels of *variable* that carry a coefficient."""
        return [
            t.level for t in self.terms.values()
            if t.is_categorical and t.variable == variable
        ]


# ---------------------------------------------------------------------------
# Validation output
# ---------------------------------------------------------------------------

class ValidationFailure(BaseModel):
    """A row whose local score disagrees with the native prediction."""

    row_index: int
    native: float | None = None
    local: float | None = None
    difference: float | None = None
    error: str | None = None


class ValidationReport(BaseModel):
    """Outcome of ``validation.validate``."""

    pass_count: int = 0
    fail_count: int = 0
    failures: list[ValidationFailure] = Field(default_factory=list)
    tolerance: float = 0.0
    max_difference: float = 0.0

    @property
    def passed(self) -> bool:
        return self.fail_count == 0

    @property
    def n_rows(self) -> int:
        return self.pass_count + self.fail_count
