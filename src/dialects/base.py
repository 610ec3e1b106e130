"""
Abstract SQL dialect.

A dialect knows how to spell identifiers, string and numeric literals,
conditionals and ``EXP`` for one query engine, and renders a
``ScoringExpression`` tree with those spellings.  Adding an engine means
subclassing ``Dialect`` and overriding the few spellings that differ;
the parser, builders and validator never change.
"""

from __future__ import annotations

import math
from abc import ABC

from core.contracts import Link
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


class Dialect(ABC):
    """
    ANSI SQL spelling.  Subclasses override what their engine does differently.

    Override points:
      - ``identifier_quotes`` -- opening / closing identifier quote
      - ``quote_string()``    -- string literal escaping
      - ``exp()``             -- exponential function
    """

    name: str = "ansi"
    identifier_quotes: tuple[str, str] = ('"', '"')

    # ------------------------------------------------------------------
    # Spellings
    # ------------------------------------------------------------------

    def quote_identifier(self, name: str) -> str:
        """Quote a single identifier, doubling any closing quote inside it."""
        opening, closing = self.identifier_quotes
        return f"{opening}{name.replace(closing, closing * 2)}{closing}"

    def quote_qualified(self, name: str) -> str:
        """Quote a dotted name such as ``schema.table`` part by part."""
        return ".".join(self.quote_identifier(part) for part in name.split("."))

    def quote_string(self, value: str) -> str:
        return "'" + value.replace("'", "''") + "'"

    def format_number(self, value: float, float_format: str = "repr") -> str:
        """
        Render a float literal.

        ``repr`` uses Python's shortest round-trip representation,
        ``fixed17`` always prints 17 significant digits.  Both parse back
        to the identical double.  Negative literals are parenthesised.
        """
        value = float(value)
        if not math.isfinite(value):
            raise ValueError(f"Cannot render non-finite literal {value}")
        if float_format == "fixed17":
            text = format(value, ".17g")
        elif float_format == "repr":
            text = repr(value)
        else:
            raise ValueError(f"Unknown float_format '{float_format}'")
        if not any(ch in text for ch in ".eE"):
            text += ".0"
        return f"({text})" if text.startswith("-") else text

    def case_when(self, condition: str, then: str, otherwise: str) -> str:
        return f"CASE WHEN {condition} THEN {then} ELSE {otherwise} END"

    def exp(self, argument: str) -> str:
        return f"EXP({argument})"

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def render(self, expression: ScoringExpression | Node, float_format: str = "repr") -> str:
        """Render an expression tree as SQL text."""
        node = expression.root if isinstance(expression, ScoringExpression) else expression
        return self._render(node, float_format)

    def _render(self, node: Node, fmt: str) -> str:
        if isinstance(node, Constant):
            return self.format_number(node.value, fmt)
        if isinstance(node, Column):
            return self.quote_identifier(node.name)
        if isinstance(node, Indicator):
            condition = f"{self.quote_identifier(node.variable)} = {self.quote_string(node.level)}"
            return self.case_when(condition, "1.0", "0.0")
        if isinstance(node, Scaled):
            return f"({self.format_number(node.coefficient, fmt)} * {self._render(node.operand, fmt)})"
        if isinstance(node, Sum):
            if not node.terms:
                return "0.0"
            return " + ".join(self._render(t, fmt) for t in node.terms)
        if isinstance(node, Linked):
            inner = self._render(node.operand, fmt)
            if node.link is Link.LOG:
                return self.exp(inner)
            if node.link is Link.LOGIT:
                return f"1.0 / (1.0 + {self.exp(f'-({inner})')})"
            return inner
        raise TypeError(f"Cannot render node of type {type(node).__name__}")

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"
