"""
Core module for tidyscore.

Provides the canonical data contracts and exception types shared by the
parser, the expression builders, the serializer and the validator.
"""

from core.contracts import (
    FittedModel,
    Link,
    ParsedModel,
    ParsedTerm,
    TermKind,
    ValidationFailure,
    ValidationReport,
)
from core.exceptions import (
    TidyScoreError,
    UnsupportedTermKind,
    MissingVariable,
    InvalidRowValue,
    DialectUnsupported,
    SerializationFormatError,
    ModelAdapterError,
    NativePredictionUnavailable,
    ConnectorError,
)

__all__ = [
    "FittedModel",
    "Link",
    "ParsedModel",
    "ParsedTerm",
    "TermKind",
    "ValidationFailure",
    "ValidationReport",
    "TidyScoreError",
    "UnsupportedTermKind",
    "MissingVariable",
    "InvalidRowValue",
    "DialectUnsupported",
    "SerializationFormatError",
    "ModelAdapterError",
    "NativePredictionUnavailable",
    "ConnectorError",
]
