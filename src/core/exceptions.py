"""
Custom exception types for tidyscore.

Every exception carries a machine-readable code so callers can
handle specific failure modes programmatically.
"""


class TidyScoreError(Exception):
    """Base exception for all tidyscore errors."""

    def __init__(self, message: str, code: str = "TIDYSCORE_ERROR"):
        self.code = code
        super().__init__(message)


class UnsupportedTermKind(TidyScoreError):
    """Raised when a coefficient name is neither a column nor a factor level."""

    def __init__(self, term: str, reason: str = ""):
        self.term = term
        msg = f"Unsupported model term '{term}'"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg, code="UNSUPPORTED_TERM_KIND")


class MissingVariable(TidyScoreError):
    """Raised when a row lacks a variable the model needs."""

    def __init__(self, variable: str):
        self.variable = variable
        super().__init__(
            f"Row is missing required variable '{variable}'",
            code="MISSING_VARIABLE",
        )


class InvalidRowValue(TidyScoreError):
    """Raised when a row value cannot be read for its term kind."""

    def __init__(self, variable: str, value: object, expected: str = "numeric"):
        self.variable = variable
        self.value = value
        super().__init__(
            f"Variable '{variable}' must be {expected}, got {value!r}",
            code="INVALID_ROW_VALUE",
        )


class DialectUnsupported(TidyScoreError):
    """Raised when no SQL dialect is registered under the requested name."""

    def __init__(self, dialect: str, available: list[str] | None = None):
        self.dialect = dialect
        msg = f"Unsupported SQL dialect '{dialect}'"
        if available:
            msg = f"{msg}. Available: {', '.join(available)}"
        super().__init__(msg, code="DIALECT_UNSUPPORTED")


class SerializationFormatError(TidyScoreError):
    """Raised when a persisted model cannot be read back."""

    def __init__(self, message: str):
        super().__init__(message, code="SERIALIZATION_FORMAT_ERROR")


class ModelAdapterError(TidyScoreError):
    """Raised when a fitted model object cannot be converted."""

    def __init__(self, message: str, source: str = ""):
        self.source = source
        super().__init__(message, code="MODEL_ADAPTER_ERROR")


class NativePredictionUnavailable(TidyScoreError):
    """Raised when the validator has nothing to compare local scores against."""

    def __init__(self, message: str = "No native predictions available. "
                 "Pass native=... or use a model adapter that provides predict_fn."):
        super().__init__(message, code="NATIVE_PREDICTION_UNAVAILABLE")


class ConnectorError(TidyScoreError):
    """Raised when a database connector fails to connect or query."""

    def __init__(self, message: str, source: str = ""):
        self.source = source
        super().__init__(message, code="CONNECTOR_ERROR")
