"""
Model parsing for tidyscore.

Use ``parse(model)`` to turn a fitted estimator into a ``ParsedModel``.
Adapters for statsmodels, scikit-learn and plain coefficient mappings
are registered on import; ``register_adapter`` adds more.
"""

from parsing.adapters import (
    encode_dummies,
    from_coefficients,
    from_sklearn,
    from_statsmodels,
    infer_factors,
    list_adapters,
    register_adapter,
    to_fitted_model,
)
from parsing.parser import classify, parse

__all__ = [
    "parse",
    "classify",
    "to_fitted_model",
    "register_adapter",
    "list_adapters",
    "from_coefficients",
    "from_sklearn",
    "from_statsmodels",
    "infer_factors",
    "encode_dummies",
]
