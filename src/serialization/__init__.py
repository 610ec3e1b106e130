"""
Persisting parsed models as YAML or JSON.
"""

from serialization.serializer import (
    FORMATS,
    deserialize,
    from_dict,
    load_model,
    save_model,
    serialize,
    to_dict,
)

__all__ = [
    "FORMATS",
    "serialize",
    "deserialize",
    "to_dict",
    "from_dict",
    "save_model",
    "load_model",
]
