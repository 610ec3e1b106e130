"""
Validation of generated scoring expressions against native predictions.
"""

from validation.validator import validate, validate_parsed

__all__ = ["validate", "validate_parsed"]
