"""
Scoring for tidyscore: local evaluation and SQL generation.
"""

from scoring.builders import (
    add_prediction,
    build_expression,
    build_local,
    build_remote,
    build_select,
    predict_frame,
    score_rows,
)
from scoring.database import score_table

__all__ = [
    "build_expression",
    "build_local",
    "build_remote",
    "build_select",
    "predict_frame",
    "add_prediction",
    "score_rows",
    "score_table",
]
