"""
In-database scoring.

Builds the scoring SELECT in the connector's dialect and lets the
database do the arithmetic.  Only the rows' predictions travel back.
"""

from __future__ import annotations

import pandas as pd
from loguru import logger

from connectors.database import DatabaseConnector
from core.contracts import ParsedModel
from scoring.builders import build_select


def score_table(
    connector: DatabaseConnector,
    parsed_model: ParsedModel,
    table: str,
    column: str | None = None,
    columns: list[str] | None = None,
) -> pd.DataFrame:
    """
    Score *table* inside the database behind *connector*.

    Args:
        connector:    Open or lazily-connecting ``DatabaseConnector``.
        parsed_model: Model to score with.
        table:        Table or view name (optionally schema-qualified).
        column:       Name of the prediction column.
        columns:      Columns to return next to the prediction (all if None).

    Returns:
        The query result as a DataFrame.
    """
    sql = build_select(
        parsed_model,
        table,
        dialect=connector.dialect,
        column=column,
        columns=columns,
    )
    df = connector.load(sql)
    logger.info(f"Scored {len(df)} rows of {table} in {connector.dialect}")
    return df
