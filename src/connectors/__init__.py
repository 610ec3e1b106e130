"""
Database connectors for tidyscore.

Supports SQLite, DuckDB and PostgreSQL.
"""

from .database import (
    DatabaseConnector,
    DuckDBConnector,
    PostgreSQLConnector,
    SQLiteConnector,
    create_database_connector,
)

__all__ = [
    "DatabaseConnector",
    "DuckDBConnector",
    "PostgreSQLConnector",
    "SQLiteConnector",
    "create_database_connector",
]
