"""
SQL dialects for remote scoring.

Use ``get_dialect(name)`` to look one up; ``register_dialect`` adds new
engines without touching the parser or the builders.
"""

from dialects.base import Dialect
from dialects.registry import get_dialect, list_dialects, register_dialect
from dialects.standard import (
    AnsiDialect,
    DuckDBDialect,
    MySQLDialect,
    PostgreSQLDialect,
    SparkDialect,
    SQLiteDialect,
    SQLServerDialect,
)

__all__ = [
    "Dialect",
    "get_dialect",
    "list_dialects",
    "register_dialect",
    "AnsiDialect",
    "DuckDBDialect",
    "MySQLDialect",
    "PostgreSQLDialect",
    "SparkDialect",
    "SQLiteDialect",
    "SQLServerDialect",
]
