"""
Built-in SQL dialects.

Only the spellings that differ from ANSI are overridden.
"""

from __future__ import annotations

from dialects.base import Dialect


class AnsiDialect(Dialect):
    name = "ansi"


class SQLiteDialect(Dialect):
    """SQLite.  ``EXP`` needs a build with math functions (3.35+)."""

    name = "sqlite"


class PostgreSQLDialect(Dialect):
    name = "postgresql"


class DuckDBDialect(Dialect):
    name = "duckdb"


class MySQLDialect(Dialect):
    """MySQL / MariaDB: backtick identifiers, backslash is an escape in strings."""

    name = "mysql"
    identifier_quotes = ("`", "`")

    def quote_string(self, value: str) -> str:
        return "'" + value.replace("\\", "\\\\").replace("'", "''") + "'"


class SQLServerDialect(Dialect):
    """SQL Server: bracketed identifiers, unicode string literals."""

    name = "sqlserver"
    identifier_quotes = ("[", "]")

    def quote_string(self, value: str) -> str:
        return "N'" + value.replace("'", "''") + "'"


class SparkDialect(Dialect):
    """Spark SQL / Hive: backtick identifiers, backslash-escaped strings."""

    name = "spark"
    identifier_quotes = ("`", "`")

    def quote_string(self, value: str) -> str:
        return "'" + value.replace("\\", "\\\\").replace("'", "\\'") + "'"
