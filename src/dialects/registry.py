"""
Dialect registry -- look up SQL dialects by name.

Dialects register under a canonical name plus any aliases
(``"postgres"`` -> ``postgresql``).  Lookups are case-insensitive.
"""

from __future__ import annotations

from loguru import logger

from core.exceptions import DialectUnsupported
from dialects.base import Dialect
from dialects.standard import (
    AnsiDialect,
    DuckDBDialect,
    MySQLDialect,
    PostgreSQLDialect,
    SparkDialect,
    SQLiteDialect,
    SQLServerDialect,
)


_REGISTRY: dict[str, Dialect] = {}
_ALIASES: dict[str, str] = {}


def register_dialect(dialect: Dialect, aliases: tuple[str, ...] = ()) -> None:
    """Register *dialect* under its ``name`` and every alias."""
    key = dialect.name.lower()
    _REGISTRY[key] = dialect
    for alias in aliases:
        _ALIASES[alias.lower()] = key
    logger.debug(f"Registered SQL dialect: {key}")


def list_dialects() -> list[str]:
    """Canonical names of all registered dialects."""
    return sorted(_REGISTRY)


def get_dialect(name: str | Dialect) -> Dialect:
    """
    Return the dialect registered as *name* (or *name* itself if already
    a ``Dialect``).

    Raises:
        DialectUnsupported: If nothing is registered under *name*.
    """
    if isinstance(name, Dialect):
        return name
    key = str(name).strip().lower()
    key = _ALIASES.get(key, key)
    if key not in _REGISTRY:
        raise DialectUnsupported(str(name), available=list_dialects())
    return _REGISTRY[key]


register_dialect(AnsiDialect(), aliases=("generic", "sql"))
register_dialect(SQLiteDialect(), aliases=("sqlite3",))
register_dialect(PostgreSQLDialect(), aliases=("postgres", "redshift"))
register_dialect(DuckDBDialect())
register_dialect(MySQLDialect(), aliases=("mariadb",))
register_dialect(SQLServerDialect(), aliases=("mssql", "tsql", "sql server"))
register_dialect(SparkDialect(), aliases=("sparksql", "hive", "databricks"))
