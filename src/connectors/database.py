"""
Database connectors for tidyscore.

Thin DB-API wrappers used to run generated scoring queries.  Each
connector knows the SQL dialect of its engine so ``score_table`` can
build a query the engine understands.

Supports SQLite, DuckDB and PostgreSQL.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

import pandas as pd
from loguru import logger

from core.exceptions import ConnectorError


class DatabaseConnector(ABC):
    """Base class for database connectors."""

    dialect: str = "ansi"

    def __init__(self, **kwargs: Any):
        self.kwargs = kwargs
        self._conn = None

    @abstractmethod
    def connect(self) -> Any:
        """Establish database connection."""
        ...

    @property
    def conn(self) -> Any:
        if self._conn is None:
            self._conn = self.connect()
        return self._conn

    def load(self, query: str, **kwargs: Any) -> pd.DataFrame:
        """Execute SQL query and return DataFrame."""
        logger.debug(f"Executing query: {query[:100]}...")
        try:
            return pd.read_sql(query, self.conn, **kwargs)
        except Exception as e:
            raise ConnectorError(f"Query failed on {self.dialect}: {e}", source=self.dialect) from e

    def execute(self, statement: str) -> None:
        """Run a statement that returns no rows (DDL, INSERT ...)."""
        cur = self.conn.cursor()
        try:
            cur.execute(statement)
            self.conn.commit()
        finally:
            cur.close()

    def write_frame(self, df: pd.DataFrame, table: str, if_exists: str = "replace") -> None:
        """Store *df* as *table*."""
        df.to_sql(table, self.conn, index=False, if_exists=if_exists)
        logger.debug(f"Wrote {len(df)} rows to {table}")

    def test_connection(self) -> bool:
        """Test if connection is valid."""
        try:
            self.load("SELECT 1 AS ok")
            return True
        except ConnectorError as e:
            logger.error(f"{self.dialect} connection test failed: {e}")
            return False

    def close(self) -> None:
        """Close database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> "DatabaseConnector":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()


class SQLiteConnector(DatabaseConnector):
    """SQLite database connector (``:memory:`` by default)."""

    dialect = "sqlite"

    def __init__(self, database: str = ":memory:", **kwargs: Any):
        self.database = database
        super().__init__(**kwargs)

    def connect(self) -> Any:
        import sqlite3

        try:
            conn = sqlite3.connect(self.database, **self.kwargs)
        except sqlite3.Error as e:
            raise ConnectorError(f"Failed to connect to SQLite: {e}", source=self.database) from e
        logger.info(f"Connected to SQLite: {self.database}")
        return conn


class DuckDBConnector(DatabaseConnector):
    """DuckDB connector, in-memory unless a database file is given."""

    dialect = "duckdb"

    def __init__(self, database: str | None = None, **kwargs: Any):
        try:
            import duckdb  # noqa: F401
        except ImportError:
            raise ConnectorError("duckdb is not installed. Run: pip install duckdb")
        self.database = database
        super().__init__(**kwargs)

    def connect(self) -> Any:
        import duckdb

        try:
            conn = duckdb.connect(self.database or ":memory:", **self.kwargs)
        except duckdb.Error as e:
            raise ConnectorError(f"Failed to connect to DuckDB: {e}", source=str(self.database)) from e
        logger.info(f"Connected to DuckDB: {self.database or ':memory:'}")
        return conn

    def load(self, query: str, **kwargs: Any) -> pd.DataFrame:
        logger.debug(f"Executing query: {query[:100]}...")
        try:
            return self.conn.execute(query).df()
        except Exception as e:
            raise ConnectorError(f"Query failed on duckdb: {e}", source="duckdb") from e

    def execute(self, statement: str) -> None:
        self.conn.execute(statement)

    def write_frame(self, df: pd.DataFrame, table: str, if_exists: str = "replace") -> None:
        from dialects import get_dialect

        target = get_dialect(self.dialect).quote_identifier(table)
        self.conn.register("_tidyscore_frame", df)
        try:
            if if_exists == "replace":
                self.conn.execute(f"CREATE OR REPLACE TABLE {target} AS SELECT * FROM _tidyscore_frame")
            else:
                self.conn.execute(f"INSERT INTO {target} SELECT * FROM _tidyscore_frame")
        finally:
            self.conn.unregister("_tidyscore_frame")
        logger.debug(f"Wrote {len(df)} rows to {table}")


class PostgreSQLConnector(DatabaseConnector):
    """PostgreSQL database connector."""

    dialect = "postgresql"

    def __init__(self, host: str, port: int = 5432, database: str = "",
                 user: str = "", password: str = "", **kwargs: Any):
        try:
            import psycopg2  # noqa: F401
        except ImportError:
            raise ConnectorError(
                "psycopg2 is not installed. Run: pip install psycopg2-binary"
            )

        self.host = host
        self.port = port
        self.database = database
        self.user = user
        self.password = password
        super().__init__(**kwargs)

    def connect(self) -> Any:
        import psycopg2

        try:
            conn = psycopg2.connect(
                host=self.host,
                port=self.port,
                database=self.database,
                user=self.user,
                password=self.password,
                **self.kwargs
            )
        except psycopg2.Error as e:
            raise ConnectorError(f"Failed to connect to PostgreSQL: {e}", source=self.host) from e
        logger.info(f"Connected to PostgreSQL: {self.host}:{self.port}/{self.database}")
        return conn

    def write_frame(self, df: pd.DataFrame, table: str, if_exists: str = "replace") -> None:
        raise ConnectorError("write_frame needs SQLAlchemy for PostgreSQL; load tables upstream",
                             source=self.host)


def create_database_connector(
    db_type: str,
    **kwargs: Any
) -> DatabaseConnector:
    """Factory function to create appropriate database connector."""
    db_type_lower = db_type.lower()

    if db_type_lower in ["postgresql", "postgres"]:
        return PostgreSQLConnector(**kwargs)
    elif db_type_lower == "duckdb":
        return DuckDBConnector(**kwargs)
    elif db_type_lower in ["sqlite", "sqlite3"]:
        return SQLiteConnector(**kwargs)
    else:
        raise ConnectorError(f"Unsupported database type: {db_type}")
