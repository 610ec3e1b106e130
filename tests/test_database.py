"""Tests for in-database scoring through the connectors."""

import numpy as np
import pandas as pd
import pytest

from connectors import DuckDBConnector, SQLiteConnector, create_database_connector
from core import ConnectorError, Link, ParsedModel, ParsedTerm, TermKind
from parsing import from_coefficients, infer_factors, parse
from scoring import build_select, predict_frame, score_table


@pytest.fixture
def sqlite_flights(flights_rows):
    df, _ = flights_rows
    with SQLiteConnector() as conn:
        conn.write_frame(df.assign(row_id=range(len(df))), "flights")
        yield conn


class TestSQLiteScoring:
    """Test local and SQLite scores agree."""

    def test_remote_matches_local(self, sqlite_flights, flights_parsed, flights_rows):
        """Test every row scores the same in SQLite and in Python."""
        df, native = flights_rows

        out = score_table(sqlite_flights, flights_parsed, "flights").sort_values("row_id")

        np.testing.assert_allclose(out["fit"].to_numpy(), predict_frame(flights_parsed, df), rtol=1e-9)
        np.testing.assert_allclose(out["fit"].to_numpy(), native, rtol=1e-9)

    def test_selected_columns(self, sqlite_flights, flights_parsed):
        """Test only the requested columns come back with the prediction."""
        out = score_table(
            sqlite_flights, flights_parsed, "flights",
            column="arrdelay_hat", columns=["row_id"],
        )

        assert list(out.columns) == ["row_id", "arrdelay_hat"]

    def test_unseen_level_in_database(self, flights_parsed):
        """Test a level with no coefficient scores as reference in SQL too."""
        df = pd.DataFrame({"depdelay": [0.0], "season": ["Monsoon"]})
        with SQLiteConnector() as conn:
            conn.write_frame(df, "t")
            out = score_table(conn, flights_parsed, "t")

        assert out["fit"].iloc[0] == pytest.approx(0.5)

    def test_quoted_level(self):
        """Test levels with quotes match their rows in SQL."""
        parsed = ParsedModel(
            intercept=1.0,
            terms={
                "airport_O'Hare": ParsedTerm(
                    coefficient=2.0,
                    kind=TermKind.CATEGORICAL_LEVEL,
                    variable="airport",
                    level="O'Hare",
                ),
            },
        )
        df = pd.DataFrame({"airport": ["O'Hare", "Midway"]})
        with SQLiteConnector() as conn:
            conn.write_frame(df, "airports")
            out = conn.load(build_select(parsed, "airports", "sqlite"))

        assert out["fit"].tolist() == [3.0, 1.0]

    def test_bool_column_agrees(self):
        """Test an inferred bool column scores as 0/1 in SQLite and Python."""
        df = pd.DataFrame({"x": [1.0, 2.0], "flag": [True, False]})
        fitted = from_coefficients(
            {"x": 1.0, "flag": 5.0}, intercept=0.0, factors=infer_factors(df),
        )
        parsed = parse(fitted)

        with SQLiteConnector() as conn:
            conn.write_frame(df, "flags")
            out = score_table(conn, parsed, "flags")

        assert parsed.terms["flag"].kind is TermKind.CONTINUOUS
        assert out["fit"].tolist() == [6.0, 2.0]
        assert predict_frame(parsed, df).tolist() == [6.0, 2.0]

    def test_bad_query_raises(self):
        """Test a failing query surfaces as ConnectorError."""
        with SQLiteConnector() as conn:
            with pytest.raises(ConnectorError) as exc_info:
                conn.load('SELECT * FROM "no_such_table"')

        assert exc_info.value.code == "CONNECTOR_ERROR"

    def test_connection_check(self):
        """Test test_connection on an in-memory database."""
        with SQLiteConnector() as conn:
            assert conn.test_connection()


class TestDuckDBScoring:
    """Test local and DuckDB scores agree."""

    def test_remote_matches_local(self, flights_parsed, flights_rows):
        """Test the identity model in DuckDB."""
        pytest.importorskip("duckdb")
        df, _ = flights_rows

        with DuckDBConnector() as conn:
            conn.write_frame(df.assign(row_id=range(len(df))), "flights")
            out = score_table(conn, flights_parsed, "flights").sort_values("row_id")

        np.testing.assert_allclose(out["fit"].to_numpy(), predict_frame(flights_parsed, df), rtol=1e-9)

    def test_table_name_with_quote(self, flights_parsed):
        """Test write_frame quotes table names the same way SELECTs do."""
        pytest.importorskip("duckdb")
        df = pd.DataFrame({"depdelay": [10.0], "season": ["Spring"]})

        with DuckDBConnector() as conn:
            conn.write_frame(df, 'odd"name')
            out = score_table(conn, flights_parsed, 'odd"name')

        assert out["fit"].iloc[0] == pytest.approx(8.3)

    @pytest.mark.parametrize("link", [Link.LOGIT, Link.LOG])
    def test_link_functions(self, link):
        """Test inverse links render to SQL that matches Python."""
        pytest.importorskip("duckdb")
        parsed = ParsedModel(
            intercept=-1.5,
            terms={
                "x": ParsedTerm(coefficient=0.04, kind=TermKind.CONTINUOUS),
                "segment_b": ParsedTerm(
                    coefficient=0.7, kind=TermKind.CATEGORICAL_LEVEL, variable="segment", level="b",
                ),
            },
            link=link,
        )
        df = pd.DataFrame({
            "row_id": range(6),
            "x": [0.0, 10.0, 25.0, 50.0, 80.0, 120.0],
            "segment": ["a", "b", "a", "b", "a", "b"],
        })

        with DuckDBConnector() as conn:
            conn.write_frame(df, "customers")
            out = score_table(conn, parsed, "customers").sort_values("row_id")

        np.testing.assert_allclose(out["fit"].to_numpy(), predict_frame(parsed, df), rtol=1e-9)


class TestFactory:
    """Test connector construction."""

    def test_sqlite(self):
        """Test sqlite names build a SQLiteConnector."""
        assert isinstance(create_database_connector("sqlite3"), SQLiteConnector)

    def test_connector_dialect(self):
        """Test connectors name the dialect the builders use."""
        assert SQLiteConnector().dialect == "sqlite"

    def test_unknown_type(self):
        """Test an unknown engine raises ConnectorError."""
        with pytest.raises(ConnectorError):
            create_database_connector("oracle")
