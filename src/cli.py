"""
Command-line interface for tidyscore.

Provides commands for:
  - Printing a model's SQL expression or full scoring SELECT
  - Scoring a CSV file locally
  - Checking a saved model against stored native predictions
  - Inspecting and converting saved models
  - Listing supported SQL dialects
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

import pandas as pd
import typer
from loguru import logger

app = typer.Typer(
    name="tidyscore",
    help="Translate fitted linear models into SQL and local scoring expressions",
    add_completion=False,
)


@app.callback()
def main(
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Path to tidyscore.yaml",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
    """Load configuration and set the log level."""
    from config import load_config

    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "INFO")
    load_config(config_path)


# ---------------------------------------------------------------------------
# sql
# ---------------------------------------------------------------------------

@app.command()
def sql(
    model_path: Path = typer.Argument(..., help="Saved model (.yaml / .json)"),
    dialect: Optional[str] = typer.Option(None, "--dialect", "-d", help="Target SQL dialect"),
    table: Optional[str] = typer.Option(None, "--table", "-t", help="Emit a full SELECT from this table"),
    column: Optional[str] = typer.Option(None, "--column", help="Prediction column alias"),
):
    """
    Print the scoring expression, or a complete SELECT when --table is given.
    """
    from scoring import build_remote, build_select
    from serialization import load_model

    parsed = load_model(model_path)
    if table:
        typer.echo(build_select(parsed, table, dialect=dialect, column=column))
    else:
        typer.echo(build_remote(parsed, dialect))


# ---------------------------------------------------------------------------
# predict
# ---------------------------------------------------------------------------

@app.command()
def predict(
    model_path: Path = typer.Argument(..., help="Saved model (.yaml / .json)"),
    data_path: Path = typer.Argument(..., help="CSV file of rows to score"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write scored CSV here"),
    column: Optional[str] = typer.Option(None, "--column", help="Prediction column name"),
):
    """Score a CSV file locally and write (or print) it with a prediction column."""
    from scoring import add_prediction
    from serialization import load_model

    parsed = load_model(model_path)
    df = pd.read_csv(data_path)
    scored = add_prediction(parsed, df, column)
    logger.info(f"Scored {len(scored)} rows from {data_path}")

    if output is not None:
        scored.to_csv(output, index=False)
        logger.info(f"Wrote {output}")
    else:
        typer.echo(scored.to_csv(index=False), nl=False)


# ---------------------------------------------------------------------------
# check
# ---------------------------------------------------------------------------

@app.command()
def check(
    model_path: Path = typer.Argument(..., help="Saved model (.yaml / .json)"),
    data_path: Path = typer.Argument(..., help="CSV with inputs and native predictions"),
    native_column: str = typer.Option(..., "--native-column", "-n", help="Column holding native predictions"),
    tolerance: Optional[float] = typer.Option(None, "--tolerance", help="Max absolute difference"),
):
    """
    Check a saved model against predictions made by the fitting library.

    Exits with status 1 when any row disagrees.
    """
    from serialization import load_model
    from validation import validate_parsed

    parsed = load_model(model_path)
    df = pd.read_csv(data_path)
    if native_column not in df.columns:
        logger.error(f"Column '{native_column}' not found in {data_path}")
        raise typer.Exit(code=2)

    report = validate_parsed(parsed, df.drop(columns=[native_column]), df[native_column], tolerance)
    typer.echo(
        f"pass={report.pass_count} fail={report.fail_count} "
        f"max_difference={report.max_difference:.6g}"
    )
    if not report.passed:
        raise typer.Exit(code=1)


# ---------------------------------------------------------------------------
# inspect / convert / dialects
# ---------------------------------------------------------------------------

@app.command()
def inspect(
    model_path: Path = typer.Argument(..., help="Saved model (.yaml / .json)"),
):
    """Print the intercept, link and every term of a saved model."""
    from serialization import load_model

    parsed = load_model(model_path)
    typer.echo(f"response : {parsed.response or '-'}")
    typer.echo(f"link     : {parsed.link.value}")
    typer.echo(f"intercept: {parsed.intercept!r}")
    for name, term in parsed.terms.items():
        if term.is_categorical:
            typer.echo(f"  {name}: {term.coefficient!r}  [{term.variable} == {term.level!r}]")
        else:
            typer.echo(f"  {name}: {term.coefficient!r}")
    for variable, level in parsed.reference_levels.items():
        typer.echo(f"reference: {variable} = {level!r}")


@app.command()
def convert(
    model_path: Path = typer.Argument(..., help="Saved model to read"),
    output: Path = typer.Argument(..., help="Destination (.yaml / .json)"),
):
    """Rewrite a saved model in the format implied by the output suffix."""
    from serialization import load_model, save_model

    save_model(load_model(model_path), output)


@app.command()
def dialects():
    """List the SQL dialects remote expressions can target."""
    from dialects import list_dialects

    for name in list_dialects():
        typer.echo(name)


if __name__ == "__main__":
    app()
