"""
Validator -- certify that local scoring reproduces native predictions.

For every sample row the fitting library's own prediction is compared
with the local expression's result.  Disagreements beyond the tolerance
are reported as ``ValidationFailure`` records, never raised: the caller
decides whether a mismatch is fatal.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

import numpy as np
import pandas as pd
from loguru import logger

from config import get_config
from core.contracts import FittedModel, ParsedModel, ValidationFailure, ValidationReport
from core.exceptions import InvalidRowValue, MissingVariable, NativePredictionUnavailable
from parsing import parse, to_fitted_model
from scoring import build_local


def _as_frame(sample_rows: pd.DataFrame | Iterable[Mapping[str, Any]]) -> pd.DataFrame:
    if isinstance(sample_rows, pd.DataFrame):
        return sample_rows.reset_index(drop=True)
    return pd.DataFrame.from_records([dict(r) for r in sample_rows])


def validate(
    fitted_model: FittedModel | Any,
    sample_rows: pd.DataFrame | Iterable[Mapping[str, Any]],
    tolerance: float | None = None,
    native: Sequence[float] | np.ndarray | None = None,
) -> ValidationReport:
    """
    Compare local scores of *fitted_model* against its native predictions.

    Args:
        fitted_model: ``FittedModel`` or any object the adapters accept.
        sample_rows:  DataFrame or iterable of row mappings.
        tolerance:    Maximum absolute difference (config default if None).
        native:       Known native predictions, one per row.  When None,
                      ``fitted_model.predict_fn`` is used.

    Raises:
        NativePredictionUnavailable: If neither *native* nor a native
            predictor is available.
    """
    fitted = to_fitted_model(fitted_model)
    frame = _as_frame(sample_rows)

    if native is None:
        if fitted.predict_fn is None:
            raise NativePredictionUnavailable()
        native = fitted.native_predict(frame)

    return validate_parsed(parse(fitted), frame, native, tolerance)


def validate_parsed(
    parsed_model: ParsedModel,
    sample_rows: pd.DataFrame | Iterable[Mapping[str, Any]],
    native: Sequence[float] | np.ndarray,
    tolerance: float | None = None,
) -> ValidationReport:
    """
    Compare local scores of an already parsed (or reloaded) model with
    stored native predictions.
    """
    cfg = get_config().validation
    tol = cfg.tolerance if tolerance is None else float(tolerance)
    frame = _as_frame(sample_rows)
    expected = np.asarray(native, dtype=float).ravel()
    if len(expected) != len(frame):
        raise ValueError(f"Got {len(expected)} native predictions for {len(frame)} rows")

    expr = build_local(parsed_model)
    failures: list[ValidationFailure] = []
    max_diff = 0.0

    for i, row in enumerate(frame.to_dict(orient="records")):
        want = float(expected[i])
        try:
            got = expr(row)
        except (MissingVariable, InvalidRowValue) as exc:
            failures.append(ValidationFailure(row_index=i, native=want, error=str(exc)))
            continue

        diff = abs(want - got)
        if math.isnan(diff) or diff > tol:
            failures.append(ValidationFailure(
                row_index=i, native=want, local=got, difference=diff,
            ))
        if not math.isnan(diff):
            max_diff = max(max_diff, diff)

    report = ValidationReport(
        pass_count=len(frame) - len(failures),
        fail_count=len(failures),
        failures=failures,
        tolerance=tol,
        max_difference=max_diff,
    )

    if report.passed:
        logger.info(
            f"Validation passed: {report.pass_count} rows within {tol:g} "
            f"(max difference {max_diff:.3g})"
        )
    else:
        logger.warning(
            f"Validation found {report.fail_count}/{report.n_rows} mismatches "
            f"beyond {tol:g} (max difference {max_diff:.3g})"
        )
        for f in failures[: cfg.max_failures_logged]:
            logger.warning(
                f"  row {f.row_index}: native={f.native} local={f.local}"
                + (f" error={f.error}" if f.error else "")
            )
    return report
