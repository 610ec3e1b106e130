"""
Serializer -- persist a ``ParsedModel`` as human-readable YAML or JSON.

Layout::

    general:
      model: linear
      version: 1
      intercept: 0.5
      response: arrdelay
      link: identity
      reference_levels:
        season: Winter
    terms:
      depdelay:
        coefficient: 0.9
        kind: continuous
      season_Spring:
        coefficient: -1.2
        kind: categorical_level
        variable: season
        level: Spring

Floats are written with Python's shortest round-trip representation
(PyYAML and ``json`` both use ``repr``), so reading a file back yields
bit-identical coefficients.  Anything malformed raises
``SerializationFormatError`` and no partial model is returned.
"""

from __future__ import annotations

import json
import math
from pathlib import Path
from typing import Any

import yaml
from loguru import logger
from pydantic import ValidationError

from config import get_config
from core.contracts import ParsedModel, ParsedTerm, TermKind
from core.exceptions import SerializationFormatError


FORMAT_VERSION = 1
FORMATS = ("yaml", "json")

_TERM_FIELDS = ("coefficient", "kind", "variable", "level")
_SUFFIXES = {".yaml": "yaml", ".yml": "yaml", ".json": "json"}


# ---------------------------------------------------------------------------
# Plain-data conversion
# ---------------------------------------------------------------------------

def to_dict(parsed_model: ParsedModel) -> dict[str, Any]:
    """Return the persisted layout as plain Python data."""
    general: dict[str, Any] = {
        "model": "linear",
        "version": FORMAT_VERSION,
        "intercept": parsed_model.intercept,
        "response": parsed_model.response,
        "link": parsed_model.link.value,
    }
    if parsed_model.reference_levels:
        general["reference_levels"] = dict(parsed_model.reference_levels)

    terms: dict[str, dict[str, Any]] = {}
    for name, term in parsed_model.terms.items():
        record: dict[str, Any] = {"coefficient": term.coefficient, "kind": term.kind.value}
        if term.is_categorical:
            record["variable"] = term.variable
            record["level"] = term.level
        terms[name] = record
    return {"general": general, "terms": terms}


def _as_float(value: Any, where: str) -> float:
    if isinstance(value, bool):
        raise SerializationFormatError(f"{where}: expected a number, got {value!r}")
    try:
        result = float(value)
    except (TypeError, ValueError) as exc:
        raise SerializationFormatError(f"{where}: expected a number, got {value!r}") from exc
    if not math.isfinite(result):
        raise SerializationFormatError(f"{where}: must be finite, got {value!r}")
    return result


def from_dict(data: Any) -> ParsedModel:
    """Rebuild a ``ParsedModel`` from plain data in the persisted layout."""
    if not isinstance(data, dict):
        raise SerializationFormatError(f"Top level must be a mapping, got {type(data).__name__}")
    general = data.get("general")
    terms = data.get("terms")
    if not isinstance(general, dict):
        raise SerializationFormatError("Missing or malformed 'general' section")
    if terms is None:
        terms = {}
    if not isinstance(terms, dict):
        raise SerializationFormatError("'terms' must be a mapping of term name to record")

    version = general.get("version", FORMAT_VERSION)
    if version != FORMAT_VERSION:
        raise SerializationFormatError(f"Unsupported format version {version!r}")
    if general.get("model", "linear") != "linear":
        raise SerializationFormatError(f"Unsupported model type {general.get('model')!r}")
    if "intercept" not in general:
        raise SerializationFormatError("'general' section has no intercept")

    parsed_terms: dict[str, ParsedTerm] = {}
    for name, record in terms.items():
        where = f"term {name!r}"
        if not isinstance(record, dict):
            raise SerializationFormatError(f"{where}: record must be a mapping")
        unknown = set(record) - set(_TERM_FIELDS)
        if unknown:
            raise SerializationFormatError(f"{where}: unknown fields {sorted(unknown)}")
        if "coefficient" not in record or "kind" not in record:
            raise SerializationFormatError(f"{where}: needs 'coefficient' and 'kind'")
        try:
            kind = TermKind(record["kind"])
        except ValueError as exc:
            raise SerializationFormatError(f"{where}: unknown kind {record['kind']!r}") from exc

        variable = record.get("variable")
        level = record.get("level")
        try:
            parsed_terms[str(name)] = ParsedTerm(
                coefficient=_as_float(record["coefficient"], where),
                kind=kind,
                variable=None if variable is None else str(variable),
                level=None if level is None else str(level),
            )
        except ValidationError as exc:
            raise SerializationFormatError(f"{where}: {exc.errors()[0]['msg']}") from exc

    reference_levels = general.get("reference_levels") or {}
    if not isinstance(reference_levels, dict):
        raise SerializationFormatError("'reference_levels' must be a mapping")

    try:
        return ParsedModel(
            intercept=_as_float(general["intercept"], "intercept"),
            terms=parsed_terms,
            response=general.get("response"),
            link=general.get("link", "identity"),
            reference_levels={str(k): str(v) for k, v in reference_levels.items()},
        )
    except ValidationError as exc:
        raise SerializationFormatError(f"Invalid model: {exc.errors()[0]['msg']}") from exc


# ---------------------------------------------------------------------------
# Bytes
# ---------------------------------------------------------------------------

def _check_format(fmt: str | None) -> str:
    fmt = (fmt or get_config().serialization.format).lower()
    if fmt not in FORMATS:
        raise SerializationFormatError(f"Unknown format '{fmt}'. Use one of: {', '.join(FORMATS)}")
    return fmt


def serialize(parsed_model: ParsedModel, fmt: str | None = None) -> bytes:
    """Encode *parsed_model* as UTF-8 YAML (default) or JSON."""
    fmt = _check_format(fmt)
    data = to_dict(parsed_model)
    if fmt == "json":
        text = json.dumps(data, indent=2)
    else:
        text = yaml.safe_dump(data, sort_keys=False, default_flow_style=False, allow_unicode=True)
    return text.encode("utf-8")


def deserialize(data: bytes | str, fmt: str | None = None) -> ParsedModel:
    """
    Decode bytes produced by ``serialize``.

    Raises:
        SerializationFormatError: On malformed text or records.
    """
    fmt = _check_format(fmt)
    try:
        text = data.decode("utf-8") if isinstance(data, bytes) else data
    except UnicodeDecodeError as exc:
        raise SerializationFormatError(f"Model file is not UTF-8: {exc}") from exc

    try:
        raw = json.loads(text) if fmt == "json" else yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise SerializationFormatError(f"Could not parse {fmt}: {exc}") from exc
    return from_dict(raw)


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------

def _format_for(path: Path, fmt: str | None) -> str | None:
    return fmt or _SUFFIXES.get(path.suffix.lower())


def save_model(parsed_model: ParsedModel, path: Path | str, fmt: str | None = None) -> Path:
    """Write *parsed_model* to *path*; the format follows the suffix unless given."""
    path = Path(path)
    path.write_bytes(serialize(parsed_model, _format_for(path, fmt)))
    logger.info(f"Saved model ({len(parsed_model.terms)} terms) to {path}")
    return path


def load_model(path: Path | str, fmt: str | None = None) -> ParsedModel:
    """Read a model written by ``save_model``."""
    path = Path(path)
    if not path.exists():
        raise SerializationFormatError(f"Model file not found: {path}")
    model = deserialize(path.read_bytes(), _format_for(path, fmt))
    logger.info(f"Loaded model ({len(model.terms)} terms) from {path}")
    return model
