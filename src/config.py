"""
Configuration management for tidyscore.

Centralised configuration with YAML loading and sensible defaults.
The config supplies the defaults every layer falls back to when a
caller does not pass an explicit value: SQL dialect and literal
formatting, validation tolerance, and the serialised model format.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Section configs
# ---------------------------------------------------------------------------

class ScoringConfig(BaseModel):
    """Expression building defaults."""

    dialect: str = Field(default="ansi", description="Default SQL dialect for remote expressions")
    prediction_column: str = Field(default="fit", description="Alias of the prediction in SELECTs")
    float_format: Literal["repr", "fixed17"] = Field(
        default="repr",
        description="repr = shortest round-trip literal, fixed17 = 17 significant digits",
    )
    include_zero_terms: bool = Field(default=True, description="Keep terms whose coefficient is 0")


class ValidationConfig(BaseModel):
    """Validator defaults."""

    tolerance: float = Field(default=1e-6, ge=0)
    max_failures_logged: int = Field(default=10, ge=0)


class SerializationConfig(BaseModel):
    """Persisted model format."""

    format: Literal["yaml", "json"] = Field(default="yaml")


# ---------------------------------------------------------------------------
# Root config
# ---------------------------------------------------------------------------

class TidyScoreConfig(BaseModel):
    """Root configuration for tidyscore."""

    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    validation: ValidationConfig = Field(default_factory=ValidationConfig)
    serialization: SerializationConfig = Field(default_factory=SerializationConfig)

    @classmethod
    def from_yaml(cls, path: Path | str) -> "TidyScoreConfig":
        """Load config from a YAML file."""
        with open(Path(path)) as f:
            data = yaml.safe_load(f) or {}
        return cls(**data)

    def to_yaml(self, path: Path | str) -> None:
        """Write config to a YAML file."""
        with open(Path(path), "w") as f:
            yaml.dump(self.model_dump(), f, default_flow_style=False, sort_keys=False)


# ---------------------------------------------------------------------------
# Global singleton
# ---------------------------------------------------------------------------

_config: TidyScoreConfig | None = None


def get_config() -> TidyScoreConfig:
    """Return the global config instance (creates default if needed)."""
    global _config
    if _config is None:
        _config = TidyScoreConfig()
    return _config


def set_config(config: TidyScoreConfig | None) -> None:
    """Override the global config instance (None resets to defaults)."""
    global _config
    _config = config


def load_config(path: Path | str | None = None) -> TidyScoreConfig:
    """
    Load config from file, falling back to standard locations, then defaults.
    """
    global _config

    if path is not None:
        _config = TidyScoreConfig.from_yaml(path)
    else:
        for candidate in [Path("tidyscore.yaml"), Path("config/tidyscore.yaml")]:
            if candidate.exists():
                _config = TidyScoreConfig.from_yaml(candidate)
                break
        else:
            _config = TidyScoreConfig()

    return _config
