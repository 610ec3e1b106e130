"""Shared fixtures."""

import numpy as np
import pandas as pd
import pytest

from config import set_config
from parsing import from_coefficients, parse


SEASON_EFFECTS = {"Winter": 0.0, "Spring": -1.2, "Summer": -0.8, "Fall": -0.3}


@pytest.fixture(autouse=True)
def reset_config():
    """Every test starts from the default configuration."""
    set_config(None)
    yield
    set_config(None)


@pytest.fixture
def flights_fitted():
    """arrdelay ~ depdelay + season, Winter as the reference level."""
    return from_coefficients(
        {
            "depdelay": 0.9,
            "season_Spring": -1.2,
            "season_Summer": -0.8,
            "season_Fall": -0.3,
        },
        intercept=0.5,
        factors={"season": ["Fall", "Spring", "Summer", "Winter"]},
        response="arrdelay",
    )


@pytest.fixture
def flights_parsed(flights_fitted):
    return parse(flights_fitted)


@pytest.fixture
def flights_rows():
    """100 rows with their exact native predictions."""
    rng = np.random.default_rng(7)
    n = 100
    df = pd.DataFrame({
        "depdelay": rng.uniform(1, 60, n).round(2),
        "season": rng.choice(list(SEASON_EFFECTS), n),
    })
    native = 0.5 + 0.9 * df["depdelay"] + df["season"].map(SEASON_EFFECTS)
    return df, native.to_numpy()


@pytest.fixture
def flights_training():
    """Noisy training frame generated from the flights coefficients."""
    rng = np.random.default_rng(42)
    n = 300
    df = pd.DataFrame({
        "depdelay": rng.uniform(0, 90, n),
        "season": rng.choice(list(SEASON_EFFECTS), n),
    })
    df["arrdelay"] = (
        0.5
        + 0.9 * df["depdelay"]
        + df["season"].map(SEASON_EFFECTS)
        + rng.normal(0, 2.0, n)
    )
    return df
