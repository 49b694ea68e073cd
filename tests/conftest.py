"""Shared synthetic data for the test suites."""

import sys
from pathlib import Path

import numpy as np
import pandas as pd
import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))


def make_linear_data(n_samples: int = 300, seed: int = 0, noise: float = 1.0):
    """y = 3 + 2*x1 - 1*x2 + noise, with x3 and x4 irrelevant."""
    rng = np.random.default_rng(seed)
    X = pd.DataFrame({
        'x1': rng.normal(size=n_samples),
        'x2': rng.normal(size=n_samples),
        'x3': rng.normal(size=n_samples),
        'x4': rng.normal(size=n_samples),
    })
    y = pd.Series(
        3 + 2 * X['x1'] - 1 * X['x2'] + rng.normal(scale=noise, size=n_samples),
        name='y'
    )
    return X, y


@pytest.fixture
def linear_data():
    """300 rows from the known linear model."""
    return make_linear_data()
