"""
Pytest fixtures shared by the heartrisk tests.

This module provides:
- A synthetic heart-disease table with the clinical schema
- A two-blob table with known group membership
"""

import os
import sys

import numpy as np
import pandas as pd
import pytest

# Add the parent directory to the path to import the module
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))


def make_heart_frame(n_rows: int = 200, seed: int = 7) -> pd.DataFrame:
    """Random records shaped like the Cleveland heart-disease table."""
    rng = np.random.RandomState(seed)
    return pd.DataFrame({
        'age': rng.normal(54, 9, n_rows).round(),
        'sex': rng.randint(0, 2, n_rows),
        'cp': rng.randint(0, 4, n_rows),
        'trestbps': rng.normal(131, 17, n_rows).round(),
        'chol': rng.normal(246, 51, n_rows).round(),
        'fbs': rng.randint(0, 2, n_rows),
        'restecg': rng.randint(0, 3, n_rows),
        'thalach': rng.normal(150, 22, n_rows).round(),
        'exang': rng.randint(0, 2, n_rows),
        'oldpeak': np.abs(rng.normal(1.0, 1.1, n_rows)).round(1),
        'slope': rng.randint(0, 3, n_rows),
        'ca': rng.randint(0, 4, n_rows),
        'thal': rng.randint(1, 4, n_rows),
        'target': rng.randint(0, 2, n_rows),
    })


def make_blob_frame(n_rows: int = 300, seed: int = 11):
    """
    Two well-separated Gaussian blobs in the continuous attributes.

    Categorical attributes are random but drawn with a fixed seed.

    Returns:
        Tuple of (frame, true blob label per row)
    """
    rng = np.random.RandomState(seed)
    frame = make_heart_frame(n_rows, seed)
    truth = np.repeat([0, 1], [n_rows // 2, n_rows - n_rows // 2])

    offsets = {'age': 20.0, 'trestbps': 40.0, 'chol': 120.0, 'thalach': -50.0, 'oldpeak': 3.0}
    scales = {'age': 3.0, 'trestbps': 6.0, 'chol': 15.0, 'thalach': 7.0, 'oldpeak': 0.4}
    for column, offset in offsets.items():
        base = frame[column].mean()
        frame[column] = base + truth * offset + rng.normal(0, scales[column], n_rows)

    return frame, truth


@pytest.fixture
def heart_frame():
    return make_heart_frame()


@pytest.fixture
def blob_data():
    return make_blob_frame()
