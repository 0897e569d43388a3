"""
Tests for the standardization module.
"""

import pytest
import numpy as np
import pandas as pd
import sys
import os

# Add the parent directory to the path to import the module
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from heartrisk.data.loader import dataset_from_frame
from heartrisk.math.standardize import column_stats, standardize, inverse_standardize
from heartrisk.errors import DegenerateColumnError


class TestStandardize:
    """Tests for z-score standardization."""

    def test_mean_and_std(self, heart_frame):
        """Test that continuous columns have mean 0 and std 1."""
        dataset = dataset_from_frame(heart_frame)
        table, stats = standardize(dataset)

        for column in dataset.continuous_columns:
            assert abs(table[column].mean()) < 1e-9
            assert abs(table[column].std(ddof=1) - 1.0) < 1e-9

    def test_categorical_passthrough(self, heart_frame):
        """Test that categorical columns are unchanged and follow the continuous ones."""
        dataset = dataset_from_frame(heart_frame)
        table, _ = standardize(dataset)

        assert list(table.columns) == dataset.continuous_columns + dataset.categorical_columns
        pd.testing.assert_frame_equal(table[dataset.categorical_columns], dataset.categorical)

    def test_stats(self, heart_frame):
        """Test that the returned stats are sample statistics."""
        dataset = dataset_from_frame(heart_frame)
        _, stats = standardize(dataset)

        assert np.isclose(stats['mean']['chol'], heart_frame['chol'].mean())
        assert np.isclose(stats['std']['chol'], heart_frame['chol'].std(ddof=1))
        assert list(stats['mean'].index) == dataset.continuous_columns

    def test_inverse(self, heart_frame):
        """Test that inverse_standardize restores original units."""
        dataset = dataset_from_frame(heart_frame)
        table, stats = standardize(dataset)

        restored = inverse_standardize(table, stats)

        assert np.allclose(restored[dataset.continuous_columns].to_numpy(),
                           dataset.continuous.to_numpy())

    def test_input_unchanged(self, heart_frame):
        """Test that the dataset is not modified."""
        dataset = dataset_from_frame(heart_frame)
        before = dataset.frame

        standardize(dataset)

        pd.testing.assert_frame_equal(dataset.frame, before)

    def test_constant_column(self, heart_frame):
        """Test that a constant continuous column raises DegenerateColumnError."""
        frame = heart_frame.copy()
        frame['trestbps'] = 0.1
        dataset = dataset_from_frame(frame)

        with pytest.raises(DegenerateColumnError) as excinfo:
            standardize(dataset)

        assert excinfo.value.column == 'trestbps'
        assert excinfo.value.stage == 'standardize'


class TestColumnStats:
    """Tests for column_stats."""

    def test_column_stats(self):
        """Test stats on a small table."""
        frame = pd.DataFrame({'a': [1.0, 2.0, 3.0], 'b': [2.0, 2.0, 5.0]})
        stats = column_stats(frame)

        assert np.isclose(stats['mean']['a'], 2.0)
        assert np.isclose(stats['std']['a'], 1.0)
        assert np.isclose(stats['mean']['b'], 3.0)
        assert np.isclose(stats['std']['b'], np.sqrt(3.0))
