"""
Z-score standardization of the continuous attributes.
"""

import logging
import numpy as np
import pandas as pd
from typing import Dict, Tuple

from heartrisk.data.loader import Dataset
from heartrisk.errors import DegenerateColumnError

logger = logging.getLogger(__name__)

# Relative tolerance below which a standard deviation counts as zero
ZERO_STD_TOLERANCE = 1e-12


def column_stats(frame: pd.DataFrame) -> Dict[str, pd.Series]:
    """
    Compute the sample mean and sample standard deviation of each column.

    Args:
        frame: Numeric table

    Returns:
        Dictionary with 'mean' and 'std' Series indexed by column name
    """
    return {
        'mean': frame.mean(axis=0),
        'std': frame.std(axis=0, ddof=1)
    }


def standardize(dataset: Dataset) -> Tuple[pd.DataFrame, Dict[str, pd.Series]]:
    """
    Standardize continuous attributes and recombine with categorical ones.

    Args:
        dataset: Loaded dataset

    Returns:
        Tuple of (standardized table, column stats). The table holds the
        continuous columns first, then the categorical columns unchanged.
    """
    continuous = dataset.continuous
    stats = column_stats(continuous)

    for column in continuous.columns:
        mean = stats['mean'][column]
        std = stats['std'][column]
        if not np.isfinite(std) or std <= ZERO_STD_TOLERANCE * max(1.0, abs(mean)):
            raise DegenerateColumnError("Standard deviation is zero", column=column)

    scaled = (continuous - stats['mean']) / stats['std']
    table = pd.concat([scaled, dataset.categorical], axis=1)

    logger.info(f"Standardized {len(dataset.continuous_columns)} continuous columns "
                f"over {len(table)} rows")
    return table, stats


def inverse_standardize(table: pd.DataFrame, stats: Dict[str, pd.Series]) -> pd.DataFrame:
    """
    Restore original units for the standardized columns.

    Args:
        table: Standardized table
        stats: Column stats returned by standardize

    Returns:
        Table with continuous columns back in original units
    """
    result = table.copy()
    columns = list(stats['mean'].index)
    result[columns] = table[columns] * stats['std'] + stats['mean']
    return result
