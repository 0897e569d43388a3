"""
Frequency binning of component scores into ordered categories.
"""

import logging
import numpy as np
import pandas as pd
from typing import Optional, Sequence

from heartrisk.errors import InsufficientDataError

logger = logging.getLogger(__name__)

DEFAULT_LABELS = ('low', 'medium', 'high')


def frequency_bins(values, n_bins: int = 3, name: Optional[str] = None) -> np.ndarray:
    """
    Split values into n_bins groups of (approximately) equal count.

    The value at sorted position p of N falls in bin floor(p * n_bins / N).
    All copies of a repeated value take the bin of the first copy, so equal
    values never straddle a boundary and ties resolve to the lower bin.

    Args:
        values: One-dimensional numeric values
        n_bins: Number of bins
        name: Column name used in error messages

    Returns:
        Array of bin numbers 0..n_bins-1, aligned with the input
    """
    values = np.asarray(values, dtype=float)
    n = len(values)

    distinct = np.unique(values)
    if len(distinct) < n_bins:
        raise InsufficientDataError(
            f"Need at least {n_bins} distinct values, got {len(distinct)}", column=name
        )

    order = np.argsort(values, kind='stable')
    sorted_values = values[order]
    positional = (np.arange(n) * n_bins) // n

    # First sorted position of each distinct value
    first_pos = np.searchsorted(sorted_values, distinct, side='left')
    bin_of_value = positional[first_pos]

    bins = np.empty(n, dtype=int)
    bins[order] = bin_of_value[np.searchsorted(distinct, sorted_values)]

    counts = np.bincount(bins, minlength=n_bins)
    if np.any(counts == 0):
        logger.warning(f"Ties left empty bins in {name or 'column'}: counts {counts.tolist()}")

    return bins


def discretize_components(scores: pd.DataFrame,
                          n_bins: int = 3,
                          labels: Optional[Sequence[str]] = DEFAULT_LABELS) -> pd.DataFrame:
    """
    Bin each component column independently into ordered categories.

    Args:
        scores: Component table
        n_bins: Number of bins per column
        labels: Bin labels from lowest to highest

    Returns:
        DiscretizedComponentTable of ordered categoricals
    """
    if labels is None:
        labels = DEFAULT_LABELS if n_bins == 3 else [f"bin{i + 1}" for i in range(n_bins)]
    labels = list(labels)
    if len(labels) != n_bins:
        raise ValueError(f"Expected {n_bins} labels, got {len(labels)}")

    dtype = pd.CategoricalDtype(categories=labels, ordered=True)
    result = {}
    for column in scores.columns:
        bins = frequency_bins(scores[column].to_numpy(), n_bins, name=str(column))
        result[column] = pd.Categorical.from_codes(bins, dtype=dtype)

    discrete = pd.DataFrame(result, index=scores.index)
    logger.info(f"Discretized {scores.shape[1]} columns into {n_bins} frequency bins")
    return discrete


def bin_ranges(scores: pd.DataFrame, discrete: pd.DataFrame) -> pd.DataFrame:
    """
    Value range and size of every bin.

    Args:
        scores: Component table
        discrete: Its discretized version

    Returns:
        DataFrame indexed by (column, bin) with 'min', 'max' and 'count'
    """
    frames = []
    for column in discrete.columns:
        grouped = scores[column].groupby(discrete[column], observed=False)
        stats = grouped.agg(['min', 'max', 'count'])
        stats.index = pd.MultiIndex.from_product([[column], stats.index.astype(str)],
                                                 names=['column', 'bin'])
        frames.append(stats)
    return pd.concat(frames)
