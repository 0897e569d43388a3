"""
Correlation-based interpretation of principal components.

This module relates component scores back to the original continuous
attributes and summarizes clusters in component space.
"""

import logging
import numpy as np
import pandas as pd
from typing import Dict, List

logger = logging.getLogger(__name__)


def correlation_matrix(a: pd.DataFrame, b: pd.DataFrame) -> pd.DataFrame:
    """
    Pearson correlation between every column of a and every column of b.

    Args:
        a: First table
        b: Second table, aligned on the same rows

    Returns:
        DataFrame with a's columns as rows and b's columns as columns
    """
    b = b.loc[a.index]
    x = a.to_numpy(dtype=float)
    y = b.to_numpy(dtype=float)

    full = np.corrcoef(x, y, rowvar=False)
    corr = full[:x.shape[1], x.shape[1]:]

    # Constant columns have no defined correlation
    corr = np.nan_to_num(corr, nan=0.0)

    return pd.DataFrame(corr, index=a.columns, columns=b.columns)


def component_correlations(scores: pd.DataFrame, continuous: pd.DataFrame) -> pd.DataFrame:
    """
    Correlate each component with each original continuous attribute.

    Args:
        scores: Component table
        continuous: Original continuous attributes (unstandardized or not)

    Returns:
        DataFrame with components as rows and attributes as columns
    """
    corr = correlation_matrix(scores, continuous)
    logger.debug(f"Component correlations:\n{corr.round(3)}")
    return corr


def label_components(correlations: pd.DataFrame, top_n: int = 2) -> Dict[str, List[str]]:
    """
    Name each component by the attributes it correlates with most.

    Args:
        correlations: Result of component_correlations
        top_n: Number of attributes per component

    Returns:
        Dictionary mapping component name to attribute names, strongest
        absolute correlation first
    """
    labels = {}
    for component, row in correlations.iterrows():
        strongest = row.abs().sort_values(ascending=False, kind='stable')
        labels[component] = list(strongest.index[:top_n])
    return labels


def cluster_profiles(scores: pd.DataFrame, labels: pd.Series) -> pd.DataFrame:
    """
    Mean and median of every component within each cluster.

    Args:
        scores: Component table
        labels: ClusterAssignment over the same rows

    Returns:
        DataFrame indexed by cluster label with (component, statistic) columns
    """
    grouped = scores.groupby(labels.loc[scores.index].rename('cluster'))
    profiles = grouped.agg(['mean', 'median'])
    profiles['size'] = grouped.size()
    return profiles


def cluster_bin_counts(labels: pd.Series, discrete_column: pd.Series) -> pd.DataFrame:
    """
    Count records per cluster and bin of one discretized component.

    Args:
        labels: ClusterAssignment
        discrete_column: One column of the discretized table

    Returns:
        Contingency table with clusters as rows and bins as columns
    """
    return pd.crosstab(labels.rename('cluster'), discrete_column.loc[labels.index], dropna=False)
