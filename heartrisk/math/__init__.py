"""
Core algorithms of the risk analysis.

This module contains implementations of:
- Standardization
- Principal Component Analysis (PCA)
- K-means and hierarchical clustering
- Frequency discretization
- Association rule mining
- Correlation-based interpretation
"""

from heartrisk.math.standardize import standardize
from heartrisk.math.pca import pca_project_dataframe
from heartrisk.math.clusters import kmeans_labels, hierarchical_labels, Cluster
from heartrisk.math.discretize import discretize_components
from heartrisk.math.rules import mine_rules
from heartrisk.math.corr import component_correlations

__all__ = [
    'standardize',
    'pca_project_dataframe',
    'kmeans_labels',
    'hierarchical_labels',
    'Cluster',
    'discretize_components',
    'mine_rules',
    'component_correlations',
]
