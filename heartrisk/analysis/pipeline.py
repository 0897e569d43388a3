"""
Heart-disease risk analysis pipeline.

The pipeline runs every stage once, in order, over an in-memory table:
standardize, PCA, clustering, discretization, rule mining and
interpretation. Each stage returns new tables; a failing stage aborts the
run.
"""

import os
import json
import logging
import numpy as np
import pandas as pd
from typing import Any, Callable, Dict, Optional

from heartrisk.components.config import Config
from heartrisk.data.loader import Dataset, load_dataset
from heartrisk.errors import AnalysisError
from heartrisk.math.standardize import standardize
from heartrisk.math.pca import pca_project_dataframe, variance_summary, parallel_analysis
from heartrisk.math.clusters import (
    kmeans, clusters_to_labels, clusters_to_dict, hierarchical_labels,
    compare_assignments, silhouette, wss_curve
)
from heartrisk.math.discretize import discretize_components, bin_ranges
from heartrisk.math.rules import mine_rules, format_rule
from heartrisk.math.corr import (
    component_correlations, label_components, cluster_profiles, cluster_bin_counts
)

logger = logging.getLogger(__name__)


class AnalysisResult:
    """
    Every table produced by one analysis run.
    """

    def __init__(self, dataset: Dataset, config: Config):
        self.dataset = dataset
        self.config = config

        self.standardized: Optional[pd.DataFrame] = None
        self.column_stats: Optional[Dict[str, pd.Series]] = None

        self.pca_results: Optional[Dict[str, Any]] = None
        self.scores: Optional[pd.DataFrame] = None
        self.variance: Optional[pd.DataFrame] = None
        self.parallel: Optional[Dict[str, Any]] = None

        self.kmeans_clusters: Optional[list] = None
        self.kmeans_labels: Optional[pd.Series] = None
        self.hierarchical_labels: Optional[pd.Series] = None
        self.cluster_comparison: Optional[Dict[str, Any]] = None
        self.silhouettes: Dict[str, float] = {}
        self.wss: Optional[pd.Series] = None

        self.discrete: Optional[pd.DataFrame] = None
        self.bin_ranges: Optional[pd.DataFrame] = None

        self.itemsets: Optional[pd.DataFrame] = None
        self.rules: Optional[pd.DataFrame] = None

        self.correlations: Optional[pd.DataFrame] = None
        self.component_labels: Optional[Dict[str, list]] = None
        self.profiles: Optional[pd.DataFrame] = None
        self.bin_counts: Optional[pd.DataFrame] = None

    def summary(self, n_rules: int = 5) -> Dict[str, Any]:
        """
        Small report of the run.

        Args:
            n_rules: Number of top rules to include

        Returns:
            JSON-serializable dictionary
        """
        n_comps = self.scores.shape[1]
        return {
            'rows': len(self.dataset),
            'continuous_columns': self.dataset.continuous_columns,
            'categorical_columns': self.dataset.categorical_columns,
            'explained_variance': [
                round(float(v), 4)
                for v in self.pca_results['explained_variance_ratio'][:n_comps]
            ],
            'parallel_analysis_components': self.parallel['n_components'],
            'kmeans_sizes': self.kmeans_labels.value_counts().sort_index().tolist(),
            'hierarchical_sizes': self.hierarchical_labels.value_counts().sort_index().tolist(),
            'adjusted_rand': round(self.cluster_comparison['adjusted_rand'], 4),
            'silhouette': {k: round(v, 4) for k, v in self.silhouettes.items()},
            'n_itemsets': len(self.itemsets),
            'n_rules': len(self.rules),
            'top_rules': [format_rule(rule) for _, rule in self.rules.head(n_rules).iterrows()],
            'component_labels': self.component_labels
        }


def _run_stage(name: str, func: Callable, *args, **kwargs):
    logger.info(f"Stage {name}")
    try:
        return func(*args, **kwargs)
    except AnalysisError as e:
        logger.error(f"Stage {name} failed: {e}")
        raise


def analyze_dataset(dataset: Dataset, config: Optional[Config] = None) -> AnalysisResult:
    """
    Run every analysis stage over a loaded dataset.

    Args:
        dataset: Loaded dataset
        config: Run configuration (defaults if None)

    Returns:
        AnalysisResult
    """
    config = config or Config()
    result = AnalysisResult(dataset, config)

    k = config.get('clustering.k')
    seed = config.get('clustering.seed')
    max_iters = config.get('clustering.max-iters')

    # Standardization
    result.standardized, result.column_stats = _run_stage('standardize', standardize, dataset)

    # Dimensionality reduction
    result.pca_results, result.scores = _run_stage(
        'pca', pca_project_dataframe, result.standardized,
        config.get('pca.n-comps'), config.get('pca.tolerance')
    )
    result.variance = variance_summary(result.pca_results)
    result.parallel = parallel_analysis(result.standardized,
                                        n_iter=config.get('pca.parallel-iters') or 100,
                                        seed=seed)

    # Clustering
    data = result.scores.to_numpy(dtype=float)
    result.kmeans_clusters = _run_stage('cluster', kmeans, data, k, max_iters, seed)
    result.kmeans_labels = pd.Series(clusters_to_labels(result.kmeans_clusters, len(data)),
                                     index=result.scores.index, name='kmeans')
    result.hierarchical_labels = _run_stage('cluster', hierarchical_labels, result.scores, k,
                                            config.get('clustering.linkage'))
    result.cluster_comparison = compare_assignments(result.kmeans_labels,
                                                    result.hierarchical_labels)
    result.silhouettes = {
        'kmeans': silhouette(data, result.kmeans_labels),
        'hierarchical': silhouette(data, result.hierarchical_labels)
    }
    wss_max_k = min(config.get('clustering.wss-max-k') or k, len(data))
    result.wss = wss_curve(data, range(1, wss_max_k + 1), max_iters, seed)

    # Discretization
    result.discrete = _run_stage('discretize', discretize_components, result.scores,
                                 config.get('discretize.n-bins'),
                                 config.get('discretize.labels'))
    result.bin_ranges = bin_ranges(result.scores, result.discrete)

    # Rule mining
    result.itemsets, result.rules = _run_stage(
        'rules', mine_rules, result.discrete,
        config.get('rules.min-support'),
        config.get('rules.min-confidence'),
        config.get('rules.max-len')
    )

    # Interpretation
    result.correlations = component_correlations(result.scores, dataset.continuous)
    result.component_labels = label_components(result.correlations,
                                               config.get('interpretation.top-n') or 2)
    result.profiles = cluster_profiles(result.scores, result.kmeans_labels)
    result.bin_counts = cluster_bin_counts(result.kmeans_labels, result.discrete.iloc[:, 0])

    logger.info("Analysis complete")
    return result


def run_analysis(config: Optional[Config] = None) -> AnalysisResult:
    """
    Load the configured dataset and analyze it.

    Args:
        config: Run configuration (defaults if None)

    Returns:
        AnalysisResult
    """
    config = config or Config()
    dataset = _run_stage('load', load_dataset,
                         config.get('data.path'),
                         config.get('data.target-column'),
                         config.get('data.categorical-columns'))
    return analyze_dataset(dataset, config)


def _rules_for_export(rules: pd.DataFrame) -> pd.DataFrame:
    exported = rules.copy()
    for column in ('antecedents', 'consequents'):
        exported[column] = exported[column].apply(lambda s: ', '.join(sorted(s)))
    return exported


def export_results(result: AnalysisResult, output_dir: str) -> None:
    """
    Write the output tables as CSV and the summary as JSON.

    Args:
        result: Completed analysis
        output_dir: Directory to write into (created if missing)
    """
    os.makedirs(output_dir, exist_ok=True)

    tables = {
        'components.csv': result.scores,
        'variance.csv': result.variance,
        'clusters.csv': pd.concat([result.kmeans_labels, result.hierarchical_labels], axis=1),
        'discretized.csv': result.discrete,
        'bin_ranges.csv': result.bin_ranges,
        'rules.csv': _rules_for_export(result.rules),
        'correlations.csv': result.correlations,
        'cluster_profiles.csv': result.profiles,
    }
    for filename, table in tables.items():
        table.to_csv(os.path.join(output_dir, filename))

    summary = result.summary()
    summary['kmeans_centers'] = [
        {'label': c['label'], 'center': c['center'], 'size': c['size']}
        for c in clusters_to_dict(result.kmeans_clusters)
    ]
    with open(os.path.join(output_dir, 'summary.json'), 'w') as f:
        json.dump(summary, f, indent=2, default=_json_default)

    logger.info(f"Wrote results to {output_dir}")


def _json_default(value: Any) -> Any:
    if isinstance(value, np.generic):
        return value.item()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")
