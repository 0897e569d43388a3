"""
Clustering of patients in component space.

This module provides a seeded K-means implementation with deterministic
tie-breaking, and hierarchical agglomerative clustering (via scipy) cut at
the same number of clusters, so the two labelings can be compared.
"""

import logging
import numpy as np
import pandas as pd
from typing import Dict, List, Optional, Any, Iterable
import scipy.cluster.hierarchy as hcluster
from scipy.spatial.distance import pdist, cdist
from sklearn.metrics import adjusted_rand_score, silhouette_score

from heartrisk.errors import InvalidClusterCountError

logger = logging.getLogger(__name__)


class Cluster:
    """
    Represents a cluster in K-means clustering.
    """

    def __init__(self,
                 center: np.ndarray,
                 members: Optional[List[int]] = None,
                 id: Optional[int] = None):
        """
        Initialize a cluster with a center and optional members.

        Args:
            center: The center of the cluster
            members: Indices of members belonging to the cluster
            id: Unique identifier for the cluster
        """
        self.center = np.array(center, dtype=float)
        self.members = [] if members is None else list(members)
        self.id = id

    def add_member(self, idx: int) -> None:
        self.members.append(idx)

    def clear_members(self) -> None:
        self.members = []

    def update_center(self, data: np.ndarray) -> None:
        """
        Move the center to the mean of the members.

        An empty cluster keeps its current center.

        Args:
            data: Data matrix containing all points
        """
        if not self.members:
            return
        self.center = np.mean(data[self.members], axis=0)

    def __repr__(self) -> str:
        """String representation of the cluster."""
        return f"Cluster(id={self.id}, members={len(self.members)})"


def check_cluster_count(k: int, n_rows: int) -> None:
    """
    Reject a cluster count outside 1..n_rows.

    Args:
        k: Requested number of clusters
        n_rows: Number of rows to cluster
    """
    if k < 1 or k > n_rows:
        raise InvalidClusterCountError(f"k={k} must be between 1 and the row count {n_rows}")


def init_clusters(data: np.ndarray, k: int, seed: Optional[int] = 123) -> List[Cluster]:
    """
    Initialize k clusters with seeded, spread-out centers.

    The first center is a random row; each later center is drawn with
    probability proportional to its distance from the nearest chosen center.

    Args:
        data: Data matrix
        k: Number of clusters
        seed: Random seed

    Returns:
        List of initialized clusters with ids 0..k-1
    """
    n_points = data.shape[0]
    rng = np.random.RandomState(seed)

    centers = [data[rng.randint(0, n_points)]]

    for _ in range(1, k):
        min_dists = cdist(data, np.array(centers)).min(axis=1)

        # All points coincide with a center: choose uniformly
        if np.sum(min_dists) == 0:
            probs = np.ones(n_points) / n_points
        else:
            probs = min_dists / np.sum(min_dists)

        centers.append(data[rng.choice(n_points, p=probs)])

    return [Cluster(center, [], i) for i, center in enumerate(centers)]


def assign_points_to_clusters(data: np.ndarray, clusters: List[Cluster]) -> np.ndarray:
    """
    Assign each data point to the nearest cluster.

    Equal distances go to the cluster with the lowest index.

    Args:
        data: Data matrix
        clusters: List of clusters

    Returns:
        Array with the position of each point's cluster in the list
    """
    for cluster in clusters:
        cluster.clear_members()

    centers = np.array([cluster.center for cluster in clusters])
    # argmin returns the first minimum
    nearest = np.argmin(cdist(data, centers), axis=1)

    for i, c in enumerate(nearest):
        clusters[c].add_member(i)

    return nearest


def update_cluster_centers(data: np.ndarray, clusters: List[Cluster]) -> None:
    for cluster in clusters:
        cluster.update_center(data)


def kmeans(data: np.ndarray,
           k: int,
           max_iters: int = 100,
           seed: Optional[int] = 123) -> List[Cluster]:
    """
    Perform K-means clustering on the data.

    Iterates until assignments stop changing or max_iters is reached.

    Args:
        data: Data matrix
        k: Number of clusters
        max_iters: Maximum number of iterations
        seed: Random seed for center initialization

    Returns:
        List of k clusters with ids 0..k-1
    """
    data = np.asarray(data, dtype=float)
    check_cluster_count(k, data.shape[0])

    clusters = init_clusters(data, k, seed)
    labels = None

    for iteration in range(max_iters):
        new_labels = assign_points_to_clusters(data, clusters)

        if labels is not None and np.array_equal(new_labels, labels):
            logger.debug(f"K-means converged after {iteration} iterations")
            break

        labels = new_labels
        update_cluster_centers(data, clusters)
    else:
        logger.warning(f"K-means stopped at max_iters={max_iters} before converging")

    return clusters


def clusters_to_labels(clusters: List[Cluster], n_points: int) -> np.ndarray:
    """
    Convert clusters to a 1-based label per point.

    Args:
        clusters: List of clusters
        n_points: Number of points clustered

    Returns:
        Array of labels in 1..k
    """
    labels = np.zeros(n_points, dtype=int)
    for cluster in clusters:
        labels[cluster.members] = cluster.id + 1
    return labels


def kmeans_labels(scores: pd.DataFrame,
                  k: int = 3,
                  max_iters: int = 100,
                  seed: Optional[int] = 123) -> pd.Series:
    """
    Cluster the rows of a component table with K-means.

    Args:
        scores: Component table
        k: Number of clusters
        max_iters: Maximum number of iterations
        seed: Random seed

    Returns:
        ClusterAssignment: labels 1..k indexed like the input
    """
    data = scores.to_numpy(dtype=float)
    clusters = kmeans(data, k, max_iters, seed)
    labels = clusters_to_labels(clusters, data.shape[0])

    sizes = [len(c.members) for c in clusters]
    logger.info(f"K-means (k={k}, seed={seed}) cluster sizes: {sizes}")

    return pd.Series(labels, index=scores.index, name='kmeans')


def hierarchical_cluster(data: np.ndarray, method: str = 'complete') -> Dict[str, Any]:
    """
    Build a dendrogram over pairwise Euclidean distances.

    Args:
        data: Data matrix
        method: Linkage method ('single', 'complete', 'average', 'weighted',
                'centroid', 'median', 'ward')

    Returns:
        Dictionary with 'linkage' matrix and 'leaves' order
    """
    data = np.asarray(data, dtype=float)
    distances = pdist(data, metric='euclidean')
    linkage = hcluster.linkage(distances, method=method)

    return {
        'linkage': linkage,
        'leaves': hcluster.leaves_list(linkage).tolist()
    }


def hierarchical_labels(scores: pd.DataFrame,
                        k: int = 3,
                        method: str = 'complete') -> pd.Series:
    """
    Cluster the rows of a component table hierarchically and cut at k.

    Args:
        scores: Component table
        k: Number of clusters
        method: Linkage method

    Returns:
        ClusterAssignment: labels 1..k indexed like the input
    """
    data = scores.to_numpy(dtype=float)
    check_cluster_count(k, data.shape[0])

    if data.shape[0] == 1:
        labels = np.ones(1, dtype=int)
    else:
        hclust = hierarchical_cluster(data, method)
        labels = hcluster.fcluster(hclust['linkage'], t=k, criterion='maxclust')

    logger.info(f"Hierarchical ({method} linkage) cluster sizes: "
                f"{np.bincount(labels)[1:].tolist()}")

    return pd.Series(labels.astype(int), index=scores.index, name='hierarchical')


def within_cluster_ss(data: np.ndarray, clusters: List[Cluster]) -> float:
    """
    Total within-cluster sum of squared distances to the centers.

    Args:
        data: Data matrix
        clusters: List of clusters

    Returns:
        Sum of squares
    """
    total = 0.0
    for cluster in clusters:
        if cluster.members:
            total += float(np.sum((data[cluster.members] - cluster.center) ** 2))
    return total


def wss_curve(data: np.ndarray,
              k_values: Iterable[int],
              max_iters: int = 100,
              seed: Optional[int] = 123) -> pd.Series:
    """
    Within-cluster sum of squares for a range of k (elbow curve).

    Values of k larger than the row count are skipped.

    Args:
        data: Data matrix
        k_values: Cluster counts to try
        max_iters: Maximum K-means iterations
        seed: Random seed

    Returns:
        Series of sums of squares indexed by k
    """
    data = np.asarray(data, dtype=float)
    result = {}
    for k in k_values:
        if k > data.shape[0]:
            continue
        result[k] = within_cluster_ss(data, kmeans(data, k, max_iters, seed))
    return pd.Series(result, name='wss', dtype=float)


def silhouette(data: np.ndarray, labels: Iterable[int]) -> float:
    """
    Mean silhouette coefficient of a labeling.

    Args:
        data: Data matrix
        labels: Cluster label per row

    Returns:
        Silhouette coefficient (between -1 and 1), 0.0 when undefined
    """
    labels = np.asarray(list(labels))
    n_labels = len(np.unique(labels))
    if n_labels < 2 or n_labels >= len(labels):
        return 0.0
    return float(silhouette_score(data, labels, metric='euclidean'))


def compare_assignments(a: pd.Series, b: pd.Series) -> Dict[str, Any]:
    """
    Compare two cluster assignments over the same records.

    Args:
        a: First assignment
        b: Second assignment

    Returns:
        Dictionary with 'contingency' table and 'adjusted_rand' index
    """
    contingency = pd.crosstab(a, b)
    ari = float(adjusted_rand_score(a.to_numpy(), b.loc[a.index].to_numpy()))
    logger.info(f"Adjusted Rand index between {a.name} and {b.name}: {ari:.3f}")
    return {
        'contingency': contingency,
        'adjusted_rand': ari
    }


def clusters_to_dict(clusters: List[Cluster], data_indices: Optional[List[Any]] = None) -> List[Dict]:
    """
    Convert clusters to a dictionary format for reporting.

    Args:
        clusters: List of clusters
        data_indices: Optional mapping from numerical indices to record ids

    Returns:
        List of cluster dictionaries with 1-based labels
    """
    result = []

    for cluster in clusters:
        if data_indices is not None:
            members = [data_indices[idx] for idx in cluster.members]
        else:
            members = list(cluster.members)

        result.append({
            'label': cluster.id + 1,
            'center': cluster.center.tolist(),
            'size': len(members),
            'members': members
        })

    return result
