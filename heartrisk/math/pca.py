"""
PCA (Principal Component Analysis) of the standardized patient table.

Components come from the eigen-decomposition of the correlation matrix.
Every column is centered and scaled before the decomposition, so the
categorical columns carried through standardization get unit variance too.
"""

import logging
import numpy as np
import pandas as pd
from typing import Dict, List, Optional, Tuple, Any

from heartrisk.errors import NumericalInstabilityError

logger = logging.getLogger(__name__)


def component_names(n_comps: int) -> List[str]:
    """Column names PC1..PCn."""
    return [f"PC{i + 1}" for i in range(n_comps)]


def orient_components(comps: np.ndarray) -> np.ndarray:
    """
    Flip each component so its largest-magnitude loading is positive.

    Eigenvector signs are arbitrary; this only makes repeated runs agree.

    Args:
        comps: Components as rows

    Returns:
        Oriented copy of the components
    """
    oriented = np.array(comps, dtype=float, copy=True)
    for i, comp in enumerate(oriented):
        if comp[np.argmax(np.abs(comp))] < 0:
            oriented[i] = -comp
    return oriented


def _scale_columns(data: np.ndarray, colnames: List[str]) -> Tuple[np.ndarray, np.ndarray]:
    center = data.mean(axis=0)
    scale = data.std(axis=0, ddof=1)
    for name, s in zip(colnames, scale):
        if not np.isfinite(s) or s == 0:
            raise NumericalInstabilityError("Column has zero variance", column=name)
    return center, scale


def fit_pca(table: pd.DataFrame,
            n_comps: int = 4,
            tolerance: float = 1e-10) -> Dict[str, Any]:
    """
    Fit PCA on a table via the eigen-decomposition of its correlation matrix.

    Args:
        table: Standardized table (rows are records)
        n_comps: Number of components to keep
        tolerance: Smallest allowed ratio of the last to the first eigenvalue

    Returns:
        Dictionary with 'center', 'scale', 'comps', 'eigenvalues',
        'explained_variance_ratio' and 'columns' keys
    """
    colnames = [str(c) for c in table.columns]
    data = table.to_numpy(dtype=float)
    n_rows, n_cols = data.shape

    if not 1 <= n_comps <= n_cols:
        raise ValueError(f"n_comps must be between 1 and {n_cols}, got {n_comps}")

    if n_rows < 2:
        raise NumericalInstabilityError(f"PCA needs at least 2 rows, got {n_rows}")

    center, scale = _scale_columns(data, colnames)
    z = (data - center) / scale
    corr = z.T @ z / (n_rows - 1)

    eigenvalues, eigenvectors = np.linalg.eigh(corr)

    # Descending eigenvalue order
    order = np.argsort(eigenvalues)[::-1]
    eigenvalues = eigenvalues[order]
    eigenvectors = eigenvectors[:, order]

    if eigenvalues[-1] <= tolerance * eigenvalues[0]:
        raise NumericalInstabilityError(
            f"Correlation matrix is singular (smallest eigenvalue {eigenvalues[-1]:.3g})"
        )

    comps = orient_components(eigenvectors.T[:n_comps])
    explained = eigenvalues / eigenvalues.sum()

    logger.info(f"PCA kept {n_comps} of {n_cols} components explaining "
                f"{explained[:n_comps].sum():.1%} of variance")

    return {
        'center': center,
        'scale': scale,
        'comps': comps,
        'eigenvalues': eigenvalues,
        'explained_variance_ratio': explained,
        'columns': colnames
    }


def project(table: pd.DataFrame, pca_results: Dict[str, Any]) -> pd.DataFrame:
    """
    Project rows onto the fitted components.

    Args:
        table: Table with the columns PCA was fitted on
        pca_results: Result of fit_pca

    Returns:
        ComponentTable with columns PC1..PCn, indexed like the input
    """
    data = table[pca_results['columns']].to_numpy(dtype=float)
    z = (data - pca_results['center']) / pca_results['scale']
    scores = z @ pca_results['comps'].T
    return pd.DataFrame(scores,
                        index=table.index,
                        columns=component_names(scores.shape[1]))


def pca_project_dataframe(table: pd.DataFrame,
                          n_comps: int = 4,
                          tolerance: float = 1e-10) -> Tuple[Dict[str, Any], pd.DataFrame]:
    """
    Perform PCA on a DataFrame and project the data.

    Args:
        table: Standardized table
        n_comps: Number of components to keep
        tolerance: Singularity tolerance

    Returns:
        Tuple of (pca_results, scores)
    """
    pca_results = fit_pca(table, n_comps, tolerance)
    return pca_results, project(table, pca_results)


def reconstruct(scores: pd.DataFrame, pca_results: Dict[str, Any]) -> pd.DataFrame:
    """
    Map component scores back to the original columns.

    Only as many components as there are score columns are used.

    Args:
        scores: Component scores (PC1..PCm)
        pca_results: Result of fit_pca

    Returns:
        Approximation of the table PCA was fitted on
    """
    m = scores.shape[1]
    z = scores.to_numpy(dtype=float) @ pca_results['comps'][:m]
    data = z * pca_results['scale'] + pca_results['center']
    return pd.DataFrame(data, index=scores.index, columns=pca_results['columns'])


def reconstruction_error(table: pd.DataFrame,
                         pca_results: Dict[str, Any],
                         n_comps: int) -> float:
    """
    Mean squared error of reconstructing a table from its first components.

    Args:
        table: Table PCA was fitted on
        pca_results: Result of fit_pca holding at least n_comps components
        n_comps: Number of leading components to use

    Returns:
        Mean squared reconstruction error
    """
    if n_comps > len(pca_results['comps']):
        raise ValueError(f"Only {len(pca_results['comps'])} components available")

    scores = project(table, pca_results).iloc[:, :n_comps]
    approx = reconstruct(scores, pca_results)
    residual = table[pca_results['columns']].to_numpy(dtype=float) - approx.to_numpy()
    return float(np.mean(residual ** 2))


def variance_summary(pca_results: Dict[str, Any]) -> pd.DataFrame:
    """
    Standard deviation and explained variance of every component.

    Args:
        pca_results: Result of fit_pca

    Returns:
        DataFrame indexed PC1..PCp with 'std_dev', 'proportion' and
        'cumulative' columns
    """
    eigenvalues = pca_results['eigenvalues']
    ratio = pca_results['explained_variance_ratio']
    return pd.DataFrame({
        'std_dev': np.sqrt(np.clip(eigenvalues, 0.0, None)),
        'proportion': ratio,
        'cumulative': np.cumsum(ratio)
    }, index=component_names(len(eigenvalues)))


def parallel_analysis(table: pd.DataFrame,
                      n_iter: int = 100,
                      seed: Optional[int] = 123) -> Dict[str, Any]:
    """
    Compare observed eigenvalues against eigenvalues of random data.

    Components whose eigenvalue exceeds the mean eigenvalue of random
    normal tables of the same shape carry more than chance structure.

    Args:
        table: Standardized table
        n_iter: Number of random tables
        seed: Random seed

    Returns:
        Dictionary with 'observed', 'random' and 'n_components' keys
    """
    data = table.to_numpy(dtype=float)
    n_rows, n_cols = data.shape

    observed = np.sort(np.linalg.eigvalsh(np.corrcoef(data, rowvar=False)))[::-1]

    rng = np.random.RandomState(seed)
    simulated = np.zeros((n_iter, n_cols))
    for i in range(n_iter):
        noise = rng.standard_normal((n_rows, n_cols))
        simulated[i] = np.sort(np.linalg.eigvalsh(np.corrcoef(noise, rowvar=False)))[::-1]
    random_mean = simulated.mean(axis=0)

    # Count leading components above chance
    n_components = 0
    for obs, rnd in zip(observed, random_mean):
        if obs <= rnd:
            break
        n_components += 1

    logger.info(f"Parallel analysis suggests {n_components} components")

    return {
        'observed': observed,
        'random': random_mean,
        'n_components': n_components
    }
