"""
Clustering quality metrics.

Provides nearest-centre assignment, silhouette scores (over a precomputed
distance matrix, or from points in row chunks), and SilhouetteMetric, the
default quality metric scored on each evaluation window.
"""

from __future__ import annotations

import numpy as np

from .base import ClusteringResult

Array2D = np.ndarray


def assign_to_centers(points: Array2D, centers: Array2D) -> np.ndarray:
    """
    Assign each row of *points* to its nearest centre (Euclidean).

    Args:
        points: (n, d) data points
        centers: (K, d) cluster centres

    Returns:
        (n,) array of centre indices
    """
    # ||p - c||² = ||p||² + ||c||² - 2·p·c
    p_sq = np.sum(points ** 2, axis=1, keepdims=True)       # (n, 1)
    c_sq = np.sum(centers ** 2, axis=1, keepdims=True).T    # (1, K)
    cross = points @ centers.T                              # (n, K)
    return np.argmin(p_sq + c_sq - 2.0 * cross, axis=1)


def pairwise_distances(points: Array2D) -> Array2D:
    """Euclidean distance matrix of shape (n, n)."""
    sq = np.sum(points ** 2, axis=1)
    d2 = sq[:, None] + sq[None, :] - 2.0 * (points @ points.T)
    np.maximum(d2, 0.0, out=d2)
    np.fill_diagonal(d2, 0.0)
    return np.sqrt(d2)


def _onehot(inverse: np.ndarray, n_clusters: int) -> Array2D:
    onehot = np.zeros((len(inverse), n_clusters))
    onehot[np.arange(len(inverse)), inverse] = 1.0
    return onehot


def _silhouette_rows(sums: Array2D, own: np.ndarray, counts: np.ndarray) -> np.ndarray:
    """Per-row silhouette; ``sums[i, c]`` is the distance total from row i to cluster c."""
    rows = np.arange(len(own))
    own_count = counts[own]
    a = np.where(own_count > 1, sums[rows, own] / np.maximum(own_count - 1, 1), 0.0)

    mean_other = sums / counts[None, :]
    mean_other[rows, own] = np.inf
    b = mean_other.min(axis=1)

    valid = (own_count > 1) & (b > 0)
    denom = np.where(valid, np.maximum(a, b), 1.0)
    return np.where(valid, (b - a) / denom, 0.0)


def silhouette_score_precomputed(labels: np.ndarray, dist: Array2D) -> float:
    """
    Compute the mean silhouette width using a precomputed distance matrix.

    Points alone in their cluster contribute 0. A clustering with a single
    non-empty cluster scores 0.

    Args:
        labels: Cluster assignments of shape (n,)
        dist: Distance matrix of shape (n, n)

    Returns:
        Mean silhouette in [-1, 1]
    """
    labels = np.asarray(labels)
    unique, inverse, counts = np.unique(labels, return_inverse=True, return_counts=True)
    if len(unique) < 2:
        return 0.0
    onehot = _onehot(inverse, len(unique))
    return float(np.mean(_silhouette_rows(dist @ onehot, inverse, counts)))


def silhouette_score_chunked(labels: np.ndarray, points: Array2D, chunk_size: int = 1024) -> float:
    """
    Mean silhouette width computed from points, ``chunk_size`` rows at a time.

    Same result as ``silhouette_score_precomputed(labels,
    pairwise_distances(points))``, but peak memory is ``chunk_size * n``
    distances instead of ``n * n``.

    Raises:
        ValueError: If chunk_size is not positive
    """
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be >= 1, got {chunk_size}")
    labels = np.asarray(labels)
    points = np.asarray(points, dtype=np.float64)
    unique, inverse, counts = np.unique(labels, return_inverse=True, return_counts=True)
    if len(unique) < 2:
        return 0.0

    onehot = _onehot(inverse, len(unique))
    sq = np.sum(points ** 2, axis=1)
    sil = np.empty(len(labels))
    for start in range(0, len(labels), chunk_size):
        stop = min(start + chunk_size, len(labels))
        d2 = sq[start:stop, None] + sq[None, :] - 2.0 * (points[start:stop] @ points.T)
        np.maximum(d2, 0.0, out=d2)
        d2[np.arange(stop - start), np.arange(start, stop)] = 0.0
        sil[start:stop] = _silhouette_rows(np.sqrt(d2) @ onehot, inverse[start:stop], counts)
    return float(np.mean(sil))


class SilhouetteMetric:
    """
    Silhouette quality of a clustering on a window of points.

    Window points are assigned to their nearest reported centre and the mean
    silhouette width of that partition is returned. With ``rescale=True``
    (the default) the value is mapped from [-1, 1] to [0, 1] so it can be
    used directly as a roulette-wheel weight. Distances are computed
    ``chunk_size`` rows at a time, so memory grows linearly with the window.
    """

    def __init__(self, rescale: bool = True, chunk_size: int = 1024):
        self.rescale = rescale
        self.chunk_size = chunk_size

    def score(self, clustering: ClusteringResult, points: Array2D) -> float:
        """
        Score *clustering* on *points*; higher is better.

        Returns NaN when fewer than two points are available.
        """
        points = np.asarray(points, dtype=np.float64)
        if points.ndim != 2 or points.shape[0] < 2 or clustering.n_clusters == 0:
            return float("nan")
        labels = assign_to_centers(points, clustering.centers)
        value = silhouette_score_chunked(labels, points, self.chunk_size)
        if self.rescale:
            value = (value + 1.0) / 2.0
        return value
