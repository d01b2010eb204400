"""
Tests for assignment and silhouette quality metrics.
"""

import math

import numpy as np
import pytest

from stream_cluster_tuner.algorithms import (
    ClusteringResult,
    SilhouetteMetric,
    assign_to_centers,
    pairwise_distances,
    silhouette_score_chunked,
    silhouette_score_precomputed,
)


def _silhouette_reference(X, labels):
    """Direct per-point silhouette, points alone in their cluster score 0."""
    values = []
    for i in range(len(X)):
        own = labels == labels[i]
        own[i] = False
        if not own.any():
            values.append(0.0)
            continue
        d = np.linalg.norm(X - X[i], axis=1)
        a = d[own].mean()
        b = min(d[labels == c].mean() for c in np.unique(labels) if c != labels[i])
        values.append(0.0 if b == 0 else (b - a) / max(a, b))
    return float(np.mean(values))


def test_assign_to_centers():
    points = np.array([[0.0, 0.1], [4.9, 5.0], [0.2, 4.8]])
    centers = np.array([[0.0, 0.0], [0.0, 5.0], [5.0, 5.0]])
    np.testing.assert_array_equal(assign_to_centers(points, centers), [0, 2, 1])


def test_pairwise_distances():
    X = np.array([[0.0, 0.0], [3.0, 4.0], [6.0, 8.0]])
    D = pairwise_distances(X)
    np.testing.assert_allclose(D, [[0, 5, 10], [5, 0, 5], [10, 5, 0]], atol=1e-12)


def test_silhouette_matches_direct_computation():
    gen = np.random.default_rng(3)
    X = gen.standard_normal((40, 3))
    labels = gen.integers(0, 4, size=40)
    labels[0] = 9  # singleton cluster
    expected = _silhouette_reference(X, labels)
    assert silhouette_score_precomputed(labels, pairwise_distances(X)) == pytest.approx(expected)


@pytest.mark.parametrize("chunk_size", [1, 7, 40, 1024])
def test_chunked_silhouette_matches_full_matrix(chunk_size):
    gen = np.random.default_rng(5)
    X = gen.standard_normal((40, 3))
    labels = gen.integers(0, 3, size=40)
    labels[5] = 7  # singleton cluster
    expected = silhouette_score_precomputed(labels, pairwise_distances(X))
    assert silhouette_score_chunked(labels, X, chunk_size) == pytest.approx(expected)


def test_chunked_silhouette_rejects_bad_chunk_size():
    with pytest.raises(ValueError, match="chunk_size"):
        silhouette_score_chunked(np.array([0, 1]), np.zeros((2, 2)), 0)


def test_chunked_silhouette_single_cluster_is_zero():
    X = np.random.default_rng(0).standard_normal((10, 2))
    assert silhouette_score_chunked(np.zeros(10, dtype=int), X, 3) == 0.0


def test_silhouette_single_cluster_is_zero():
    X = np.random.default_rng(0).standard_normal((10, 2))
    assert silhouette_score_precomputed(np.zeros(10, dtype=int), pairwise_distances(X)) == 0.0


def test_silhouette_of_separated_blobs_is_high(blobs):
    labels = assign_to_centers(blobs, np.array([[0.0, 0.0], [5.0, 5.0], [0.0, 5.0]]))
    assert silhouette_score_precomputed(labels, pairwise_distances(blobs)) > 0.9


class TestSilhouetteMetric:
    def test_rescaled_to_unit_interval(self, blobs):
        clustering = ClusteringResult(centers=[[0.0, 0.0], [5.0, 5.0], [0.0, 5.0]])
        raw = SilhouetteMetric(rescale=False).score(clustering, blobs)
        scaled = SilhouetteMetric().score(clustering, blobs)
        assert scaled == pytest.approx((raw + 1.0) / 2.0)
        assert 0.0 <= scaled <= 1.0

    def test_single_centre_scores_midpoint(self, blobs):
        clustering = ClusteringResult(centers=[[2.0, 2.0]])
        assert SilhouetteMetric().score(clustering, blobs) == pytest.approx(0.5)

    def test_chunk_size_does_not_change_score(self, blobs):
        clustering = ClusteringResult(centers=[[0.0, 0.0], [5.0, 5.0], [0.0, 5.0]])
        small = SilhouetteMetric(chunk_size=16).score(clustering, blobs)
        assert small == pytest.approx(SilhouetteMetric().score(clustering, blobs))

    def test_too_few_points_is_nan(self):
        clustering = ClusteringResult(centers=[[0.0, 0.0], [1.0, 1.0]])
        assert math.isnan(SilhouetteMetric().score(clustering, np.zeros((1, 2))))

    def test_better_clustering_scores_higher(self, blobs):
        good = ClusteringResult(centers=[[0.0, 0.0], [5.0, 5.0], [0.0, 5.0]])
        poor = ClusteringResult(centers=[[0.0, 2.5], [5.0, 5.0]])
        metric = SilhouetteMetric()
        assert metric.score(good, blobs) > metric.score(poor, blobs)


def test_clustering_result_defaults():
    result = ClusteringResult(centers=[1.0, 2.0])
    assert result.centers.shape == (1, 2)
    np.testing.assert_array_equal(result.weights, [1.0])
    assert result.metadata == {}
    assert result.n_clusters == 1
