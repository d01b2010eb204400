"""
Sequential (online) k-means.

Buffers the first ``warmup`` points, seeds ``k`` centres with the k-means++
rule, then moves the nearest centre toward every new point with step
``max(1 / count, decay)``.
"""

from __future__ import annotations

from typing import List, Optional
import numpy as np

from .base import BaseStreamClusterer, ClusteringResult, OptionSpec
from .metrics import assign_to_centers


def kmeanspp_init(Z: np.ndarray, K: int, rng: np.random.Generator) -> np.ndarray:
    """Return (K, d) initial centroids chosen by the k-means++ rule."""
    n, d = Z.shape
    if K > n:
        raise ValueError(f"K ({K}) cannot exceed number of samples ({n})")
    centroids = np.empty((K, d), dtype=np.float64)
    centroids[0] = Z[int(rng.integers(0, n))]

    for k in range(1, K):
        diffs = Z[:, None, :] - centroids[None, :k, :]  # (n, k, d)
        min_sq = np.sum(diffs ** 2, axis=2).min(axis=1)  # (n,)
        total = min_sq.sum()
        if total == 0.0:
            centroids[k] = Z[int(rng.integers(0, n))]
        else:
            centroids[k] = Z[int(rng.choice(n, p=min_sq / total))]
    return centroids


class OnlineKMeans(BaseStreamClusterer):
    """Online k-means with k-means++ seeding on a warm-up buffer."""

    name = "online_kmeans"
    OPTIONS = {
        "k": OptionSpec(int, 3),
        "decay": OptionSpec(float, 0.0),
        "warmup": OptionSpec(int, 50),
        "seed": OptionSpec(int, 0),
    }
    supports_in_place_update = True

    def validate_options(self) -> None:
        if self.k < 1:
            raise ValueError(f"k must be >= 1, got {self.k}")
        if not 0.0 <= self.decay < 1.0:
            raise ValueError(f"decay must be in [0, 1), got {self.decay}")
        if self.warmup < 1:
            raise ValueError(f"warmup must be >= 1, got {self.warmup}")

    def reset_learning(self) -> None:
        self.centers: Optional[np.ndarray] = None
        self.counts: Optional[np.ndarray] = None
        self._buffer: List[np.ndarray] = []
        self._rng = np.random.default_rng(self.seed)

    def _initialise(self) -> None:
        Z = np.vstack(self._buffer)
        self.centers = kmeanspp_init(Z, self.k, self._rng)
        labels = assign_to_centers(Z, self.centers)
        self.counts = np.bincount(labels, minlength=self.k).astype(np.float64)
        for j in range(self.k):
            members = Z[labels == j]
            if len(members):
                self.centers[j] = members.mean(axis=0)
        self._buffer = []

    def train_on_point(self, point: np.ndarray) -> None:
        x = np.asarray(point, dtype=np.float64).ravel()
        if self.centers is None:
            self._buffer.append(x)
            if len(self._buffer) >= max(self.warmup, self.k):
                self._initialise()
            return

        j = int(assign_to_centers(x[None, :], self.centers)[0])
        self.counts[j] += 1.0
        eta = max(1.0 / self.counts[j], self.decay)
        self.centers[j] += eta * (x - self.centers[j])

    def get_clustering_result(self) -> Optional[ClusteringResult]:
        if self.centers is None:
            return None
        return ClusteringResult(
            centers=self.centers.copy(),
            weights=self.counts.copy(),
            metadata={"algorithm": self.name},
        )

    def adjust_parameters(self) -> bool:
        """
        Shrinking ``k`` keeps the heaviest centres; growing ``k`` after
        initialisation cannot be reconciled and returns False.
        """
        try:
            self.validate_options()
        except ValueError:
            return False
        if self.centers is None or self.k == len(self.centers):
            return True
        if self.k > len(self.centers):
            return False
        keep = np.sort(np.argsort(-self.counts, kind="stable")[: self.k])
        self.centers = self.centers[keep]
        self.counts = self.counts[keep]
        return True
