"""
Leader clustering with fading micro-clusters.

Each point joins the nearest micro-cluster within ``radius`` or opens a new
one. Weights fade by ``2 ** -fading`` per point and the lightest
micro-cluster is dropped once more than ``max_clusters`` exist. Clusters
whose weight reaches ``min_weight`` are reported; with ``merge`` set,
reported centres closer than ``radius`` are merged.
"""

from __future__ import annotations

from typing import Optional
import numpy as np

from .base import BaseStreamClusterer, ClusteringResult, OptionSpec, parse_flag

DISTANCES = ("euclidean", "manhattan", "chebyshev")


def _distances(centers: np.ndarray, x: np.ndarray, metric: str) -> np.ndarray:
    diff = np.abs(centers - x[None, :])
    if metric == "euclidean":
        return np.sqrt(np.sum(diff ** 2, axis=1))
    if metric == "manhattan":
        return np.sum(diff, axis=1)
    return np.max(diff, axis=1)


class LeaderClusterer(BaseStreamClusterer):
    """Threshold-based online clustering over decaying micro-clusters."""

    name = "leader"
    OPTIONS = {
        "radius": OptionSpec(float, 0.5),
        "max_clusters": OptionSpec(int, 50),
        "fading": OptionSpec(float, 0.0),
        "min_weight": OptionSpec(float, 1.0),
        "distance": OptionSpec(str, "euclidean", choices=DISTANCES),
        "merge": OptionSpec(parse_flag, False, is_flag=True),
    }
    supports_in_place_update = True

    def validate_options(self) -> None:
        if self.radius <= 0:
            raise ValueError(f"radius must be > 0, got {self.radius}")
        if self.max_clusters < 1:
            raise ValueError(f"max_clusters must be >= 1, got {self.max_clusters}")
        if self.fading < 0:
            raise ValueError(f"fading must be >= 0, got {self.fading}")

    def reset_learning(self) -> None:
        self.centers: Optional[np.ndarray] = None
        self.weights: Optional[np.ndarray] = None
        self.points_seen = 0

    def _prune(self) -> None:
        if self.centers is None or len(self.centers) <= self.max_clusters:
            return
        keep = np.sort(np.argsort(-self.weights, kind="stable")[: self.max_clusters])
        self.centers = self.centers[keep]
        self.weights = self.weights[keep]

    def train_on_point(self, point: np.ndarray) -> None:
        x = np.asarray(point, dtype=np.float64).ravel()
        self.points_seen += 1
        if self.centers is None:
            self.centers = x[None, :].copy()
            self.weights = np.ones(1)
            return

        if self.fading > 0:
            self.weights *= 2.0 ** (-self.fading)

        dist = _distances(self.centers, x, self.distance)
        j = int(np.argmin(dist))
        if dist[j] <= self.radius:
            w = self.weights[j]
            self.centers[j] += (x - self.centers[j]) / (w + 1.0)
            self.weights[j] = w + 1.0
        else:
            self.centers = np.vstack([self.centers, x])
            self.weights = np.append(self.weights, 1.0)
            self._prune()

    def _merge(self, centers: np.ndarray, weights: np.ndarray):
        merged_c = []
        merged_w = []
        for c, w in sorted(zip(centers, weights), key=lambda cw: -cw[1]):
            for i, mc in enumerate(merged_c):
                if _distances(mc[None, :], c, self.distance)[0] <= self.radius:
                    total = merged_w[i] + w
                    merged_c[i] = (mc * merged_w[i] + c * w) / total
                    merged_w[i] = total
                    break
            else:
                merged_c.append(c.copy())
                merged_w.append(w)
        return np.vstack(merged_c), np.asarray(merged_w)

    def get_clustering_result(self) -> Optional[ClusteringResult]:
        if self.centers is None:
            return None
        mask = self.weights >= self.min_weight
        if not mask.any():
            return None
        centers, weights = self.centers[mask], self.weights[mask]
        if self.merge:
            centers, weights = self._merge(centers, weights)
        return ClusteringResult(
            centers=centers.copy(),
            weights=weights.copy(),
            metadata={"algorithm": self.name, "micro_clusters": int(len(self.centers))},
        )

    def adjust_parameters(self) -> bool:
        try:
            self.validate_options()
        except ValueError:
            return False
        self._prune()
        return True
