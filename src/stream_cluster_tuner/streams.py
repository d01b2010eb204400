"""
Synthetic data streams.

RandomRBFStream emits points around randomly placed Gaussian centres that
drift over time, the usual benchmark source for stream clustering.
"""

from __future__ import annotations

import itertools
from typing import Iterator, Optional
import numpy as np


class RandomRBFStream:
    """
    Infinite stream of points drawn from drifting radial basis functions.

    Args:
        n_centers: Number of generating centres
        n_features: Dimensionality of the points
        radius: Standard deviation of each Gaussian blob
        drift: Distance every centre moves per emitted point
        seed: Random seed for reproducibility

    Raises:
        ValueError: If any size or spread is not positive
    """

    def __init__(
        self,
        n_centers: int = 5,
        n_features: int = 2,
        radius: float = 0.05,
        drift: float = 0.0,
        seed: Optional[int] = 0,
    ):
        if n_centers < 1:
            raise ValueError(f"n_centers must be >= 1, got {n_centers}")
        if n_features < 1:
            raise ValueError(f"n_features must be >= 1, got {n_features}")
        if radius <= 0:
            raise ValueError(f"radius must be > 0, got {radius}")
        if drift < 0:
            raise ValueError(f"drift must be >= 0, got {drift}")

        self.n_centers = n_centers
        self.n_features = n_features
        self.radius = radius
        self.drift = drift
        self._rng = np.random.default_rng(seed)
        self.centers = self._rng.uniform(0.0, 1.0, size=(n_centers, n_features))
        directions = self._rng.standard_normal((n_centers, n_features))
        self._directions = directions / np.maximum(np.linalg.norm(directions, axis=1, keepdims=True), 1e-12)
        self.points_emitted = 0

    def _move_centers(self) -> None:
        self.centers += self.drift * self._directions
        # bounce off the unit cube
        outside = (self.centers < 0.0) | (self.centers > 1.0)
        self._directions[outside] *= -1.0
        np.clip(self.centers, 0.0, 1.0, out=self.centers)

    def next_point(self) -> np.ndarray:
        """Emit one point."""
        j = int(self._rng.integers(0, self.n_centers))
        point = self.centers[j] + self._rng.standard_normal(self.n_features) * self.radius
        if self.drift > 0:
            self._move_centers()
        self.points_emitted += 1
        return point

    def take(self, n: int) -> np.ndarray:
        """Return the next *n* points stacked as an (n, n_features) array."""
        return np.vstack(list(itertools.islice(self, n))) if n > 0 else np.empty((0, self.n_features))

    def __iter__(self) -> Iterator[np.ndarray]:
        while True:
            yield self.next_point()
