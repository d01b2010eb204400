"""Bounded buffer of the stream points seen since the last evaluation cycle."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List
import numpy as np


@dataclass(frozen=True)
class WindowBatch:
    """
    Immutable view of a full window handed to the evaluator.

    Attributes:
        indices: Arrival index of each point, shape (n,)
        points: Stacked points, shape (n, d)
    """

    indices: np.ndarray
    points: np.ndarray

    def __len__(self) -> int:
        return int(self.indices.shape[0])


class Window:
    """Append-only buffer holding at most ``max_size`` points."""

    def __init__(self, max_size: int):
        if max_size < 1:
            raise ValueError(f"max_size must be >= 1, got {max_size}")
        self.max_size = max_size
        self._indices: List[int] = []
        self._points: List[np.ndarray] = []

    def __len__(self) -> int:
        return len(self._points)

    @property
    def is_full(self) -> bool:
        return len(self._points) >= self.max_size

    def append(self, point: np.ndarray, index: int) -> None:
        """
        Add a point with its arrival index.

        Raises:
            ValueError: If the window is already full or the point's
                dimensionality differs from earlier points
        """
        if self.is_full:
            raise ValueError(f"Window is full ({self.max_size} points); evaluate and clear it first")
        x = np.asarray(point, dtype=np.float64).ravel().copy()
        if self._points and x.shape != self._points[0].shape:
            raise ValueError(
                f"Point has {x.shape[0]} features, window holds {self._points[0].shape[0]}"
            )
        self._indices.append(int(index))
        self._points.append(x)

    def as_batch(self) -> WindowBatch:
        """Snapshot the buffer as read-only arrays."""
        indices = np.asarray(self._indices, dtype=np.int64)
        if self._points:
            points = np.vstack(self._points)
        else:
            points = np.empty((0, 0), dtype=np.float64)
        indices.setflags(write=False)
        points.setflags(write=False)
        return WindowBatch(indices=indices, points=points)

    def clear(self) -> None:
        self._indices = []
        self._points = []
