"""
Sampling primitives shared by the configuration search.

Provides truncated-normal draws for numeric parameters and roulette-wheel
(fitness-proportional) index selection.
"""

from __future__ import annotations

from typing import Sequence
import numpy as np
from scipy.stats import truncnorm


def sample_truncated_normal(
    mean: float, std: float, low: float, high: float, rng: np.random.Generator
) -> float:
    """
    Draw one value from a normal distribution truncated to ``[low, high]``.

    Args:
        mean: Centre of the untruncated distribution
        std: Spread of the untruncated distribution (must be > 0)
        low: Lower bound of the domain (inclusive)
        high: Upper bound of the domain (inclusive)
        rng: NumPy random generator

    Returns:
        A float inside ``[low, high]``

    Raises:
        ValueError: If the bounds are inverted or std is not positive
    """
    if low > high:
        raise ValueError(f"low ({low}) must be <= high ({high})")
    if not std > 0:
        raise ValueError(f"std must be > 0, got {std}")
    if low == high:
        return float(low)

    a = (low - mean) / std
    b = (high - mean) / std
    value = truncnorm.rvs(a, b, loc=mean, scale=std, random_state=rng)
    # truncnorm may land a hair outside the bounds on extreme tails
    return float(np.clip(value, low, high))


def roulette_wheel_select(weights: Sequence[float], rng: np.random.Generator) -> int:
    """
    Select an index with probability proportional to its weight.

    Args:
        weights: Non-negative weights, at least one strictly positive
        rng: NumPy random generator

    Returns:
        Index into *weights*

    Raises:
        ValueError: If weights are empty, negative, non-finite, or sum to zero
    """
    w = np.asarray(weights, dtype=np.float64)
    if w.ndim != 1 or w.size == 0:
        raise ValueError("roulette wheel needs a non-empty 1-D weight vector")
    if not np.all(np.isfinite(w)):
        raise ValueError(f"roulette wheel weights must be finite, got {w.tolist()}")
    if np.any(w < 0):
        raise ValueError(f"roulette wheel weights must be >= 0, got {w.tolist()}")
    total = w.sum()
    if total <= 0:
        raise ValueError("roulette wheel weights sum to zero")

    cumulative = np.cumsum(w)
    pick = rng.random() * total
    idx = int(np.searchsorted(cumulative, pick, side="right"))
    # pick == total can only happen through rounding; clamp to the last
    # entry with positive weight
    if idx >= w.size:
        idx = int(np.flatnonzero(w > 0)[-1])
    return idx
