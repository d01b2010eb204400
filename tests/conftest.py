"""
Pytest configuration and shared fixtures.

This file is automatically discovered by pytest and provides fixtures
available to all test modules.
"""

import numpy as np
import pytest

from stream_cluster_tuner.algorithms import ClustererFactory
from stream_cluster_tuner.search import (
    Configuration,
    ParameterKind,
    ParameterSpec,
    Surrogate,
)
from stream_cluster_tuner.streams import RandomRBFStream


class MeanRegressor:
    """Deterministic stand-in regressor: predicts the mean of seen targets."""

    def __init__(self):
        self.total = 0.0
        self.count = 0
        self.seen = []

    def learn_one(self, x, y):
        self.seen.append((dict(x), y))
        self.total += y
        self.count += 1

    def predict_one(self, x):
        return self.total / self.count if self.count else 0.0


class FixedSurrogate(Surrogate):
    """Surrogate whose prediction is always *value*."""

    def __init__(self, value: float):
        super().__init__(regressor_factory=MeanRegressor)
        self.value = value

    def predict(self, schema, parameter_vector):
        return self.value


@pytest.fixture
def rng():
    return np.random.default_rng(42)


@pytest.fixture
def factory():
    return ClustererFactory()


@pytest.fixture
def blobs():
    """Three tight, well-separated 2-D blobs, 40 points each, shuffled."""
    gen = np.random.default_rng(0)
    centers = np.array([[0.0, 0.0], [5.0, 5.0], [0.0, 5.0]])
    X = np.vstack([c + gen.standard_normal((40, 2)) * 0.1 for c in centers])
    return X[gen.permutation(len(X))]


@pytest.fixture
def stream():
    return RandomRBFStream(n_centers=3, n_features=2, radius=0.02, seed=11)


@pytest.fixture
def make_leader(factory):
    """Build a materialized leader Configuration."""

    def _make(radius: float = 0.3, merge: bool = False) -> Configuration:
        parameters = [
            ParameterSpec("radius", ParameterKind.NUMERIC, radius, (0.05, 2.0)),
            ParameterSpec(
                "distance",
                ParameterKind.CATEGORICAL,
                "euclidean",
                ("euclidean", "manhattan", "chebyshev"),
            ),
            ParameterSpec("merge", ParameterKind.BOOLEAN, merge, (False, True)),
        ]
        configuration = Configuration("leader", parameters, factory)
        configuration.materialize()
        return configuration

    return _make


@pytest.fixture
def make_kmeans(factory):
    """Build a materialized online k-means Configuration."""

    def _make(k: int = 3, warmup: int = 20) -> Configuration:
        parameters = [
            ParameterSpec("k", ParameterKind.INTEGER, k, (2, 8)),
            ParameterSpec("warmup", ParameterKind.ORDINAL, warmup, (10, 20, 50, 1000)),
        ]
        configuration = Configuration("online_kmeans", parameters, factory)
        configuration.materialize()
        return configuration

    return _make


@pytest.fixture
def settings_dict():
    return {
        "windowSize": 50,
        "ensembleSize": 4,
        "newConfigurations": 2,
        "seed": 3,
        "algorithms": [
            {
                "algorithm": "leader",
                "parameters": [
                    {"parameter": "radius", "type": "numeric", "value": 0.2, "range": [0.05, 1.0]},
                    {"parameter": "merge", "type": "boolean", "value": False, "range": [False, True]},
                ],
            },
            {
                "algorithm": "leader",
                "parameters": [
                    {"parameter": "radius", "type": "numeric", "value": 0.6, "range": [0.05, 1.0]},
                    {"parameter": "merge", "type": "boolean", "value": True, "range": [False, True]},
                ],
            },
        ],
    }


@pytest.fixture
def fixed_surrogate():
    """Return the FixedSurrogate class (call with the prediction to return)."""
    return FixedSurrogate


@pytest.fixture
def mean_regressor():
    """Return the MeanRegressor class (usable as a regressor factory)."""
    return MeanRegressor
