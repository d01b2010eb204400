"""
Surrogate model of configuration quality.

Wraps an incremental regressor (river's adaptive random forest by default)
trained on ``(parameter vector, quality)`` pairs, one regressor per
parameter schema. Predictions are withheld (NaN) until a schema has seen at
least two distinct parameter vectors.
"""

from __future__ import annotations

from typing import Callable, Dict, Iterable, NamedTuple, Optional, Protocol, Sequence, Set, Tuple
import math

from river import forest

from ..utils.logging_config import get_logger
from .configuration import ParameterSchema

logger = get_logger(__name__)


class Regressor(Protocol):
    """Incremental regressor over feature dictionaries (river's API)."""

    def learn_one(self, x: Dict[str, float], y: float) -> None:
        ...

    def predict_one(self, x: Dict[str, float]) -> float:
        ...


class SurrogateSample(NamedTuple):
    schema: ParameterSchema
    parameter_vector: Sequence[float]
    quality: float


def arf_regressor_factory(seed: Optional[int] = None, n_models: int = 10) -> Callable[[], Regressor]:
    """
    Return a factory of river ``ARFRegressor`` instances.

    Leaves predict the mean target, so predictions stay within the range of
    observed qualities and can serve as roulette-wheel weights.
    """

    def make() -> Regressor:
        return forest.ARFRegressor(n_models=n_models, leaf_prediction="mean", seed=seed)

    return make


class Surrogate:
    """
    Predicts the quality of untrained candidate configurations.

    Args:
        regressor_factory: Zero-argument callable returning a fresh regressor;
            defaults to river's ARFRegressor
        seed: Seed for the default regressor factory
    """

    def __init__(
        self,
        regressor_factory: Optional[Callable[[], Regressor]] = None,
        seed: Optional[int] = None,
    ):
        self.regressor_factory = regressor_factory or arf_regressor_factory(seed=seed)
        self._models: Dict[ParameterSchema, Regressor] = {}
        # first vector per schema, dropped once a second distinct one arrives
        self._first_vector: Dict[ParameterSchema, Tuple[float, ...]] = {}
        self._ready: Set[ParameterSchema] = set()
        self.n_samples = 0

    def _model(self, schema: ParameterSchema) -> Regressor:
        model = self._models.get(schema)
        if model is None:
            model = self.regressor_factory()
            self._models[schema] = model
        return model

    def fit_one(self, schema: ParameterSchema, parameter_vector: Sequence[float], quality: float) -> None:
        """Train the schema's regressor on one (vector, quality) pair."""
        features = schema.to_features(parameter_vector)
        self._model(schema).learn_one(features, float(quality))
        self.n_samples += 1

        if schema not in self._ready:
            key = tuple(float(v) for v in parameter_vector)
            first = self._first_vector.setdefault(schema, key)
            if first != key:
                self._ready.add(schema)
                del self._first_vector[schema]

    def fit(self, samples: Iterable[SurrogateSample]) -> None:
        for sample in samples:
            self.fit_one(sample.schema, sample.parameter_vector, sample.quality)

    def is_ready(self, schema: ParameterSchema) -> bool:
        """True once *schema* has seen two distinct parameter vectors."""
        return schema in self._ready

    def predict(self, schema: ParameterSchema, parameter_vector: Sequence[float]) -> float:
        """
        Predict the quality of *parameter_vector*.

        Returns:
            The predicted quality, or NaN when no prediction is available
        """
        if not self.is_ready(schema):
            return float("nan")
        prediction = self._models[schema].predict_one(schema.to_features(parameter_vector))
        if prediction is None:
            return float("nan")
        prediction = float(prediction)
        if not math.isfinite(prediction):
            logger.debug("Surrogate for %s returned %s", schema.algorithm, prediction)
            return float("nan")
        return prediction
