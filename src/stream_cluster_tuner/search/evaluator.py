"""
Per-cycle evaluation of the ensemble on the current window.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol, Sequence
import numpy as np

from ..algorithms.base import ClusteringResult
from ..utils.logging_config import get_logger
from .configuration import Configuration, ParameterSchema
from .window import WindowBatch

logger = get_logger(__name__)


class QualityMetric(Protocol):
    """Scores a clustering on a batch of points; higher is better."""

    def score(self, clustering: ClusteringResult, points: np.ndarray) -> float:
        ...


@dataclass
class EvaluationRecord:
    """Score of one ensemble member in one cycle."""

    index: int
    schema: ParameterSchema
    parameter_vector: np.ndarray
    score: float


@dataclass
class CycleEvaluation:
    """All records of one cycle plus the derived ranking."""

    records: List[EvaluationRecord] = field(default_factory=list)

    @property
    def scores(self) -> Dict[int, float]:
        """Ensemble index -> score, scored members only."""
        return {r.index: r.score for r in self.records}

    @property
    def best_index(self) -> Optional[int]:
        """Index with the highest score; ties keep the lower index."""
        best = None
        best_score = -np.inf
        for r in self.records:
            if r.score > best_score:
                best, best_score = r.index, r.score
        return best

    @property
    def min_score(self) -> Optional[float]:
        if not self.records:
            return None
        return min(r.score for r in self.records)

    def __len__(self) -> int:
        return len(self.records)


class Evaluator:
    """
    Scores every live Configuration with an injected quality metric.

    A member with no clustering yet, or whose score is not finite, is left
    out of the cycle's records.
    """

    def __init__(self, metric: QualityMetric):
        self.metric = metric

    def score(self, configuration: Configuration, batch: WindowBatch) -> Optional[float]:
        """Score one configuration; None when it has nothing to score."""
        if configuration.clusterer is None:
            return None
        result = configuration.clusterer.get_clustering_result()
        if result is None:
            return None
        value = float(self.metric.score(result, batch.points))
        if not np.isfinite(value):
            return None
        return value

    def evaluate(self, ensemble: Sequence[Configuration], batch: WindowBatch) -> CycleEvaluation:
        evaluation = CycleEvaluation()
        for i, configuration in enumerate(ensemble):
            value = self.score(configuration, batch)
            if value is None:
                logger.debug("No clustering from %s, skipped this cycle", configuration.command_line())
                continue
            logger.debug("Result %s:\t%.4f", configuration.command_line(), value)
            evaluation.records.append(
                EvaluationRecord(
                    index=i,
                    schema=configuration.schema,
                    parameter_vector=configuration.parameter_vector(),
                    score=value,
                )
            )
        return evaluation
