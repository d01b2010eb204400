"""
Ensemble optimizer: online configuration search over a stream.

Every point trains all live configurations and is buffered in the window.
When the window holds ``window_size`` points a cycle runs:

1. Evaluate: score each member on the window, track the best, refit the
   surrogate on ``(parameter vector, score)``.
2. Propose ``new_configurations_per_cycle`` times: pick a parent by roulette
   wheel over live scores, duplicate it with its trained model, resample its
   parameters, and let the surrogate predict its quality. An unavailable
   prediction ends the proposal phase. Candidates fill free ensemble slots
   unconditionally; in a full ensemble a candidate predicted above the
   minimum live score overwrites a slot drawn by the same roulette wheel.
3. Clear the window.
"""

from __future__ import annotations

import itertools
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional, Sequence, Tuple
import numpy as np

from ..algorithms.base import ClusteringResult
from ..algorithms.factory import ClustererFactory
from ..algorithms.metrics import SilhouetteMetric
from ..utils.logging_config import get_logger
from .configuration import Configuration
from .evaluator import CycleEvaluation, Evaluator, QualityMetric
from .sampling import roulette_wheel_select
from .surrogate import Surrogate, SurrogateSample
from .window import Window

if TYPE_CHECKING:
    from ..config import TunerSettings

logger = get_logger(__name__)


class OptimizerState(str, Enum):
    IDLE = "idle"
    EVALUATING = "evaluating"
    PROPOSING = "proposing"


@dataclass
class ProposalOutcome:
    """What happened to one candidate configuration."""

    parent_index: int
    command_line: str
    predicted: float
    action: str  # "added", "replaced", "rejected" or "abandoned"
    slot: Optional[int] = None


@dataclass
class CycleReport:
    """Summary of one evaluate/propose cycle."""

    cycle: int
    points_seen: int
    scores: Dict[int, float]
    best_index: Optional[int]
    best_command_line: Optional[str]
    proposals: List[ProposalOutcome] = field(default_factory=list)
    ensemble_size: int = 0

    @property
    def admitted(self) -> List[ProposalOutcome]:
        return [p for p in self.proposals if p.action in ("added", "replaced")]


class EnsembleOptimizer:
    """
    Maintains a bounded ensemble of configurations tuned on a stream.

    Args:
        configurations: Initial population (materialized Configurations)
        window_size: Points per evaluation cycle
        ensemble_size: Maximum number of live configurations
        new_configurations_per_cycle: Candidates proposed per cycle
        evaluator: Scores members on the window
        surrogate: Quality predictor for candidates (fresh one if None)
        rng: Random generator for all sampling (seeded from entropy if None)

    Raises:
        ValueError: On non-positive sizes or an initial population that is
            empty or larger than ensemble_size
    """

    def __init__(
        self,
        configurations: Sequence[Configuration],
        *,
        window_size: int,
        ensemble_size: int,
        new_configurations_per_cycle: int,
        evaluator: Evaluator,
        surrogate: Optional[Surrogate] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        for name, value in (
            ("window_size", window_size),
            ("ensemble_size", ensemble_size),
            ("new_configurations_per_cycle", new_configurations_per_cycle),
        ):
            if value < 1:
                raise ValueError(f"{name} must be >= 1, got {value}")
        if not configurations:
            raise ValueError("Initial population must contain at least one configuration")
        if len(configurations) > ensemble_size:
            raise ValueError(
                f"Initial population ({len(configurations)}) exceeds ensemble_size ({ensemble_size})"
            )

        self.window_size = window_size
        self.ensemble_size = ensemble_size
        self.new_configurations_per_cycle = new_configurations_per_cycle
        self.evaluator = evaluator
        self.surrogate = surrogate or Surrogate()
        self._rng = rng if rng is not None else np.random.default_rng()

        self._ensemble: List[Configuration] = list(configurations)
        for c in self._ensemble:
            if not c.is_materialized:
                c.materialize()
            logger.info("Initialise: %s", c.command_line())

        self._window = Window(window_size)
        self._state = OptimizerState.IDLE
        self._points_seen = 0
        self._since_cycle = 0
        self._cycles = 0
        self._best_index: Optional[int] = None
        self._live_scores: Dict[int, float] = {}

    @classmethod
    def from_settings(
        cls,
        settings: "TunerSettings",
        *,
        factory: Optional[ClustererFactory] = None,
        metric: Optional[QualityMetric] = None,
        surrogate: Optional[Surrogate] = None,
        rng: Optional[np.random.Generator] = None,
    ) -> "EnsembleOptimizer":
        """
        Build an optimizer and its initial population from settings.

        Defaults: the built-in clusterer factory, SilhouetteMetric, a river
        ARF surrogate, and a generator seeded with ``settings.seed``.
        """
        factory = factory or ClustererFactory()
        configurations = [Configuration.from_declaration(d, factory) for d in settings.algorithms]
        return cls(
            configurations,
            window_size=settings.window_size,
            ensemble_size=settings.ensemble_size,
            new_configurations_per_cycle=settings.new_configurations_per_cycle,
            evaluator=Evaluator(metric or SilhouetteMetric()),
            surrogate=surrogate or Surrogate(seed=settings.seed),
            rng=rng if rng is not None else np.random.default_rng(settings.seed),
        )

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def ensemble(self) -> Tuple[Configuration, ...]:
        return tuple(self._ensemble)

    @property
    def window(self) -> Window:
        return self._window

    @property
    def state(self) -> OptimizerState:
        return self._state

    @property
    def points_seen(self) -> int:
        return self._points_seen

    @property
    def cycles_completed(self) -> int:
        return self._cycles

    @property
    def best_index(self) -> Optional[int]:
        return self._best_index

    @property
    def best_configuration(self) -> Optional[Configuration]:
        if self._best_index is None:
            return None
        return self._ensemble[self._best_index]

    @property
    def live_scores(self) -> Dict[int, float]:
        """Ensemble index -> score measured (or predicted) in the last cycle."""
        return dict(self._live_scores)

    # ------------------------------------------------------------------
    # Stream interface
    # ------------------------------------------------------------------

    def train_on_point(self, point: np.ndarray) -> Optional[CycleReport]:
        """
        Process one stream point.

        Returns:
            The CycleReport when this point completed a window, else None
        """
        x = np.asarray(point, dtype=np.float64).ravel()
        for configuration in self._ensemble:
            configuration.train_on_point(x)
        self._window.append(x, self._points_seen)
        self._points_seen += 1
        self._since_cycle += 1

        if self._since_cycle >= self.window_size:
            return self._run_cycle()
        return None

    def train(self, stream: Iterable[np.ndarray], n_points: Optional[int] = None) -> List[CycleReport]:
        """Feed *stream* (or its first *n_points* points); return all cycle reports."""
        if n_points is not None:
            stream = itertools.islice(stream, n_points)
        reports = []
        for point in stream:
            report = self.train_on_point(point)
            if report is not None:
                reports.append(report)
        return reports

    def get_clustering_result(self) -> Optional[ClusteringResult]:
        """Clustering of the best member from the last cycle, if any."""
        best = self.best_configuration
        if best is None or best.clusterer is None:
            return None
        return best.clusterer.get_clustering_result()

    def reset_learning(self) -> None:
        """Forget all learned state while keeping the current ensemble members."""
        self._window.clear()
        self._state = OptimizerState.IDLE
        self._points_seen = 0
        self._since_cycle = 0
        self._cycles = 0
        self._best_index = None
        self._live_scores = {}
        self.surrogate = Surrogate(regressor_factory=self.surrogate.regressor_factory)
        for configuration in self._ensemble:
            configuration.clusterer.reset_learning()

    # ------------------------------------------------------------------
    # Cycle
    # ------------------------------------------------------------------

    def _run_cycle(self) -> CycleReport:
        try:
            self._state = OptimizerState.EVALUATING
            evaluation = self._evaluate()

            self._state = OptimizerState.PROPOSING
            if self._live_scores:
                proposals = self._propose()
            else:
                logger.warning(
                    "Cycle %d: no member produced a clustering, keeping the ensemble unchanged",
                    self._cycles + 1,
                )
                proposals = []
        finally:
            self._window.clear()
            self._since_cycle = 0
            self._state = OptimizerState.IDLE

        self._cycles += 1
        best = self.best_configuration
        report = CycleReport(
            cycle=self._cycles,
            points_seen=self._points_seen,
            scores=evaluation.scores,
            best_index=self._best_index,
            best_command_line=best.command_line() if best is not None else None,
            proposals=proposals,
            ensemble_size=len(self._ensemble),
        )
        logger.info(
            "Cycle %d after %d points: %d scored, best=%s, %d admitted, ensemble size %d",
            report.cycle,
            report.points_seen,
            len(evaluation),
            report.best_command_line,
            len(report.admitted),
            report.ensemble_size,
        )
        return report

    def _evaluate(self) -> CycleEvaluation:
        evaluation = self.evaluator.evaluate(self._ensemble, self._window.as_batch())
        if evaluation.best_index is not None:
            self._best_index = evaluation.best_index
        self._live_scores = evaluation.scores
        self.surrogate.fit(
            SurrogateSample(r.schema, r.parameter_vector, r.score) for r in evaluation.records
        )
        return evaluation

    def _roulette_over_live_scores(self) -> int:
        """
        Pick a live index proportionally to its score.

        Predicted scores may be negative; such entries get zero weight. Raises
        ValueError only when no entry has a positive score.
        """
        indices = sorted(self._live_scores)
        weights = [max(self._live_scores[i], 0.0) for i in indices]
        pick = roulette_wheel_select(weights, self._rng)
        return indices[pick]

    def _propose(self) -> List[ProposalOutcome]:
        outcomes: List[ProposalOutcome] = []
        shrink_factor = 1.0 / self.new_configurations_per_cycle

        for _ in range(self.new_configurations_per_cycle):
            parent_index = self._roulette_over_live_scores()
            candidate = self._ensemble[parent_index].duplicate(preserve_model=True)
            # updates the cloned model in place or rebuilds it
            candidate.sample_new_config(shrink_factor, self._rng)

            predicted = self.surrogate.predict(candidate.schema, candidate.parameter_vector())
            if math.isnan(predicted):
                logger.debug(
                    "-> Prediction unavailable for %s, no further proposals this cycle",
                    candidate.command_line(),
                )
                outcomes.append(
                    ProposalOutcome(parent_index, candidate.command_line(), predicted, "abandoned")
                )
                break
            logger.debug("-> Prediction %s:\t%.4f", candidate.command_line(), predicted)

            if len(self._ensemble) < self.ensemble_size:
                self._ensemble.append(candidate)
                slot = len(self._ensemble) - 1
                self._live_scores[slot] = predicted
                action = "added"
            elif predicted > min(self._live_scores.values()):
                slot = self._roulette_over_live_scores()
                self._ensemble[slot] = candidate
                self._live_scores[slot] = predicted
                if slot == self._best_index:
                    self._best_index = max(
                        sorted(self._live_scores), key=lambda i: self._live_scores[i]
                    )
                action = "replaced"
            else:
                slot = None
                action = "rejected"

            if slot is not None:
                logger.info(
                    "Admitted %s into slot %d (predicted %.4f, %s)",
                    candidate.command_line(), slot, predicted, action,
                )
            outcomes.append(
                ProposalOutcome(parent_index, candidate.command_line(), predicted, action, slot)
            )
        return outcomes
