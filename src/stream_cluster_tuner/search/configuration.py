"""
Candidate configurations: an algorithm identifier, its tunable parameters,
and the live clusterer instance built from them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence, Tuple
import numpy as np

from ..algorithms.base import BaseStreamClusterer
from ..algorithms.factory import ClustererFactory
from ..utils.logging_config import get_logger
from .parameters import ParameterKind, ParameterSpec

if TYPE_CHECKING:
    from ..config import AlgorithmDeclaration

logger = get_logger(__name__)


@dataclass(frozen=True)
class AttributeInfo:
    """Label of one parameter-vector position."""

    name: str
    kind: ParameterKind
    values: Tuple[Any, ...] = ()


@dataclass(frozen=True)
class ParameterSchema:
    """
    Immutable layout of a Configuration's parameter vector.

    Shared by reference between a Configuration and all its duplicates; it is
    hashable, so the surrogate keys one regressor per schema.
    """

    algorithm: str
    attributes: Tuple[AttributeInfo, ...]

    @classmethod
    def from_parameters(cls, algorithm: str, parameters: Sequence[ParameterSpec]) -> "ParameterSchema":
        attributes = tuple(
            AttributeInfo(
                name=p.name,
                kind=p.kind,
                values=() if p.kind in (ParameterKind.NUMERIC, ParameterKind.INTEGER) else tuple(p.domain),
            )
            for p in parameters
        )
        return cls(algorithm=algorithm, attributes=attributes)

    @property
    def names(self) -> List[str]:
        return [a.name for a in self.attributes]

    def to_features(self, vector: Sequence[float]) -> Dict[str, float]:
        """Map a parameter vector to ``{parameter name: value}``."""
        if len(vector) != len(self.attributes):
            raise ValueError(
                f"Vector of length {len(vector)} does not match schema "
                f"'{self.algorithm}' with {len(self.attributes)} attributes"
            )
        return {a.name: float(v) for a, v in zip(self.attributes, vector)}


class Configuration:
    """
    One candidate in the ensemble.

    The clusterer instance is owned exclusively by this Configuration and is
    kept consistent with the parameter values: every change is followed by an
    in-place option update or a full rebuild through the factory.
    """

    def __init__(
        self,
        algorithm: str,
        parameters: Sequence[ParameterSpec],
        factory: ClustererFactory,
        *,
        schema: Optional[ParameterSchema] = None,
        clusterer: Optional[BaseStreamClusterer] = None,
    ):
        names = [p.name for p in parameters]
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate parameter names for {algorithm}: {names}")
        self.algorithm = algorithm
        self.parameters: List[ParameterSpec] = list(parameters)
        self.factory = factory
        self.schema = schema or ParameterSchema.from_parameters(algorithm, self.parameters)
        self.clusterer = clusterer

    @classmethod
    def from_declaration(
        cls, declaration: "AlgorithmDeclaration", factory: ClustererFactory
    ) -> "Configuration":
        """
        Build and materialize a Configuration from a settings declaration.

        Raises:
            UnknownParameterTypeError: If a parameter type tag is unknown
            ValueError: If the algorithm or a parameter value is invalid
        """
        parameters = [ParameterSpec.from_declaration(d) for d in declaration.parameters]
        configuration = cls(declaration.algorithm, parameters, factory)
        configuration.materialize()
        return configuration

    @property
    def dimension_count(self) -> int:
        return len(self.parameters)

    @property
    def is_materialized(self) -> bool:
        return self.clusterer is not None

    def option_tokens(self) -> List[str]:
        """Rendered option tokens, skipping empty ones (false booleans)."""
        return [t for t in (p.to_command_token() for p in self.parameters) if t]

    def command_line(self) -> str:
        return " ".join([self.algorithm] + self.option_tokens())

    def materialize(self) -> BaseStreamClusterer:
        """Build a fresh clusterer from the current parameter values."""
        self.clusterer = self.factory.create(self.algorithm, self.option_tokens())
        return self.clusterer

    def duplicate(self, preserve_model: bool = False) -> "Configuration":
        """
        Copy this Configuration.

        Parameters are deep-copied (independent adaptation state); the schema
        is shared. With ``preserve_model`` the trained clusterer is cloned,
        otherwise the copy is unmaterialized.
        """
        clusterer = None
        if preserve_model and self.clusterer is not None:
            clusterer = self.clusterer.clone()
        return Configuration(
            self.algorithm,
            [p.copy() for p in self.parameters],
            self.factory,
            schema=self.schema,
            clusterer=clusterer,
        )

    def try_update_in_place(self) -> bool:
        """
        Push current parameter values into the live clusterer.

        Returns:
            True if the clusterer accepted every option and reconciled its
            internal state; False if it must be rebuilt.
        """
        clusterer = self.clusterer
        if clusterer is None or not clusterer.supports_in_place_update:
            return False
        for p in self.parameters:
            if not clusterer.set_option(p.name, p.value):
                return False
        return clusterer.adjust_parameters()

    def sample_new_config(self, shrink_factor: float, rng: np.random.Generator) -> bool:
        """
        Resample every parameter, then update or rebuild the clusterer.

        Args:
            shrink_factor: Spread contraction passed to each parameter
            rng: NumPy random generator

        Returns:
            True if the trained clusterer was updated in place, False if it
            was rebuilt from scratch.
        """
        for p in self.parameters:
            p.resample(shrink_factor, self.dimension_count, rng)
        if self.try_update_in_place():
            return True
        logger.debug("Rebuilding %s after parameter change", self.algorithm)
        self.materialize()
        return False

    def parameter_vector(self) -> np.ndarray:
        """Parameter values in declaration order (indices for symbolic kinds)."""
        return np.array([p.scalar_value() for p in self.parameters], dtype=np.float64)

    def train_on_point(self, point: np.ndarray) -> None:
        if self.clusterer is None:
            raise RuntimeError(f"Configuration '{self.command_line()}' is not materialized")
        self.clusterer.train_on_point(point)

    def __repr__(self) -> str:
        return f"Configuration({self.command_line()!r})"
