"""
Tunable algorithm parameters.

A ``ParameterSpec`` is a tagged variant: one dataclass whose ``kind`` decides
how the value is stored, how it is resampled, and how it is rendered as an
option token for the clusterer factory.

Kinds and their adaptation state:
- numeric / integer: closed interval ``(low, high)``, spread ``std``
- ordinal: ordered values, sampled on the index interval ``[0, len - 1]``
  with spread ``std``
- categorical / boolean: finite value set, probability vector over it
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional, Tuple
import numpy as np

from .sampling import roulette_wheel_select, sample_truncated_normal

if TYPE_CHECKING:
    from ..config import ParameterDeclaration

DEFAULT_LEARNING_RATE = 0.1
MIN_STD = 1e-10


class UnknownParameterTypeError(ValueError):
    """Raised when a parameter declaration carries an unsupported type tag."""


class ParameterKind(str, Enum):
    """Type tag of a ParameterSpec."""

    NUMERIC = "numeric"
    INTEGER = "integer"
    CATEGORICAL = "categorical"
    BOOLEAN = "boolean"
    ORDINAL = "ordinal"

    @classmethod
    def parse(cls, tag: str) -> "ParameterKind":
        """
        Resolve a declaration type tag.

        ``"nominal"`` is accepted as an alias of ``"categorical"``.

        Raises:
            UnknownParameterTypeError: If *tag* names no known kind
        """
        normalized = str(tag).strip().lower()
        if normalized == "nominal":
            return cls.CATEGORICAL
        try:
            return cls(normalized)
        except ValueError:
            raise UnknownParameterTypeError(
                f"Unknown parameter type: '{tag}'. Available options are "
                f"'numeric', 'integer', 'nominal', 'categorical', 'boolean' or 'ordinal'"
            ) from None

    @property
    def uses_spread(self) -> bool:
        """True for kinds resampled from a truncated normal."""
        return self in (ParameterKind.NUMERIC, ParameterKind.INTEGER, ParameterKind.ORDINAL)


def _to_bool(raw: Any) -> bool:
    if isinstance(raw, (bool, np.bool_)):
        return bool(raw)
    if isinstance(raw, str):
        lowered = raw.strip().lower()
        if lowered in ("true", "1", "yes", "on"):
            return True
        if lowered in ("false", "0", "no", "off"):
            return False
    if isinstance(raw, (int, float)) and raw in (0, 1):
        return bool(raw)
    raise ValueError(f"Cannot interpret {raw!r} as a boolean")


@dataclass
class ParameterSpec:
    """
    One tunable knob of a clustering algorithm.

    Attributes:
        name: Option name, unique within a Configuration; rendered as ``-name``
        kind: ParameterKind tag
        value: Current value (float, int, bool, or a domain element)
        domain: ``(low, high)`` for numeric/integer, ordered values otherwise
        std: Sampling spread for numeric/integer/ordinal (None otherwise)
        probabilities: Probability vector for categorical/boolean (None otherwise)
        learning_rate: Reinforcement rate for categorical/boolean updates
    """

    name: str
    kind: ParameterKind
    value: Any
    domain: Tuple[Any, ...]
    std: Optional[float] = None
    probabilities: Optional[np.ndarray] = None
    learning_rate: float = DEFAULT_LEARNING_RATE

    def __post_init__(self):
        """Normalise the domain and value, and initialise adaptation state."""
        if not self.name:
            raise ValueError("Parameter name must be a non-empty string")
        if not isinstance(self.kind, ParameterKind):
            self.kind = ParameterKind.parse(self.kind)

        if self.kind == ParameterKind.NUMERIC:
            low, high = self._interval(float)
            self.domain = (low, high)
            self.value = float(self.value)
        elif self.kind == ParameterKind.INTEGER:
            low, high = self._interval(int)
            self.domain = (low, high)
            if float(self.value) != int(self.value):
                raise ValueError(f"{self.name}: integer value expected, got {self.value!r}")
            self.value = int(self.value)
        elif self.kind == ParameterKind.BOOLEAN:
            declared = {_to_bool(v) for v in self.domain} if self.domain else {False, True}
            if declared != {False, True}:
                raise ValueError(f"{self.name}: boolean domain must be [false, true]")
            self.domain = (False, True)
            self.value = _to_bool(self.value)
        else:
            self.domain = tuple(self.domain)
            minimum = 2 if self.kind == ParameterKind.ORDINAL else 1
            if len(self.domain) < minimum:
                raise ValueError(
                    f"{self.name}: {self.kind.value} domain needs at least "
                    f"{minimum} values, got {list(self.domain)}"
                )

        if not self.contains(self.value):
            raise ValueError(
                f"{self.name}: initial value {self.value!r} outside domain {list(self.domain)}"
            )

        if self.kind.uses_spread:
            if self.std is None:
                if self.kind == ParameterKind.ORDINAL:
                    self.std = (len(self.domain) - 1) / 2.0
                else:
                    self.std = (self.domain[1] - self.domain[0]) / 2.0
            self.std = float(self.std)
            if not self.std > 0:
                raise ValueError(f"{self.name}: std must be > 0, got {self.std}")
            self.probabilities = None
        else:
            if not 0 < self.learning_rate < 1:
                raise ValueError(
                    f"{self.name}: learning_rate must be in (0, 1), got {self.learning_rate}"
                )
            n = len(self.domain)
            if self.probabilities is None:
                self.probabilities = np.full(n, 1.0 / n)
            else:
                probs = np.asarray(self.probabilities, dtype=np.float64).copy()
                if probs.shape != (n,) or np.any(probs < 0) or not np.isclose(probs.sum(), 1.0):
                    raise ValueError(
                        f"{self.name}: probabilities must be {n} non-negative values summing to 1"
                    )
                self.probabilities = probs
            self.std = None

    def _interval(self, cast) -> Tuple[Any, Any]:
        if len(self.domain) != 2:
            raise ValueError(
                f"{self.name}: {self.kind.value} domain must be [low, high], got {list(self.domain)}"
            )
        low, high = cast(self.domain[0]), cast(self.domain[1])
        if low >= high:
            raise ValueError(f"{self.name}: low ({low}) must be < high ({high})")
        return low, high

    @classmethod
    def from_declaration(cls, declaration: "ParameterDeclaration") -> "ParameterSpec":
        """
        Build a ParameterSpec from a settings-file declaration.

        Raises:
            UnknownParameterTypeError: If the declaration's type tag is unknown
        """
        kind = ParameterKind.parse(declaration.type)
        return cls(
            name=declaration.parameter,
            kind=kind,
            value=declaration.value,
            domain=tuple(declaration.range or ()),
        )

    def contains(self, value: Any) -> bool:
        """Return True if *value* is a legal value of this parameter."""
        if self.kind in (ParameterKind.NUMERIC, ParameterKind.INTEGER):
            return self.domain[0] <= value <= self.domain[1]
        return value in self.domain

    @property
    def index(self) -> int:
        """Position of the current value in the domain (non-interval kinds)."""
        if self.kind in (ParameterKind.NUMERIC, ParameterKind.INTEGER):
            raise ValueError(f"{self.name}: {self.kind.value} parameters have no index")
        return self.domain.index(self.value)

    def resample(
        self, shrink_factor: float, dimension_count: int, rng: np.random.Generator
    ) -> Any:
        """
        Draw a new current value and adapt the sampling state.

        Numeric, integer and ordinal kinds draw from a normal truncated to the
        domain, centred on the current value (or index), then contract
        ``std`` by ``shrink_factor ** (1 / dimension_count)``. Categorical and
        boolean kinds pick an index by roulette wheel, then move probability
        mass toward the picked index by ``learning_rate``.

        Args:
            shrink_factor: Per-call contraction of the spread, in (0, 1]
            dimension_count: Number of parameters sampled together
            rng: NumPy random generator

        Returns:
            The new current value
        """
        if not shrink_factor > 0:
            raise ValueError(f"shrink_factor must be > 0, got {shrink_factor}")
        if dimension_count < 1:
            raise ValueError(f"dimension_count must be >= 1, got {dimension_count}")

        if self.kind in (ParameterKind.NUMERIC, ParameterKind.INTEGER):
            low, high = self.domain
            drawn = sample_truncated_normal(float(self.value), self.std, low, high, rng)
            if self.kind == ParameterKind.INTEGER:
                self.value = int(np.clip(round(drawn), low, high))
            else:
                self.value = drawn
        elif self.kind == ParameterKind.ORDINAL:
            top = len(self.domain) - 1
            drawn = sample_truncated_normal(float(self.index), self.std, 0.0, float(top), rng)
            self.value = self.domain[int(np.clip(round(drawn), 0, top))]
        else:
            idx = roulette_wheel_select(self.probabilities, rng)
            self.value = self.domain[idx]
            probs = self.probabilities * (1.0 - self.learning_rate)
            probs[idx] += self.learning_rate
            self.probabilities = probs / probs.sum()
            return self.value

        self.std = max(self.std * shrink_factor ** (1.0 / dimension_count), MIN_STD)
        return self.value

    def to_command_token(self) -> str:
        """
        Render the parameter as an option token, e.g. ``-radius 0.25``.

        Booleans render as a bare flag when true and as an empty string when
        false.
        """
        if self.kind == ParameterKind.BOOLEAN:
            return f"-{self.name}" if self.value else ""
        if self.kind == ParameterKind.NUMERIC:
            return f"-{self.name} {float(self.value)!r}"
        return f"-{self.name} {self.value}"

    def scalar_value(self) -> float:
        """Current value as a float; categorical/boolean/ordinal give their index."""
        if self.kind in (ParameterKind.NUMERIC, ParameterKind.INTEGER):
            return float(self.value)
        return float(self.index)

    def copy(self) -> "ParameterSpec":
        """Deep copy; the copy shares no mutable state with this spec."""
        probs = None if self.probabilities is None else self.probabilities.copy()
        return replace(self, probabilities=probs)
