"""
Base classes for streaming clustering algorithms.

This module defines the contract every clusterer built by the
ClustererFactory must honour, so the ensemble optimizer can train, clone,
evaluate and retune any algorithm without knowing what it is.
"""

from __future__ import annotations

import copy
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, ClassVar, Dict, Optional
import numpy as np


@dataclass
class ClusteringResult:
    """
    Snapshot of the clusters an algorithm currently reports.

    Attributes:
        centers: Cluster centres of shape (n_clusters, n_features)
        weights: Per-cluster weight (point count or decayed mass)
        metadata: Algorithm-specific extras
    """

    centers: np.ndarray
    weights: Optional[np.ndarray] = None
    metadata: Dict[str, Any] = None

    def __post_init__(self):
        """Normalise arrays and initialize metadata if None."""
        self.centers = np.atleast_2d(np.asarray(self.centers, dtype=np.float64))
        if self.weights is None:
            self.weights = np.ones(self.centers.shape[0])
        else:
            self.weights = np.asarray(self.weights, dtype=np.float64)
        if self.metadata is None:
            self.metadata = {}

    @property
    def n_clusters(self) -> int:
        return int(self.centers.shape[0])


def parse_flag(raw: Any) -> bool:
    """Parse a boolean option value given as a bool or a string."""
    if isinstance(raw, str):
        return raw.strip().lower() in ("true", "1", "yes", "on")
    return bool(raw)


@dataclass(frozen=True)
class OptionSpec:
    """
    Declaration of one algorithm option.

    Attributes:
        parser: Converts a token string (or a Python value) to the option type
        default: Value used when the option is not given
        is_flag: True for boolean options rendered as a bare ``-name``
        choices: Optional set of legal values
    """

    parser: Callable[[Any], Any]
    default: Any
    is_flag: bool = False
    choices: Optional[tuple] = field(default=None)

    def coerce(self, raw: Any) -> Any:
        value = self.parser(raw)
        if self.choices is not None and value not in self.choices:
            raise ValueError(f"{value!r} is not one of {list(self.choices)}")
        return value


class BaseStreamClusterer(ABC):
    """
    Abstract base class for all streaming clusterers.

    Subclasses declare their options in ``OPTIONS``; each option becomes an
    instance attribute of the same name. Clusterers that can reconcile their
    internal state after an option change set ``supports_in_place_update``
    and override ``adjust_parameters``.
    """

    name: ClassVar[str] = "base"
    OPTIONS: ClassVar[Dict[str, OptionSpec]] = {}
    supports_in_place_update: ClassVar[bool] = False

    def __init__(self, **options):
        unknown = sorted(set(options) - set(self.OPTIONS))
        if unknown:
            raise ValueError(
                f"Unknown options for {self.name}: {', '.join(unknown)}. "
                f"Available options: {', '.join(sorted(self.OPTIONS))}"
            )
        for option_name, spec in self.OPTIONS.items():
            raw = options.get(option_name, spec.default)
            try:
                value = spec.coerce(raw)
            except (TypeError, ValueError) as e:
                raise ValueError(f"{self.name}: invalid value for -{option_name}: {e}") from e
            setattr(self, option_name, value)
        self.validate_options()
        self.reset_learning()

    def validate_options(self) -> None:
        """Raise ValueError if the current option values are inconsistent."""

    @abstractmethod
    def train_on_point(self, point: np.ndarray) -> None:
        """Update the model with one stream point."""

    @abstractmethod
    def get_clustering_result(self) -> Optional[ClusteringResult]:
        """Return the current clustering, or None if there is none yet."""

    @abstractmethod
    def reset_learning(self) -> None:
        """Forget everything learned so far, keeping the options."""

    def clone(self) -> "BaseStreamClusterer":
        """Independent copy carrying the same learned state."""
        return copy.deepcopy(self)

    def get_options(self) -> Dict[str, Any]:
        return {option_name: getattr(self, option_name) for option_name in self.OPTIONS}

    def set_option(self, option_name: str, value: Any) -> bool:
        """
        Change one option on a live instance.

        Returns:
            False if in-place updates are unsupported, the option is unknown,
            or the value is rejected; True otherwise.
        """
        if not self.supports_in_place_update or option_name not in self.OPTIONS:
            return False
        try:
            coerced = self.OPTIONS[option_name].coerce(value)
        except (TypeError, ValueError):
            return False
        setattr(self, option_name, coerced)
        return True

    def adjust_parameters(self) -> bool:
        """
        Reconcile cached internal state with the current option values.

        Returns:
            True if the instance is consistent with its options afterwards,
            False if it must be rebuilt from scratch.
        """
        return False

    def command_line(self) -> str:
        """Render ``name -opt value ...`` for logging."""
        parts = [self.name]
        for option_name, spec in self.OPTIONS.items():
            value = getattr(self, option_name)
            if spec.is_flag:
                if value:
                    parts.append(f"-{option_name}")
            else:
                parts.append(f"-{option_name} {value}")
        return " ".join(parts)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.command_line()!r})"
