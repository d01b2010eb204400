"""
Stream Cluster Tuner - Core Package

Online, ensemble-based hyperparameter search for streaming clustering
algorithms.

This package provides:
- Tagged, self-adapting parameter model and candidate configurations
- Windowed evaluation, surrogate-gated admission and replacement
- Reference streaming clusterers, a silhouette quality metric and a
  synthetic stream
"""

__version__ = "0.1.0"

from .config import SettingsError, TunerSettings, load_settings
from .search import Configuration, EnsembleOptimizer, ParameterSpec, Surrogate

# Explicitly import subpackages to ensure they're discoverable
from . import algorithms
from . import search
from . import utils

__all__ = [
    "Configuration",
    "EnsembleOptimizer",
    "ParameterSpec",
    "SettingsError",
    "Surrogate",
    "TunerSettings",
    "load_settings",
    "algorithms",
    "search",
    "utils",
]
