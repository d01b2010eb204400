"""
Configuration Search - online hyperparameter search over streaming clusterers.

Leaves first: sampling primitives, tagged parameters, configurations, the
evaluation window, the evaluator, the surrogate, and the ensemble optimizer
that ties them together.
"""

from .sampling import roulette_wheel_select, sample_truncated_normal
from .parameters import ParameterKind, ParameterSpec, UnknownParameterTypeError
from .configuration import AttributeInfo, Configuration, ParameterSchema
from .window import Window, WindowBatch
from .evaluator import CycleEvaluation, EvaluationRecord, Evaluator, QualityMetric
from .surrogate import Regressor, Surrogate, SurrogateSample, arf_regressor_factory
from .optimizer import CycleReport, EnsembleOptimizer, OptimizerState, ProposalOutcome

__all__ = [
    # Sampling
    "roulette_wheel_select",
    "sample_truncated_normal",
    # Parameters
    "ParameterKind",
    "ParameterSpec",
    "UnknownParameterTypeError",
    # Configurations
    "AttributeInfo",
    "Configuration",
    "ParameterSchema",
    # Window & evaluation
    "Window",
    "WindowBatch",
    "CycleEvaluation",
    "EvaluationRecord",
    "Evaluator",
    "QualityMetric",
    # Surrogate
    "Regressor",
    "Surrogate",
    "SurrogateSample",
    "arf_regressor_factory",
    # Optimizer
    "CycleReport",
    "EnsembleOptimizer",
    "OptimizerState",
    "ProposalOutcome",
]
