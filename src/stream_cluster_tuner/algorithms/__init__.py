"""
Streaming clustering algorithms and quality metrics.

These are the reference collaborators of the ensemble optimizer: any class
implementing BaseStreamClusterer can be registered with the factory, and any
object with a ``score(clustering, points)`` method can replace the metric.
"""

from .base import BaseStreamClusterer, ClusteringResult, OptionSpec
from .factory import ClustererFactory, parse_option_tokens
from .leader import LeaderClusterer
from .metrics import (
    SilhouetteMetric,
    assign_to_centers,
    pairwise_distances,
    silhouette_score_chunked,
    silhouette_score_precomputed,
)
from .online_kmeans import OnlineKMeans, kmeanspp_init

__all__ = [
    # Contract
    "BaseStreamClusterer",
    "ClusteringResult",
    "OptionSpec",
    # Construction
    "ClustererFactory",
    "parse_option_tokens",
    # Algorithms
    "OnlineKMeans",
    "LeaderClusterer",
    "kmeanspp_init",
    # Metrics
    "SilhouetteMetric",
    "assign_to_centers",
    "pairwise_distances",
    "silhouette_score_chunked",
    "silhouette_score_precomputed",
]
