"""
Run the ensemble optimizer over a synthetic stream.

Usage:
    stream-cluster-tuner --settings settings.json --points 20000
    python -m stream_cluster_tuner --settings settings.json --seed 3
"""

import argparse
from typing import Iterable, List, Optional

import numpy as np

from .config import TunerSettings, config
from .search.optimizer import CycleReport, EnsembleOptimizer
from .streams import RandomRBFStream
from .utils.logging_config import get_logger, setup_logging

logger = get_logger(__name__)


def run_stream(
    settings: TunerSettings,
    stream: Iterable[np.ndarray],
    n_points: int,
) -> tuple[EnsembleOptimizer, List[CycleReport]]:
    """
    Build an optimizer from *settings* and feed it *n_points* stream points.

    Returns:
        The optimizer and the reports of every completed cycle
    """
    optimizer = EnsembleOptimizer.from_settings(settings)
    reports = optimizer.train(stream, n_points=n_points)
    best = optimizer.best_configuration
    if best is None:
        logger.warning("No configuration produced a clustering after %d points", n_points)
    else:
        logger.info(
            "Best after %d points (%d cycles): %s",
            optimizer.points_seen,
            optimizer.cycles_completed,
            best.command_line(),
        )
    return optimizer, reports


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stream-cluster-tuner",
        description="Online ensemble hyperparameter search for streaming clustering.",
    )
    parser.add_argument(
        "--settings",
        default=None,
        help="JSON settings file (default: $TUNER_SETTINGS_FILE or settings.json)",
    )
    parser.add_argument("--points", type=int, default=10000, help="Stream points to process")
    parser.add_argument("--seed", type=int, default=None, help="Seed overriding the settings file")
    parser.add_argument("--centers", type=int, default=5, help="Generating centres of the stream")
    parser.add_argument("--features", type=int, default=2, help="Dimensionality of the stream")
    parser.add_argument("--drift", type=float, default=0.0, help="Centre drift per point")
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level (default: $TUNER_LOG_LEVEL or INFO)",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level or config.log_level)

    settings = config.load_settings(args.settings)
    if args.seed is not None:
        settings.seed = args.seed

    stream = RandomRBFStream(
        n_centers=args.centers,
        n_features=args.features,
        drift=args.drift,
        seed=settings.seed,
    )
    run_stream(settings, stream, args.points)
    return 0
