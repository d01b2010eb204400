"""
Logging configuration for Stream Cluster Tuner.

Modules obtain a logger with ``get_logger(__name__)``; entry points call
``setup_logging`` once to attach a handler to the package root logger.
"""

import logging
import sys
from typing import Optional, Union

PACKAGE_LOGGER = "stream_cluster_tuner"
DEFAULT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def get_logger(name: str) -> logging.Logger:
    """Return a logger for *name* (normally the caller's ``__name__``)."""
    return logging.getLogger(name)


def setup_logging(
    level: Union[int, str] = logging.INFO,
    fmt: Optional[str] = None,
    stream=None,
) -> logging.Logger:
    """
    Configure the package root logger.

    Calling this more than once replaces the previously installed handler
    instead of stacking a second one.

    Args:
        level: Logging level name ("DEBUG", "INFO", ...) or numeric level
        fmt: Optional format string (defaults to DEFAULT_FORMAT)
        stream: Output stream for the handler (defaults to stderr)

    Returns:
        The configured package root logger

    Raises:
        ValueError: If *level* is an unknown level name
    """
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ValueError(f"Unknown log level: {level}")
        level = resolved

    root = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(root.handlers):
        if getattr(handler, "_stream_cluster_tuner", False):
            root.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(fmt or DEFAULT_FORMAT))
    handler._stream_cluster_tuner = True
    root.addHandler(handler)
    root.setLevel(level)
    return root
