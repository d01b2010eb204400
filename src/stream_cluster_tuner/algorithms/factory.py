"""
Clusterer Factory - Creates streaming clusterers by name.

This is the algorithm-construction collaborator of the ensemble optimizer:
given an algorithm identifier and rendered option tokens (``-radius 0.3``,
``-merge``) it returns a ready-to-train clusterer instance.
"""

from typing import Dict, List, Optional, Sequence, Type

from .base import BaseStreamClusterer, OptionSpec
from .leader import LeaderClusterer
from .online_kmeans import OnlineKMeans

DEFAULT_REGISTRY: Dict[str, Type[BaseStreamClusterer]] = {
    OnlineKMeans.name: OnlineKMeans,
    LeaderClusterer.name: LeaderClusterer,
}


def parse_option_tokens(tokens: Sequence[str], options: Dict[str, OptionSpec]) -> Dict[str, object]:
    """
    Parse rendered option tokens into keyword arguments.

    Each token is ``-name value`` or a bare ``-name`` flag; tokens may also be
    concatenated into one string. A word starting with ``-`` is a flag only
    when it names a declared option, so negative numbers parse as values.

    Args:
        tokens: Option tokens (empty strings are ignored)
        options: Declared options of the target clusterer

    Returns:
        Mapping of option name to parsed value

    Raises:
        ValueError: On unknown options, missing values or unparsable values
    """
    words: List[str] = " ".join(t for t in tokens if t).split()
    parsed: Dict[str, object] = {}
    i = 0
    while i < len(words):
        word = words[i]
        option_name = word[1:]
        if not word.startswith("-") or option_name not in options:
            raise ValueError(
                f"Unexpected option token: {word!r}. "
                f"Available options: {', '.join('-' + o for o in sorted(options))}"
            )
        spec = options[option_name]
        if spec.is_flag:
            parsed[option_name] = True
            i += 1
            continue
        if i + 1 >= len(words):
            raise ValueError(f"Option -{option_name} expects a value")
        try:
            parsed[option_name] = spec.coerce(words[i + 1])
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid value for -{option_name}: {e}") from e
        i += 2
    return parsed


class ClustererFactory:
    """
    Factory for creating streaming clusterer instances.

    Usage:
        factory = ClustererFactory()
        clusterer = factory.create("leader", ["-radius 0.3", "-merge"])

        # Or from a full command line
        clusterer = factory.create_from_command_line("online_kmeans -k 4")
    """

    def __init__(self, registry: Optional[Dict[str, Type[BaseStreamClusterer]]] = None):
        """
        Initialize the factory.

        Args:
            registry: Optional name -> clusterer class mapping. Defaults to the
                built-in algorithms.
        """
        self._registry = dict(registry if registry is not None else DEFAULT_REGISTRY)

    def register(self, name: str, clusterer_cls: Type[BaseStreamClusterer]) -> None:
        """Make *clusterer_cls* available under *name*."""
        self._registry[name.lower()] = clusterer_cls

    def create(self, algorithm: str, tokens: Sequence[str] = ()) -> BaseStreamClusterer:
        """
        Create a clusterer instance from an identifier and option tokens.

        Args:
            algorithm: Registered algorithm name (case-insensitive)
            tokens: Rendered option tokens

        Returns:
            BaseStreamClusterer instance

        Raises:
            ValueError: If the algorithm is unknown or an option is invalid
        """
        clusterer_cls = self._registry.get(algorithm.lower())
        if clusterer_cls is None:
            raise ValueError(
                f"Unknown algorithm: {algorithm}. "
                f"Available algorithms: {', '.join(self.get_available_algorithms())}"
            )
        return clusterer_cls(**parse_option_tokens(tokens, clusterer_cls.OPTIONS))

    def create_from_command_line(self, command_line: str) -> BaseStreamClusterer:
        """Create a clusterer from ``"<algorithm> -opt value ..."``."""
        algorithm, _, rest = command_line.strip().partition(" ")
        return self.create(algorithm, [rest])

    def get_available_algorithms(self) -> List[str]:
        """Return the sorted list of registered algorithm names."""
        return sorted(self._registry)
