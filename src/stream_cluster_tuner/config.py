"""
Configuration management for Stream Cluster Tuner.

Two layers:
- Settings file (JSON): window size, ensemble size, proposals per cycle and
  the initial algorithm population with their parameter declarations.
- Environment variables (typically from a .env file, loaded with
  python-dotenv): where to find the settings file, log level, seed override.

Usage:
    from stream_cluster_tuner.config import config

    settings = config.load_settings()          # TUNER_SETTINGS_FILE
    settings = load_settings("settings.json")  # explicit path

Settings file layout:
    {
      "windowSize": 1000,
      "ensembleSize": 5,
      "newConfigurations": 2,
      "seed": 7,
      "algorithms": [
        {"algorithm": "leader",
         "parameters": [
           {"parameter": "radius", "type": "numeric", "value": 0.5, "range": [0.01, 2.0]},
           {"parameter": "merge", "type": "boolean", "value": false, "range": [false, true]}
         ]}
      ]
    }
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from dotenv import load_dotenv

# Look for .env in project root (parent of src/)
env_path = Path(__file__).parent.parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)


class SettingsError(ValueError):
    """Raised when the settings file is missing or malformed."""


@dataclass
class ParameterDeclaration:
    """One tunable parameter as declared in the settings file."""
    parameter: str
    type: str
    value: Any
    range: List[Any] = field(default_factory=list)

    def __post_init__(self):
        """Validate that required fields are present."""
        if not isinstance(self.parameter, str) or not self.parameter:
            raise SettingsError("Parameter declaration needs a non-empty 'parameter' name")
        if not isinstance(self.type, str) or not self.type:
            raise SettingsError(f"Parameter '{self.parameter}' needs a 'type'")
        if self.range is None:
            self.range = []
        if not isinstance(self.range, (list, tuple)):
            raise SettingsError(f"Parameter '{self.parameter}': 'range' must be a list")
        self.range = list(self.range)


@dataclass
class AlgorithmDeclaration:
    """An initial population member: algorithm identifier plus parameters."""
    algorithm: str
    parameters: List[ParameterDeclaration] = field(default_factory=list)

    def __post_init__(self):
        """Reject duplicate parameter names."""
        if not isinstance(self.algorithm, str) or not self.algorithm:
            raise SettingsError("Algorithm declaration needs a non-empty 'algorithm'")
        names = [p.parameter for p in self.parameters]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise SettingsError(
                f"Algorithm '{self.algorithm}' declares parameters more than once: "
                f"{', '.join(duplicates)}"
            )


@dataclass
class TunerSettings:
    """Settings of one ensemble optimizer run."""
    window_size: int
    ensemble_size: int
    new_configurations_per_cycle: int
    algorithms: List[AlgorithmDeclaration]
    seed: Optional[int] = None

    def __post_init__(self):
        """Validate sizes and the initial population."""
        for name in ("window_size", "ensemble_size", "new_configurations_per_cycle"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise SettingsError(f"{name} must be a positive integer, got {value!r}")
        if not self.algorithms:
            raise SettingsError("Settings must declare at least one algorithm")
        if len(self.algorithms) > self.ensemble_size:
            raise SettingsError(
                f"{len(self.algorithms)} initial algorithms exceed "
                f"ensemble_size ({self.ensemble_size})"
            )


# settings-file key -> accepted spellings
_KEY_ALIASES = {
    "window_size": ("windowSize", "window_size"),
    "ensemble_size": ("ensembleSize", "ensemble_size"),
    "new_configurations_per_cycle": (
        "newConfigurations",
        "newConfigurationsPerCycle",
        "new_configurations_per_cycle",
    ),
}


def _lookup(data: Dict[str, Any], key: str) -> Any:
    for alias in _KEY_ALIASES[key]:
        if alias in data:
            return data[alias]
    raise SettingsError(f"Settings are missing '{_KEY_ALIASES[key][0]}'")


def settings_from_dict(data: Dict[str, Any]) -> TunerSettings:
    """
    Build TunerSettings from a parsed settings document.

    Args:
        data: Dictionary with the settings-file layout

    Returns:
        Validated TunerSettings

    Raises:
        SettingsError: If keys are missing or values have the wrong shape
    """
    if not isinstance(data, dict):
        raise SettingsError(f"Settings must be a JSON object, got {type(data).__name__}")
    try:
        algorithms = []
        for entry in data.get("algorithms") or []:
            parameters = [
                ParameterDeclaration(
                    parameter=p["parameter"],
                    type=p["type"],
                    value=p["value"],
                    range=p.get("range", []),
                )
                for p in entry.get("parameters") or []
            ]
            algorithms.append(AlgorithmDeclaration(algorithm=entry["algorithm"], parameters=parameters))
        seed = data.get("seed")
        return TunerSettings(
            window_size=_lookup(data, "window_size"),
            ensemble_size=_lookup(data, "ensemble_size"),
            new_configurations_per_cycle=_lookup(data, "new_configurations_per_cycle"),
            algorithms=algorithms,
            seed=None if seed is None else int(seed),
        )
    except SettingsError:
        raise
    except KeyError as e:
        raise SettingsError(f"Settings entry is missing key {e}") from e
    except (TypeError, ValueError, AttributeError) as e:
        raise SettingsError(f"Malformed settings: {e}") from e


def load_settings(path: Union[str, Path]) -> TunerSettings:
    """
    Read and validate a JSON settings file.

    Raises:
        SettingsError: If the file is missing, unreadable, not JSON, or invalid
    """
    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as fh:
            data = json.load(fh)
    except FileNotFoundError as e:
        raise SettingsError(f"Settings file not found: {path}") from e
    except json.JSONDecodeError as e:
        raise SettingsError(f"Settings file {path} is not valid JSON: {e}") from e
    except OSError as e:
        raise SettingsError(f"Cannot read settings file {path}: {e}") from e
    return settings_from_dict(data)


class Config:
    """
    Application configuration loaded from environment variables.

    Environment variables can be set:
    1. In a .env file in the project root
    2. In the system environment
    3. In a container/deployment environment

    Variables:
        TUNER_SETTINGS_FILE: Settings file path (default: settings.json)
        TUNER_LOG_LEVEL: Log level name (default: INFO)
        TUNER_SEED: Optional integer seed overriding the settings file
    """

    def __init__(self):
        """Load configuration from environment."""
        self.settings_file = os.getenv("TUNER_SETTINGS_FILE", "settings.json")
        self.log_level = os.getenv("TUNER_LOG_LEVEL", "INFO")
        self._raw_seed = os.getenv("TUNER_SEED", "")

    @property
    def seed(self) -> Optional[int]:
        """Seed override from TUNER_SEED, or None when unset."""
        if not self._raw_seed.strip():
            return None
        try:
            return int(self._raw_seed)
        except ValueError as e:
            raise SettingsError(f"TUNER_SEED must be an integer, got {self._raw_seed!r}") from e

    def load_settings(self, path: Optional[Union[str, Path]] = None) -> TunerSettings:
        """
        Load the settings file, applying the TUNER_SEED override.

        Args:
            path: Settings file; defaults to TUNER_SETTINGS_FILE

        Returns:
            Validated TunerSettings
        """
        settings = load_settings(path or self.settings_file)
        if self.seed is not None:
            settings.seed = self.seed
        return settings


# Global config instance
config = Config()
