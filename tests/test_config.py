"""
Tests for settings-file parsing and environment configuration.
"""

import json
from pathlib import Path

import pytest

from stream_cluster_tuner.config import (
    AlgorithmDeclaration,
    Config,
    ParameterDeclaration,
    SettingsError,
    TunerSettings,
    load_settings,
    settings_from_dict,
)

EXAMPLE_SETTINGS = Path(__file__).parent.parent / "settings.example.json"


def _write(tmp_path, data, name="settings.json"):
    path = tmp_path / name
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


class TestSettingsFromDict:
    def test_camel_case_keys(self, settings_dict):
        settings = settings_from_dict(settings_dict)
        assert settings.window_size == 50
        assert settings.ensemble_size == 4
        assert settings.new_configurations_per_cycle == 2
        assert settings.seed == 3
        assert [a.algorithm for a in settings.algorithms] == ["leader", "leader"]
        radius = settings.algorithms[0].parameters[0]
        assert (radius.parameter, radius.type, radius.value, radius.range) == (
            "radius", "numeric", 0.2, [0.05, 1.0]
        )

    def test_snake_case_keys(self, settings_dict):
        data = dict(settings_dict)
        data["window_size"] = data.pop("windowSize")
        data["ensemble_size"] = data.pop("ensembleSize")
        data["new_configurations_per_cycle"] = data.pop("newConfigurations")
        assert settings_from_dict(data).window_size == 50

    def test_seed_is_optional(self, settings_dict):
        del settings_dict["seed"]
        assert settings_from_dict(settings_dict).seed is None

    def test_missing_size(self, settings_dict):
        del settings_dict["windowSize"]
        with pytest.raises(SettingsError, match="windowSize"):
            settings_from_dict(settings_dict)

    def test_missing_parameter_key(self, settings_dict):
        del settings_dict["algorithms"][0]["parameters"][0]["type"]
        with pytest.raises(SettingsError, match="missing key"):
            settings_from_dict(settings_dict)

    @pytest.mark.parametrize("value", [0, -3, 2.5, "10", True])
    def test_sizes_must_be_positive_integers(self, settings_dict, value):
        settings_dict["ensembleSize"] = value
        with pytest.raises(SettingsError):
            settings_from_dict(settings_dict)

    def test_no_algorithms(self, settings_dict):
        settings_dict["algorithms"] = []
        with pytest.raises(SettingsError, match="at least one algorithm"):
            settings_from_dict(settings_dict)

    def test_population_larger_than_ensemble(self, settings_dict):
        settings_dict["ensembleSize"] = 1
        with pytest.raises(SettingsError, match="exceed"):
            settings_from_dict(settings_dict)

    def test_not_an_object(self):
        with pytest.raises(SettingsError, match="JSON object"):
            settings_from_dict([1, 2])

    def test_settings_error_is_value_error(self, settings_dict):
        settings_dict["algorithms"] = "leader"
        with pytest.raises(ValueError):
            settings_from_dict(settings_dict)


class TestDeclarations:
    def test_duplicate_parameters_rejected(self):
        with pytest.raises(SettingsError, match="more than once: k"):
            AlgorithmDeclaration(
                "online_kmeans",
                [
                    ParameterDeclaration("k", "integer", 3, [2, 8]),
                    ParameterDeclaration("k", "integer", 4, [2, 8]),
                ],
            )

    def test_range_must_be_list(self):
        with pytest.raises(SettingsError, match="range"):
            ParameterDeclaration("k", "integer", 3, "2-8")

    def test_missing_range_becomes_empty(self):
        assert ParameterDeclaration("merge", "boolean", False, None).range == []

    def test_tuner_settings_validation(self):
        with pytest.raises(SettingsError, match="window_size"):
            TunerSettings(0, 2, 1, [AlgorithmDeclaration("leader")])


class TestLoadSettings:
    def test_round_trip_file(self, tmp_path, settings_dict):
        settings = load_settings(_write(tmp_path, settings_dict))
        assert settings.ensemble_size == 4

    def test_example_file_loads(self):
        settings = load_settings(EXAMPLE_SETTINGS)
        assert [a.algorithm for a in settings.algorithms] == ["leader", "online_kmeans"]
        types = {p.type for a in settings.algorithms for p in a.parameters}
        assert types == {"numeric", "integer", "nominal", "boolean", "ordinal"}

    def test_missing_file(self, tmp_path):
        with pytest.raises(SettingsError, match="not found"):
            load_settings(tmp_path / "absent.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(SettingsError, match="not valid JSON"):
            load_settings(path)


class TestConfig:
    def test_defaults(self, monkeypatch):
        for var in ("TUNER_SETTINGS_FILE", "TUNER_LOG_LEVEL", "TUNER_SEED"):
            monkeypatch.delenv(var, raising=False)
        cfg = Config()
        assert cfg.settings_file == "settings.json"
        assert cfg.log_level == "INFO"
        assert cfg.seed is None

    def test_environment_overrides(self, monkeypatch, tmp_path, settings_dict):
        path = _write(tmp_path, settings_dict, name="from_env.json")
        monkeypatch.setenv("TUNER_SETTINGS_FILE", str(path))
        monkeypatch.setenv("TUNER_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("TUNER_SEED", "99")
        cfg = Config()
        assert cfg.log_level == "DEBUG"
        settings = cfg.load_settings()
        assert settings.window_size == 50
        assert settings.seed == 99

    def test_explicit_path_wins(self, monkeypatch, tmp_path, settings_dict):
        monkeypatch.setenv("TUNER_SETTINGS_FILE", str(tmp_path / "absent.json"))
        monkeypatch.delenv("TUNER_SEED", raising=False)
        settings = Config().load_settings(_write(tmp_path, settings_dict))
        assert settings.seed == 3

    def test_invalid_seed(self, monkeypatch):
        monkeypatch.setenv("TUNER_SEED", "abc")
        with pytest.raises(SettingsError, match="TUNER_SEED"):
            Config().seed
