"""Tests for stepflow.json loading and environment overrides."""

import json

import pytest

from stepflow.config_loader import (
    CONFIG_FILENAME,
    ConfigLoader,
    ParserConfig,
    get_config_loader,
    load_config,
)
from stepflow.exceptions import ConfigError


def write_config(directory, data):
    path = directory / CONFIG_FILENAME
    path.write_text(json.dumps(data) if not isinstance(data, str) else data, encoding="utf-8")
    return path


class TestLoad:
    def test_missing_file(self, tmp_path):
        loader = ConfigLoader()
        assert loader.load(tmp_path) is False
        assert loader.config_path is None
        assert loader.get_parser_config() == ParserConfig()

    def test_file_values(self, tmp_path):
        write_config(tmp_path, {"grammar_fallback": False, "step_name_hint": "screen"})
        loader = ConfigLoader()
        assert loader.load(tmp_path) is True
        assert loader.config_path == tmp_path / CONFIG_FILENAME
        config = loader.get_parser_config()
        assert config.grammar_fallback is False
        assert config.step_name_hint == "screen"
        assert config.step_like_ratio == 0.5

    def test_loaded_once(self, tmp_path):
        loader = ConfigLoader()
        loader.load(tmp_path)
        write_config(tmp_path, {"step_name_hint": "screen"})
        assert loader.load(tmp_path) is False
        assert loader.get_parser_config().step_name_hint == "step"

    def test_project_root_from_environment(self, tmp_path, monkeypatch):
        write_config(tmp_path, {"step_like_ratio": 0.8})
        monkeypatch.setenv("STEPFLOW_PROJECT_ROOT", str(tmp_path))
        loader = ConfigLoader()
        assert loader.load() is True
        assert loader.get_parser_config().step_like_ratio == 0.8

    def test_invalid_json_ignored(self, tmp_path):
        write_config(tmp_path, "{ not json")
        loader = ConfigLoader()
        assert loader.load(tmp_path) is False
        assert loader.get_parser_config() == ParserConfig()

    def test_invalid_json_strict(self, tmp_path):
        write_config(tmp_path, "{ not json")
        with pytest.raises(ConfigError):
            ConfigLoader().load(tmp_path, strict=True)

    def test_non_object_strict(self, tmp_path):
        write_config(tmp_path, [1, 2])
        with pytest.raises(ConfigError):
            ConfigLoader().load(tmp_path, strict=True)

    def test_config_is_a_copy(self, tmp_path):
        write_config(tmp_path, {"step_name_hint": "screen"})
        loader = ConfigLoader()
        loader.load(tmp_path)
        loader.config["step_name_hint"] = "changed"
        assert loader.config["step_name_hint"] == "screen"


class TestEnvironmentPrecedence:
    def test_env_beats_file(self, tmp_path, monkeypatch):
        write_config(tmp_path, {"grammar_fallback": True, "step_name_hint": "screen"})
        monkeypatch.setenv("STEPFLOW_GRAMMAR_FALLBACK", "false")
        monkeypatch.setenv("STEPFLOW_STEP_NAME_HINT", "page")
        loader = ConfigLoader()
        loader.load(tmp_path)
        config = loader.get_parser_config()
        assert config.grammar_fallback is False
        assert config.step_name_hint == "page"

    @pytest.mark.parametrize("raw, expected", [
        ("1", True), ("yes", True), ("TRUE", True), ("0", False), ("no", False),
    ])
    def test_boolean_coercion(self, tmp_path, monkeypatch, raw, expected):
        monkeypatch.setenv("STEPFLOW_GRAMMAR_FALLBACK", raw)
        loader = ConfigLoader()
        loader.load(tmp_path)
        assert loader.get_parser_config().grammar_fallback is expected

    def test_bad_ratio_falls_back_to_default(self, tmp_path, monkeypatch):
        monkeypatch.setenv("STEPFLOW_STEP_LIKE_RATIO", "lots")
        loader = ConfigLoader()
        loader.load(tmp_path)
        assert loader.get_parser_config().step_like_ratio == 0.5

    def test_max_chars_from_file_and_environment(self, tmp_path, monkeypatch):
        write_config(tmp_path, {"grammar_max_chars": 800})
        loader = ConfigLoader()
        loader.load(tmp_path)
        assert loader.get_parser_config().grammar_max_chars == 800
        monkeypatch.setenv("STEPFLOW_GRAMMAR_MAX_CHARS", "5000")
        assert loader.get_parser_config().grammar_max_chars == 5000

    @pytest.mark.parametrize("raw", ["many", "0", "-3"])
    def test_bad_max_chars_falls_back_to_default(self, tmp_path, monkeypatch, raw):
        monkeypatch.setenv("STEPFLOW_GRAMMAR_MAX_CHARS", raw)
        loader = ConfigLoader()
        loader.load(tmp_path)
        assert loader.get_parser_config().grammar_max_chars == 2000

    def test_blank_hint_falls_back_to_default(self, tmp_path, monkeypatch):
        monkeypatch.setenv("STEPFLOW_STEP_NAME_HINT", "  ")
        loader = ConfigLoader()
        loader.load(tmp_path)
        assert loader.get_parser_config().step_name_hint == "step"

    def test_get_prefers_environment(self, tmp_path, monkeypatch):
        write_config(tmp_path, {"log_dir": "from-file"})
        loader = ConfigLoader()
        loader.load(tmp_path)
        assert loader.get("log_dir") == str(tmp_path / "logs")
        monkeypatch.delenv("STEPFLOW_LOG_DIR")
        assert loader.get("log_dir") == "from-file"

    def test_get_default(self, tmp_path):
        loader = ConfigLoader()
        loader.load(tmp_path)
        assert loader.get("unknown", "fallback") == "fallback"


class TestGlobalLoader:
    def test_singleton(self):
        assert get_config_loader() is get_config_loader()

    def test_load_config(self, tmp_path):
        write_config(tmp_path, {"step_name_hint": "screen"})
        assert load_config(tmp_path).step_name_hint == "screen"
