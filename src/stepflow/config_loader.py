"""
Configuration Loader

Loads stepflow configuration from stepflow.json in the project root.
Environment variables always take precedence over config file values.

Config file location (in order of precedence):
1. STEPFLOW_PROJECT_ROOT/stepflow.json (if STEPFLOW_PROJECT_ROOT is set)
2. CWD/stepflow.json

Supported settings in stepflow.json:
{
    "grammar_fallback": true,      // -> STEPFLOW_GRAMMAR_FALLBACK
    "step_name_hint": "step",      // -> STEPFLOW_STEP_NAME_HINT
    "step_like_ratio": 0.5,        // -> STEPFLOW_STEP_LIKE_RATIO
    "grammar_max_chars": 2000,     // -> STEPFLOW_GRAMMAR_MAX_CHARS
    "debug_log": "1",              // -> STEPFLOW_DEBUG_LOG ("" disables the log file)
    "log_dir": ".stepflow"         // -> STEPFLOW_LOG_DIR
}
"""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from .exceptions import ConfigError
from .logging_config import NULL_LOGGER

CONFIG_FILENAME = "stepflow.json"


@dataclass(frozen=True)
class ParserConfig:
    """Tuning knobs for the extraction pipeline."""

    # Run the grammar fallback when the structural scan finds nothing
    grammar_fallback: bool = True
    # Substring (case-insensitive) that marks a variable as holding steps
    step_name_hint: str = "step"
    # Share of object elements that must carry an id for an array to count
    step_like_ratio: float = 0.5
    # Longest text the grammar fallback hands to the parser in one piece
    grammar_max_chars: int = 2000


class ConfigLoader:
    """
    Loads configuration from stepflow.json.

    Priority: Environment variables > stepflow.json > defaults
    """

    # Mapping from stepflow.json keys to environment variable names
    CONFIG_KEY_TO_ENV = {
        "grammar_fallback": "STEPFLOW_GRAMMAR_FALLBACK",
        "step_name_hint": "STEPFLOW_STEP_NAME_HINT",
        "step_like_ratio": "STEPFLOW_STEP_LIKE_RATIO",
        "grammar_max_chars": "STEPFLOW_GRAMMAR_MAX_CHARS",
        "debug_log": "STEPFLOW_DEBUG_LOG",
        "log_dir": "STEPFLOW_LOG_DIR",
    }

    PARSER_DEFAULTS = {
        "grammar_fallback": True,
        "step_name_hint": "step",
        "step_like_ratio": 0.5,
        "grammar_max_chars": 2000,
    }

    def __init__(self, logger: Optional[logging.Logger] = None):
        self._config: Dict[str, Any] = {}
        self._config_path: Optional[Path] = None
        self._loaded = False
        self._logger = logger or NULL_LOGGER

    def load(self, project_root: Optional[Path] = None, strict: bool = False) -> bool:
        """
        Load configuration from stepflow.json.

        Args:
            project_root: Project root directory. If None, uses STEPFLOW_PROJECT_ROOT or CWD.
            strict: Raise ConfigError on an unreadable file instead of ignoring it.

        Returns:
            True if config file was found and loaded, False otherwise.
        """
        if self._loaded:
            return self._config_path is not None

        if project_root is None:
            env_root = os.getenv("STEPFLOW_PROJECT_ROOT")
            project_root = Path(env_root) if env_root else Path.cwd()

        config_path = Path(project_root) / CONFIG_FILENAME
        if config_path.exists():
            try:
                with open(config_path, 'r', encoding='utf-8') as f:
                    data = json.load(f)
                if not isinstance(data, dict):
                    raise ValueError("top-level value must be an object")
                self._config = data
                self._config_path = config_path
                self._logger.info("Loaded config from: %s", config_path)
            except (OSError, ValueError) as e:
                # json.JSONDecodeError is a ValueError
                if strict:
                    raise ConfigError(f"Invalid config in {config_path}: {e}") from e
                self._logger.warning("Ignoring invalid config %s: %s", config_path, e)

        self._loaded = True
        return self._config_path is not None

    def get(self, key: str, default: Any = None) -> Any:
        """Get a config value, environment first."""
        env_var = self.CONFIG_KEY_TO_ENV.get(key)
        if env_var:
            env_value = os.getenv(env_var)
            if env_value is not None:
                return env_value
        return self._config.get(key, default)

    def get_parser_config(self) -> ParserConfig:
        """
        Get parser configuration with defaults applied.

        Returns:
            ParserConfig with every setting resolved.
        """
        values = {}

        for key, default_value in self.PARSER_DEFAULTS.items():
            env_value = os.getenv(self.CONFIG_KEY_TO_ENV[key])
            if env_value is not None:
                values[key] = _coerce(env_value, default_value)
            elif key in self._config:
                values[key] = _coerce(self._config[key], default_value)
            else:
                values[key] = default_value

        return ParserConfig(**values)

    @property
    def config_path(self) -> Optional[Path]:
        """Path to the loaded config file, or None if not loaded."""
        return self._config_path

    @property
    def config(self) -> Dict[str, Any]:
        """The loaded configuration dictionary."""
        return self._config.copy()


def _coerce(value: Any, default_value: Any) -> Any:
    """Convert a raw setting to the type of its default, falling back on failure."""
    if isinstance(default_value, bool):
        if isinstance(value, bool):
            return value
        return str(value).strip().lower() in ('true', '1', 'yes')
    if isinstance(default_value, float):
        try:
            return float(value)
        except (TypeError, ValueError):
            return default_value
    if isinstance(default_value, int):
        try:
            number = int(value)
        except (TypeError, ValueError):
            return default_value
        return number if number > 0 else default_value
    if isinstance(default_value, str):
        text = str(value).strip()
        return text if text else default_value
    return value


# Global singleton instance
_config_loader: Optional[ConfigLoader] = None


def get_config_loader() -> ConfigLoader:
    """Get the global config loader instance."""
    global _config_loader
    if _config_loader is None:
        _config_loader = ConfigLoader()
    return _config_loader


def load_config(project_root: Optional[Path] = None) -> ParserConfig:
    """
    Load stepflow.json (once) and return the resolved parser configuration.

    Args:
        project_root: Project root directory. If None, auto-detects.
    """
    loader = get_config_loader()
    loader.load(project_root)
    return loader.get_parser_config()
