"""
Configuration Manager
---------------------
Loads configuration from YAML with environment variable overrides.

Rules:
- File is optional; defaults apply when it is missing
- JARVIS_SECTION_KEY environment variables win over the file
"""

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional
import logging
import os

import yaml


ENV_PREFIX = "JARVIS_"


class ConfigManager:
    """
    Centralized configuration management.
    Loads configuration from YAML with environment variable overrides.
    """

    def __init__(self, config_path: str = "config.yaml"):
        self._config_path = Path(config_path)
        self._config: Dict[str, Any] = {}
        self._logger = logging.getLogger("jarvis.infra.config")

        self._load_config()

    def _load_config(self) -> None:
        """Load configuration from file."""
        if self._config_path.exists():
            with open(self._config_path, "r", encoding="utf-8") as f:
                self._config = yaml.safe_load(f) or {}
            self._logger.info(f"Loaded config from {self._config_path}")
        else:
            self._config = {}
            self._logger.warning(f"Config file not found: {self._config_path}, using defaults")

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value.
        Supports dot notation: 'section.key'
        Environment variables override file config.
        """
        env_key = f"{ENV_PREFIX}{key.upper().replace('.', '_')}"
        env_value = os.getenv(env_key)
        if env_value is not None:
            return _coerce(env_value, default)

        value: Any = self._config
        for part in key.split("."):
            if isinstance(value, dict) and part in value:
                value = value[part]
            else:
                return default

        return value

    def get_section(self, section: str) -> Dict[str, Any]:
        """Get an entire configuration section."""
        return self._config.get(section, {}) or {}

    def reload(self) -> None:
        """Reload configuration from file."""
        self._load_config()


def _coerce(raw: str, default: Any) -> Any:
    """Convert an environment string to the type of the default."""
    if isinstance(default, bool):
        return raw.strip().lower() in ("1", "true", "yes", "on")
    if isinstance(default, int):
        return int(raw)
    if isinstance(default, float):
        return float(raw)
    return raw


@dataclass
class EngineConfig:
    """Settings for building a CommandEngine."""
    notes_db_path: str = "data/notes.db"
    whitelist_path: Optional[str] = None
    command_map_path: Optional[str] = None
    shell_timeout_seconds: float = 5.0
    max_output_chars: int = 2000
    log_level: str = "INFO"
    log_dir: str = "logs"

    # config key for each field
    KEYS = {
        "notes_db_path": "notes.db_path",
        "whitelist_path": "security.whitelist_path",
        "command_map_path": "commands.registry_path",
        "shell_timeout_seconds": "shell.timeout_seconds",
        "max_output_chars": "shell.max_output_chars",
        "log_level": "logging.level",
        "log_dir": "logging.dir",
    }

    @classmethod
    def from_manager(cls, manager: ConfigManager) -> "EngineConfig":
        defaults = cls()
        values = {}
        for f in fields(cls):
            default = getattr(defaults, f.name)
            # Optional paths default to None; read them as strings
            lookup_default = "" if default is None else default
            value = manager.get(cls.KEYS[f.name], lookup_default)
            values[f.name] = value if value != "" else default
        return cls(**values)

    @classmethod
    def load(cls, config_path: str = "config.yaml") -> "EngineConfig":
        """Build settings from a YAML file plus environment overrides."""
        return cls.from_manager(ConfigManager(config_path))
