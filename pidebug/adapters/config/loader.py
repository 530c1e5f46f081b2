"""
Configuration loader with priority: env > CLI > TOML > defaults
"""
import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from ...core.constants import (
    CATALOG_OVERRIDE_FILE_NAME,
    CONNECTIONS_FILE_NAME,
    DEFAULT_CATALOG_TIMEOUT,
    DEFAULT_SETTINGS_DIR,
    DEFAULT_SSH_TIMEOUT,
    KEYS_DIR_NAME,
    PROJECTS_FILE_NAME,
)
from ...core.exceptions import ConfigError

CONFIG_FILE_NAME = "config.toml"


@dataclass
class Settings:
    """Typed, merged configuration"""
    settings_dir: Path = Path(DEFAULT_SETTINGS_DIR).expanduser()
    catalog_feed: Optional[str] = None
    catalog_timeout: float = DEFAULT_CATALOG_TIMEOUT
    connect_timeout: float = DEFAULT_SSH_TIMEOUT
    log_level: str = "INFO"

    @property
    def keys_dir(self) -> Path:
        return self.settings_dir / KEYS_DIR_NAME

    @property
    def connections_path(self) -> Path:
        return self.settings_dir / CONNECTIONS_FILE_NAME

    @property
    def catalog_override_path(self) -> Path:
        return self.settings_dir / CATALOG_OVERRIDE_FILE_NAME

    @property
    def projects_path(self) -> Path:
        return self.settings_dir / PROJECTS_FILE_NAME

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Settings":
        """
        Build from a merged configuration dictionary.

        Raises:
            ConfigError: A value has the wrong type
        """
        try:
            return cls(
                settings_dir=Path(str(data.get("settings_dir", DEFAULT_SETTINGS_DIR))).expanduser(),
                catalog_feed=data.get("catalog_feed") or None,
                catalog_timeout=float(data.get("catalog_timeout", DEFAULT_CATALOG_TIMEOUT)),
                connect_timeout=float(data.get("connect_timeout", DEFAULT_SSH_TIMEOUT)),
                log_level=str(data.get("log_level", "INFO")).upper(),
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid configuration value: {e}") from e


class ConfigLoader:
    """Configuration loader with priority support"""

    def __init__(self):
        self._env_prefix = "PIDEBUG_"

    def load_toml(self, path: Path) -> Dict[str, Any]:
        """Load TOML configuration file"""
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        try:
            return tomllib.loads(path.read_text(encoding='utf-8'))
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Failed to parse TOML configuration: {e}") from e

    def load_env(self) -> Dict[str, Any]:
        """Load configuration from environment variables"""
        config = {}

        env_mappings = {
            "PIDEBUG_SETTINGS_DIR": "settings_dir",
            "PIDEBUG_CATALOG_FEED": "catalog_feed",
            "PIDEBUG_CATALOG_TIMEOUT": "catalog_timeout",
            "PIDEBUG_CONNECT_TIMEOUT": "connect_timeout",
            "PIDEBUG_LOG_LEVEL": "log_level",
        }

        for env_key, config_key in env_mappings.items():
            value = os.getenv(env_key)
            if value:
                config[config_key] = self._convert_value(value)

        return config

    def _convert_value(self, value: str) -> Any:
        """Convert string value to appropriate type"""
        try:
            return int(value)
        except ValueError:
            pass

        try:
            return float(value)
        except ValueError:
            pass

        return value

    def merge_configs(self, *configs: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge multiple configurations with priority.
        Later configs override earlier ones.
        """
        result = {}

        for config in configs:
            result = self._deep_merge(result, config)

        return result

    def _deep_merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge two dictionaries"""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result

    def load(
        self,
        toml_path: Optional[Path] = None,
        cli_overrides: Optional[Dict[str, Any]] = None,
        use_env: bool = True,
    ) -> Dict[str, Any]:
        """
        Load configuration with priority: env > CLI > TOML > defaults

        Args:
            toml_path: Path to TOML configuration file
            cli_overrides: CLI parameter overrides (``None`` values are ignored)
            use_env: Whether to load from environment variables

        Returns:
            Merged configuration dictionary
        """
        configs = []

        if toml_path:
            configs.append(self.load_toml(toml_path))

        if cli_overrides:
            configs.append({key: value for key, value in cli_overrides.items() if value is not None})

        # Environment wins over everything
        if use_env:
            env_config = self.load_env()
            if env_config:
                configs.append(env_config)

        return self.merge_configs(*configs)

    def load_settings(
        self,
        toml_path: Optional[Path] = None,
        cli_overrides: Optional[Dict[str, Any]] = None,
        use_env: bool = True,
    ) -> Settings:
        """
        Load and type the configuration.

        Without an explicit TOML path, ``<settings dir>/config.toml`` is
        read when it exists.
        """
        if toml_path is None:
            default_path = Path(DEFAULT_SETTINGS_DIR).expanduser() / CONFIG_FILE_NAME
            if default_path.exists():
                toml_path = default_path
        return Settings.from_dict(self.load(toml_path, cli_overrides, use_env))
