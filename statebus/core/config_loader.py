"""Configuration loader for statebus."""

import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional
import logging

import yaml

from statebus.core.exceptions import ConfigNotFoundError, ConfigValidationError


# Matches ${VAR} or ${VAR:-default}
_ENV_PATTERN = re.compile(r"\$\{([^}:]+)(:-([^}]*))?\}")


class ConfigLoader:
    """
    Configuration loader with support for:
    - YAML configuration files
    - Environment variable substitution
    - Default values
    - In-code overrides (merged last)

    Usage:
        loader = ConfigLoader(Path("config/statebus.yaml"))
        config = loader.load()
        policy = loader.get("commands.unhandled")
    """

    DEFAULT_CONFIG_PATHS = [
        Path("config/statebus.yaml"),
        Path("statebus.yaml"),
        Path.home() / ".config/statebus/config.yaml",
    ]

    def __init__(
        self,
        config_path: Optional[Path] = None,
        overrides: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize the config loader.

        Args:
            config_path: Path to configuration file. If None, searches default locations.
            overrides: Values merged over the file and the defaults
        """
        self._config_path = Path(config_path) if config_path is not None else None
        self._overrides = overrides or {}
        self._config: Dict[str, Any] = {}
        self._logger = logging.getLogger("statebus.config")

    @property
    def config(self) -> Dict[str, Any]:
        return self._config

    def load(self) -> Dict[str, Any]:
        """
        Load configuration.

        Returns:
            Loaded configuration dictionary

        Raises:
            ConfigNotFoundError: If an explicit config path does not exist
            ConfigValidationError: If the YAML is invalid or values are out of range
        """
        config = self._get_default_config()

        config_path = self._find_config_file()
        if config_path is None:
            self._logger.debug("No configuration file found, using defaults")
        else:
            self._logger.info(f"Loading configuration from: {config_path}")
            try:
                with open(config_path, "r", encoding="utf-8") as f:
                    loaded = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigValidationError([f"Invalid YAML: {e}"])
            if not isinstance(loaded, dict):
                raise ConfigValidationError(["Top level of the configuration must be a mapping"])
            config = self._deep_merge(config, self._substitute_env_vars(loaded))

        self._config = self._deep_merge(config, self._overrides)

        errors = self.validate(self._config)
        if errors:
            raise ConfigValidationError(errors)

        return self._config

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by key.

        Supports dot notation for nested keys: "registry.service_order"

        Args:
            key: Configuration key
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        value = self._config

        for k in key.split("."):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def set(self, key: str, value: Any) -> None:
        """
        Set configuration value.

        Args:
            key: Configuration key (dot notation supported)
            value: Value to set
        """
        keys = key.split(".")
        config = self._config

        for k in keys[:-1]:
            if k not in config:
                config[k] = {}
            config = config[k]

        config[keys[-1]] = value

    @staticmethod
    def validate(config: Dict[str, Any]) -> List[str]:
        """
        Check configuration values.

        Returns:
            List of error messages (empty if valid)
        """
        errors = []

        policy = config.get("commands", {}).get("unhandled")
        if policy not in ("warn", "ignore", "raise"):
            errors.append(f"commands.unhandled must be warn, ignore or raise, got {policy!r}")

        registry = config.get("registry", {})
        if not isinstance(registry.get("strict"), bool):
            errors.append("registry.strict must be a boolean")
        for key in ("service_order", "component_order"):
            if not isinstance(registry.get(key), list):
                errors.append(f"registry.{key} must be a list")

        level = str(config.get("general", {}).get("log_level", "")).upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            errors.append(f"general.log_level is not a log level: {level!r}")

        services = config.get("services", {})
        settings = services.get("settings", {})
        if not isinstance(settings.get("use_live_data"), bool):
            errors.append("services.settings.use_live_data must be a boolean")

        intervals = {}
        for key in ("refresh_interval", "min_refresh_interval", "max_refresh_interval"):
            value = settings.get(key)
            if _is_int(value):
                intervals[key] = value
            else:
                errors.append(f"services.settings.{key} must be an integer, got {value!r}")
        if len(intervals) == 3:
            low = intervals["min_refresh_interval"]
            high = intervals["max_refresh_interval"]
            if not 0 < low <= intervals["refresh_interval"] <= high:
                errors.append(
                    f"services.settings.refresh_interval must be between {low} and {high} "
                    f"(and the minimum above 0), got {intervals['refresh_interval']}"
                )

        latency = services.get("content", {}).get("latency_ms")
        if not _is_int(latency) or latency < 0:
            errors.append(f"services.content.latency_ms must be a non-negative integer, got {latency!r}")

        return errors

    def _find_config_file(self) -> Optional[Path]:
        """Find the configuration file."""
        if self._config_path is not None:
            if not self._config_path.exists():
                raise ConfigNotFoundError(str(self._config_path))
            return self._config_path

        for path in self.DEFAULT_CONFIG_PATHS:
            if path.exists():
                return path

        return None

    def _substitute_env_vars(self, config: Any) -> Any:
        """
        Recursively substitute environment variables in config.

        Supports ${VAR_NAME} and ${VAR_NAME:-default} syntax.
        """
        if isinstance(config, dict):
            return {k: self._substitute_env_vars(v) for k, v in config.items()}
        elif isinstance(config, list):
            return [self._substitute_env_vars(item) for item in config]
        elif isinstance(config, str):
            return _ENV_PATTERN.sub(
                lambda match: os.environ.get(match.group(1), match.group(3) or ""),
                config
            )
        return config

    def _deep_merge(self, base: Dict, override: Dict) -> Dict:
        """
        Deep merge two dictionaries.

        Override values take precedence over base values.
        """
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result

    def _get_default_config(self) -> Dict[str, Any]:
        """Get default configuration."""
        return {
            "general": {
                "name": "statebus",
                "log_level": "WARNING",
                "log_file": None
            },
            "commands": {
                "unhandled": "warn"
            },
            "registry": {
                "strict": False,
                "service_order": [],
                "component_order": []
            },
            "services": {
                "settings": {
                    "use_live_data": False,
                    "refresh_interval": 30,
                    "min_refresh_interval": 5,
                    "max_refresh_interval": 300
                },
                "content": {
                    "latency_ms": 0
                }
            },
            "components": {},
            "overlay": {
                "catalog": {
                    "logs": ["app.log", "error.log"],
                    "assets": ["logo.png", "style.css", "main.js"],
                    "backups": []
                }
            }
        }


def _is_int(value: Any) -> bool:
    # bool is an int subclass
    return isinstance(value, int) and not isinstance(value, bool)
