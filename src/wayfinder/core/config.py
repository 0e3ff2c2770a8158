"""Configuration loader for YAML files.

Provides nested, dot-notation access to YAML configuration with typed
getters used by the navigation settings.

Typical usage example:
    from wayfinder.core.config import ConfigLoader

    config = ConfigLoader.load("config/navigation.yaml")
    reach = config.get_float("navigation.waypoint_reach_distance", default=1.5)
"""

import logging
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised when configuration operations fail."""


class ConfigLoader:
    """Configuration loader for YAML files.

    Examples:
        >>> config = ConfigLoader.load("config/navigation.yaml")
        >>> timeout = config.get("navigation.heading_staleness_timeout", default=3.0)
    """

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        """Initialize with configuration data.

        Args:
            data: Configuration dictionary (empty if None).
        """
        self._data: dict[str, Any] = data or {}

    @classmethod
    def load(cls, path: str | Path) -> "ConfigLoader":
        """Load configuration from a YAML file.

        Args:
            path: Path to YAML configuration file.

        Returns:
            ConfigLoader instance with loaded data.

        Raises:
            ConfigError: If the file is missing, unreadable, or not a mapping.
        """
        path = Path(path)

        if not path.exists():
            raise ConfigError(f"Configuration file not found: {path}")

        try:
            with path.open("r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Failed to load configuration: {e}") from e

        if data is None:
            data = {}

        if not isinstance(data, dict):
            raise ConfigError(f"Configuration root must be a mapping: {path}")

        logger.info("Loaded configuration from: %s", path)
        return cls(data)

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value using dot notation.

        Args:
            key: Configuration key (e.g., "navigation.max_off_path_distance").
            default: Default value if key not found.

        Returns:
            Configuration value or default.
        """
        value: Any = self._data

        for k in key.split("."):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def get_float(self, key: str, default: float) -> float:
        """Get a numeric configuration value as float.

        Args:
            key: Configuration key (supports dot notation).
            default: Value used when the key is absent.

        Returns:
            The value converted to float.

        Raises:
            ConfigError: If the value is present but not numeric.
        """
        value = self.get(key, default)

        # bool is an int subclass, but "true" is never a distance
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ConfigError(f"Configuration key {key} must be a number, got {value!r}")

        return float(value)

    def get_int(self, key: str, default: int) -> int:
        """Get an integer configuration value.

        Args:
            key: Configuration key (supports dot notation).
            default: Value used when the key is absent.

        Returns:
            The integer value.

        Raises:
            ConfigError: If the value is present but not an integer.
        """
        value = self.get(key, default)

        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigError(f"Configuration key {key} must be an integer, got {value!r}")

        return value

    def get_section(self, key: str) -> dict[str, Any]:
        """Get an entire configuration section.

        Args:
            key: Section key (supports dot notation).

        Returns:
            Configuration section as dictionary.

        Raises:
            ConfigError: If section not found or not a dict.
        """
        value = self.get(key)

        if value is None:
            raise ConfigError(f"Configuration section not found: {key}")

        if not isinstance(value, dict):
            raise ConfigError(f"Configuration key is not a section: {key}")

        return value

    def merge(self, other: "ConfigLoader") -> None:
        """Merge another configuration into this one.

        Values from ``other`` override existing ones; nested sections are
        merged key by key.

        Args:
            other: ConfigLoader to merge from.
        """
        self._data = _merge_dicts(self._data, other._data)


def _merge_dicts(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _merge_dicts(result[key], value)
        else:
            result[key] = value

    return result
