"""Navigation engine tunables.

Defaults match the values the guidance loop was tuned with on a walking
user; they can be overridden from the ``navigation:`` section of
``config/navigation.yaml``.

Typical usage:
    from wayfinder.core.config import ConfigLoader
    from wayfinder.navigation.settings import NavigationSettings

    settings = NavigationSettings.from_config(ConfigLoader.load("config/navigation.yaml"))
"""

import logging
from dataclasses import dataclass, fields

from wayfinder.core.config import ConfigError, ConfigLoader

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NavigationSettings:
    """Thresholds and delays of the navigation engine.

    Distances are in meters, angles in degrees, times in seconds.
    """

    # Instruction classification
    forward_angle_threshold: float = 20.0
    slight_turn_threshold: float = 60.0
    turn_around_threshold: float = 150.0
    hysteresis_buffer: float = 10.0

    # Path following
    waypoint_reach_distance: float = 1.5
    max_off_path_distance: float = 5.0
    pass_corridor_width: float = 3.0

    # Heading estimation
    heading_history_size: int = 5
    minimum_movement_for_heading: float = 0.3
    heading_staleness_timeout: float = 3.0

    # Dead reckoning
    minimum_movement_for_velocity: float = 0.1
    latency_compensation: float = 0.1

    # Session timing
    first_instruction_delay: float = 1.5
    arrival_teardown_delay: float = 3.0

    # Announcement cooldowns
    same_instruction_cooldown: float = 3.0
    any_instruction_cooldown: float = 1.5

    @classmethod
    def from_config(cls, config: ConfigLoader, section: str = "navigation") -> "NavigationSettings":
        """Build settings from a config section, keeping defaults for absent keys.

        Args:
            config: Loaded configuration.
            section: Section holding the settings.

        Returns:
            Settings instance.

        Raises:
            ConfigError: If a value has the wrong type or is not positive.
        """
        raw = config.get_section(section) if config.get(section) is not None else {}

        defaults = cls()
        values = {}
        known = set()
        for f in fields(cls):
            known.add(f.name)
            key = f"{section}.{f.name}"
            default = getattr(defaults, f.name)
            if isinstance(default, int):
                value: float | int = config.get_int(key, default)
            else:
                value = config.get_float(key, default)
            if value <= 0:
                raise ConfigError(f"Configuration key {key} must be positive, got {value}")
            values[f.name] = value

        for unknown in sorted(set(raw) - known):
            logger.warning("Ignoring unknown navigation setting: %s", unknown)

        return cls(**values)
