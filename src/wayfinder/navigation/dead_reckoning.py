"""Short-horizon position extrapolation between sparse fixes.

A fix is already ~100 ms old when the engine consumes it, so progress,
arrival and instructions use the fix pushed forward by the last planar
velocity estimate.

Typical usage:
    from wayfinder.navigation.dead_reckoning import DeadReckoningPredictor

    predictor = DeadReckoningPredictor(settings)
    predictor.observe(previous_fix, new_fix, elapsed_s=0.2)
    now_position = predictor.predict(new_fix)
"""

import logging

from wayfinder.navigation.settings import NavigationSettings
from wayfinder.spatial import Position

logger = logging.getLogger(__name__)

MINIMUM_TIME_DELTA_S = 0.01


class DeadReckoningPredictor:
    """Planar velocity estimate and latency compensation.

    Attributes:
        velocity_x: Estimated X velocity (m/s).
        velocity_z: Estimated Z velocity (m/s).
    """

    def __init__(self, settings: NavigationSettings | None = None) -> None:
        self.settings = settings or NavigationSettings()
        self.velocity_x = 0.0
        self.velocity_z = 0.0

    @property
    def velocity(self) -> tuple[float, float]:
        return (self.velocity_x, self.velocity_z)

    def observe(self, previous: Position, current: Position, elapsed_s: float) -> bool:
        """Update the velocity from two consecutive fixes.

        The estimate is only replaced when the user moved more than the
        velocity threshold and the fixes are not too close in time;
        otherwise the previous estimate is kept.

        Args:
            previous: Older fix.
            current: Newer fix.
            elapsed_s: Wall-clock time between the two fixes.

        Returns:
            True if the velocity was updated.
        """
        dx = current.x - previous.x
        dz = current.z - previous.z

        if (dx * dx + dz * dz) ** 0.5 <= self.settings.minimum_movement_for_velocity:
            return False
        if elapsed_s <= MINIMUM_TIME_DELTA_S:
            return False

        self.velocity_x = dx / elapsed_s
        self.velocity_z = dz / elapsed_s
        return True

    def predict(self, position: Position) -> Position:
        """Extrapolate a fix by the latency compensation time. Height is kept."""
        latency = self.settings.latency_compensation
        return position.offset_2d(self.velocity_x * latency, self.velocity_z * latency)

    def reset_velocity(self) -> None:
        """Assume the user is standing still."""
        self.velocity_x = 0.0
        self.velocity_z = 0.0

    reset = reset_velocity
