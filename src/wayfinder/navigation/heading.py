"""Travel-direction estimate from recent movement.

A body-worn camera's orientation does not reliably follow the direction the
user walks, so the heading is taken from recent position deltas and only
falls back to the quaternion when the user has not moved for a while.

Typical usage:
    from wayfinder.navigation.heading import HeadingEstimator

    estimator = HeadingEstimator(settings)
    estimator.observe(dx=0.5, dz=0.0, timestamp=now)
    estimator.check_staleness(now)
    heading = estimator.heading(orientation)
"""

import logging
import math
from collections import deque
from collections.abc import Iterable

import numpy as np

from wayfinder.navigation.settings import NavigationSettings
from wayfinder.spatial import Orientation

logger = logging.getLogger(__name__)


def normalize_angle_deg(angle: float) -> float:
    """Wrap an angle into (-180, 180].

    Examples:
        >>> normalize_angle_deg(190.0)
        -170.0
        >>> normalize_angle_deg(-180.0)
        180.0
    """
    wrapped = math.fmod(angle, 360.0)
    if wrapped > 180.0:
        wrapped -= 360.0
    elif wrapped <= -180.0:
        wrapped += 360.0
    return wrapped


def circular_mean_deg(angles: Iterable[float]) -> float | None:
    """Mean direction of a set of angles, in degrees.

    Sums unit vectors instead of averaging raw values, so samples on either
    side of the +/-180 seam average to the seam rather than to 0.

    Args:
        angles: Angles in degrees.

    Returns:
        Mean angle in (-180, 180], or None for an empty input.
    """
    radians = np.radians(np.fromiter(angles, dtype=np.float64))
    if radians.size == 0:
        return None
    mean = math.degrees(math.atan2(float(np.sin(radians).sum()), float(np.cos(radians).sum())))
    return normalize_angle_deg(mean)


class HeadingEstimator:
    """Smoothed movement heading with staleness detection.

    Attributes:
        history: Most recent movement bearings (bounded).
        movement_heading: Circular mean of ``history``, or None.
        last_movement_time: Timestamp of the last qualifying movement, or
            None if there has not been one.
    """

    def __init__(self, settings: NavigationSettings | None = None) -> None:
        self.settings = settings or NavigationSettings()
        self.history: deque[float] = deque(maxlen=self.settings.heading_history_size)
        self.movement_heading: float | None = None
        self.last_movement_time: float | None = None

    def observe(self, dx: float, dz: float, timestamp: float) -> bool:
        """Record a planar displacement between two consecutive fixes.

        Args:
            dx: X displacement in meters.
            dz: Z displacement in meters.
            timestamp: Time of the newer fix.

        Returns:
            True if the displacement was large enough to produce a sample.
        """
        if math.hypot(dx, dz) <= self.settings.minimum_movement_for_heading:
            return False

        self.history.append(math.degrees(math.atan2(dz, dx)))
        self.movement_heading = circular_mean_deg(self.history)
        self.last_movement_time = timestamp
        return True

    def check_staleness(self, now: float) -> bool:
        """Drop the movement heading if the user has not moved recently.

        Args:
            now: Current time.

        Returns:
            True if no qualifying movement happened within the timeout.
        """
        if (
            self.last_movement_time is not None
            and now - self.last_movement_time <= self.settings.heading_staleness_timeout
        ):
            return False

        if self.movement_heading is not None:
            logger.debug("Movement heading stale, falling back to orientation")
        self.history.clear()
        self.movement_heading = None
        return True

    def heading(self, orientation: Orientation | None) -> float | None:
        """Best available heading.

        Args:
            orientation: Latest fix orientation, used as fallback.

        Returns:
            Heading in degrees, or None if neither source is usable.
        """
        if self.movement_heading is not None:
            return self.movement_heading
        if orientation is None:
            return None
        return orientation.heading_deg()

    def reset(self) -> None:
        self.history.clear()
        self.movement_heading = None
        self.last_movement_time = None
