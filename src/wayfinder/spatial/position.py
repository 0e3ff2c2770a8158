"""Position value type in the venue map frame.

Positions are in meters in a fixed map coordinate frame. The y axis is
vertical; every planar operation works on the (x, z) floor plane.

Typical usage example:
    from wayfinder.spatial import Position

    user = Position(4.0, 0.0, 1.0)
    waypoint = Position(5.0, 1.2, 1.0)
    user.distance_2d(waypoint)  # 1.0, height ignored
"""

import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import numpy as np
import numpy.typing as npt


@dataclass(frozen=True)
class Position:
    """Immutable 3D point in the map frame.

    Attributes:
        x: X component (meters).
        y: Y component (meters, vertical).
        z: Z component (meters).

    Examples:
        >>> Position(0.0, 0.0, 0.0).distance_2d(Position(3.0, 9.0, 4.0))
        5.0
    """

    x: float
    y: float
    z: float

    def distance_to(self, other: "Position") -> float:
        """Full 3D Euclidean distance to another position."""
        dx = other.x - self.x
        dy = other.y - self.y
        dz = other.z - self.z
        return math.sqrt(dx * dx + dy * dy + dz * dz)

    def distance_2d(self, other: "Position") -> float:
        """Planar distance on the (x, z) floor plane, ignoring height."""
        return math.hypot(other.x - self.x, other.z - self.z)

    def bearing_to_deg(self, other: "Position") -> float:
        """Map bearing towards another position, ``atan2(dz, dx)`` in degrees."""
        return math.degrees(math.atan2(other.z - self.z, other.x - self.x))

    def offset_2d(self, dx: float, dz: float) -> "Position":
        """Return a copy moved by (dx, dz) on the floor plane."""
        return Position(self.x + dx, self.y, self.z + dz)

    def is_finite(self) -> bool:
        """True when no component is NaN or infinite."""
        return math.isfinite(self.x) and math.isfinite(self.y) and math.isfinite(self.z)

    def to_array(self) -> npt.NDArray[np.float64]:
        """Convert to numpy array [x, y, z]."""
        return np.array([self.x, self.y, self.z], dtype=np.float64)

    def to_dict(self) -> dict[str, float]:
        """Serialize to the ``{x, y, z}`` shape used by map exports."""
        return {"x": self.x, "y": self.y, "z": self.z}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Position":
        """Build from a ``{x, y, z}`` mapping.

        Raises:
            KeyError: If a component is missing.
            TypeError, ValueError: If a component is not numeric.
        """
        return cls(float(data["x"]), float(data["y"]), float(data["z"]))

    def __str__(self) -> str:
        return f"({self.x:.2f}, {self.y:.2f}, {self.z:.2f})"
