"""Orientation value type (unit quaternion).

The engine only uses orientation to derive a fallback heading when the user
has not moved enough for a movement-based heading. The forward direction is
the local +Z axis rotated by the quaternion, projected onto the floor plane.

Typical usage example:
    from wayfinder.spatial import Orientation

    facing_east = Orientation.from_yaw_deg(0.0)
    facing_east.heading_deg()  # 0.0, i.e. towards +X
"""

import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Orientation:
    """Unit quaternion ``(x, y, z, w)``.

    The caller is trusted to supply a unit quaternion; a malformed one only
    degrades the fallback heading.

    Attributes:
        x: Quaternion x component.
        y: Quaternion y component.
        z: Quaternion z component.
        w: Quaternion scalar component.
    """

    x: float
    y: float
    z: float
    w: float

    @classmethod
    def identity(cls) -> "Orientation":
        """No rotation (forward is map +Z, heading 90 degrees)."""
        return cls(0.0, 0.0, 0.0, 1.0)

    @classmethod
    def from_yaw_deg(cls, heading_deg: float) -> "Orientation":
        """Build a pure yaw rotation whose :meth:`heading_deg` is ``heading_deg``.

        Map headings are measured from +X towards +Z, while the quaternion
        rotates local +Z about +Y, so the rotation angle is 90 - heading.

        Args:
            heading_deg: Desired map heading in degrees.
        """
        theta = math.radians(90.0 - heading_deg)
        return cls(0.0, math.sin(theta / 2.0), 0.0, math.cos(theta / 2.0))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Orientation":
        """Build from an ``{x, y, z, w}`` mapping."""
        return cls(float(data["x"]), float(data["y"]), float(data["z"]), float(data["w"]))

    def forward_2d(self) -> tuple[float, float]:
        """Forward direction on the floor plane as ``(forward_x, forward_z)``."""
        forward_x = 2.0 * (self.x * self.z + self.w * self.y)
        forward_z = 1.0 - 2.0 * (self.x * self.x + self.y * self.y)
        return forward_x, forward_z

    def heading_deg(self) -> float | None:
        """Heading of the forward vector, ``atan2(forward_z, forward_x)`` in degrees.

        Returns:
            Heading in (-180, 180], or None if the quaternion is not finite.
        """
        forward_x, forward_z = self.forward_2d()
        if not (math.isfinite(forward_x) and math.isfinite(forward_z)):
            return None
        return math.degrees(math.atan2(forward_z, forward_x))

    def to_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y, "z": self.z, "w": self.w}
