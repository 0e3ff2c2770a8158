"""Spatial value types shared by the map store and the navigation engine.

Typical usage:
    from wayfinder.spatial import Orientation, Position
"""

from wayfinder.spatial.orientation import Orientation
from wayfinder.spatial.position import Position

__all__ = ["Orientation", "Position"]
