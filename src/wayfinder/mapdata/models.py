"""Venue map entities: points of interest, waypoints and precomputed paths.

All entities are immutable once loaded. They are parsed from the venue
navigation export (``{mapCode}_navigation_data.json``), whose keys are
camelCase.

Typical usage:
    from wayfinder.mapdata.models import Waypoint

    waypoint = Waypoint.from_dict({"id": 1, "position": {...}, "connectedWaypoints": [2]})
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from wayfinder.spatial import Position


class MapDataError(Exception):
    """Raised when navigation map data is malformed or cannot be read."""


def _require(data: Mapping[str, Any], key: str, entity: str) -> Any:
    if not isinstance(data, Mapping):
        raise MapDataError(f"{entity} entry must be a mapping, got {type(data).__name__}")
    if key not in data or data[key] is None:
        raise MapDataError(f"{entity} is missing required field '{key}'")
    return data[key]


def _position(data: Mapping[str, Any], key: str, entity: str) -> Position:
    return _parse_position(_require(data, key, entity), key, entity)


def _parse_position(raw: Any, key: str, entity: str) -> Position:
    try:
        position = Position.from_dict(raw)
    except (KeyError, TypeError, ValueError) as e:
        raise MapDataError(f"{entity} has an invalid '{key}': {raw!r}") from e
    if not position.is_finite():
        raise MapDataError(f"{entity} has a non-finite '{key}': {raw!r}")
    return position


@dataclass(frozen=True)
class PointOfInterest:
    """A navigable destination.

    Attributes:
        id: Unique POI identifier.
        name: Display name ("Cafeteria").
        position: Position in the map frame.
        nearest_waypoint_id: Graph node the route to this POI ends at.
        arrival_radius: Planar distance (m) under which the user has arrived.
        type: Category ("room", "foodarea", "exit", ...).
        description: Free-text description.
        world_position: Position in the world frame of the export tool.
    """

    id: int
    name: str
    position: Position
    nearest_waypoint_id: int
    arrival_radius: float
    type: str = ""
    description: str = ""
    world_position: Position | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PointOfInterest":
        """Parse a POI entry of the map export.

        Raises:
            MapDataError: If a required field is missing or invalid.
        """
        entity = f"POI {data.get('id', '?') if isinstance(data, Mapping) else '?'}"
        position = _position(data, "position", entity)
        world_raw = data.get("worldPosition")
        try:
            return cls(
                id=int(_require(data, "id", entity)),
                name=str(_require(data, "name", entity)),
                position=position,
                nearest_waypoint_id=int(_require(data, "nearestWaypointId", entity)),
                arrival_radius=float(_require(data, "arrivalRadius", entity)),
                type=str(data.get("type", "")),
                description=str(data.get("description", "")),
                world_position=_parse_position(world_raw, "worldPosition", entity) if world_raw else position,
            )
        except (KeyError, TypeError, ValueError) as e:
            raise MapDataError(f"{entity} has an invalid field: {e}") from e


@dataclass(frozen=True)
class Waypoint:
    """A node in the pedestrian navigation graph.

    Attributes:
        id: Unique waypoint identifier.
        position: Position in the map frame.
        neighbors: IDs of directly connected waypoints.
    """

    id: int
    position: Position
    neighbors: frozenset[int] = field(default_factory=frozenset)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Waypoint":
        """Parse a waypoint entry of the map export.

        Raises:
            MapDataError: If a required field is missing or invalid.
        """
        entity = f"Waypoint {data.get('id', '?') if isinstance(data, Mapping) else '?'}"
        position = _position(data, "position", entity)
        try:
            return cls(
                id=int(_require(data, "id", entity)),
                position=position,
                neighbors=frozenset(int(n) for n in _require(data, "connectedWaypoints", entity)),
            )
        except (TypeError, ValueError) as e:
            raise MapDataError(f"{entity} has an invalid field: {e}") from e


@dataclass(frozen=True)
class PrecomputedPath:
    """A cached route from a waypoint to a POI.

    Attributes:
        from_waypoint_id: First waypoint of the route.
        to_poi_id: Destination POI.
        waypoint_path: Ordered waypoint IDs, start waypoint first.
        total_distance: Route length in meters, including the last
            waypoint to POI leg.
    """

    from_waypoint_id: int
    to_poi_id: int
    waypoint_path: tuple[int, ...]
    total_distance: float

    @property
    def key(self) -> tuple[int, int]:
        return (self.from_waypoint_id, self.to_poi_id)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PrecomputedPath":
        """Parse a path entry of the map export.

        Raises:
            MapDataError: If a required field is missing or invalid.
        """
        entity = "Path"
        try:
            return cls(
                from_waypoint_id=int(_require(data, "fromWaypointId", entity)),
                to_poi_id=int(_require(data, "toPoiId", entity)),
                waypoint_path=tuple(int(w) for w in _require(data, "waypointPath", entity)),
                total_distance=float(_require(data, "totalDistance", entity)),
            )
        except (TypeError, ValueError) as e:
            raise MapDataError(f"{entity} has an invalid field: {e}") from e


@dataclass(frozen=True)
class MapBounds:
    """Axis-aligned extent of the mapped venue."""

    center: Position
    size: Position
    min: Position
    max: Position

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MapBounds":
        return cls(
            center=_position(data, "center", "Bounds"),
            size=_position(data, "size", "Bounds"),
            min=_position(data, "min", "Bounds"),
            max=_position(data, "max", "Bounds"),
        )


@dataclass(frozen=True)
class NavigationData:
    """Everything parsed from one navigation export.

    Attributes:
        pois: Points of interest, in file order.
        waypoints: Graph nodes, in file order.
        paths: Precomputed routes (possibly empty).
        map_code: Venue map identifier, if exported.
        exported_at: Export timestamp string, if present.
        waypoint_spacing: Nominal distance between waypoints, if present.
        bounds: Venue extent, if present.
    """

    pois: tuple[PointOfInterest, ...]
    waypoints: tuple[Waypoint, ...]
    paths: tuple[PrecomputedPath, ...] = ()
    map_code: str | None = None
    exported_at: str | None = None
    waypoint_spacing: float | None = None
    bounds: MapBounds | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "NavigationData":
        """Parse a complete navigation export.

        Raises:
            MapDataError: If the export or any entity in it is malformed.
        """
        if not isinstance(data, Mapping):
            raise MapDataError("Navigation data must be a mapping")

        for section in ("pois", "waypoints"):
            if not isinstance(data.get(section), list):
                raise MapDataError(f"Navigation data is missing the '{section}' list")

        paths = data.get("paths") or []
        if not isinstance(paths, list):
            raise MapDataError("Navigation data 'paths' must be a list")

        bounds = data.get("bounds")
        spacing = data.get("waypointSpacing")
        try:
            waypoint_spacing = float(spacing) if spacing is not None else None
        except (TypeError, ValueError) as e:
            raise MapDataError(f"Navigation data has an invalid 'waypointSpacing': {spacing!r}") from e

        return cls(
            pois=tuple(PointOfInterest.from_dict(p) for p in data["pois"]),
            waypoints=tuple(Waypoint.from_dict(w) for w in data["waypoints"]),
            paths=tuple(PrecomputedPath.from_dict(p) for p in paths),
            map_code=data.get("mapCode"),
            exported_at=data.get("exportedAt"),
            waypoint_spacing=waypoint_spacing,
            bounds=MapBounds.from_dict(bounds) if bounds else None,
        )
