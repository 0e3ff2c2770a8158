"""Navigation graph store.

Holds the POIs, waypoint graph and precomputed paths of one venue. The store
is filled once by :meth:`NavigationGraphStore.load_from_map_data` (or
:meth:`~NavigationGraphStore.load_from_file`) and is read-only during a
navigation session.

Typical usage:
    from wayfinder.mapdata import NavigationGraphStore

    store = NavigationGraphStore()
    store.load_from_file("data/HQ_navigation_data.json")

    start = store.nearest_waypoint(user_position)
    cached = store.get_path(start.id, poi_id)  # None on a cache miss
"""

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import numpy as np
import numpy.typing as npt
import yaml

from wayfinder.mapdata.models import (
    MapDataError,
    NavigationData,
    PointOfInterest,
    PrecomputedPath,
    Waypoint,
)
from wayfinder.spatial import Position

logger = logging.getLogger(__name__)


class NavigationGraphStore:
    """Indexed, immutable-after-load venue graph.

    Attributes:
        metadata: The last successfully parsed export, or None.

    Examples:
        >>> store = NavigationGraphStore()
        >>> store.load_from_map_data({"pois": [...], "waypoints": [...], "paths": []})
        >>> store.get_poi(3).name
        'Cafeteria'
    """

    def __init__(self) -> None:
        """Initialize an empty store."""
        self.metadata: NavigationData | None = None
        self._pois: dict[int, PointOfInterest] = {}
        self._waypoints: dict[int, Waypoint] = {}
        self._paths: dict[tuple[int, int], PrecomputedPath] = {}
        self._waypoint_ids: list[int] = []
        self._planar_coords: npt.NDArray[np.float64] = np.empty((0, 2), dtype=np.float64)

    def load_from_map_data(self, data: Mapping[str, Any]) -> None:
        """Load a navigation export and rebuild all indices.

        Any previously loaded venue is replaced. An export with zero paths is
        valid; routes are then searched on demand.

        Args:
            data: Parsed export with ``pois``, ``waypoints`` and ``paths``.

        Raises:
            MapDataError: If required fields are absent or malformed. The
                store keeps its previous contents in that case.
        """
        parsed = NavigationData.from_dict(data)

        self.metadata = parsed
        self._pois = {poi.id: poi for poi in parsed.pois}
        self._waypoints = {wp.id: wp for wp in parsed.waypoints}
        self._paths = {path.key: path for path in parsed.paths}

        self._waypoint_ids = list(self._waypoints)
        self._planar_coords = np.array(
            [(wp.position.x, wp.position.z) for wp in self._waypoints.values()],
            dtype=np.float64,
        ).reshape(-1, 2)

        dangling = sum(
            1
            for wp in self._waypoints.values()
            for neighbor in wp.neighbors
            if neighbor not in self._waypoints
        )
        if dangling:
            logger.warning("%d waypoint connections reference unknown waypoints", dangling)

        logger.info(
            "Loaded navigation data%s: %d POIs, %d waypoints, %d paths",
            f" for {parsed.map_code}" if parsed.map_code else "",
            len(self._pois),
            len(self._waypoints),
            len(self._paths),
        )

    def load_from_file(self, path: str | Path) -> None:
        """Load a navigation export from a JSON or YAML file.

        Args:
            path: ``.json``, ``.yaml`` or ``.yml`` file.

        Raises:
            MapDataError: If the file is missing, unreadable, has an
                unsupported extension, or holds malformed data.
        """
        path = Path(path)
        suffix = path.suffix.lower()

        if suffix not in (".json", ".yaml", ".yml"):
            raise MapDataError(f"Unsupported navigation data format: {path.name}")

        try:
            with path.open("r", encoding="utf-8") as f:
                data = json.load(f) if suffix == ".json" else yaml.safe_load(f)
        except OSError as e:
            raise MapDataError(f"Cannot read navigation data {path}: {e}") from e
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise MapDataError(f"Cannot parse navigation data {path}: {e}") from e

        self.load_from_map_data(data)

    @property
    def is_loaded(self) -> bool:
        """True once a venue has been loaded."""
        return self.metadata is not None

    def get_poi(self, poi_id: int) -> PointOfInterest | None:
        return self._pois.get(poi_id)

    def get_pois(self) -> list[PointOfInterest]:
        """All POIs, in export order."""
        return list(self._pois.values())

    def get_waypoint(self, waypoint_id: int) -> Waypoint | None:
        return self._waypoints.get(waypoint_id)

    def get_waypoints(self) -> list[Waypoint]:
        return list(self._waypoints.values())

    def get_waypoint_count(self) -> int:
        return len(self._waypoints)

    def get_path(self, from_waypoint_id: int, to_poi_id: int) -> PrecomputedPath | None:
        """Exact cache lookup of a precomputed path.

        A miss is not an error: the caller falls back to
        :func:`wayfinder.mapdata.pathfinding.synthesize_path`.

        Args:
            from_waypoint_id: Start waypoint.
            to_poi_id: Destination POI.

        Returns:
            The cached path, or None.
        """
        return self._paths.get((from_waypoint_id, to_poi_id))

    def nearest_waypoint(self, position: Position) -> Waypoint | None:
        """Find the waypoint with the smallest planar distance to a position.

        Scans every waypoint; ties go to the first in export order.

        Args:
            position: Query position.

        Returns:
            Nearest waypoint, or None only if the graph is empty.
        """
        if not self._waypoint_ids:
            return None

        deltas = self._planar_coords - np.array([position.x, position.z], dtype=np.float64)
        distances = np.hypot(deltas[:, 0], deltas[:, 1])
        index = int(np.argmin(distances))

        nearest = self._waypoints[self._waypoint_ids[index]]
        logger.debug("Nearest waypoint: %d at %.2fm", nearest.id, float(distances[index]))
        return nearest

    def distance_to_poi(self, position: Position, poi_id: int) -> float | None:
        """Planar distance from a position to a POI, or None if unknown."""
        poi = self._pois.get(poi_id)
        if poi is None:
            return None
        return position.distance_2d(poi.position)

    def clear(self) -> None:
        """Forget the loaded venue."""
        self.metadata = None
        self._pois.clear()
        self._waypoints.clear()
        self._paths.clear()
        self._waypoint_ids = []
        self._planar_coords = np.empty((0, 2), dtype=np.float64)
        logger.info("Cleared navigation data")
