"""Venue map data: POIs, the waypoint graph, and route search.

Typical usage:
    from wayfinder.mapdata import NavigationGraphStore, synthesize_path

    store = NavigationGraphStore()
    store.load_from_file("data/HQ_navigation_data.json")
"""

from wayfinder.mapdata.models import (
    MapBounds,
    MapDataError,
    NavigationData,
    PointOfInterest,
    PrecomputedPath,
    Waypoint,
)
from wayfinder.mapdata.pathfinding import find_path_astar, path_length, synthesize_path
from wayfinder.mapdata.store import NavigationGraphStore

__all__ = [
    "MapBounds",
    "MapDataError",
    "NavigationData",
    "NavigationGraphStore",
    "PointOfInterest",
    "PrecomputedPath",
    "Waypoint",
    "find_path_astar",
    "path_length",
    "synthesize_path",
]
