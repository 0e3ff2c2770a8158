"""Pytest configuration and fixtures for all tests."""

import copy
from typing import Any

import pytest

from wayfinder.core.event_bus import EventBus
from wayfinder.mapdata import NavigationGraphStore

CORRIDOR_DATA: dict[str, Any] = {
    "mapCode": "TEST-CORRIDOR",
    "pois": [
        {
            "id": 1,
            "name": "Lab",
            "type": "room",
            "position": {"x": 12.0, "y": 0.0, "z": 0.0},
            "nearestWaypointId": 3,
            "arrivalRadius": 1.0,
        },
    ],
    "waypoints": [
        {"id": 1, "position": {"x": 0.0, "y": 0.0, "z": 0.0}, "connectedWaypoints": [2]},
        {"id": 2, "position": {"x": 5.0, "y": 0.0, "z": 0.0}, "connectedWaypoints": [1, 3]},
        {"id": 3, "position": {"x": 10.0, "y": 0.0, "z": 0.0}, "connectedWaypoints": [2]},
    ],
    "paths": [],
}


def _grid_data() -> dict[str, Any]:
    # 3x3 grid, 4 m spacing, 4-connected. Ids row-major from 1 at (0, 0).
    waypoints = []
    for row in range(3):
        for col in range(3):
            wp_id = row * 3 + col + 1
            neighbors = []
            if col > 0:
                neighbors.append(wp_id - 1)
            if col < 2:
                neighbors.append(wp_id + 1)
            if row > 0:
                neighbors.append(wp_id - 3)
            if row < 2:
                neighbors.append(wp_id + 3)
            waypoints.append(
                {
                    "id": wp_id,
                    "position": {"x": col * 4.0, "y": 0.0, "z": row * 4.0},
                    "connectedWaypoints": neighbors,
                }
            )

    return {
        "mapCode": "TEST-GRID",
        "pois": [
            {
                "id": 10,
                "name": "Far Corner",
                "position": {"x": 9.0, "y": 0.0, "z": 8.0},
                "nearestWaypointId": 9,
                "arrivalRadius": 1.5,
            },
            {
                "id": 11,
                "name": "Island",
                "position": {"x": 30.0, "y": 0.0, "z": 30.0},
                "nearestWaypointId": 99,
                "arrivalRadius": 1.0,
            },
        ],
        "waypoints": waypoints,
        "paths": [],
    }


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    """Clock starting at t=0."""
    return FakeClock()


@pytest.fixture
def corridor_data() -> dict[str, Any]:
    """Straight corridor W1 -> W2 -> W3 along +X with one POI past W3."""
    return copy.deepcopy(CORRIDOR_DATA)


@pytest.fixture
def corridor_store(corridor_data: dict[str, Any]) -> NavigationGraphStore:
    store = NavigationGraphStore()
    store.load_from_map_data(corridor_data)
    return store


@pytest.fixture
def grid_data() -> dict[str, Any]:
    """3x3 waypoint grid plus a POI whose waypoint does not exist."""
    return _grid_data()


@pytest.fixture
def grid_store(grid_data: dict[str, Any]) -> NavigationGraphStore:
    store = NavigationGraphStore()
    store.load_from_map_data(grid_data)
    return store


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()
