"""Tests for A* route search and on-demand path synthesis."""

import itertools
import math
from typing import Any

import pytest

from wayfinder.mapdata import NavigationGraphStore, find_path_astar, path_length, synthesize_path


def _store(data: dict[str, Any]) -> NavigationGraphStore:
    store = NavigationGraphStore()
    store.load_from_map_data(data)
    return store


def _irregular_data() -> dict[str, Any]:
    # Two routes from 1 to 6: the short-hop one is geometrically longer.
    coords = {
        1: (0.0, 0.0),
        2: (3.0, 4.0),
        3: (6.0, 5.0),
        4: (4.0, -1.0),
        5: (8.0, -1.5),
        6: (10.0, 2.0),
        7: (2.0, 8.0),
    }
    edges = [(1, 2), (2, 3), (3, 6), (1, 4), (4, 5), (5, 6), (2, 7), (7, 3), (4, 3)]
    neighbors: dict[int, list[int]] = {wp_id: [] for wp_id in coords}
    for a, b in edges:
        neighbors[a].append(b)
        neighbors[b].append(a)

    return {
        "pois": [],
        "waypoints": [
            {"id": wp_id, "position": {"x": x, "y": 0.0, "z": z}, "connectedWaypoints": neighbors[wp_id]}
            for wp_id, (x, z) in coords.items()
        ],
        "paths": [],
    }


def _brute_force_shortest(store: NavigationGraphStore, start: int, goal: int) -> float:
    best = math.inf
    stack = [(start, (start,))]
    while stack:
        node, path = stack.pop()
        if node == goal:
            best = min(best, path_length(store, path))
            continue
        for neighbor in store.get_waypoint(node).neighbors:
            if neighbor not in path and store.get_waypoint(neighbor) is not None:
                stack.append((neighbor, path + (neighbor,)))
    return best


class TestFindPathAStar:
    """Tests for find_path_astar."""

    def test_straight_corridor(self, corridor_store: NavigationGraphStore) -> None:
        """Test the trivial corridor route."""
        assert find_path_astar(corridor_store, 1, 3) == [1, 2, 3]
        assert find_path_astar(corridor_store, 3, 1) == [3, 2, 1]

    def test_start_equals_goal(self, corridor_store: NavigationGraphStore) -> None:
        """Test a zero-length route."""
        assert find_path_astar(corridor_store, 2, 2) == [2]

    def test_unknown_nodes(self, corridor_store: NavigationGraphStore) -> None:
        """Test that unknown start or goal yields None."""
        assert find_path_astar(corridor_store, 1, 99) is None
        assert find_path_astar(corridor_store, 99, 1) is None

    def test_disconnected(self, grid_data: dict[str, Any]) -> None:
        """Test that an unreachable node yields None."""
        grid_data["waypoints"].append(
            {"id": 20, "position": {"x": 50.0, "y": 0.0, "z": 50.0}, "connectedWaypoints": []}
        )
        store = _store(grid_data)

        assert find_path_astar(store, 1, 20) is None

    def test_optimal_against_brute_force(self) -> None:
        """Test that every A* route is as short as the shortest simple path."""
        store = _store(_irregular_data())

        for start, goal in itertools.permutations(range(1, 8), 2):
            route = find_path_astar(store, start, goal)
            assert route is not None
            assert route[0] == start and route[-1] == goal
            for a, b in zip(route, route[1:]):
                assert b in store.get_waypoint(a).neighbors
            assert path_length(store, route) == pytest.approx(_brute_force_shortest(store, start, goal))

    def test_optimal_on_grid(self, grid_store: NavigationGraphStore) -> None:
        """Test Manhattan-optimal routes on the grid."""
        route = find_path_astar(grid_store, 1, 9)

        assert len(route) == 5
        assert path_length(grid_store, route) == pytest.approx(16.0)

    def test_equal_cost_ties_are_deterministic(self, grid_data: dict[str, Any]) -> None:
        """Test that neighbor listing order does not change the chosen route."""
        forward = _store(grid_data)
        for waypoint in grid_data["waypoints"]:
            waypoint["connectedWaypoints"] = list(reversed(waypoint["connectedWaypoints"]))
        grid_data["waypoints"].reverse()
        reordered = _store(grid_data)

        first = find_path_astar(forward, 1, 9)
        assert find_path_astar(forward, 1, 9) == first
        assert find_path_astar(reordered, 1, 9) == first


class TestSynthesizePath:
    """Tests for synthesize_path."""

    def test_includes_final_leg(self, corridor_store: NavigationGraphStore) -> None:
        """Test that total distance adds the last waypoint to POI leg."""
        path = synthesize_path(corridor_store, 1, corridor_store.get_poi(1))

        assert path.waypoint_path == (1, 2, 3)
        assert path.total_distance == pytest.approx(12.0)
        assert path.key == (1, 1)

    def test_not_cached(self, corridor_store: NavigationGraphStore) -> None:
        """Test that a synthesized path is not written back into the store."""
        synthesize_path(corridor_store, 1, corridor_store.get_poi(1))
        assert corridor_store.get_path(1, 1) is None

    def test_missing_poi_waypoint(self, grid_store: NavigationGraphStore) -> None:
        """Test a POI whose nearest waypoint is not in the graph."""
        assert synthesize_path(grid_store, 1, grid_store.get_poi(11)) is None
