"""On-demand route search over the waypoint graph.

Used when the venue export has no precomputed path for a
(start waypoint, destination POI) pair.

Typical usage:
    from wayfinder.mapdata.pathfinding import find_path_astar, synthesize_path

    route = find_path_astar(store, start_id=4, goal_id=17)
    path = synthesize_path(store, from_waypoint_id=4, poi=cafeteria)
"""

import heapq
import itertools
import logging
from collections.abc import Sequence

from wayfinder.mapdata.models import PointOfInterest, PrecomputedPath
from wayfinder.mapdata.store import NavigationGraphStore

logger = logging.getLogger(__name__)


def find_path_astar(store: NavigationGraphStore, start_id: int, goal_id: int) -> list[int] | None:
    """Find the shortest waypoint route using A*.

    Edge cost and heuristic are both planar Euclidean distance, so the
    heuristic never overestimates. Nodes with equal ``f = g + h`` are
    expanded in the order they were pushed.

    Args:
        store: Loaded graph store.
        start_id: Starting waypoint ID.
        goal_id: Goal waypoint ID.

    Returns:
        Waypoint IDs from start to goal inclusive, or None if either node is
        unknown or the two are not connected.

    Examples:
        >>> find_path_astar(store, 1, 3)
        [1, 2, 3]
    """
    start = store.get_waypoint(start_id)
    goal = store.get_waypoint(goal_id)
    if start is None or goal is None:
        logger.warning("Cannot search path: waypoint %d or %d does not exist", start_id, goal_id)
        return None

    if start_id == goal_id:
        return [start_id]

    counter = itertools.count()
    open_heap: list[tuple[float, int, int]] = [
        (start.position.distance_2d(goal.position), next(counter), start_id)
    ]
    came_from: dict[int, int] = {}
    g_score: dict[int, float] = {start_id: 0.0}
    closed: set[int] = set()

    while open_heap:
        _, _, current_id = heapq.heappop(open_heap)

        if current_id == goal_id:
            path = [current_id]
            while path[-1] in came_from:
                path.append(came_from[path[-1]])
            path.reverse()
            logger.debug(
                "A* path %d -> %d: %s (%.1fm)",
                start_id,
                goal_id,
                path,
                g_score[goal_id],
            )
            return path

        if current_id in closed:
            continue
        closed.add(current_id)

        current = store.get_waypoint(current_id)
        if current is None:
            continue

        # sorted() keeps expansion independent of frozenset iteration order
        for neighbor_id in sorted(current.neighbors):
            if neighbor_id in closed:
                continue
            neighbor = store.get_waypoint(neighbor_id)
            if neighbor is None:
                continue

            tentative_g = g_score[current_id] + current.position.distance_2d(neighbor.position)
            if tentative_g < g_score.get(neighbor_id, float("inf")):
                came_from[neighbor_id] = current_id
                g_score[neighbor_id] = tentative_g
                f_score = tentative_g + neighbor.position.distance_2d(goal.position)
                heapq.heappush(open_heap, (f_score, next(counter), neighbor_id))

    logger.warning("A* found no path from %d to %d", start_id, goal_id)
    return None


def path_length(store: NavigationGraphStore, waypoint_ids: Sequence[int]) -> float:
    """Sum of planar edge lengths along a waypoint sequence.

    Unknown waypoint IDs contribute nothing.
    """
    total = 0.0
    for a_id, b_id in zip(waypoint_ids, waypoint_ids[1:]):
        a = store.get_waypoint(a_id)
        b = store.get_waypoint(b_id)
        if a is not None and b is not None:
            total += a.position.distance_2d(b.position)
    return total


def synthesize_path(
    store: NavigationGraphStore, from_waypoint_id: int, poi: PointOfInterest
) -> PrecomputedPath | None:
    """Build a session-only path to a POI with A*.

    The route ends at the POI's nearest waypoint; the final waypoint to POI
    leg is added to the total distance but is not a graph edge. The result
    is not stored back into the graph store.

    Args:
        store: Loaded graph store.
        from_waypoint_id: Start waypoint.
        poi: Destination.

    Returns:
        Equivalent of a precomputed path, or None if no route exists.
    """
    route = find_path_astar(store, from_waypoint_id, poi.nearest_waypoint_id)
    if route is None:
        return None

    total = path_length(store, route)
    last = store.get_waypoint(route[-1])
    if last is not None:
        total += last.position.distance_2d(poi.position)

    logger.debug("Computed path to POI %d: %d waypoints, %.1fm", poi.id, len(route), total)
    return PrecomputedPath(
        from_waypoint_id=from_waypoint_id,
        to_poi_id=poi.id,
        waypoint_path=tuple(route),
        total_distance=total,
    )
