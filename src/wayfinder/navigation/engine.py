"""Navigation engine: the guidance state machine.

Consumes a stream of pose fixes and turns it into path progress, arrival
detection, off-path re-routing and a stable turn instruction. All output goes
through the event bus (see :mod:`wayfinder.navigation.events`); the latest
snapshot is also available from :attr:`NavigationEngine.state`.

Phases: IDLE -> NAVIGATING -> ARRIVED -> IDLE. NAVIGATING re-enters itself
when the route is recalculated.

Typical usage:
    from wayfinder.core.event_bus import EventBus
    from wayfinder.navigation import NavigationEngine

    engine = NavigationEngine(store, EventBus())
    engine.update_position(position, orientation)  # localize first
    engine.start_navigation(poi_id=3)
    ...
    engine.update_position(position, orientation)  # every fix
"""

import logging
import math
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from wayfinder.core.event_bus import Event, EventBus
from wayfinder.core.scheduler import ScheduledTask, TaskScheduler
from wayfinder.mapdata.models import PointOfInterest, PrecomputedPath
from wayfinder.mapdata.pathfinding import synthesize_path
from wayfinder.mapdata.store import NavigationGraphStore
from wayfinder.navigation.dead_reckoning import DeadReckoningPredictor
from wayfinder.navigation.events import (
    DestinationReached,
    InstructionIssued,
    NavigationPhase,
    NavigationStarted,
    NavigationState,
    NavigationStateChanged,
    NavigationStopped,
    RouteRecalculated,
)
from wayfinder.navigation.heading import HeadingEstimator, normalize_angle_deg
from wayfinder.navigation.instructions import InstructionSelector, NavigationInstruction
from wayfinder.navigation.settings import NavigationSettings
from wayfinder.spatial import Orientation, Position

logger = logging.getLogger(__name__)

MIN_SEGMENT_LENGTH_M = 0.001
MIN_TARGET_DISTANCE_M = 0.001


@dataclass
class _Session:
    destination: PointOfInterest
    path: list[int]
    remaining_distance: float
    predicted_position: Position
    current_waypoint_index: int = 0
    current_instruction: NavigationInstruction | None = None
    tasks: list[ScheduledTask] = field(default_factory=list)


class NavigationEngine:  # pylint: disable=too-many-instance-attributes
    """Single-owner guidance state machine.

    ``start_navigation``, ``stop_navigation``, ``update_position`` and
    ``tick`` are serialized by one re-entrant lock, so event handlers may call
    back into the engine (for example to stop navigation) while it publishes.

    Attributes:
        store: Venue graph.
        event_bus: Output channel.
        settings: Thresholds and delays.

    Examples:
        >>> engine = NavigationEngine(store, bus)
        >>> engine.update_position(Position(0, 0, 0), Orientation.from_yaw_deg(0))
        >>> engine.start_navigation(7)
        True
        >>> engine.state.is_navigating
        True
    """

    def __init__(
        self,
        store: NavigationGraphStore,
        event_bus: EventBus | None = None,
        settings: NavigationSettings | None = None,
        clock: Callable[[], float] = time.monotonic,
        scheduler: TaskScheduler | None = None,
    ) -> None:
        """Initialize an idle engine.

        Args:
            store: Loaded (or later loaded) venue graph.
            event_bus: Bus to publish events on (a private one if None).
            settings: Engine tunables (defaults if None).
            clock: Monotonic time source in seconds.
            scheduler: Delayed-task scheduler sharing ``clock``.
        """
        self.store = store
        self.event_bus = event_bus or EventBus()
        self.settings = settings or NavigationSettings()
        self._clock = clock
        self._scheduler = scheduler or TaskScheduler(clock)
        self._lock = threading.RLock()

        self._heading = HeadingEstimator(self.settings)
        self._dead_reckoning = DeadReckoningPredictor(self.settings)
        self._selector = InstructionSelector(self.settings)

        self._last_position: Position | None = None
        self._last_orientation: Orientation | None = None
        self._last_fix_time: float | None = None

        self._phase = NavigationPhase.IDLE
        self._session: _Session | None = None
        self._generation = 0
        self._state = NavigationState()

        logger.info("NavigationEngine initialized")

    # ------------------------------------------------------------------
    # Read side

    @property
    def state(self) -> NavigationState:
        """Latest published snapshot. Safe to read from any thread."""
        return self._state

    @property
    def phase(self) -> NavigationPhase:
        return self._phase

    @property
    def last_position(self) -> Position | None:
        return self._last_position

    @property
    def last_orientation(self) -> Orientation | None:
        return self._last_orientation

    @property
    def has_position(self) -> bool:
        return self._last_position is not None

    @property
    def heading_estimator(self) -> HeadingEstimator:
        return self._heading

    @property
    def dead_reckoning(self) -> DeadReckoningPredictor:
        return self._dead_reckoning

    @property
    def is_data_loaded(self) -> bool:
        return self.store.is_loaded

    def get_available_pois(self) -> list[PointOfInterest]:
        return self.store.get_pois()

    # ------------------------------------------------------------------
    # Commands

    def start_navigation(self, poi_id: int) -> bool:
        """Start guiding the user to a POI.

        Requires at least one fix. Any active session is replaced and its
        scheduled work invalidated.

        Args:
            poi_id: Destination POI.

        Returns:
            True if navigation started; False (logged) if the POI is unknown,
            no fix is available, the graph is empty, or no route exists.
        """
        with self._lock:
            poi = self.store.get_poi(poi_id)
            if poi is None:
                logger.error("POI %s not found", poi_id)
                return False

            if self._last_position is None:
                logger.error("No user position available - localize first")
                return False

            start = self.store.nearest_waypoint(self._last_position)
            if start is None:
                logger.error("No waypoint available near %s", self._last_position)
                return False

            path = self._resolve_path(start.id, poi)
            if path is None:
                logger.error("No path found from waypoint %d to POI %d", start.id, poi.id)
                return False

            if self._session is not None:
                logger.info("Replacing active navigation to %s", self._session.destination.name)
            self._invalidate_session()

            self._heading.reset()
            self._dead_reckoning.reset_velocity()
            self._selector.reset()

            session = _Session(
                destination=poi,
                path=list(path.waypoint_path),
                remaining_distance=path.total_distance,
                predicted_position=self._last_position,
            )
            self._session = session
            self._phase = NavigationPhase.NAVIGATING

            logger.info(
                "Navigation started to %s, distance: %.1fm, path: %s",
                poi.name,
                path.total_distance,
                path.waypoint_path,
            )

            self._publish(
                NavigationStarted(
                    destination=poi,
                    path=path.waypoint_path,
                    total_distance=path.total_distance,
                    timestamp=self._clock(),
                )
            )
            self._announce(session, NavigationInstruction.NAVIGATION_STARTED)

            generation = self._generation
            session.tasks.append(
                self._scheduler.schedule(
                    self.settings.first_instruction_delay,
                    lambda: self._first_instruction(generation),
                    name="first_instruction",
                )
            )
            self._publish_state()
            return True

    def stop_navigation(self, reason: str = "requested") -> None:
        """Stop navigation and clear all session state.

        Idempotent, and safe to call from an event handler while the engine
        is publishing.

        Args:
            reason: Recorded in the NavigationStopped event.
        """
        with self._lock:
            was_active = self._session is not None
            self._invalidate_session()
            self._phase = NavigationPhase.IDLE
            self._heading.reset()
            self._dead_reckoning.reset_velocity()
            self._selector.reset()

            if was_active:
                logger.info("Navigation stopped (%s)", reason)
                self._publish(NavigationStopped(reason=reason, timestamp=self._clock()))
            self._publish_state()

    def update_position(self, position: Position, orientation: Orientation) -> None:
        """Consume one pose fix.

        Heading, velocity and fix history are always updated. While
        navigating, the fix also drives progress, arrival, re-routing and the
        instruction.

        Args:
            position: Fix position in the map frame.
            orientation: Fix orientation.
        """
        with self._lock:
            self._scheduler.run_due()

            if not position.is_finite():
                logger.warning("Ignoring non-finite position fix %s", position)
                return

            now = self._clock()
            self._record_fix(position, orientation, now)

            session = self._session
            if self._phase is NavigationPhase.NAVIGATING and session is not None:
                self._navigate(session, position)

            self._publish_state()

    def tick(self) -> int:
        """Run due scheduled work without a new fix.

        Returns:
            Number of scheduled callbacks executed.
        """
        with self._lock:
            return self._scheduler.run_due()

    # ------------------------------------------------------------------
    # Fix bookkeeping

    def _record_fix(self, position: Position, orientation: Orientation, now: float) -> None:
        previous = self._last_position
        if previous is not None:
            if self._last_fix_time is not None:
                self._dead_reckoning.observe(previous, position, now - self._last_fix_time)
            self._heading.observe(position.x - previous.x, position.z - previous.z, now)

        if self._heading.check_staleness(now):
            self._dead_reckoning.reset_velocity()

        self._last_position = position
        self._last_orientation = orientation
        self._last_fix_time = now

    # ------------------------------------------------------------------
    # Guidance

    def _navigate(self, session: _Session, position: Position) -> None:
        predicted = self._dead_reckoning.predict(position)
        session.predicted_position = predicted

        destination = session.destination
        session.remaining_distance = predicted.distance_2d(destination.position)

        if session.remaining_distance <= destination.arrival_radius:
            self._arrive(session)
            return

        self._advance_waypoints(session, predicted)

        self._check_off_path(session, predicted)
        if not self._is_active(session):
            return

        self._give_instruction(session, predicted)

    def _advance_waypoints(self, session: _Session, user: Position) -> None:
        path = session.path

        while session.current_waypoint_index < len(path) - 1:
            current_id = path[session.current_waypoint_index]
            current = self.store.get_waypoint(current_id)
            following = self.store.get_waypoint(path[session.current_waypoint_index + 1])
            if current is None or following is None:
                break

            within_reach = user.distance_2d(current.position) <= self.settings.waypoint_reach_distance
            passed = self._has_passed(user, current.position, following.position)

            if not (within_reach or passed):
                break

            session.current_waypoint_index += 1
            logger.debug(
                "Reached waypoint %d (within: %s, passed: %s), advancing to index %d",
                current_id,
                within_reach,
                passed,
                session.current_waypoint_index,
            )

    def _has_passed(self, user: Position, waypoint: Position, following: Position) -> bool:
        """True if the user is beyond ``waypoint`` in the direction of ``following``.

        The user must also be within the pass corridor of the segment line,
        so cutting across a corner does not skip the corner waypoint.
        """
        path_x = following.x - waypoint.x
        path_z = following.z - waypoint.z
        segment_length = math.hypot(path_x, path_z)
        if segment_length <= MIN_SEGMENT_LENGTH_M:
            return False

        to_user_x = user.x - waypoint.x
        to_user_z = user.z - waypoint.z

        along = path_x * to_user_x + path_z * to_user_z
        perpendicular = abs(path_x * to_user_z - path_z * to_user_x) / segment_length

        return along > 0 and perpendicular < self.settings.pass_corridor_width

    def _check_off_path(self, session: _Session, user: Position) -> None:
        if session.current_waypoint_index >= len(session.path):
            return

        target = self.store.get_waypoint(session.path[session.current_waypoint_index])
        if target is None:
            return

        distance = user.distance_2d(target.position)
        if distance <= self.settings.max_off_path_distance:
            return

        logger.warning("User off-path (distance: %.1fm), recalculating...", distance)
        self._announce(session, NavigationInstruction.RECALCULATING)
        if not self._is_active(session):
            return

        start = self.store.nearest_waypoint(user)
        new_path = self._resolve_path(start.id, session.destination) if start else None
        if new_path is None:
            logger.warning("Could not recalculate path to %s, keeping current path", session.destination.name)
            return

        previous_path = tuple(session.path)
        session.path = list(new_path.waypoint_path)
        session.current_waypoint_index = 0
        logger.info("Recalculated path: %s", session.path)

        self._publish(
            RouteRecalculated(
                previous_path=previous_path,
                path=new_path.waypoint_path,
                off_path_distance=distance,
                timestamp=self._clock(),
            )
        )

    def _select_target(self, session: _Session, user: Position) -> tuple[Position, str] | None:
        destination = session.destination
        index = session.current_waypoint_index
        path = session.path

        if index >= len(path):
            return destination.position, destination.name

        current = self.store.get_waypoint(path[index])
        if current is None:
            return None

        if user.distance_2d(current.position) > self.settings.waypoint_reach_distance:
            return current.position, f"WP{current.id}"

        if index < len(path) - 1:
            following = self.store.get_waypoint(path[index + 1])
            if following is None:
                return None
            return following.position, f"WP{following.id}"

        return destination.position, destination.name

    def _give_instruction(self, session: _Session, user: Position) -> None:
        target = self._select_target(session, user)
        if target is None:
            return
        target_position, target_label = target

        heading = self._heading.heading(self._last_orientation)
        if heading is None:
            logger.debug("No usable heading, skipping instruction")
            return

        distance = user.distance_2d(target_position)
        if distance < MIN_TARGET_DISTANCE_M:
            angle = 0.0
        else:
            angle = normalize_angle_deg(user.bearing_to_deg(target_position) - heading)

        instruction = self._selector.select(angle)
        session.current_instruction = instruction

        logger.debug(
            "Nav: %s, %.1fm, %.0f deg, %s",
            target_label,
            distance,
            angle,
            instruction.description,
        )
        self._publish(
            InstructionIssued(
                instruction=instruction,
                angle_deg=angle,
                distance_to_target=distance,
                target_label=target_label,
                timestamp=self._clock(),
            )
        )

    def _arrive(self, session: _Session) -> None:
        self._phase = NavigationPhase.ARRIVED
        logger.info("Arrived at %s", session.destination.name)

        self._announce(session, NavigationInstruction.DESTINATION_REACHED)
        if self._session is not session:
            return
        self._publish(DestinationReached(destination=session.destination, timestamp=self._clock()))
        if self._session is not session:
            return

        generation = self._generation
        session.tasks.append(
            self._scheduler.schedule(
                self.settings.arrival_teardown_delay,
                lambda: self._teardown_after_arrival(generation),
                name="arrival_teardown",
            )
        )

    # ------------------------------------------------------------------
    # Scheduled callbacks

    def _first_instruction(self, generation: int) -> None:
        with self._lock:
            session = self._session
            if generation != self._generation or session is None:
                return
            if self._phase is not NavigationPhase.NAVIGATING:
                return
            self._give_instruction(session, session.predicted_position)
            self._publish_state()

    def _teardown_after_arrival(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation or self._phase is not NavigationPhase.ARRIVED:
                return
            self.stop_navigation(reason="arrived")

    # ------------------------------------------------------------------
    # Helpers

    def _resolve_path(self, from_waypoint_id: int, poi: PointOfInterest) -> PrecomputedPath | None:
        cached = self.store.get_path(from_waypoint_id, poi.id)
        if cached is not None:
            return cached

        logger.debug("Computing path at runtime for %d_%d", from_waypoint_id, poi.id)
        return synthesize_path(self.store, from_waypoint_id, poi)

    def _is_active(self, session: _Session) -> bool:
        return self._session is session and self._phase is NavigationPhase.NAVIGATING

    def _invalidate_session(self) -> None:
        if self._session is not None:
            for task in self._session.tasks:
                task.cancel()
        self._session = None
        self._generation += 1

    def _announce(self, session: _Session, instruction: NavigationInstruction) -> None:
        session.current_instruction = instruction
        self._publish(InstructionIssued(instruction=instruction, forced=True, timestamp=self._clock()))

    def _publish(self, event: Event) -> None:
        self.event_bus.publish(event)

    def _publish_state(self) -> None:
        session = self._session
        if session is None:
            state = NavigationState(phase=self._phase)
        else:
            state = NavigationState(
                phase=self._phase,
                destination=session.destination,
                current_instruction=session.current_instruction,
                remaining_distance=session.remaining_distance,
                current_waypoint_index=session.current_waypoint_index,
                total_waypoints=len(session.path),
                active_path=tuple(session.path),
            )

        if state != self._state:
            self._state = state
            self._publish(NavigationStateChanged(state=state, timestamp=self._clock()))
