"""Events published by the navigation engine on the event bus.

Typical usage:
    from wayfinder.navigation.events import InstructionIssued

    bus.subscribe(InstructionIssued, lambda event: print(event.instruction.description))
"""

from dataclasses import dataclass
from enum import Enum

from wayfinder.core.event_bus import Event
from wayfinder.mapdata.models import PointOfInterest
from wayfinder.navigation.instructions import NavigationInstruction


class NavigationPhase(Enum):
    """Lifecycle phase of the engine."""

    IDLE = "idle"
    NAVIGATING = "navigating"
    ARRIVED = "arrived"


@dataclass(frozen=True)
class NavigationState:
    """Externally observed navigation state.

    A new instance replaces the previous one after every mutation, so
    readers on other threads always see a consistent snapshot.
    """

    phase: NavigationPhase = NavigationPhase.IDLE
    destination: PointOfInterest | None = None
    current_instruction: NavigationInstruction | None = None
    remaining_distance: float = 0.0
    current_waypoint_index: int = 0
    total_waypoints: int = 0
    active_path: tuple[int, ...] | None = None

    @property
    def is_navigating(self) -> bool:
        return self.phase is NavigationPhase.NAVIGATING


@dataclass(frozen=True)
class NavigationStateChanged(Event):
    state: NavigationState


@dataclass(frozen=True)
class InstructionIssued(Event):
    """An instruction computed or forced by the engine.

    Attributes:
        instruction: The instruction.
        forced: True for lifecycle announcements that must bypass any
            cooldown (start, recalculating, arrival).
        angle_deg: Signed turn angle for guidance instructions.
        distance_to_target: Planar distance to the current target (m).
        target_label: "WP<id>" or the POI name.
    """

    instruction: NavigationInstruction
    forced: bool = False
    angle_deg: float | None = None
    distance_to_target: float | None = None
    target_label: str = ""


@dataclass(frozen=True)
class NavigationStarted(Event):
    destination: PointOfInterest
    path: tuple[int, ...]
    total_distance: float


@dataclass(frozen=True)
class RouteRecalculated(Event):
    previous_path: tuple[int, ...]
    path: tuple[int, ...]
    off_path_distance: float


@dataclass(frozen=True)
class DestinationReached(Event):
    destination: PointOfInterest


@dataclass(frozen=True)
class NavigationStopped(Event):
    reason: str = "requested"
