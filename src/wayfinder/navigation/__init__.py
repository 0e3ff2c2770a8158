"""Guidance: heading estimation, dead reckoning, instructions and the engine."""

from wayfinder.navigation.announcer import InstructionAnnouncer
from wayfinder.navigation.dead_reckoning import DeadReckoningPredictor
from wayfinder.navigation.engine import NavigationEngine
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
from wayfinder.navigation.heading import HeadingEstimator, circular_mean_deg, normalize_angle_deg
from wayfinder.navigation.instructions import InstructionSelector, NavigationInstruction, classify_turn
from wayfinder.navigation.settings import NavigationSettings

__all__ = [
    "DeadReckoningPredictor",
    "DestinationReached",
    "HeadingEstimator",
    "InstructionAnnouncer",
    "InstructionIssued",
    "InstructionSelector",
    "NavigationEngine",
    "NavigationInstruction",
    "NavigationPhase",
    "NavigationSettings",
    "NavigationStarted",
    "NavigationState",
    "NavigationStateChanged",
    "NavigationStopped",
    "RouteRecalculated",
    "circular_mean_deg",
    "classify_turn",
    "normalize_angle_deg",
]
