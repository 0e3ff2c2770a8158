"""Navigation instructions and turn classification with hysteresis.

Typical usage:
    from wayfinder.navigation.instructions import InstructionSelector

    selector = InstructionSelector(settings)
    instruction = selector.select(angle_deg=65.0)  # TURN_LEFT
    instruction = selector.select(angle_deg=58.0)  # still TURN_LEFT
"""

import logging
from enum import Enum

from wayfinder.navigation.settings import NavigationSettings

logger = logging.getLogger(__name__)


class NavigationInstruction(Enum):
    """Discrete instruction announced to the user.

    Values are the stable keys shared with the UI and speech collaborators.
    """

    MOVE_FORWARD = "moveForward"
    TURN_LEFT = "turnLeft"
    TURN_RIGHT = "turnRight"
    SLIGHT_LEFT = "slightLeft"
    SLIGHT_RIGHT = "slightRight"
    TURN_AROUND = "turnAround"
    NAVIGATION_STARTED = "navigationStarted"
    RECALCULATING = "recalculating"
    DESTINATION_REACHED = "destinationReached"

    @property
    def description(self) -> str:
        """User-facing text, also the speech fallback."""
        return _DESCRIPTIONS[self]

    @property
    def icon_name(self) -> str:
        """Icon key for on-screen rendering."""
        return _ICONS[self]

    @property
    def audio_file_name(self) -> str:
        """Prerecorded audio clip name, without extension."""
        return _AUDIO_FILES[self]

    @property
    def is_guidance(self) -> bool:
        """True for the six turn instructions derived from the heading."""
        return self in _GUIDANCE


_DESCRIPTIONS = {
    NavigationInstruction.MOVE_FORWARD: "Move forward",
    NavigationInstruction.TURN_LEFT: "Turn left",
    NavigationInstruction.TURN_RIGHT: "Turn right",
    NavigationInstruction.SLIGHT_LEFT: "Slight left",
    NavigationInstruction.SLIGHT_RIGHT: "Slight right",
    NavigationInstruction.TURN_AROUND: "Turn around",
    NavigationInstruction.NAVIGATION_STARTED: "Navigation started",
    NavigationInstruction.RECALCULATING: "Recalculating route",
    NavigationInstruction.DESTINATION_REACHED: "You have arrived",
}

_ICONS = {
    NavigationInstruction.MOVE_FORWARD: "arrow.up",
    NavigationInstruction.TURN_LEFT: "arrow.turn.up.left",
    NavigationInstruction.TURN_RIGHT: "arrow.turn.up.right",
    NavigationInstruction.SLIGHT_LEFT: "arrow.up.left",
    NavigationInstruction.SLIGHT_RIGHT: "arrow.up.right",
    NavigationInstruction.TURN_AROUND: "arrow.uturn.down",
    NavigationInstruction.NAVIGATION_STARTED: "location.fill",
    NavigationInstruction.RECALCULATING: "arrow.triangle.2.circlepath",
    NavigationInstruction.DESTINATION_REACHED: "checkmark.circle.fill",
}

_AUDIO_FILES = {
    NavigationInstruction.MOVE_FORWARD: "move_forward",
    NavigationInstruction.TURN_LEFT: "turn_left",
    NavigationInstruction.TURN_RIGHT: "turn_right",
    NavigationInstruction.SLIGHT_LEFT: "slight_left",
    NavigationInstruction.SLIGHT_RIGHT: "slight_right",
    NavigationInstruction.TURN_AROUND: "turn_around",
    NavigationInstruction.NAVIGATION_STARTED: "navigation_started",
    NavigationInstruction.RECALCULATING: "recalculating",
    NavigationInstruction.DESTINATION_REACHED: "destination_reached",
}

_GUIDANCE = frozenset(
    {
        NavigationInstruction.MOVE_FORWARD,
        NavigationInstruction.TURN_LEFT,
        NavigationInstruction.TURN_RIGHT,
        NavigationInstruction.SLIGHT_LEFT,
        NavigationInstruction.SLIGHT_RIGHT,
        NavigationInstruction.TURN_AROUND,
    }
)


def classify_turn(angle_deg: float, settings: NavigationSettings) -> NavigationInstruction:
    """Classify a signed turn angle.

    The map frame is left-handed, so a positive angle means the target is to
    the user's left.

    Args:
        angle_deg: Signed angle from heading to target, in (-180, 180].
        settings: Angle thresholds.

    Returns:
        One of the six guidance instructions.
    """
    abs_angle = abs(angle_deg)

    if abs_angle < settings.forward_angle_threshold:
        return NavigationInstruction.MOVE_FORWARD
    if abs_angle < settings.slight_turn_threshold:
        return NavigationInstruction.SLIGHT_LEFT if angle_deg > 0 else NavigationInstruction.SLIGHT_RIGHT
    if abs_angle < settings.turn_around_threshold:
        return NavigationInstruction.TURN_LEFT if angle_deg > 0 else NavigationInstruction.TURN_RIGHT
    return NavigationInstruction.TURN_AROUND


class InstructionSelector:
    """Turns successive turn angles into a flicker-free instruction.

    A new classification replaces the current instruction only when the
    absolute angle differs by at least ``hysteresis_buffer`` degrees from
    the angle recorded at the last change.

    Attributes:
        current: Last selected instruction, or None before the first angle.
        change_angle: Angle recorded when ``current`` was adopted.
    """

    def __init__(self, settings: NavigationSettings | None = None) -> None:
        self.settings = settings or NavigationSettings()
        self.current: NavigationInstruction | None = None
        self.change_angle: float | None = None

    def select(self, angle_deg: float) -> NavigationInstruction:
        """Select the instruction for a new angle and update the state.

        Args:
            angle_deg: Signed angle from heading to target.

        Returns:
            The instruction to emit.
        """
        candidate = classify_turn(angle_deg, self.settings)

        if self.current is None or self.change_angle is None:
            self.current = candidate
            self.change_angle = angle_deg
            return candidate

        if candidate != self.current:
            delta = abs(abs(angle_deg) - abs(self.change_angle))
            if delta < self.settings.hysteresis_buffer:
                logger.debug(
                    "Holding %s (candidate %s, delta %.1f)",
                    self.current.value,
                    candidate.value,
                    delta,
                )
                return self.current

            self.current = candidate
            self.change_angle = angle_deg

        return self.current

    def reset(self) -> None:
        self.current = None
        self.change_angle = None
