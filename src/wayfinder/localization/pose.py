"""Normalization of upstream visual-localization responses.

The localization service reports the pose in one of three places depending on
the API revision: at the root of the response, under ``estimatedPose``, or
under ``trackingPose``. This module folds them into a single
:class:`PoseFix` the engine can consume.

Typical usage:
    from wayfinder.localization import normalize_localization_result

    fix = normalize_localization_result(response, min_confidence=0.3)
    if fix is not None:
        engine.update_position(fix.position, fix.orientation)
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from wayfinder.spatial import Orientation, Position

logger = logging.getLogger(__name__)

POSE_SOURCES = ("estimatedPose", "trackingPose")


@dataclass(frozen=True)
class PoseFix:
    """One usable pose fix.

    Attributes:
        position: Position in the map frame (meters).
        orientation: Orientation quaternion in the map frame.
        confidence: Reported confidence in [0, 1], or None if absent.
    """

    position: Position
    orientation: Orientation
    confidence: float | None = None


def _pose_component(payload: Mapping[str, Any], key: str) -> Mapping[str, Any] | None:
    value = payload.get(key)
    if isinstance(value, Mapping):
        return value

    for source in POSE_SOURCES:
        nested = payload.get(source)
        if isinstance(nested, Mapping) and isinstance(nested.get(key), Mapping):
            return nested[key]
    return None


def normalize_localization_result(
    payload: Mapping[str, Any], min_confidence: float | None = None
) -> PoseFix | None:
    """Extract a pose fix from a localization response.

    Position and rotation are looked up independently, each preferring the
    root level, then ``estimatedPose``, then ``trackingPose``.

    Args:
        payload: Decoded response body.
        min_confidence: Reject results reporting a lower confidence. Results
            without a confidence are accepted.

    Returns:
        The fix, or None if no pose was found, the pose is incomplete or
        malformed, or the confidence is too low.
    """
    if not isinstance(payload, Mapping):
        logger.warning("Ignoring localization result that is not a mapping")
        return None

    if not payload.get("poseFound", False):
        logger.debug("Localization failed: %s", describe_result(payload))
        return None

    raw_position = _pose_component(payload, "position")
    raw_rotation = _pose_component(payload, "rotation")
    if raw_position is None or raw_rotation is None:
        logger.warning("Localization result has poseFound but no complete pose")
        return None

    try:
        position = Position.from_dict(raw_position)
        orientation = Orientation.from_dict(raw_rotation)
        confidence = payload.get("confidence")
        confidence = None if confidence is None else float(confidence)
    except (KeyError, TypeError, ValueError) as e:
        logger.warning("Malformed pose in localization result: %s", e)
        return None

    if min_confidence is not None and confidence is not None and confidence < min_confidence:
        logger.info("Rejecting pose with confidence %.2f (< %.2f)", confidence, min_confidence)
        return None

    return PoseFix(position=position, orientation=orientation, confidence=confidence)


def describe_result(payload: Mapping[str, Any]) -> str:
    """User-facing status line for a localization response.

    Examples:
        >>> describe_result({"poseFound": True, "confidence": 0.87})
        'Localization successful (87% confidence)'
        >>> describe_result({"poseFound": False})
        'Pose not found'
    """
    if payload.get("poseFound", False):
        confidence = payload.get("confidence")
        if isinstance(confidence, (int, float)) and not isinstance(confidence, bool):
            return f"Localization successful ({confidence * 100:.0f}% confidence)"
        return "Localization successful"
    return payload.get("message") or "Pose not found"
