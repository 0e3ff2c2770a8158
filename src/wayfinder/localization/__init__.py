"""Adapters from localization service responses to engine pose fixes."""

from wayfinder.localization.pose import PoseFix, describe_result, normalize_localization_result

__all__ = ["PoseFix", "describe_result", "normalize_localization_result"]
