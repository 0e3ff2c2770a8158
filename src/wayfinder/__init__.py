"""Wayfinder - indoor pedestrian navigation from sparse visual-localization fixes."""

__version__ = "0.1.0"
