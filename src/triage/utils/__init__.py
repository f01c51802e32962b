"""Utility helpers."""

from triage.utils.geo import haversine_meters, within_radius
from triage.utils.logging import configure_logging, get_logger
from triage.utils.text import normalize_token, normalize_whitespace

__all__ = [
    "haversine_meters",
    "within_radius",
    "configure_logging",
    "get_logger",
    "normalize_token",
    "normalize_whitespace",
]
