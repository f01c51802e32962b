"""Reverse geocoding package."""

from triage.geocoding.nominatim import NominatimGeocoder

__all__ = ["NominatimGeocoder"]
