"""Repetition score from nearby same-category reports."""

from __future__ import annotations

from typing import Iterable, Optional, Protocol

from triage.config import Settings
from triage.models import ReportLocation
from triage.utils.geo import within_radius
from triage.utils.logging import get_logger


logger = get_logger(__name__)

REPETITION_STEP = 5
REPETITION_MAX_COUNT = 6


class ReportLocator(Protocol):
    """Source of stored report coordinates for one category."""

    def locations(self, category: str) -> Iterable[ReportLocation]:
        """Return (id, latitude, longitude) of every stored report in the category."""


def score_for_count(count: int) -> int:
    """Map a nearby-report count to 0..30 in steps of 5, saturating at six reports."""
    if count <= 0:
        return 0
    return min(count, REPETITION_MAX_COUNT) * REPETITION_STEP


def count_nearby(
    lat: float,
    lng: float,
    locations: Iterable[ReportLocation],
    radius_meters: float,
    exclude_id: Optional[str] = None,
) -> int:
    """Count stored reports within radius_meters of (lat, lng)."""
    count = 0
    for location in locations:
        if exclude_id is not None and str(location.id) == str(exclude_id):
            continue
        try:
            other_lat = float(location.latitude)
            other_lng = float(location.longitude)
        except (TypeError, ValueError):
            logger.debug("repetition.skip_bad_coords id=%s", location.id)
            continue
        if within_radius(lat, lng, other_lat, other_lng, radius_meters):
            count += 1
    return count


class ClusteringAnalyzer:
    """Score how many same-category reports already sit next to a new one."""

    def __init__(
        self,
        locator: Optional[ReportLocator],
        settings: Optional[Settings] = None,
    ) -> None:
        self.locator = locator
        self.settings = settings or Settings()

    def fetch_locations(self, category: str) -> Optional[list[ReportLocation]]:
        """Run the comparison query; None when it is unavailable or fails."""
        if self.locator is None:
            return None
        try:
            return list(self.locator.locations(category))
        except Exception as exc:
            logger.warning("repetition.query_failed category=%s error=%s", category, exc)
            return None

    def score_locations(
        self,
        lat: float,
        lng: float,
        locations: Optional[Iterable[ReportLocation]],
        exclude_id: Optional[str] = None,
    ) -> int:
        """Score an already fetched snapshot; a missing snapshot scores 0."""
        if locations is None:
            return 0
        count = count_nearby(
            lat,
            lng,
            locations,
            radius_meters=self.settings.cluster_radius_meters,
            exclude_id=exclude_id,
        )
        score = score_for_count(count)
        logger.debug("repetition.scored nearby=%s score=%s", count, score)
        return score

    def repetition_score(
        self,
        lat: float,
        lng: float,
        category: str,
        exclude_id: Optional[str] = None,
    ) -> int:
        """Return the repetition score for a point in a category."""
        locations = self.fetch_locations(category)
        return self.score_locations(lat, lng, locations, exclude_id=exclude_id)
