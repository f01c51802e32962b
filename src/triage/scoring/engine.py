"""Submission scoring facade."""

from __future__ import annotations

import time
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, Iterable, Optional, Protocol, TypeVar

from triage.categories import CategorySet
from triage.config import Settings
from triage.models import GeocodeResult, Report, ReportLocation, ScoreBreakdown, ScoredSubmission
from triage.scoring.aggregate import rank_reports, size_score, total_score
from triage.scoring.detection import size_from_detection
from triage.scoring.location import (
    DEFAULT_VOCABULARY,
    LocationVocabulary,
    classify_location,
    load_vocabulary,
)
from triage.scoring.manual import manual_score
from triage.scoring.repetition import ClusteringAnalyzer, ReportLocator
from triage.utils.logging import get_logger


logger = get_logger(__name__)

T = TypeVar("T")
R = TypeVar("R", bound=Report)


class Geocoder(Protocol):
    """Reverse geocoding service."""

    def reverse(self, lat: float, lng: float) -> Optional[GeocodeResult]:
        """Return the place description for a coordinate, or None."""


def vocabulary_from_settings(settings: Settings) -> LocationVocabulary:
    """Build the location vocabulary from settings (file override plus radius)."""
    if settings.location_vocabulary_path:
        vocabulary = load_vocabulary(settings.location_vocabulary_path)
    else:
        vocabulary = DEFAULT_VOCABULARY
    return vocabulary.with_radius(settings.major_road_radius_meters)


class TriageEngine:
    """Compute priority scores for submissions and rank stored reports."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        categories: Optional[CategorySet] = None,
        vocabulary: Optional[LocationVocabulary] = None,
        locator: Optional[ReportLocator] = None,
        geocoder: Optional[Geocoder] = None,
    ) -> None:
        self.settings = settings or Settings()
        self.categories = categories or CategorySet.from_settings(self.settings)
        self.vocabulary = vocabulary or vocabulary_from_settings(self.settings)
        self.geocoder = geocoder
        self.clustering = ClusteringAnalyzer(locator, self.settings)

    def score_submission(
        self,
        lat: float,
        lng: float,
        category: Optional[str],
        geocode: Optional[GeocodeResult],
        raw_detection: Any,
        manual_urgency: Optional[str],
        exclude_id: Optional[str] = None,
    ) -> ScoredSubmission:
        """Score a submission whose geocode result is already known."""
        resolved = self.categories.resolve(category)
        locations = self.clustering.fetch_locations(resolved)
        return self._score(
            lat,
            lng,
            resolved,
            geocode,
            locations,
            raw_detection,
            manual_urgency,
            exclude_id,
        )

    def score_submission_live(
        self,
        lat: float,
        lng: float,
        category: Optional[str],
        raw_detection: Any,
        manual_urgency: Optional[str],
        exclude_id: Optional[str] = None,
    ) -> ScoredSubmission:
        """Score a submission, geocoding and querying nearby reports concurrently.

        Each lookup is bounded by its own timeout. A geocode that fails or times
        out is treated as absent; a comparison query that fails or times out
        scores no repetition.
        """
        resolved = self.categories.resolve(category)
        executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="triage")
        try:
            start = time.monotonic()
            geocode_future: Optional[Future[Optional[GeocodeResult]]] = None
            if self.geocoder is not None:
                geocode_future = executor.submit(self.geocoder.reverse, lat, lng)
            locations_future = executor.submit(self.clustering.fetch_locations, resolved)

            geocode = None
            if geocode_future is not None:
                geocode = _result_or_default(
                    geocode_future,
                    deadline=start + self.settings.geocoder_timeout_seconds,
                    default=None,
                    event="geocode",
                )
            locations: Optional[list[ReportLocation]] = _result_or_default(
                locations_future,
                deadline=start + self.settings.cluster_query_timeout_seconds,
                default=None,
                event="repetition",
            )
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        return self._score(
            lat,
            lng,
            resolved,
            geocode,
            locations,
            raw_detection,
            manual_urgency,
            exclude_id,
        )

    def rank_reports(self, reports: Iterable[R]) -> list[R]:
        return rank_reports(reports)

    def _score(
        self,
        lat: float,
        lng: float,
        category: str,
        geocode: Optional[GeocodeResult],
        locations: Optional[list[ReportLocation]],
        raw_detection: Any,
        manual_urgency: Optional[str],
        exclude_id: Optional[str],
    ) -> ScoredSubmission:
        match = classify_location(geocode, lat, lng, self.vocabulary)
        repetition = self.clustering.score_locations(lat, lng, locations, exclude_id=exclude_id)
        bucket = size_from_detection(raw_detection)
        breakdown = ScoreBreakdown(
            location=match.score,
            repetition=repetition,
            size=size_score(bucket),
            manual=manual_score(manual_urgency),
        )
        priority = total_score(
            breakdown.location,
            breakdown.repetition,
            breakdown.size,
            breakdown.manual,
        )

        logger.info(
            "score.computed category=%s priority=%s location=%s(%s) repetition=%s size=%s(%s) manual=%s",
            category,
            priority,
            breakdown.location,
            match.matched_by,
            breakdown.repetition,
            breakdown.size,
            bucket,
            breakdown.manual,
        )
        return ScoredSubmission(priority_score=priority, size_bucket=bucket, breakdown=breakdown)


def _result_or_default(future: Future[T], deadline: float, default: T, event: str) -> T:
    timeout = max(0.0, deadline - time.monotonic())
    try:
        return future.result(timeout=timeout)
    except FutureTimeoutError:
        future.cancel()
        logger.warning("%s.timeout timeout_seconds=%.2f", event, timeout)
        return default
    except Exception as exc:
        logger.warning("%s.failed error=%s", event, exc)
        return default
