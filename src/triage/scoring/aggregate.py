"""Priority score aggregation and ranking."""

from __future__ import annotations

from typing import Iterable, Optional, TypeVar

from triage.models import Report


SIZE_SCORES: dict[str, int] = {
    "small": 5,
    "medium": 10,
    "large": 15,
}

DEFAULT_SIZE_SCORE = 10

# Maximum of each sub-score; together they cap the total at 100.
LOCATION_MAX = 40
REPETITION_MAX = 30
SIZE_MAX = 15
MANUAL_MAX = 15

MIN_TOTAL = 8
MAX_TOTAL = LOCATION_MAX + REPETITION_MAX + SIZE_MAX + MANUAL_MAX


def size_score(bucket: Optional[str]) -> int:
    """Score a size bucket; unknown buckets score as medium."""
    if not isinstance(bucket, str):
        return DEFAULT_SIZE_SCORE
    return SIZE_SCORES.get(bucket.strip().lower(), DEFAULT_SIZE_SCORE)


def total_score(location: int, repetition: int, size: int, manual: int) -> int:
    """Sum the four sub-scores."""
    return location + repetition + size + manual


R = TypeVar("R", bound=Report)


def rank_reports(reports: Iterable[R]) -> list[R]:
    """Order reports by priority score, highest first, keeping input order on ties.

    Reports that were never scored rank as 0.
    """
    return sorted(reports, key=_score_key, reverse=True)


def _score_key(report: Report) -> float:
    return report.priority_score if report.priority_score is not None else 0.0
