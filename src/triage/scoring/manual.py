"""Self-reported urgency normalization."""

from __future__ import annotations

from typing import Optional

from triage.utils.text import normalize_token


MANUAL_SCORES: dict[str, int] = {
    "high": 15,
    "urgent": 15,
    "critical": 15,
    "medium": 10,
    "moderate": 10,
    "low": 5,
    "minor": 5,
}

DEFAULT_MANUAL_SCORE = 10


def manual_score(text: Optional[str]) -> int:
    """Map free-text urgency to 5, 10 or 15; unknown input scores 10."""
    return MANUAL_SCORES.get(normalize_token(text), DEFAULT_MANUAL_SCORE)
