"""Scoring package."""

from triage.scoring.aggregate import rank_reports, size_score, total_score
from triage.scoring.detection import parse_detection, size_from_detection
from triage.scoring.engine import TriageEngine
from triage.scoring.location import classify_location, location_score
from triage.scoring.manual import manual_score
from triage.scoring.repetition import ClusteringAnalyzer, score_for_count

__all__ = [
    "ClusteringAnalyzer",
    "TriageEngine",
    "classify_location",
    "location_score",
    "manual_score",
    "parse_detection",
    "rank_reports",
    "score_for_count",
    "size_from_detection",
    "size_score",
    "total_score",
]
