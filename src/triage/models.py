"""Core data models for scoring and ranking."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


SizeBucket = Literal["small", "medium", "large"]

SIZE_BUCKETS: tuple[str, ...] = ("small", "medium", "large")


class Report(BaseModel):
    """Stored civic-issue report as read from a category table."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str
    category: str
    latitude: Optional[float] = Field(default=None, alias="location_lat")
    longitude: Optional[float] = Field(default=None, alias="location_lng")
    address: Optional[str] = None
    description: Optional[str] = None
    manual_urgency: Optional[str] = Field(default=None, alias="urgency")
    contact: Optional[str] = None
    image_url: Optional[str] = None
    classification: Optional[str] = None
    size_bucket: Optional[str] = None
    priority_score: Optional[float] = None
    status: str = "pending"
    created_at: Optional[datetime] = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> str:
        return str(value)

    @field_validator("status", mode="before")
    @classmethod
    def _default_status(cls, value: Any) -> str:
        return value or "pending"

    @property
    def title(self) -> str:
        """Short title derived from the description."""
        if not self.description:
            return "Civic Issue"
        if len(self.description) > 30:
            return self.description[:30] + "..."
        return self.description

    @property
    def classification_label(self) -> str:
        """Model classification, or the storage category when none was recorded."""
        return self.classification or self.category

    @property
    def reported_by(self) -> str:
        return self.contact or "Anonymous"

    @property
    def has_images(self) -> bool:
        return bool(self.image_url)


@dataclass(frozen=True)
class ReportLocation:
    """Minimal stored-report projection used for clustering."""

    id: str
    latitude: float
    longitude: float


class GeocodeResult(BaseModel):
    """Reverse-geocoded place description.

    place_class and payload are kept for diagnostics only; scoring reads the
    display name, place_type and address fields.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    display_name: Optional[str] = None
    place_class: Optional[str] = Field(default=None, alias="class")
    place_type: Optional[str] = Field(default=None, alias="type")
    address: dict[str, Any] = Field(default_factory=dict)
    payload: dict[str, Any] = Field(default_factory=dict)


class ScoreBreakdown(BaseModel):
    """Individual sub-scores before summation."""

    location: int
    repetition: int
    size: int
    manual: int

    @property
    def total(self) -> int:
        return self.location + self.repetition + self.size + self.manual


class ScoredSubmission(BaseModel):
    """Result of scoring one submission."""

    priority_score: int
    size_bucket: SizeBucket
    breakdown: ScoreBreakdown
