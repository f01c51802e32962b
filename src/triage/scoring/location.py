"""Location urgency tiers from reverse-geocoded place text and known roads."""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import cached_property
from pathlib import Path
from typing import Literal, Optional

import orjson
from pydantic import BaseModel, Field, field_validator, model_validator

from triage.models import GeocodeResult
from triage.utils.geo import within_radius
from triage.utils.logging import get_logger
from triage.utils.text import join_lowered


logger = get_logger(__name__)


PLACE_TEXT_FIELDS: tuple[str, ...] = (
    "road",
    "route",
    "highway",
    "motorway",
    "trunk",
    "amenity",
    "shop",
    "commercial",
    "retail",
    "residential",
    "neighbourhood",
    "quarter",
    "suburb",
    "city_district",
    "hamlet",
    "village",
    "town",
    "city",
    "county",
    "state_district",
)


class LocationTier(BaseModel):
    """One urgency tier and the place vocabulary that selects it."""

    name: str
    score: int = Field(ge=0)
    keywords: tuple[str, ...]

    @field_validator("keywords")
    @classmethod
    def _lower_keywords(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        cleaned = tuple(keyword.strip().lower() for keyword in value if keyword.strip())
        if not cleaned:
            raise ValueError("A location tier needs at least one keyword")
        return cleaned

    @cached_property
    def pattern(self) -> re.Pattern[str]:
        """Whole-word pattern for the tier keywords; plural s/es endings also match."""
        return re.compile("|".join(_keyword_pattern(keyword) for keyword in self.keywords))


def _keyword_pattern(keyword: str) -> str:
    # Keywords ending in punctuation ("nh-") run straight into a route number.
    tail = r"(?:e?s)?(?![a-z0-9])" if keyword[-1].isalnum() else ""
    return r"(?<![a-z0-9])" + re.escape(keyword) + tail


class MajorRoadPoint(BaseModel):
    """Known coordinate on a high-priority road."""

    name: str
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


class LocationVocabulary(BaseModel):
    """Ordered tier vocabulary plus the major-road coordinate list."""

    tiers: tuple[LocationTier, ...]
    default_score: int = 8
    major_road_score: int = 40
    major_roads: tuple[MajorRoadPoint, ...] = ()
    major_road_radius_meters: float = Field(default=100.0, gt=0)

    @model_validator(mode="after")
    def _check_tiers(self) -> "LocationVocabulary":
        scores = [tier.score for tier in self.tiers]
        if scores != sorted(scores, reverse=True):
            raise ValueError("Location tiers must be ordered from most to least urgent")

        seen: dict[str, str] = {}
        for tier in self.tiers:
            for keyword in tier.keywords:
                if keyword in seen and seen[keyword] != tier.name:
                    raise ValueError(
                        f"Keyword {keyword!r} appears in tiers {seen[keyword]!r} and {tier.name!r}"
                    )
                seen[keyword] = tier.name
        return self

    def with_radius(self, radius_meters: float) -> "LocationVocabulary":
        return self.model_copy(update={"major_road_radius_meters": radius_meters})


DEFAULT_VOCABULARY = LocationVocabulary(
    tiers=(
        LocationTier(
            name="arterial",
            score=40,
            keywords=(
                "highway",
                "motorway",
                "expressway",
                "trunk",
                "national highway",
                "state highway",
                "nh-",
                "sh-",
                "bypass",
                "flyover",
                "ring road",
                "main road",
                "primary",
                "grand trunk road",
                "mg road",
                "airport road",
                "hosur road",
                "bellary road",
                "tumkur road",
                "mysore road",
            ),
        ),
        LocationTier(
            name="commercial",
            score=28,
            keywords=(
                "market",
                "bazaar",
                "mall",
                "commercial",
                "retail",
                "shop",
                "junction",
                "circle",
                "chowk",
                "signal",
                "bus stand",
                "bus station",
                "railway station",
                "metro station",
                "hospital",
                "school",
                "college",
                "secondary",
                "tertiary",
            ),
        ),
        LocationTier(
            name="residential",
            score=16,
            keywords=(
                "residential",
                "neighbourhood",
                "neighborhood",
                "colony",
                "nagar",
                "layout",
                "lane",
                "cross",
                "apartment",
                "housing",
                "society",
                "enclave",
                "living_street",
                "service",
            ),
        ),
    ),
    default_score=8,
    major_road_score=40,
    major_roads=(
        MajorRoadPoint(name="Outer Ring Road, Marathahalli", latitude=12.9569, longitude=77.7011),
        MajorRoadPoint(name="Hosur Road, Silk Board", latitude=12.9172, longitude=77.6229),
        MajorRoadPoint(name="Bellary Road, Hebbal", latitude=13.0358, longitude=77.5970),
        MajorRoadPoint(name="Tumkur Road, Yeshwanthpur", latitude=13.0285, longitude=77.5400),
        MajorRoadPoint(name="Mysore Road, Nayandahalli", latitude=12.9467, longitude=77.5300),
    ),
    major_road_radius_meters=100.0,
)


@dataclass(frozen=True)
class LocationMatch:
    """How a location score was reached."""

    score: int
    tier: str
    matched_by: Literal["coordinate", "text", "default"]
    detail: Optional[str] = None


def load_vocabulary(path: Path | str) -> LocationVocabulary:
    """Load a location vocabulary from a JSON file."""
    vocab_path = Path(path)
    if not vocab_path.exists():
        raise FileNotFoundError(f"Location vocabulary not found: {vocab_path}")
    return LocationVocabulary.model_validate(orjson.loads(vocab_path.read_bytes()))


def place_text(geocode: Optional[GeocodeResult]) -> str:
    """Lower-cased concatenation of the geocode's place text."""
    if geocode is None:
        return ""
    address = geocode.address or {}
    # place_class is "highway" for every road, so only the finer place_type is matched.
    parts: list[Optional[object]] = [geocode.display_name, geocode.place_type]
    parts.extend(address.get(field) for field in PLACE_TEXT_FIELDS)
    return join_lowered(parts)


def classify_location(
    geocode: Optional[GeocodeResult],
    lat: float,
    lng: float,
    vocabulary: LocationVocabulary = DEFAULT_VOCABULARY,
) -> LocationMatch:
    """Classify a location into an urgency tier."""
    for point in vocabulary.major_roads:
        if within_radius(lat, lng, point.latitude, point.longitude, vocabulary.major_road_radius_meters):
            return LocationMatch(
                score=vocabulary.major_road_score,
                tier="major_road",
                matched_by="coordinate",
                detail=point.name,
            )

    text = place_text(geocode)
    if text.strip():
        for tier in vocabulary.tiers:
            found = tier.pattern.search(text)
            if found:
                return LocationMatch(
                    score=tier.score,
                    tier=tier.name,
                    matched_by="text",
                    detail=found.group(0),
                )

    return LocationMatch(score=vocabulary.default_score, tier="default", matched_by="default")


def location_score(
    geocode: Optional[GeocodeResult],
    lat: float,
    lng: float,
    vocabulary: LocationVocabulary = DEFAULT_VOCABULARY,
) -> int:
    """Return the location tier score (40, 28, 16 or 8 with the default vocabulary)."""
    match = classify_location(geocode, lat, lng, vocabulary)
    logger.debug(
        "location.classified score=%s tier=%s matched_by=%s detail=%s place_class=%s",
        match.score,
        match.tier,
        match.matched_by,
        match.detail,
        geocode.place_class if geocode is not None else None,
    )
    return match.score
