import threading
from typing import Optional

from triage.categories import CategorySet
from triage.config import Settings
from triage.models import GeocodeResult, Report, ReportLocation
from triage.scoring.engine import TriageEngine
from triage.scoring.location import DEFAULT_VOCABULARY


HIGHWAY_POINT = DEFAULT_VOCABULARY.major_roads[0]

# Far from every built-in major-road point.
FAR_LAT = 10.0
FAR_LNG = 10.0


class FakeLocator:
    def __init__(self, by_category: Optional[dict[str, list[ReportLocation]]] = None) -> None:
        self.by_category = by_category or {}
        self.calls: list[str] = []

    def locations(self, category: str) -> list[ReportLocation]:
        self.calls.append(category)
        return self.by_category.get(category, [])


class FailingLocator:
    def locations(self, category: str) -> list[ReportLocation]:
        raise RuntimeError("database unavailable")


class BlockingLocator:
    def __init__(self) -> None:
        self.release = threading.Event()

    def locations(self, category: str) -> list[ReportLocation]:
        self.release.wait(timeout=5)
        return [ReportLocation(id="1", latitude=FAR_LAT, longitude=FAR_LNG)]


class StaticGeocoder:
    def __init__(self, result: Optional[GeocodeResult]) -> None:
        self.result = result
        self.calls: list[tuple[float, float]] = []

    def reverse(self, lat: float, lng: float) -> Optional[GeocodeResult]:
        self.calls.append((lat, lng))
        return self.result


class BlockingGeocoder:
    def __init__(self) -> None:
        self.release = threading.Event()

    def reverse(self, lat: float, lng: float) -> Optional[GeocodeResult]:
        self.release.wait(timeout=5)
        return GeocodeResult(display_name="National Highway 48")


class FailingGeocoder:
    def reverse(self, lat: float, lng: float) -> Optional[GeocodeResult]:
        raise ConnectionError("geocoder down")


def _settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


def _engine(**overrides) -> TriageEngine:
    params = {"settings": _settings()}
    params.update(overrides)
    return TriageEngine(**params)


def _around(lat: float, lng: float, count: int, prefix: str = "r") -> list[ReportLocation]:
    return [
        ReportLocation(id=f"{prefix}{i}", latitude=lat + 0.0001 * (i + 1), longitude=lng)
        for i in range(count)
    ]


def test_end_to_end_highway_cluster_large_high():
    locator = FakeLocator(
        {
            "pothole": _around(HIGHWAY_POINT.latitude, HIGHWAY_POINT.longitude, 2)
            + [ReportLocation(id="far", latitude=FAR_LAT, longitude=FAR_LNG)],
            "garbage": _around(HIGHWAY_POINT.latitude, HIGHWAY_POINT.longitude, 3, prefix="g"),
        }
    )
    engine = _engine(locator=locator)
    result = engine.score_submission(
        lat=HIGHWAY_POINT.latitude,
        lng=HIGHWAY_POINT.longitude,
        category="pothole",
        geocode=None,
        raw_detection=[0, 0, 200, 200],
        manual_urgency="high",
    )
    assert result.breakdown.location == 40
    assert result.breakdown.repetition == 10
    assert result.breakdown.size == 15
    assert result.breakdown.manual == 15
    assert result.priority_score == 80
    assert result.breakdown.total == result.priority_score
    assert result.size_bucket == "large"
    assert locator.calls == ["pothole"]


def test_all_signals_missing_still_scores():
    engine = _engine(locator=FailingLocator())
    result = engine.score_submission(
        lat=FAR_LAT,
        lng=FAR_LNG,
        category="garbage",
        geocode=None,
        raw_detection=None,
        manual_urgency=None,
    )
    assert result.breakdown.location == 8
    assert result.breakdown.repetition == 0
    assert result.breakdown.size == 10
    assert result.breakdown.manual == 10
    assert result.priority_score == 28
    assert result.size_bucket == "medium"


def test_geocode_text_drives_location_score():
    geocode = GeocodeResult(display_name="Gandhi Bazaar, Basavanagudi, Bengaluru")
    result = _engine().score_submission(
        lat=FAR_LAT,
        lng=FAR_LNG,
        category="pothole",
        geocode=geocode,
        raw_detection=[0, 0, 50, 50],
        manual_urgency="low",
    )
    assert result.breakdown.location == 28
    assert result.priority_score == 28 + 0 + 5 + 5


def test_unknown_category_falls_back_to_others():
    locator = FakeLocator({"others": _around(FAR_LAT, FAR_LNG, 1)})
    result = _engine(locator=locator).score_submission(
        lat=FAR_LAT,
        lng=FAR_LNG,
        category="streetlight",
        geocode=None,
        raw_detection=[],
        manual_urgency="",
    )
    assert locator.calls == ["others"]
    assert result.breakdown.repetition == 5


def test_category_is_normalized_before_lookup():
    locator = FakeLocator()
    _engine(locator=locator).score_submission(
        lat=FAR_LAT,
        lng=FAR_LNG,
        category="  WaterLeak ",
        geocode=None,
        raw_detection=[],
        manual_urgency=None,
    )
    assert locator.calls == ["waterleak"]


def test_exclude_id_skips_report_being_rescored():
    locator = FakeLocator(
        {"pothole": [ReportLocation(id="42", latitude=FAR_LAT, longitude=FAR_LNG)]}
    )
    engine = _engine(locator=locator)
    kwargs = dict(
        lat=FAR_LAT,
        lng=FAR_LNG,
        category="pothole",
        geocode=None,
        raw_detection=[],
        manual_urgency=None,
    )
    assert engine.score_submission(**kwargs).breakdown.repetition == 5
    assert engine.score_submission(**kwargs, exclude_id="42").breakdown.repetition == 0


def test_custom_category_set_is_used():
    categories = CategorySet(names=("pothole", "streetlight", "others"))
    locator = FakeLocator()
    _engine(locator=locator, categories=categories).score_submission(
        lat=FAR_LAT,
        lng=FAR_LNG,
        category="streetlight",
        geocode=None,
        raw_detection=[],
        manual_urgency=None,
    )
    assert locator.calls == ["streetlight"]


def test_major_road_radius_comes_from_settings():
    engine = _engine(settings=_settings(major_road_radius_meters=30.0))
    # About 55 meters from the point.
    result = engine.score_submission(
        lat=HIGHWAY_POINT.latitude + 0.0005,
        lng=HIGHWAY_POINT.longitude,
        category="pothole",
        geocode=None,
        raw_detection=[],
        manual_urgency=None,
    )
    assert result.breakdown.location == 8


def test_live_scoring_uses_geocoder_and_locator():
    geocoder = StaticGeocoder(GeocodeResult(display_name="Bannerghatta Main Road"))
    locator = FakeLocator({"pothole": _around(FAR_LAT, FAR_LNG, 4)})
    result = _engine(locator=locator, geocoder=geocoder).score_submission_live(
        lat=FAR_LAT,
        lng=FAR_LNG,
        category="pothole",
        raw_detection=[0, 0, 100, 100],
        manual_urgency="moderate",
    )
    assert geocoder.calls == [(FAR_LAT, FAR_LNG)]
    assert result.breakdown.location == 40
    assert result.breakdown.repetition == 20
    assert result.priority_score == 40 + 20 + 10 + 10


def test_live_scoring_geocode_timeout_falls_back_to_coordinates():
    geocoder = BlockingGeocoder()
    engine = _engine(
        settings=_settings(geocoder_timeout_seconds=0.05),
        locator=FakeLocator(),
        geocoder=geocoder,
    )
    try:
        result = engine.score_submission_live(
            lat=HIGHWAY_POINT.latitude,
            lng=HIGHWAY_POINT.longitude,
            category="pothole",
            raw_detection=[],
            manual_urgency=None,
        )
        assert result.breakdown.location == 40

        result = engine.score_submission_live(
            lat=FAR_LAT,
            lng=FAR_LNG,
            category="pothole",
            raw_detection=[],
            manual_urgency=None,
        )
        assert result.breakdown.location == 8
    finally:
        geocoder.release.set()


def test_live_scoring_query_timeout_scores_no_repetition():
    locator = BlockingLocator()
    engine = _engine(settings=_settings(cluster_query_timeout_seconds=0.05), locator=locator)
    try:
        result = engine.score_submission_live(
            lat=FAR_LAT,
            lng=FAR_LNG,
            category="pothole",
            raw_detection=[],
            manual_urgency=None,
        )
    finally:
        locator.release.set()
    assert result.breakdown.repetition == 0
    assert result.priority_score == 8 + 0 + 10 + 10


def test_live_scoring_geocoder_error_is_absorbed():
    result = _engine(geocoder=FailingGeocoder(), locator=FailingLocator()).score_submission_live(
        lat=FAR_LAT,
        lng=FAR_LNG,
        category="pothole",
        raw_detection=[0, 0, 200, 200],
        manual_urgency="urgent",
    )
    assert result.priority_score == 8 + 0 + 15 + 15


def test_engine_ranks_reports():
    reports = [
        Report(id="A", category="pothole", latitude=1.0, longitude=1.0, priority_score=50),
        Report(id="B", category="garbage", latitude=1.0, longitude=1.0, priority_score=80),
        Report(id="C", category="pothole", latitude=1.0, longitude=1.0, priority_score=50),
        Report(id="D", category="others", latitude=1.0, longitude=1.0, priority_score=90),
    ]
    assert [r.id for r in _engine().rank_reports(reports)] == ["D", "B", "A", "C"]


def test_scoring_is_deterministic():
    locator = FakeLocator({"pothole": _around(FAR_LAT, FAR_LNG, 3)})
    engine = _engine(locator=locator)
    kwargs = dict(
        lat=FAR_LAT,
        lng=FAR_LNG,
        category="pothole",
        geocode=GeocodeResult(display_name="Residency Road Junction"),
        raw_detection=[320, 240, 150, 120, 0.8, 1, 0],
        manual_urgency="critical",
    )
    first = engine.score_submission(**kwargs)
    second = engine.score_submission(**kwargs)
    assert first == second
