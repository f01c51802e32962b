import pytest

from triage.categories import CategorySet
from triage.config import Settings


def test_default_categories_from_settings():
    categories = CategorySet.from_settings(Settings(_env_file=None))
    assert categories.names == ("pothole", "garbage", "waterleak", "others")
    assert categories.fallback == "others"


def test_resolve_prefers_submitted_category_then_classification():
    categories = CategorySet(names=("pothole", "garbage", "others"))
    assert categories.resolve("  Garbage ") == "garbage"
    assert categories.resolve(None, "pothole") == "pothole"
    assert categories.resolve("streetlight", "garbage") == "garbage"


def test_resolve_falls_back_for_unknown_or_missing():
    categories = CategorySet(names=("pothole", "garbage", "others"))
    assert categories.resolve("streetlight") == "others"
    assert categories.resolve(None, None) == "others"
    assert categories.resolve() == "others"


def test_table_for_configured_category():
    categories = CategorySet(names=("pothole", "others"))
    assert categories.table_for("Pothole") == "pothole_reports"
    with pytest.raises(ValueError):
        categories.table_for("garbage")


def test_membership():
    categories = CategorySet(names=("pothole", "others"))
    assert "POTHOLE" in categories
    assert "garbage" not in categories
    assert None not in categories


def test_fallback_must_be_configured():
    with pytest.raises(ValueError):
        CategorySet(names=("pothole",), fallback="others")


def test_categories_configured_through_settings():
    settings = Settings(_env_file=None, categories=["Pothole", " streetlight ", "", "Misc"], fallback_category="misc")
    categories = CategorySet.from_settings(settings)
    assert categories.names == ("pothole", "streetlight", "misc")
    assert categories.resolve("garbage") == "misc"
