import json

import pytest

from playstore.data import empty_apps, empty_reviews
from playstore.filters import FilterCriteria, derive_view
from playstore.metrics_categories import compute_categories
from playstore.metrics_compare import compute_compare, compute_search
from playstore.metrics_installs import compute_installs
from playstore.metrics_overview import compute_overview
from playstore.metrics_ratings import compute_ratings
from playstore.metrics_recency import compute_recency
from playstore.metrics_report import compute_report
from playstore.metrics_sentiment import compute_sentiment
from playstore.metrics_size import compute_size
from playstore.metrics_versions import compute_versions

PAGES = [
    compute_overview,
    compute_categories,
    compute_ratings,
    compute_installs,
    compute_sentiment,
    compute_size,
    compute_recency,
    compute_versions,
    compute_report,
]


@pytest.fixture
def view(apps, reviews, now):
    return derive_view(apps, reviews, FilterCriteria(), now=now)


@pytest.fixture
def empty_view(now):
    return derive_view(empty_apps(), empty_reviews(), FilterCriteria(), now=now)


@pytest.mark.parametrize("compute", PAGES)
def test_page_payload_shape_and_json(view, compute):
    payload = compute(view)
    assert {"filters", "kpis", "charts"} <= set(payload)
    for spec in payload["charts"].values():
        assert "$schema" in spec
    json.dumps(payload, allow_nan=False)


@pytest.mark.parametrize("compute", PAGES)
def test_page_payload_on_empty_view(empty_view, compute):
    payload = compute(empty_view)
    json.dumps(payload, allow_nan=False)


def test_overview_kpis(view):
    kpis = compute_overview(view)["kpis"]
    assert kpis["total_apps"] == 4
    assert kpis["total_reviews"] == 4
    assert kpis["categories"] == 3
    assert kpis["free_apps"] == 3
    assert kpis["paid_apps"] == 1


def test_categories_page(view):
    payload = compute_categories(view)
    assert payload["kpis"]["most_popular"] == {"name": "GAME", "value": 2}
    assert payload["kpis"]["highest_rated"]["category"] == "PHOTOGRAPHY"


def test_installs_page_formats_counts(view):
    payload = compute_installs(view, top_n=1)
    assert payload["kpis"]["total_installs"] == 1_010_001_100
    assert payload["tables"]["top_installed"][0]["installs_display"] == "1.0B"


def test_sentiment_page(view):
    kpis = compute_sentiment(view)["kpis"]
    assert kpis["total_reviews"] == 4
    assert kpis["positive"] == 2
    assert kpis["avg_polarity"] == pytest.approx(0.15)
    assert kpis["overall_label"] == "Positive"


def test_recency_page_uses_view_time(view, now):
    payload = compute_recency(view)
    assert payload["evaluated_at"] == now.isoformat()
    assert payload["kpis"]["recently_updated"] == 2


def test_size_page_displays(view):
    kpis = compute_size(view)["kpis"]
    assert kpis["largest"]["display"] == "1.1GB"
    assert kpis["most_common_size_range"] == "0-10MB"


def test_search_and_compare(view):
    results = compute_search(view, "tools")["results"]
    assert [r["name"] for r in results] == ["Gamma Tools"]
    compared = compute_compare(view, ["Gamma Tools", "Delta Photo"])["apps"]
    assert [r["name"] for r in compared] == ["Gamma Tools", "Delta Photo"]
    assert compared[1]["review_count"] == 0


def test_report_market_statistics(view):
    payload = compute_report(view)
    stats = {s["id"]: s for s in payload["tables"]["market_statistics"]}
    assert stats["free_apps"]["ratio"] == pytest.approx(0.75)
    assert stats["free_apps"]["value"] == "75.0%"
    assert stats["high_rated_apps"]["ratio"] == pytest.approx(0.5)
    assert stats["recently_updated"]["ratio"] == pytest.approx(2 / 3)
    assert stats["apps_with_size"]["ratio"] == pytest.approx(0.75)
    assert payload["kpis"]["recently_updated_ratio"] == pytest.approx(2 / 3)


def test_report_on_empty_view_reports_zero_shares(empty_view):
    stats = compute_report(empty_view)["tables"]["market_statistics"]
    assert [s["value"] for s in stats] == ["0.0%"] * 4
