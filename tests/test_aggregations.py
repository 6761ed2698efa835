import pandas as pd
import pytest

from playstore import aggregations as agg
from playstore.data import empty_apps, empty_reviews


def test_category_distribution_desc_with_first_seen_ties(apps):
    assert agg.category_distribution(apps) == [
        {"name": "GAME", "value": 2},
        {"name": "TOOLS", "value": 1},
        {"name": "PHOTOGRAPHY", "value": 1},
    ]


def test_rating_distribution_counts_five_in_last_bin(apps):
    points = agg.rating_distribution(apps)
    assert len(points) == 8
    assert points[0]["name"] == "1.0-1.5"
    assert points[-1] == {"name": "4.5-5.0", "value": 2}
    in_range = int(apps["rating"].between(1, 5).sum())
    assert sum(p["value"] for p in points) == in_range == 3


def test_installs_distribution_bins(apps):
    points = agg.installs_distribution(apps)
    assert [p["name"] for p in points] == ["0-1K", "1K-10K", "10K-100K", "100K-1M", "1M-10M", "10M-100M", "100M+"]
    counts = {p["name"]: p["value"] for p in points}
    assert counts["0-1K"] == 1
    assert counts["1K-10K"] == 1
    assert counts["10M-100M"] == 1
    assert counts["100M+"] == 1
    assert sum(counts.values()) == len(apps)


def test_size_distribution_skips_unknown_sizes(apps):
    counts = {p["name"]: p["value"] for p in agg.size_distribution(apps)}
    assert counts["0-10MB"] == 1
    assert counts["10-25MB"] == 1
    assert counts["250MB+"] == 1
    assert sum(counts.values()) == 3


def test_sentiment_distribution(reviews):
    assert agg.sentiment_distribution(reviews) == [
        {"name": "Positive", "value": 3},
        {"name": "Negative", "value": 1},
        {"name": "Neutral", "value": 1},
    ]
    assert agg.sentiment_distribution(empty_reviews()) == []


def test_content_rating_distribution_buckets_missing_as_unknown(apps):
    apps = apps.copy()
    apps.loc[apps["name"] == "Delta Photo", "content_rating"] = None
    assert agg.content_rating_distribution(apps) == [
        {"name": "Everyone", "value": 2},
        {"name": "Teen", "value": 1},
        {"name": "Unknown", "value": 1},
    ]


def test_android_version_distribution_truncates_to_top_15():
    versions = [f"{v}.0 and up" for v in range(20) for _ in range(v + 1)]
    apps = pd.DataFrame({"android_ver": versions})
    points = agg.android_version_distribution(apps)
    assert len(points) == 15
    assert points[0] == {"name": "19.0 and up", "value": 20}
    assert points[-1]["value"] == 6


def test_top_apps_by_installs(apps):
    top = agg.top_apps(apps, "installs", 2)
    assert top["name"].tolist() == ["Delta Photo", "Gamma Tools"]


def test_top_apps_excludes_missing_values(apps):
    apps = apps.assign(rating=apps["rating"].where(apps["name"] != "Delta Photo"))
    top = agg.top_apps(apps, "rating", 10)
    assert "Delta Photo" not in top["name"].tolist()
    assert top["name"].iloc[0] == "Alpha Game"


def test_top_apps_rejects_unknown_field(apps):
    with pytest.raises(ValueError):
        agg.top_apps(apps, "downloads")


def test_category_rollup(apps):
    rollup = {row["category"]: row for row in agg.category_rollup(apps)}
    game = rollup["GAME"]
    assert game["count"] == 2
    assert game["avg_rating"] == pytest.approx(3.25)
    assert game["total_installs"] == 1_100
    assert game["free_ratio"] == pytest.approx(0.5)
    # unrated apps do not drag the mean to zero, and an all-unrated group reports 0
    assert rollup["TOOLS"]["avg_rating"] == 0.0


def test_category_rollup_empty_and_single(apps):
    assert agg.category_rollup(empty_apps()) == []
    single = agg.category_rollup(apps.head(1))
    assert len(single) == 1
    assert single[0]["free_ratio"] in (0.0, 1.0)


@pytest.mark.parametrize(
    "fn",
    [
        agg.category_distribution,
        agg.rating_distribution,
        agg.installs_distribution,
        agg.size_distribution,
        agg.category_rollup,
        agg.installs_vs_rating,
        agg.compatibility_levels,
        agg.android_version_rollup,
    ],
)
def test_aggregations_are_idempotent_and_total(apps, fn):
    before = apps.copy()
    assert fn(apps) == fn(apps)
    pd.testing.assert_frame_equal(apps, before)
    fn(empty_apps())


def test_overview_kpis_on_empty_input():
    kpis = agg.overview_kpis(empty_apps(), empty_reviews())
    assert kpis["total_apps"] == 0
    assert kpis["avg_rating"] == 0.0
    assert kpis["free_ratio"] == 0.0
    assert kpis["avg_polarity"] == 0.0


def test_mean_rating_ignores_unrated(apps):
    assert agg.mean_rating(apps) == pytest.approx((4.5 + 2.0 + 5.0) / 3)


def test_safe_ratio_guards_zero():
    assert agg.safe_ratio(5, 0) == 0.0
    assert agg.safe_ratio(1, 4) == 0.25


def test_correlation_sample_excludes_zero_and_caps():
    apps = pd.DataFrame(
        {
            "name": [f"app{i}" for i in range(800)],
            "installs_count": list(range(800)),
            "rating": [4.0] * 800,
        }
    )
    sample = agg.installs_vs_rating(apps)
    assert len(sample) == 500
    # row 0 has zero installs
    assert sample[0] == {"name": "app1", "x": 1.0, "y": 4.0}
    assert sample[-1]["name"] == "app500"


def test_installs_vs_rating_skips_unrated(apps):
    names = [p["name"] for p in agg.installs_vs_rating(apps)]
    assert names == ["Alpha Game", "Beta Game", "Delta Photo"]


def test_polarity_vs_subjectivity_keeps_zero_polarity(reviews):
    reviews = pd.concat(
        [reviews, pd.DataFrame([{"app_name": "Alpha Game", "sentiment": "Neutral", "polarity": 0.0, "subjectivity": 0.3}])],
        ignore_index=True,
    )
    sample = agg.polarity_vs_subjectivity(reviews)
    assert len(sample) == 5
    assert {"name": "Alpha Game", "x": 0.0, "y": 0.3} in sample


def test_size_summary(apps):
    summary = agg.size_summary(apps)
    assert summary["apps_with_size"] == 3
    assert summary["largest"]["name"] == "Delta Photo"
    assert summary["smallest"]["name"] == "Beta Game"
    assert [p["name"] for p in summary["avg_rating_by_size"]] == ["0-10MB", "10-25MB", "250MB+"]
    assert agg.size_summary(empty_apps())["largest"] is None


def test_app_sentiment_summary(reviews, apps):
    summary = agg.app_sentiment_summary(reviews, apps).set_index("app")
    assert summary.loc["Alpha Game", "total_reviews"] == 2
    assert summary.loc["Alpha Game", "positive_pct"] == 50.0
    assert summary.loc["Alpha Game", "avg_polarity"] == pytest.approx(0.15)
    assert summary.loc["Zeta Orphan", "category"] == "N/A"
    assert agg.app_sentiment_summary(empty_reviews(), apps).empty


def test_category_sentiment_only_counts_known_apps(reviews, apps):
    rows = {r["category"]: r for r in agg.category_sentiment(reviews, apps)}
    assert rows["GAME"]["reviews"] == 3
    assert "N/A" not in rows


def test_polarity_label():
    assert agg.polarity_label(0.2) == "Positive"
    assert agg.polarity_label(-0.2) == "Negative"
    assert agg.polarity_label(0.1) == "Neutral"


def test_search_apps(apps):
    assert agg.search_apps(apps, "game")["name"].tolist() == ["Alpha Game", "Beta Game"]
    assert agg.search_apps(apps, "photo")["name"].tolist() == ["Delta Photo"]
    assert agg.search_apps(apps, "  ").empty


def test_compare_apps_skips_unknown_names(apps, reviews):
    rows = agg.compare_apps(apps, reviews, ["Alpha Game", "Nope", "Beta Game", "Gamma Tools"])
    assert [r["name"] for r in rows] == ["Alpha Game", "Beta Game"]
    alpha = rows[0]
    assert alpha["review_count"] == 2
    assert alpha["avg_sentiment"] == pytest.approx(0.15)
    assert alpha["sentiment_label"] == "Positive"
    assert alpha["updated_on"] == "2018-01-07"


def test_update_recency_distribution(apps, now):
    counts = {p["name"]: p["value"] for p in agg.update_recency_distribution(apps, now)}
    assert counts == {
        "< 1 month": 1,
        "1-3 months": 1,
        "3-6 months": 0,
        "6-12 months": 1,
        "1-2 years": 0,
        "> 2 years": 0,
    }


def test_yearly_and_monthly_update_counts(apps):
    assert agg.yearly_update_counts(apps) == [{"name": "2018", "value": 3}]
    assert [p["name"] for p in agg.monthly_update_counts(apps)] == ["2018-01", "2018-06", "2018-07"]


def test_recently_updated_and_stale_apps(apps, now):
    recent = agg.recently_updated_apps(apps, now, min_rating=0.0)
    assert recent["name"].tolist() == ["Gamma Tools", "Beta Game"]
    assert recent["days_since_update"].tolist() == [19, 68]
    assert agg.stale_apps(apps, now).empty


def test_category_update_rates(apps, now):
    rates = {r["category"]: r for r in agg.category_update_rates(apps, now)}
    assert rates["GAME"]["recently_updated"] == 1
    assert rates["GAME"]["update_rate_pct"] == 50.0
    assert rates["TOOLS"]["update_rate_pct"] == 100.0
    assert "PHOTOGRAPHY" not in rates


def test_compatibility_levels(apps):
    assert agg.compatibility_levels(apps) == [
        {"name": "Legacy (2.x)", "value": 1},
        {"name": "Standard (4.x)", "value": 2},
        {"name": "Variable", "value": 1},
    ]


def test_android_version_rollup(apps):
    rows = {r["android_version"]: r for r in agg.android_version_rollup(apps)}
    assert rows["4.0.3 and up"]["app_count"] == 1
    assert rows["4.0.3 and up"]["avg_rating"] == 4.5
    assert rows["4.1 and up"]["free_pct"] == 0.0


def test_to_records_is_json_friendly(apps):
    records = agg.to_records(apps)
    delta = next(r for r in records if r["name"] == "Delta Photo")
    assert delta["updated_on"] is None
    assert isinstance(delta["installs_count"], int)
    assert isinstance(delta["is_rated"], bool)
