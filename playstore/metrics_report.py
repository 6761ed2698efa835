from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List

from playstore import aggregations as agg
from playstore.charts import bar_chart, pie_chart
from playstore.filters import FilteredView, recent_cutoff
from playstore.models import AppType
from playstore.normalize import format_percent


def _statistic(key: str, label: str, ratio: float, description: str) -> Dict[str, Any]:
    return {"id": key, "label": label, "ratio": ratio, "value": format_percent(ratio), "description": description}


def market_statistics(view: FilteredView) -> List[Dict[str, Any]]:
    """Headline shares: free apps, 4+ ratings, recent updates (of dated apps), apps with a known size."""
    apps = view.apps
    total = int(len(apps))
    free = int((apps["type"] == AppType.FREE.value).sum())
    high_rated = int((apps["rating"] >= 4.0).sum())
    dated = int(apps["updated_on"].notna().sum())
    recent = int((apps["updated_on"] >= recent_cutoff(view.evaluated_at)).sum())
    sized = int((apps["size_mb"] > 0).sum())
    return [
        _statistic("free_apps", "Free vs Paid Apps", agg.safe_ratio(free, total), f"Out of {total:,} apps, {free:,} are free."),
        _statistic("high_rated_apps", "Apps with 4+ Rating", agg.safe_ratio(high_rated, total), f"{high_rated:,} apps have a rating of 4.0 or higher."),
        _statistic("recently_updated", "Recently Updated (6mo)", agg.safe_ratio(recent, dated), f"{recent:,} apps have been updated in the last 6 months."),
        _statistic("apps_with_size", "Apps with Size Data", agg.safe_ratio(sized, total), f"{sized:,} apps provide specific size information."),
    ]


def compute_report(view: FilteredView) -> Dict[str, Any]:
    apps, reviews = view.apps, view.reviews
    stats = market_statistics(view)
    sentiment = agg.sentiment_distribution(reviews)
    by_category = agg.category_average_rating(apps, limit=10)
    top_installed = agg.top_apps(apps, "installs", 5)

    kpis = agg.overview_kpis(apps, reviews)
    kpis.update({f"{s['id']}_ratio": s["ratio"] for s in stats})

    return {
        "filters": asdict(view.criteria),
        "kpis": kpis,
        "distributions": {"sentiment": sentiment, "category_avg_rating": by_category},
        "tables": {
            "market_statistics": stats,
            "top_installed": agg.to_records(top_installed, agg.TABLE_COLUMNS),
        },
        "charts": {
            "sentiment": pie_chart(sentiment, title="Review Sentiment"),
            "category_avg_rating": bar_chart(by_category, title="Top Categories by Rating", value_title="Rating", value_format=".2f", horizontal=True),
        },
    }
