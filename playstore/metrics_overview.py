from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

from playstore import aggregations as agg
from playstore.charts import bar_chart, pie_chart
from playstore.filters import FilteredView


def compute_overview(view: FilteredView) -> Dict[str, Any]:
    apps, reviews = view.apps, view.reviews
    kpis = agg.overview_kpis(apps, reviews)
    categories = agg.category_distribution(apps)[:10]
    ratings = agg.rating_distribution(apps)
    sentiment = agg.sentiment_distribution(reviews)
    app_types = [{"name": "Free", "value": kpis["free_apps"]}, {"name": "Paid", "value": kpis["paid_apps"]}]

    top_installed = agg.top_apps(apps, "installs", 5)
    top_rated = agg.top_apps(apps, "rating", 5)

    return {
        "filters": asdict(view.criteria),
        "kpis": kpis,
        "distributions": {
            "categories": categories,
            "ratings": ratings,
            "sentiment": sentiment,
            "installs": agg.installs_distribution(apps),
            "content_ratings": agg.content_rating_distribution(apps),
            "app_types": app_types,
        },
        "tables": {
            "top_installed": agg.to_records(top_installed, agg.TABLE_COLUMNS),
            "top_rated": agg.to_records(top_rated, agg.TABLE_COLUMNS),
        },
        "charts": {
            "categories": bar_chart(categories, title="Top Categories"),
            "ratings": bar_chart(ratings, title="Rating Distribution"),
            "sentiment": pie_chart(sentiment, title="Review Sentiment"),
            "app_types": pie_chart(app_types, title="Free vs Paid"),
        },
    }
