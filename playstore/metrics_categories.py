from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

from playstore import aggregations as agg
from playstore.charts import bar_chart, pie_chart
from playstore.filters import FilteredView


def compute_categories(view: FilteredView) -> Dict[str, Any]:
    apps = view.apps
    distribution = agg.category_distribution(apps)
    rollup = agg.category_rollup(apps)
    content = agg.content_rating_distribution(apps)

    most_popular = distribution[0] if distribution else None
    rated_rollup = [r for r in rollup if r["avg_rating"] > 0]
    highest_rated = max(rated_rollup, key=lambda r: r["avg_rating"]) if rated_rollup else None

    return {
        "filters": asdict(view.criteria),
        "kpis": {
            "total_categories": len(distribution),
            "most_popular": most_popular,
            "highest_rated": highest_rated,
            "avg_apps_per_category": agg.safe_ratio(len(apps), len(distribution)),
        },
        "distributions": {"categories": distribution, "content_ratings": content},
        "tables": {
            "category_rollup": rollup,
            "content_rating_rollup": agg.content_rating_rollup(apps),
        },
        "charts": {
            "categories": bar_chart(distribution[:10], title="Top 10 Categories"),
            "content_ratings": pie_chart(content, title="Content Rating"),
        },
    }
