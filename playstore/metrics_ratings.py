from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

from playstore import aggregations as agg
from playstore.charts import bar_chart, scatter_chart
from playstore.filters import FilteredView


def compute_ratings(view: FilteredView) -> Dict[str, Any]:
    apps = view.apps
    distribution = agg.rating_distribution(apps)
    by_category = agg.category_average_rating(apps)
    pairs = agg.installs_vs_rating(apps)
    rated = int((apps["is_rated"] & (apps["rating"] > 0)).sum())
    above_4 = int((apps["rating"] >= 4.0).sum())

    return {
        "filters": asdict(view.criteria),
        "kpis": {
            "rated_apps": rated,
            "unrated_apps": int(len(apps)) - rated,
            "avg_rating": agg.mean_rating(apps),
            "apps_above_4": above_4,
            "share_above_4": agg.safe_ratio(above_4, rated),
        },
        "distributions": {"ratings": distribution, "category_avg_rating": by_category},
        "correlations": {"installs_vs_rating": pairs},
        "tables": {"highly_rated": agg.to_records(agg.highly_rated_apps(apps), agg.TABLE_COLUMNS)},
        "charts": {
            "ratings": bar_chart(distribution, title="Rating Distribution"),
            "category_avg_rating": bar_chart(by_category, title="Average Rating by Category", value_title="Rating", value_format=".2f", horizontal=True),
            "installs_vs_rating": scatter_chart(pairs, title="Installs vs Rating", x_title="Installs", y_title="Rating", log_x=True),
        },
    }
