from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

from playstore import aggregations as agg
from playstore.charts import bar_chart, scatter_chart
from playstore.filters import FilteredView
from playstore.normalize import format_size


def compute_size(view: FilteredView) -> Dict[str, Any]:
    apps = view.apps
    summary = agg.size_summary(apps)
    distribution = agg.size_distribution(apps)
    size_rating = agg.size_vs_rating(apps)
    size_reviews = agg.size_vs_reviews(apps)

    kpis = dict(summary)
    kpis["average_size_display"] = format_size(summary["average_size_mb"])
    for key in ("largest", "smallest"):
        if summary[key] is not None:
            kpis[key] = {**summary[key], "display": format_size(summary[key]["size_mb"])}

    return {
        "filters": asdict(view.criteria),
        "kpis": kpis,
        "distributions": {"size": distribution, "avg_rating_by_size": summary["avg_rating_by_size"]},
        "correlations": {"size_vs_rating": size_rating, "size_vs_reviews": size_reviews},
        "charts": {
            "size": bar_chart(distribution, title="App Size Distribution"),
            "avg_rating_by_size": bar_chart(summary["avg_rating_by_size"], title="Average Rating by Size", value_title="Rating", value_format=".2f"),
            "size_vs_rating": scatter_chart(size_rating, title="Size vs Rating", x_title="Size (MB)", y_title="Rating"),
            "size_vs_reviews": scatter_chart(size_reviews, title="Size vs Reviews", x_title="Size (MB)", y_title="Reviews"),
        },
    }
