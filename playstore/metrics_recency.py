from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

from playstore import aggregations as agg
from playstore.charts import bar_chart, line_chart
from playstore.filters import FilteredView

RECENCY_TABLE_COLUMNS = ["name", "category", "rating", "reviews", "installs", "last_updated", "days_since_update"]


def compute_recency(view: FilteredView) -> Dict[str, Any]:
    apps, now = view.apps, view.evaluated_at
    buckets = agg.update_recency_distribution(apps, now)
    yearly = agg.yearly_update_counts(apps)
    monthly = agg.monthly_update_counts(apps)

    dated = int(apps["updated_on"].notna().sum())
    recent = buckets[0]["value"] + buckets[1]["value"] + buckets[2]["value"]
    stale = buckets[4]["value"] + buckets[5]["value"]
    most_active = max(yearly, key=lambda p: p["value"]) if yearly else None

    return {
        "filters": asdict(view.criteria),
        "evaluated_at": now.isoformat(),
        "kpis": {
            "apps_with_dates": dated,
            "recently_updated": recent,
            "stale": stale,
            "update_rate": agg.safe_ratio(recent, dated),
            "most_active_year": most_active,
        },
        "distributions": {"recency": buckets, "yearly": yearly, "monthly": monthly},
        "tables": {
            "rating_trend": agg.yearly_rating_trend(apps),
            "category_update_rates": agg.category_update_rates(apps, now),
            "stale_but_good": agg.to_records(agg.stale_apps(apps, now), RECENCY_TABLE_COLUMNS),
            "recently_updated": agg.to_records(agg.recently_updated_apps(apps, now), RECENCY_TABLE_COLUMNS),
        },
        "charts": {
            "recency": bar_chart(buckets, title="Time Since Last Update"),
            "yearly": line_chart(yearly, title="Updates by Year"),
            "monthly": line_chart(monthly, title="Updates by Month"),
        },
    }
