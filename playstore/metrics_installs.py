from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

from playstore import aggregations as agg
from playstore.charts import bar_chart, pie_chart, scatter_chart
from playstore.filters import FilteredView
from playstore.normalize import format_install_count


def compute_installs(view: FilteredView, *, top_n: int = 20) -> Dict[str, Any]:
    apps = agg.dedupe_apps(view.apps)
    distribution = agg.installs_distribution(apps)
    by_type = agg.installs_by_type(apps)
    pairs = agg.installs_vs_rating(apps)
    total = int(apps["installs_count"].sum())

    top = agg.top_apps(apps, "installs", top_n)
    top_records = agg.to_records(top, agg.TABLE_COLUMNS)
    for record, count in zip(top_records, top["installs_count"].tolist()):
        record["installs_display"] = format_install_count(count)

    return {
        "filters": asdict(view.criteria),
        "kpis": {
            "total_installs": total,
            "total_installs_display": format_install_count(total),
            "avg_installs": agg.safe_ratio(total, len(apps)),
            "ranges_represented": sum(1 for p in distribution if p["value"] > 0),
        },
        "distributions": {"installs": distribution, "installs_by_type": by_type},
        "correlations": {"installs_vs_rating": pairs},
        "tables": {"top_installed": top_records},
        "charts": {
            "installs": bar_chart(distribution, title="Install Ranges"),
            "installs_by_type": pie_chart(by_type, title="Installs: Free vs Paid"),
            "installs_vs_rating": scatter_chart(pairs, title="Installs vs Rating", x_title="Installs", y_title="Rating", log_x=True),
        },
    }
