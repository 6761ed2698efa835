from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

from playstore import aggregations as agg
from playstore.charts import bar_chart, pie_chart
from playstore.filters import FilteredView

VERSION_TABLE_COLUMNS = ["name", "category", "rating", "installs", "current_ver", "android_ver"]


def compute_versions(view: FilteredView) -> Dict[str, Any]:
    apps = agg.dedupe_apps(view.apps)
    distribution = agg.android_version_distribution(apps)
    levels = agg.compatibility_levels(apps)
    top_by_version = {
        version: agg.to_records(frame, VERSION_TABLE_COLUMNS)
        for version, frame in agg.top_apps_by_android_version(apps).items()
    }

    return {
        "filters": asdict(view.criteria),
        "kpis": {
            "distinct_android_versions": int(apps["android_ver"].nunique()),
            "most_common": distribution[0] if distribution else None,
        },
        "distributions": {"android_versions": distribution, "compatibility": levels},
        "tables": {
            "android_version_rollup": agg.android_version_rollup(apps),
            "top_apps_by_version": top_by_version,
        },
        "charts": {
            "android_versions": bar_chart(distribution, title="Minimum Android Version (Top 15)", horizontal=True),
            "compatibility": pie_chart(levels, title="Compatibility Levels"),
        },
    }
