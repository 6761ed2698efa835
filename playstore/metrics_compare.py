from __future__ import annotations

from typing import Any, Dict, Iterable

from playstore import aggregations as agg
from playstore.filters import FilteredView

SEARCH_COLUMNS = ["name", "category", "rating", "installs", "type"]


def compute_search(view: FilteredView, query: str, *, limit: int = 10) -> Dict[str, Any]:
    results = agg.search_apps(view.apps, query, limit=limit)
    return {"query": query, "results": agg.to_records(results, SEARCH_COLUMNS)}


def compute_compare(view: FilteredView, names: Iterable[str]) -> Dict[str, Any]:
    return {"apps": agg.compare_apps(view.apps, view.reviews, names)}
