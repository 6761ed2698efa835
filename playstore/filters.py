from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

import pandas as pd

from playstore import config
from playstore.models import AppType, ContentRating, Sentiment, enum_value

RATING_BOUNDS: Tuple[float, float] = (1.0, 5.0)
INSTALLS_BOUNDS: Tuple[int, int] = (0, config.MAX_INSTALLS)


@dataclass(frozen=True)
class FilterCriteria:
    selected_categories: List[str] = field(default_factory=list)
    rating_range: Tuple[float, float] = RATING_BOUNDS
    selected_sentiments: List[str] = field(default_factory=list)
    selected_app_types: List[str] = field(default_factory=list)
    installs_range: Tuple[int, int] = INSTALLS_BOUNDS
    selected_content_ratings: List[str] = field(default_factory=list)
    recently_updated_only: bool = False

    @property
    def restricts_rating(self) -> bool:
        # The full [1, 5] range is the unrestricted default and keeps unrated apps.
        lo, hi = self.rating_range
        return lo > RATING_BOUNDS[0] or hi < RATING_BOUNDS[1]


@dataclass(frozen=True)
class FilteredView:
    """The (filtered_apps, filtered_reviews) pair, replaced as one value on every filter change."""

    criteria: FilterCriteria
    apps: pd.DataFrame
    reviews: pd.DataFrame
    evaluated_at: datetime


def clear_filters() -> FilterCriteria:
    return FilterCriteria()


def _str_list(values: Optional[Iterable[object]]) -> List[str]:
    if not values:
        return []
    out: List[str] = []
    for v in values:
        if v is None:
            continue
        s = str(v).strip()
        if s and s not in out:
            out.append(s)
    return out


def _enum_list(enum_cls: type, values: Optional[Iterable[object]]) -> List[str]:
    out: List[str] = []
    for v in _str_list(values):
        canonical = enum_value(enum_cls, v)
        if canonical is not None and canonical not in out:
            out.append(canonical)
    return out


def _as_range(raw: object, bounds: Tuple[float, float], cast: type) -> Tuple:
    lo, hi = bounds
    if isinstance(raw, (list, tuple)) and len(raw) == 2:
        try:
            lo, hi = cast(raw[0]), cast(raw[1])
        except (TypeError, ValueError):
            lo, hi = bounds
    if lo > hi:
        lo, hi = hi, lo
    lo = max(cast(bounds[0]), min(cast(bounds[1]), lo))
    hi = max(cast(bounds[0]), min(cast(bounds[1]), hi))
    return (lo, hi)


def normalize_filters(raw: dict) -> FilterCriteria:
    """Build a whole new FilterCriteria from loosely typed input (UI widgets, JSON bodies)."""
    return FilterCriteria(
        selected_categories=_str_list(raw.get("selected_categories")),
        rating_range=_as_range(raw.get("rating_range"), RATING_BOUNDS, float),
        selected_sentiments=_enum_list(Sentiment, raw.get("selected_sentiments")),
        selected_app_types=_enum_list(AppType, raw.get("selected_app_types")),
        installs_range=_as_range(raw.get("installs_range"), INSTALLS_BOUNDS, int),
        selected_content_ratings=_enum_list(ContentRating, raw.get("selected_content_ratings")),
        recently_updated_only=bool(raw.get("recently_updated_only", False)),
    )


def recent_cutoff(now: datetime, months: int = config.RECENT_UPDATE_MONTHS) -> pd.Timestamp:
    return pd.Timestamp(now).normalize() - pd.DateOffset(months=months)


def apply_filters(apps: pd.DataFrame, criteria: FilterCriteria, *, now: Optional[datetime] = None) -> pd.DataFrame:
    """Filter the app frame. An empty result is a valid outcome."""
    out = apps
    if criteria.selected_categories:
        out = out[out["category"].isin(criteria.selected_categories)]

    if criteria.restricts_rating:
        lo, hi = criteria.rating_range
        out = out[out["rating"].between(lo, hi, inclusive="both")]

    if criteria.selected_app_types:
        out = out[out["type"].isin(criteria.selected_app_types)]

    if criteria.selected_content_ratings:
        out = out[out["content_rating"].isin(criteria.selected_content_ratings)]

    lo, hi = criteria.installs_range
    out = out[out["installs_count"].between(lo, hi, inclusive="both")]

    if criteria.recently_updated_only:
        cutoff = recent_cutoff(now or datetime.now())
        # NaT compares False, so unparseable dates drop out here.
        out = out[out["updated_on"] >= cutoff]

    return out


def apply_review_filters(reviews: pd.DataFrame, filtered_apps: pd.DataFrame, criteria: FilterCriteria) -> pd.DataFrame:
    """Keep reviews whose app survived the app filter, then apply the sentiment selection."""
    app_names = set(filtered_apps["name"].dropna().tolist())
    out = reviews[reviews["app_name"].isin(app_names)]
    if criteria.selected_sentiments:
        out = out[out["sentiment"].isin(criteria.selected_sentiments)]
    return out


def derive_view(
    apps: pd.DataFrame,
    reviews: pd.DataFrame,
    criteria: FilterCriteria,
    *,
    now: Optional[datetime] = None,
) -> FilteredView:
    now = now or datetime.now()
    filtered_apps = apply_filters(apps, criteria, now=now)
    filtered_reviews = apply_review_filters(reviews, filtered_apps, criteria)
    return FilteredView(criteria=criteria, apps=filtered_apps, reviews=filtered_reviews, evaluated_at=now)
