"""Aggregation library over the filtered app/review frames.

Every function is pure and total: it takes already-filtered frames, never
mutates them, and returns an empty (or zero-valued) result for empty input.
Categorical and binned views are lists of ``{"name", "value"}`` points;
rankings and tables are DataFrames of app records.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from playstore import config
from playstore.models import UNKNOWN, AppType, Sentiment
from playstore.normalize import VARIES_WITH_DEVICE, parse_version

Point = Dict[str, Any]
Bin = Tuple[str, float, Optional[float]]

RATING_BINS: List[Bin] = [(f"{lo:.1f}-{lo + 0.5:.1f}", lo, lo + 0.5) for lo in (1.0 + 0.5 * i for i in range(8))]

INSTALLS_BINS: List[Bin] = [
    ("0-1K", 0, 1_000),
    ("1K-10K", 1_000, 10_000),
    ("10K-100K", 10_000, 100_000),
    ("100K-1M", 100_000, 1_000_000),
    ("1M-10M", 1_000_000, 10_000_000),
    ("10M-100M", 10_000_000, 100_000_000),
    ("100M+", 100_000_000, None),
]

SIZE_BINS: List[Bin] = [
    ("0-10MB", 0, 10),
    ("10-25MB", 10, 25),
    ("25-50MB", 25, 50),
    ("50-100MB", 50, 100),
    ("100-250MB", 100, 250),
    ("250MB+", 250, None),
]

RANK_FIELDS: Dict[str, str] = {
    "installs": "installs_count",
    "rating": "rating",
    "reviews": "reviews",
    "size": "size_mb",
    "price": "price_value",
}

# (label, newer bound in months, older bound in months)
RECENCY_BUCKETS: List[Tuple[str, Optional[int], Optional[int]]] = [
    ("< 1 month", None, 1),
    ("1-3 months", 1, 3),
    ("3-6 months", 3, 6),
    ("6-12 months", 6, 12),
    ("1-2 years", 12, 24),
    ("> 2 years", 24, None),
]

TABLE_COLUMNS = ["name", "category", "rating", "reviews", "installs", "type", "last_updated"]


# ---------------- Helpers ----------------
def safe_ratio(num: float, den: float) -> float:
    if not den:
        return 0.0
    out = float(num) / float(den)
    if math.isnan(out) or math.isinf(out):
        return 0.0
    return out


def _points(counts: pd.Series) -> List[Point]:
    return [{"name": str(k), "value": int(v)} for k, v in counts.items()]


def _count_desc(values: pd.Series) -> pd.Series:
    """Counts per value, descending, ties kept in first-seen order."""
    counts = values.groupby(values, sort=False).size()
    return counts.sort_values(ascending=False, kind="stable")


def _binned(values: pd.Series, bins: Sequence[Bin], *, close_last: bool = False) -> List[Point]:
    out: List[Point] = []
    for i, (label, lo, hi) in enumerate(bins):
        mask = values >= lo
        if hi is not None:
            last = i == len(bins) - 1
            mask &= (values <= hi) if (close_last and last) else (values < hi)
        out.append({"name": label, "value": int(mask.sum())})
    return out


def _bin_label(value: float, bins: Sequence[Bin]) -> Optional[str]:
    for label, lo, hi in bins:
        if value >= lo and (hi is None or value < hi):
            return label
    return None


def _rated(apps: pd.DataFrame) -> pd.DataFrame:
    return apps[apps["is_rated"] & (apps["rating"] > 0)]


def mean_rating(apps: pd.DataFrame) -> float:
    rated = _rated(apps)
    return safe_ratio(rated["rating"].sum(), len(rated))


def to_records(df: pd.DataFrame, columns: Optional[Iterable[str]] = None) -> List[Dict[str, Any]]:
    """Frame -> JSON-friendly list of dicts (NaN/NaT -> None, timestamps -> ISO dates)."""
    if columns is not None:
        df = df[[c for c in columns if c in df.columns]]
    records: List[Dict[str, Any]] = []
    for row in df.to_dict(orient="records"):
        clean: Dict[str, Any] = {}
        for key, value in row.items():
            if isinstance(value, pd.Timestamp):
                clean[key] = value.date().isoformat() if not pd.isna(value) else None
            elif isinstance(value, np.generic):
                clean[key] = value.item()
            elif value is None or (not isinstance(value, (list, dict, str)) and pd.isna(value)):
                clean[key] = None
            else:
                clean[key] = value
        records.append(clean)
    return records


def dedupe_apps(apps: pd.DataFrame) -> pd.DataFrame:
    """One record per app name; the first occurrence wins."""
    return apps.drop_duplicates(subset=["name"], keep="first")


# ---------------- Distributions ----------------
def category_distribution(apps: pd.DataFrame) -> List[Point]:
    return _points(_count_desc(apps["category"].dropna()))


def rating_distribution(apps: pd.DataFrame) -> List[Point]:
    # The last bin is closed so a 5.0 rating is counted.
    return _binned(apps["rating"], RATING_BINS, close_last=True)


def installs_distribution(apps: pd.DataFrame) -> List[Point]:
    return _binned(apps["installs_count"], INSTALLS_BINS)


def size_distribution(apps: pd.DataFrame) -> List[Point]:
    sized = apps["size_mb"]
    return _binned(sized[sized > 0], SIZE_BINS)


def sentiment_distribution(reviews: pd.DataFrame) -> List[Point]:
    counts = reviews["sentiment"].value_counts()
    return [{"name": s.value, "value": int(counts[s.value])} for s in Sentiment if s.value in counts.index]


def content_rating_distribution(apps: pd.DataFrame) -> List[Point]:
    return _points(_count_desc(apps["content_rating"].fillna(UNKNOWN)))


def android_version_distribution(apps: pd.DataFrame, limit: int = config.ANDROID_VERSION_TOP_N) -> List[Point]:
    return _points(_count_desc(apps["android_ver"].fillna(UNKNOWN)).head(limit))


# ---------------- Rankings ----------------
def top_apps(apps: pd.DataFrame, field: str = "installs", n: int = config.DEFAULT_TOP_N) -> pd.DataFrame:
    """Top n apps by the numeric reading of field; apps missing the field are excluded."""
    col = RANK_FIELDS.get(field, field)
    if col not in RANK_FIELDS.values():
        raise ValueError(f"Unknown ranking field: {field!r}")
    ranked = apps.dropna(subset=[col])
    return ranked.sort_values(col, ascending=False, kind="stable").head(max(0, int(n)))


def highly_rated_apps(
    apps: pd.DataFrame, *, min_rating: float = 4.0, min_reviews: int = 100, n: int = config.DEFAULT_TOP_N
) -> pd.DataFrame:
    base = dedupe_apps(apps)
    base = base[(base["rating"] >= min_rating) & (base["reviews"] >= min_reviews)]
    return base.sort_values(["rating", "reviews"], ascending=False, kind="stable").head(n)


def search_apps(apps: pd.DataFrame, query: str, limit: int = 10) -> pd.DataFrame:
    q = (query or "").strip().lower()
    if not q:
        return apps.head(0)
    in_name = apps["name"].astype(str).str.lower().str.contains(q, regex=False, na=False)
    in_category = apps["category"].astype(str).str.lower().str.contains(q, regex=False, na=False)
    return apps[in_name | in_category].head(limit)


# ---------------- Rollups ----------------
def _rollup(apps: pd.DataFrame, by: str) -> List[Dict[str, Any]]:
    if apps.empty:
        return []
    rated = apps["is_rated"] & (apps["rating"] > 0)
    tmp = apps.assign(
        _rated=rated.astype(int),
        _rated_sum=apps["rating"].where(rated, 0.0),
        _free=(apps["type"] == AppType.FREE.value).astype(int),
    )
    grouped = (
        tmp.groupby(tmp[by].fillna(UNKNOWN), sort=False)
        .agg(
            count=("name", "size"),
            rated=("_rated", "sum"),
            rating_sum=("_rated_sum", "sum"),
            total_installs=("installs_count", "sum"),
            free=("_free", "sum"),
            reviews=("reviews", "sum"),
        )
        .sort_values("count", ascending=False, kind="stable")
    )
    return [
        {
            by: str(key),
            "count": int(r["count"]),
            "avg_rating": safe_ratio(r["rating_sum"], r["rated"]),
            "total_installs": int(r["total_installs"]),
            "free_ratio": safe_ratio(r["free"], r["count"]),
            "avg_reviews": safe_ratio(r["reviews"], r["count"]),
        }
        for key, r in grouped.iterrows()
    ]


def category_rollup(apps: pd.DataFrame) -> List[Dict[str, Any]]:
    """Per category: count, mean rating of rated apps, summed installs, share of free apps."""
    return _rollup(apps, "category")


def content_rating_rollup(apps: pd.DataFrame) -> List[Dict[str, Any]]:
    return _rollup(dedupe_apps(apps), "content_rating")


def category_average_rating(apps: pd.DataFrame, limit: int = 15) -> List[Point]:
    rated = _rated(apps)
    if rated.empty:
        return []
    avg = rated.groupby("category", sort=False)["rating"].mean().sort_values(ascending=False, kind="stable")
    return [{"name": str(k), "value": round(float(v), 2)} for k, v in avg.head(limit).items()]


def overview_kpis(apps: pd.DataFrame, reviews: pd.DataFrame) -> Dict[str, Any]:
    free = int((apps["type"] == AppType.FREE.value).sum())
    paid = int((apps["type"] == AppType.PAID.value).sum())
    return {
        "total_apps": int(len(apps)),
        "total_reviews": int(len(reviews)),
        "categories": int(apps["category"].nunique()),
        "avg_rating": mean_rating(apps),
        "total_installs": int(apps["installs_count"].sum()),
        "free_apps": free,
        "paid_apps": paid,
        "free_ratio": safe_ratio(free, len(apps)),
        "avg_polarity": safe_ratio(reviews["polarity"].sum(), len(reviews)),
    }


def installs_by_type(apps: pd.DataFrame) -> List[Point]:
    out: List[Point] = []
    for app_type in AppType:
        total = apps.loc[apps["type"] == app_type.value, "installs_count"].sum()
        out.append({"name": app_type.value, "value": int(total)})
    return out


# ---------------- Correlation samples ----------------
def correlation_sample(
    df: pd.DataFrame,
    x: str,
    y: str,
    *,
    label: str = "name",
    nonzero: Optional[Iterable[str]] = None,
    limit: int = config.CORRELATION_SAMPLE_CAP,
) -> List[Dict[str, Any]]:
    """(x, y) pairs where both are finite and the nonzero columns (default: both) are non-zero.

    The cap truncates in input order, so the sample follows the upstream ordering.
    """
    if df.empty:
        return []
    xs = pd.to_numeric(df[x], errors="coerce")
    ys = pd.to_numeric(df[y], errors="coerce")
    mask = np.isfinite(xs) & np.isfinite(ys)
    for col, values in ((x, xs), (y, ys)):
        if nonzero is None or col in nonzero:
            mask &= values != 0
    names = df[label][mask].head(limit).tolist()
    xs = xs[mask].head(limit).tolist()
    ys = ys[mask].head(limit).tolist()
    return [{"name": str(n), "x": float(a), "y": float(b)} for n, a, b in zip(names, xs, ys)]


def installs_vs_rating(apps: pd.DataFrame) -> List[Dict[str, Any]]:
    return correlation_sample(apps, "installs_count", "rating")


def size_vs_rating(apps: pd.DataFrame) -> List[Dict[str, Any]]:
    return correlation_sample(apps, "size_mb", "rating")


def size_vs_reviews(apps: pd.DataFrame) -> List[Dict[str, Any]]:
    return correlation_sample(apps, "size_mb", "reviews")


def polarity_vs_subjectivity(reviews: pd.DataFrame) -> List[Dict[str, Any]]:
    # Zero polarity is a legitimate neutral reading, only subjectivity must be non-zero.
    return correlation_sample(reviews, "polarity", "subjectivity", label="app_name", nonzero=["subjectivity"])


# ---------------- Size ----------------
def size_summary(apps: pd.DataFrame) -> Dict[str, Any]:
    sized = apps[apps["size_mb"] > 0]
    if sized.empty:
        return {
            "apps_with_size": 0,
            "average_size_mb": 0.0,
            "largest": None,
            "smallest": None,
            "avg_rating_by_size": [],
            "most_common_size_range": None,
            "best_rated_size_range": None,
        }
    largest = sized.loc[sized["size_mb"].idxmax()]
    smallest = sized.loc[sized["size_mb"].idxmin()]

    labels = sized["size_mb"].map(lambda v: _bin_label(v, SIZE_BINS))
    rated = sized.assign(_bin=labels)
    rated = rated[rated["rating"] > 0]
    by_bin = rated.groupby("_bin")["rating"].mean()
    avg_by_size = [
        {"name": label, "value": round(float(by_bin[label]), 2)} for label, _, _ in SIZE_BINS if label in by_bin.index
    ]
    dist = size_distribution(sized)
    most_common = max(dist, key=lambda p: p["value"])
    best_rated = max(avg_by_size, key=lambda p: p["value"]) if avg_by_size else None
    return {
        "apps_with_size": int(len(sized)),
        "average_size_mb": safe_ratio(sized["size_mb"].sum(), len(sized)),
        "largest": {"name": str(largest["name"]), "size_mb": float(largest["size_mb"])},
        "smallest": {"name": str(smallest["name"]), "size_mb": float(smallest["size_mb"])},
        "avg_rating_by_size": avg_by_size,
        "most_common_size_range": most_common["name"],
        "best_rated_size_range": best_rated["name"] if best_rated else None,
    }


# ---------------- Sentiment ----------------
def polarity_label(avg_polarity: float) -> str:
    if avg_polarity > 0.1:
        return Sentiment.POSITIVE.value
    if avg_polarity < -0.1:
        return Sentiment.NEGATIVE.value
    return Sentiment.NEUTRAL.value


def app_sentiment_summary(reviews: pd.DataFrame, apps: pd.DataFrame, limit: Optional[int] = None) -> pd.DataFrame:
    """Per reviewed app: review count, mean polarity/subjectivity, share of each sentiment label."""
    columns = [
        "app",
        "category",
        "rating",
        "total_reviews",
        "avg_polarity",
        "avg_subjectivity",
        "positive_pct",
        "negative_pct",
        "neutral_pct",
    ]
    if reviews.empty:
        return pd.DataFrame(columns=columns)
    tmp = reviews.assign(
        _pos=(reviews["sentiment"] == Sentiment.POSITIVE.value).astype(int),
        _neg=(reviews["sentiment"] == Sentiment.NEGATIVE.value).astype(int),
        _neu=(reviews["sentiment"] == Sentiment.NEUTRAL.value).astype(int),
    )
    grouped = (
        tmp.groupby("app_name", sort=False)
        .agg(
            total_reviews=("sentiment", "size"),
            avg_polarity=("polarity", "mean"),
            avg_subjectivity=("subjectivity", "mean"),
            pos=("_pos", "sum"),
            neg=("_neg", "sum"),
            neu=("_neu", "sum"),
        )
        .reset_index()
        .rename(columns={"app_name": "app"})
    )
    for src, dst in (("pos", "positive_pct"), ("neg", "negative_pct"), ("neu", "neutral_pct")):
        grouped[dst] = (grouped[src] / grouped["total_reviews"] * 100).round(1)
    grouped["avg_polarity"] = grouped["avg_polarity"].round(3)
    grouped["avg_subjectivity"] = grouped["avg_subjectivity"].round(3)

    app_info = dedupe_apps(apps)[["name", "category", "rating"]].rename(columns={"name": "app"})
    merged = grouped.merge(app_info, on="app", how="left")
    merged["category"] = merged["category"].fillna("N/A")
    merged = merged.sort_values("total_reviews", ascending=False, kind="stable")[columns]
    return merged.head(limit) if limit is not None else merged


def category_sentiment(reviews: pd.DataFrame, apps: pd.DataFrame, limit: int = 15) -> List[Dict[str, Any]]:
    if reviews.empty:
        return []
    app_cat = dedupe_apps(apps)[["name", "category"]].rename(columns={"name": "app_name"})
    merged = reviews.merge(app_cat, on="app_name", how="inner")
    if merged.empty:
        return []
    grouped = (
        merged.groupby("category", sort=False)
        .agg(reviews=("polarity", "size"), avg_polarity=("polarity", "mean"))
        .sort_values("reviews", ascending=False, kind="stable")
        .head(limit)
    )
    return [
        {"category": str(cat), "reviews": int(r["reviews"]), "avg_polarity": round(float(r["avg_polarity"]), 3)}
        for cat, r in grouped.iterrows()
    ]


def extreme_reviews(reviews: pd.DataFrame, sentiment: str, limit: int = 10) -> pd.DataFrame:
    """Most positive (polarity > 0.5) or most negative (polarity < -0.1) reviews."""
    if sentiment == Sentiment.POSITIVE.value:
        base = reviews[(reviews["sentiment"] == sentiment) & (reviews["polarity"] > 0.5)]
        return base.sort_values("polarity", ascending=False, kind="stable").head(limit)
    if sentiment == Sentiment.NEGATIVE.value:
        base = reviews[(reviews["sentiment"] == sentiment) & (reviews["polarity"] < -0.1)]
        return base.sort_values("polarity", ascending=True, kind="stable").head(limit)
    return reviews.head(0)


def compare_apps(apps: pd.DataFrame, reviews: pd.DataFrame, names: Iterable[str], limit: int = 2) -> List[Dict[str, Any]]:
    """Side-by-side details for up to `limit` apps; unknown names are skipped."""
    out: List[Dict[str, Any]] = []
    seen: List[str] = []
    for name in names:
        if name in seen or len(out) >= limit:
            continue
        seen.append(name)
        match = apps[apps["name"] == name]
        if match.empty:
            continue
        record = to_records(match.head(1))[0]
        app_reviews = reviews[reviews["app_name"] == name]
        avg = safe_ratio(app_reviews["polarity"].sum(), len(app_reviews))
        record.update(
            {
                "review_count": int(len(app_reviews)),
                "avg_sentiment": round(avg, 3),
                "sentiment_label": polarity_label(avg),
            }
        )
        out.append(record)
    return out


# ---------------- Update recency ----------------
def _months_ago(now: datetime, months: int) -> pd.Timestamp:
    return pd.Timestamp(now).normalize() - pd.DateOffset(months=months)


def _dated(apps: pd.DataFrame) -> pd.DataFrame:
    return apps[apps["updated_on"].notna()]


def update_recency_distribution(apps: pd.DataFrame, now: datetime) -> List[Point]:
    dated = _dated(apps)["updated_on"]
    out: List[Point] = []
    for label, newer, older in RECENCY_BUCKETS:
        mask = pd.Series(True, index=dated.index)
        if newer is not None:
            mask &= dated < _months_ago(now, newer)
        if older is not None:
            mask &= dated >= _months_ago(now, older)
        out.append({"name": label, "value": int(mask.sum())})
    return out


def yearly_update_counts(apps: pd.DataFrame) -> List[Point]:
    years = _dated(apps)["updated_on"].dt.year
    counts = years.groupby(years).size().sort_index()
    return [{"name": str(int(y)), "value": int(c)} for y, c in counts.items()]


def monthly_update_counts(apps: pd.DataFrame, last: int = 24) -> List[Point]:
    months = _dated(apps)["updated_on"].dt.strftime("%Y-%m")
    counts = months.groupby(months).size().sort_index().tail(last)
    return _points(counts)


def yearly_rating_trend(apps: pd.DataFrame) -> List[Dict[str, Any]]:
    dated = _dated(apps)
    out: List[Dict[str, Any]] = []
    for year, group in dated.groupby(dated["updated_on"].dt.year):
        out.append({"year": int(year), "apps": int(len(group)), "avg_rating": round(mean_rating(group), 2)})
    return out


def category_update_rates(
    apps: pd.DataFrame, now: datetime, *, months: int = config.RECENT_UPDATE_MONTHS, limit: int = 20
) -> List[Dict[str, Any]]:
    dated = _dated(apps)
    if dated.empty:
        return []
    cutoff = _months_ago(now, months)
    rows = []
    for category, group in dated.groupby("category", sort=False):
        recent = int((group["updated_on"] >= cutoff).sum())
        rows.append(
            {
                "category": str(category),
                "total_apps": int(len(group)),
                "recently_updated": recent,
                "update_rate_pct": round(safe_ratio(recent, len(group)) * 100, 1),
                "avg_rating": round(mean_rating(group), 2),
            }
        )
    rows.sort(key=lambda r: r["update_rate_pct"], reverse=True)
    return rows[:limit]


def _with_days_since(df: pd.DataFrame, now: datetime) -> pd.DataFrame:
    days = (pd.Timestamp(now).normalize() - df["updated_on"]).dt.days
    return df.assign(days_since_update=days.astype("int64"))


def stale_apps(apps: pd.DataFrame, now: datetime, *, years: int = 2, limit: int = 20) -> pd.DataFrame:
    dated = _dated(apps)
    stale = dated[dated["updated_on"] < _months_ago(now, 12 * years)]
    stale = stale.sort_values("rating", ascending=False, kind="stable").head(limit)
    return _with_days_since(stale, now)


def recently_updated_apps(
    apps: pd.DataFrame,
    now: datetime,
    *,
    months: int = config.RECENT_UPDATE_MONTHS,
    min_rating: float = 4.0,
    limit: int = 30,
) -> pd.DataFrame:
    dated = _dated(apps)
    recent = dated[(dated["updated_on"] >= _months_ago(now, months)) & (dated["rating"] >= min_rating)]
    recent = recent.sort_values("updated_on", ascending=False, kind="stable").head(limit)
    return _with_days_since(recent, now)


# ---------------- Android versions ----------------
def android_version_rollup(apps: pd.DataFrame, limit: int = config.ANDROID_VERSION_TOP_N) -> List[Dict[str, Any]]:
    base = dedupe_apps(apps)
    versions = base["android_ver"].fillna(UNKNOWN)
    rows = []
    for point in android_version_distribution(base, limit=limit):
        group = base[versions == point["name"]]
        free = int((group["type"] == AppType.FREE.value).sum())
        rows.append(
            {
                "android_version": point["name"],
                "app_count": int(len(group)),
                "avg_rating": round(mean_rating(group), 2),
                "total_installs": int(group["installs_count"].sum()),
                "free_pct": round(safe_ratio(free, len(group)) * 100, 1),
            }
        )
    return rows


def _compatibility_level(raw: object) -> Optional[str]:
    if raw is None or (isinstance(raw, float) and math.isnan(raw)):
        return None
    if str(raw).strip() == VARIES_WITH_DEVICE:
        return "Variable"
    version = parse_version(raw)
    if version is None:
        return None
    if version < 3:
        return "Legacy (2.x)"
    if version < 4:
        return "Older (3.x)"
    if version < 5:
        return "Standard (4.x)"
    return "Modern (5.x+)"


COMPATIBILITY_LEVELS = ["Legacy (2.x)", "Older (3.x)", "Standard (4.x)", "Modern (5.x+)", "Variable"]


def compatibility_levels(apps: pd.DataFrame) -> List[Point]:
    levels = dedupe_apps(apps)["android_ver"].map(_compatibility_level)
    counts = levels.value_counts()
    return [{"name": lvl, "value": int(counts[lvl])} for lvl in COMPATIBILITY_LEVELS if lvl in counts.index]


def top_apps_by_android_version(
    apps: pd.DataFrame, *, versions: int = 5, per_version: int = 5, min_rating: float = 4.0
) -> Dict[str, pd.DataFrame]:
    base = dedupe_apps(apps)
    out: Dict[str, pd.DataFrame] = {}
    for point in android_version_distribution(base, limit=versions):
        group = base[(base["android_ver"] == point["name"]) & (base["rating"] >= min_rating)]
        if group.empty:
            continue
        out[point["name"]] = group.sort_values("installs_count", ascending=False, kind="stable").head(per_version)
    return out
