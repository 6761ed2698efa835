from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Iterable, Optional, Tuple, Union

import pandas as pd

from playstore import config
from playstore.models import (
    APP_COLUMNS,
    APP_SOURCE_COLUMNS,
    REQUIRED_APP_SOURCE_COLUMNS,
    REQUIRED_REVIEW_SOURCE_COLUMNS,
    REVIEW_COLUMNS,
    REVIEW_SOURCE_COLUMNS,
    AppType,
    ContentRating,
    Sentiment,
    enum_value,
)
from playstore.normalize import (
    coerce_float,
    coerce_int,
    parse_install_count,
    parse_price,
    parse_size,
    parse_update_date,
    to_float,
)

logger = logging.getLogger(__name__)

Source = Union[str, Path]
SourceSignature = Tuple[str, Optional[float]]


class DataLoadError(RuntimeError):
    """A source could not be read or yielded no usable rows. Fatal to the session."""


@dataclass(frozen=True)
class DataBundle:
    apps: pd.DataFrame
    reviews: pd.DataFrame
    apps_source: str = ""
    reviews_source: str = ""


def source_signature(source: Source) -> SourceSignature:
    path = Path(str(source))
    if path.exists():
        return (str(source), path.stat().st_mtime)
    return (str(source), None)


def read_source(source: Source, *, label: str) -> pd.DataFrame:
    """Read a CSV with header-based columns, every cell as a string, blank lines skipped."""
    try:
        return pd.read_csv(source, dtype=str, keep_default_na=False, skip_blank_lines=True)
    except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as exc:
        raise DataLoadError(f"Failed to load {label} data from {source}: {exc}") from exc


_NA_TOKENS = {"", "nan", "NaN", "None", "null"}


def clean_str(value: object) -> Optional[str]:
    if value is None or pd.isna(value):
        return None
    s = str(value).strip()
    if s in _NA_TOKENS:
        return None
    return s


def coerce_str_safe(df: pd.DataFrame, cols: Iterable[str]) -> pd.DataFrame:
    for col in cols:
        if col in df.columns:
            df[col] = df[col].map(clean_str).astype(object)
    return df


def _to_timestamp(value: object) -> pd.Timestamp:
    parsed = parse_update_date(value)
    return pd.Timestamp(parsed) if parsed is not None else pd.NaT


def _check_columns(df: pd.DataFrame, required: Iterable[str], *, label: str) -> None:
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise DataLoadError(f"{label} source missing columns: {sorted(missing)}")


def _non_empty(series: pd.Series) -> pd.Series:
    return series.notna() & series.astype(str).str.strip().ne("")


def prepare_apps(raw: pd.DataFrame) -> pd.DataFrame:
    """Raw app rows (CSV headers) -> typed app frame with only valid records."""
    _check_columns(raw, REQUIRED_APP_SOURCE_COLUMNS, label="apps")
    df = raw.rename(columns=APP_SOURCE_COLUMNS).copy()
    for col in APP_SOURCE_COLUMNS.values():
        if col not in df.columns:
            df[col] = None
    df = coerce_str_safe(
        df,
        ["name", "category", "size", "installs", "type", "price", "content_rating", "genres", "last_updated", "current_ver", "android_ver"],
    )

    raw_rating = df["rating"]
    df["rating"] = raw_rating.map(coerce_float).astype(float)
    df["is_rated"] = raw_rating.map(lambda v: (to_float(v) or 0.0) > 0).astype(bool)
    df["reviews"] = df["reviews"].map(coerce_int).astype("int64")
    df["type"] = df["type"].map(lambda v: enum_value(AppType, v))
    df["content_rating"] = df["content_rating"].map(lambda v: enum_value(ContentRating, v))

    df["installs_count"] = df["installs"].map(parse_install_count).astype("int64")
    df["size_mb"] = df["size"].map(parse_size).astype(float)
    df["price_value"] = df["price"].map(parse_price).astype(float)
    df["updated_on"] = pd.to_datetime(df["last_updated"].map(_to_timestamp))

    valid = _non_empty(df["name"]) & _non_empty(df["category"]) & df["rating"].between(0.0, 5.0)
    dropped = int((~valid).sum())
    if dropped:
        logger.info("Dropped %d invalid app rows", dropped)
    return df.loc[valid, APP_COLUMNS].reset_index(drop=True)


def prepare_reviews(raw: pd.DataFrame) -> pd.DataFrame:
    """Raw review rows (CSV headers) -> typed review frame; rows without app or sentiment dropped."""
    _check_columns(raw, REQUIRED_REVIEW_SOURCE_COLUMNS, label="reviews")
    df = raw.rename(columns=REVIEW_SOURCE_COLUMNS).copy()
    for col in REVIEW_SOURCE_COLUMNS.values():
        if col not in df.columns:
            df[col] = None
    df = coerce_str_safe(df, ["app_name", "review_text", "sentiment"])
    df["sentiment"] = df["sentiment"].map(lambda v: enum_value(Sentiment, v))
    df["polarity"] = df["polarity"].map(coerce_float).astype(float)
    df["subjectivity"] = df["subjectivity"].map(coerce_float).astype(float)

    valid = _non_empty(df["app_name"]) & df["sentiment"].notna()
    dropped = int((~valid).sum())
    if dropped:
        logger.info("Dropped %d invalid review rows", dropped)
    return df.loc[valid, REVIEW_COLUMNS].reset_index(drop=True)


def empty_apps() -> pd.DataFrame:
    return prepare_apps(pd.DataFrame(columns=list(APP_SOURCE_COLUMNS)))


def empty_reviews() -> pd.DataFrame:
    return prepare_reviews(pd.DataFrame(columns=list(REVIEW_SOURCE_COLUMNS)))


def load_datasets(apps_source: Source, reviews_source: Source) -> DataBundle:
    raw_apps = read_source(apps_source, label="apps")
    if raw_apps.empty:
        raise DataLoadError(f"No apps data loaded from {apps_source}")
    raw_reviews = read_source(reviews_source, label="reviews")

    apps = prepare_apps(raw_apps)
    reviews = prepare_reviews(raw_reviews)
    logger.info("Apps loaded: %d (valid %d)", len(raw_apps), len(apps))
    logger.info("Reviews loaded: %d (valid %d)", len(raw_reviews), len(reviews))
    return DataBundle(apps=apps, reviews=reviews, apps_source=str(apps_source), reviews_source=str(reviews_source))


# ---------------- Public API (Streamlit + FastAPI) ----------------
@lru_cache(maxsize=4)
def _load_datasets_cached(apps_sig: SourceSignature, reviews_sig: SourceSignature) -> DataBundle:
    return load_datasets(apps_sig[0], reviews_sig[0])


def load_dashboard_data(apps_source: Optional[Source] = None, reviews_source: Optional[Source] = None) -> DataBundle:
    """Load both datasets once per (source, mtime) pair. Frames are shared; treat them as read-only."""
    apps_source = apps_source or config.APPS_CSV
    reviews_source = reviews_source or config.REVIEWS_CSV
    return _load_datasets_cached(source_signature(apps_source), source_signature(reviews_source))
