from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional


class Sentiment(str, Enum):
    POSITIVE = "Positive"
    NEGATIVE = "Negative"
    NEUTRAL = "Neutral"


class AppType(str, Enum):
    FREE = "Free"
    PAID = "Paid"


class ContentRating(str, Enum):
    EVERYONE = "Everyone"
    EVERYONE_10 = "Everyone 10+"
    TEEN = "Teen"
    MATURE_17 = "Mature 17+"
    ADULTS_ONLY_18 = "Adults only 18+"
    UNRATED = "Unrated"


UNKNOWN = "Unknown"


def enum_value(enum_cls: type, raw: object) -> Optional[str]:
    """Return the canonical enum value for raw (case-insensitive), or None."""
    if raw is None:
        return None
    s = str(raw).strip().lower()
    for member in enum_cls:
        if member.value.lower() == s:
            return member.value
    return None


# Raw CSV header -> canonical column.
APP_SOURCE_COLUMNS: Dict[str, str] = {
    "App": "name",
    "Category": "category",
    "Rating": "rating",
    "Reviews": "reviews",
    "Size": "size",
    "Installs": "installs",
    "Type": "type",
    "Price": "price",
    "Content Rating": "content_rating",
    "Genres": "genres",
    "Last Updated": "last_updated",
    "Current Ver": "current_ver",
    "Android Ver": "android_ver",
}

REVIEW_SOURCE_COLUMNS: Dict[str, str] = {
    "App": "app_name",
    "Translated_Review": "review_text",
    "Sentiment": "sentiment",
    "Sentiment_Polarity": "polarity",
    "Sentiment_Subjectivity": "subjectivity",
}

REQUIRED_APP_SOURCE_COLUMNS = ["App", "Category", "Rating"]
REQUIRED_REVIEW_SOURCE_COLUMNS = ["App", "Sentiment"]

# Columns derived once at load time from the raw strings.
APP_DERIVED_COLUMNS: List[str] = ["installs_count", "size_mb", "price_value", "updated_on", "is_rated"]

APP_COLUMNS: List[str] = list(APP_SOURCE_COLUMNS.values()) + APP_DERIVED_COLUMNS
REVIEW_COLUMNS: List[str] = list(REVIEW_SOURCE_COLUMNS.values())
