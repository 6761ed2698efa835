"""Field normalizers for the string-encoded columns of the Play Store CSVs.

Every function here is total: malformed input returns the documented
fallback instead of raising, so the loader can apply them row by row.
"""

from __future__ import annotations

import calendar
import math
import re
from datetime import date
from typing import Optional

import numpy as np
import pandas as pd

VARIES_WITH_DEVICE = "Varies with device"
INT64_MAX = int(np.iinfo(np.int64).max)

_SIZE_RE = re.compile(r"^\s*(\d*\.?\d+)\s*([A-Za-z]*)")
_DATE_RE = re.compile(r"^\s*([A-Za-z]+)\.?\s+(\d{1,2}),\s*(\d{4})\s*$")
_VERSION_RE = re.compile(r"^\s*(\d+)(?:\.(\d+))?")

_MONTHS = {name.lower(): i for i, name in enumerate(calendar.month_name) if name}
_MONTHS.update({name.lower(): i for i, name in enumerate(calendar.month_abbr) if name})


def _text(raw: object) -> str:
    if raw is None:
        return ""
    try:
        if pd.isna(raw):
            return ""
    except (TypeError, ValueError):
        pass
    return str(raw).strip()


def to_float(raw: object) -> Optional[float]:
    """Parse a finite float, or None. The literal "NaN" is treated as missing."""
    s = _text(raw).replace(",", "")
    if not s:
        return None
    try:
        value = float(s)
    except ValueError:
        return None
    if math.isnan(value) or math.isinf(value):
        return None
    return value


def coerce_float(raw: object) -> float:
    value = to_float(raw)
    return 0.0 if value is None else value


def _count(value: int) -> int:
    # Counts are stored as int64; anything outside [0, INT64_MAX] is malformed.
    if value < 0 or value > INT64_MAX:
        return 0
    return value


def coerce_int(raw: object) -> int:
    value = to_float(raw)
    if value is None:
        return 0
    return _count(int(value))


def parse_install_count(raw: object) -> int:
    """"10,000,000+" -> 10000000; empty or non-numeric -> 0."""
    s = _text(raw).replace("+", "").replace(",", "")
    try:
        value = int(s)
    except ValueError:
        return 0
    return _count(value)


def parse_size(raw: object) -> float:
    """Size string -> megabytes. "19M" -> 19.0, "8.5k" -> 0.0085, "1.1G" -> 1100.0.

    A bare number is returned unchanged (assumed to already be megabytes).
    """
    s = _text(raw)
    if not s or s == VARIES_WITH_DEVICE:
        return 0.0
    m = _SIZE_RE.match(s)
    if not m:
        return 0.0
    value = float(m.group(1))
    unit = m.group(2)[:1].upper()
    if unit == "K":
        return value / 1000
    if unit == "G":
        return value * 1000
    return value


def parse_price(raw: object) -> float:
    return coerce_float(_text(raw).replace("$", ""))


def parse_update_date(raw: object) -> Optional[date]:
    """Parse "January 7, 2018". Unknown month or impossible day -> None."""
    m = _DATE_RE.match(_text(raw))
    if not m:
        return None
    month = _MONTHS.get(m.group(1).lower())
    if month is None:
        return None
    try:
        return date(int(m.group(3)), month, int(m.group(2)))
    except ValueError:
        return None


def parse_version(raw: object) -> Optional[float]:
    """Leading major.minor of a version string: "4.0.3 and up" -> 4.0."""
    m = _VERSION_RE.match(_text(raw))
    if not m:
        return None
    return float(f"{m.group(1)}.{m.group(2) or 0}")


def format_install_count(n: object) -> str:
    value = coerce_float(n)
    if value >= 1_000_000_000:
        return f"{value / 1_000_000_000:.1f}B"
    if value >= 1_000_000:
        return f"{value / 1_000_000:.1f}M"
    if value >= 1_000:
        return f"{value / 1_000:.1f}K"
    return str(int(value))


def format_size(megabytes: object) -> str:
    value = coerce_float(megabytes)
    if value >= 1000:
        return f"{value / 1000:.1f}GB"
    return f"{value:.1f}MB"


def format_percent(value: object, decimals: int = 1) -> str:
    parsed = to_float(value)
    if parsed is None:
        return "N/A"
    return f"{parsed * 100:.{decimals}f}%"


def format_rating(value: object) -> str:
    parsed = to_float(value)
    if parsed is None or parsed <= 0:
        return "N/A"
    return f"{parsed:.2f}"
