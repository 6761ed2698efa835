from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

REPO_DIR = Path(__file__).resolve().parents[1]

DATA_DIR = Path(os.getenv("PLAYSTORE_DATA_DIR", str(REPO_DIR / "data")))
APPS_CSV = os.getenv("PLAYSTORE_APPS_CSV", str(DATA_DIR / "googleplaystore.csv"))
REVIEWS_CSV = os.getenv("PLAYSTORE_REVIEWS_CSV", str(DATA_DIR / "googleplaystore_user_reviews.csv"))

LOG_LEVEL = os.getenv("PLAYSTORE_LOG_LEVEL", "INFO")

CORRELATION_SAMPLE_CAP = 500
ANDROID_VERSION_TOP_N = 15
RECENT_UPDATE_MONTHS = 6
DEFAULT_TOP_N = 20
MAX_INSTALLS = 1_000_000_000


def configure_logging(name: str = "playstore") -> logging.Logger:
    logger = logging.getLogger(name)
    if logger.handlers:  # streamlit reruns the script on every interaction
        return logger
    logger.setLevel(LOG_LEVEL)
    h = logging.StreamHandler(sys.stdout)
    h.setFormatter(logging.Formatter("%(asctime)s | %(levelname)s | %(message)s"))
    logger.addHandler(h)
    return logger
