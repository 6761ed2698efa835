from datetime import datetime

import pandas as pd
import pytest

from playstore.data import DataBundle, prepare_apps, prepare_reviews
from playstore.models import APP_SOURCE_COLUMNS, REVIEW_SOURCE_COLUMNS

NOW = datetime(2018, 8, 8, 12, 0)

APP_ROWS = [
    ["Alpha Game", "GAME", "4.5", "1,200", "19M", "1,000+", "Free", "0", "Everyone", "Action", "January 7, 2018", "1.0", "4.0.3 and up"],
    ["Beta Game", "GAME", "2.0", "50", "8.5k", "100+", "Paid", "$2.99", "Teen", "Action", "June 1, 2018", "2.1", "4.1 and up"],
    ["Gamma Tools", "TOOLS", "NaN", "0", "Varies with device", "10,000,000+", "Free", "0", "Everyone", "Tools", "July 20, 2018", "Varies with device", "Varies with device"],
    ["Delta Photo", "PHOTOGRAPHY", "5.0", "3,000,000", "1.1G", "1,000,000,000+", "Free", "0", "Mature 17+", "Photography", "Febuary 30, 2016", "3.0", "2.3 and up"],
    ["", "ART_AND_DESIGN", "4.1", "159", "19M", "10,000+", "Free", "0", "Everyone", "Art & Design", "January 7, 2018", "1.0.0", "4.0.3 and up"],
    ["Life Made WI-Fi Touchscreen Photo Frame", "1.9", "19", "3.0M", "1,000+", "Free", "0", "Everyone", "", "February 11, 2018", "1.0.19", "4.0 and up", ""],
]

REVIEW_ROWS = [
    ["Alpha Game", "Love it", "Positive", "0.8", "0.9"],
    ["Alpha Game", "Crashes all the time", "Negative", "-0.5", "0.6"],
    ["Beta Game", "It is ok", "Neutral", "0", "0"],
    ["Gamma Tools", "Handy", "Positive", "0.3", "0.4"],
    ["Zeta Orphan", "Nice", "Positive", "0.5", "0.5"],
    ["Alpha Game", "nan", "nan", "nan", "nan"],
    ["", "Great", "Positive", "0.6", "0.7"],
]


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def raw_apps():
    return pd.DataFrame(APP_ROWS, columns=list(APP_SOURCE_COLUMNS))


@pytest.fixture
def raw_reviews():
    return pd.DataFrame(REVIEW_ROWS, columns=list(REVIEW_SOURCE_COLUMNS))


@pytest.fixture
def apps(raw_apps):
    return prepare_apps(raw_apps)


@pytest.fixture
def reviews(raw_reviews):
    return prepare_reviews(raw_reviews)


@pytest.fixture
def bundle(apps, reviews):
    return DataBundle(apps=apps, reviews=reviews)


@pytest.fixture
def csv_sources(tmp_path, raw_apps, raw_reviews):
    apps_path = tmp_path / "googleplaystore.csv"
    reviews_path = tmp_path / "googleplaystore_user_reviews.csv"
    raw_apps.to_csv(apps_path, index=False)
    raw_reviews.to_csv(reviews_path, index=False)
    return apps_path, reviews_path
