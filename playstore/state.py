"""Session state: the one object every page reads from.

Lifecycle is Load -> Ready -> (Filter-Update)*. Filter updates replace the
whole criteria value and re-derive the filtered pair in one step, so pages
never observe filtered apps and filtered reviews from different criteria.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

import pandas as pd

from playstore.data import DataBundle, empty_apps, empty_reviews, load_dashboard_data
from playstore.filters import FilterCriteria, FilteredView, clear_filters, derive_view

logger = logging.getLogger(__name__)

Loader = Callable[[], DataBundle]


class DashboardState:
    def __init__(self, loader: Optional[Loader] = None, *, clock: Callable[[], datetime] = datetime.now):
        self._loader: Loader = loader or load_dashboard_data
        self._clock = clock
        self.apps: pd.DataFrame = empty_apps()
        self.reviews: pd.DataFrame = empty_reviews()
        self.filters: FilterCriteria = clear_filters()
        self.loading: bool = True
        self.error: Optional[str] = None
        self._view: FilteredView = derive_view(self.apps, self.reviews, self.filters, now=self.now())

    def now(self) -> datetime:
        return self._clock()

    @property
    def ready(self) -> bool:
        return not self.loading and self.error is None

    @property
    def status(self) -> str:
        if self.loading:
            return "loading"
        return "error" if self.error else "ready"

    @property
    def view(self) -> FilteredView:
        return self._view

    @property
    def filtered_apps(self) -> pd.DataFrame:
        return self._view.apps

    @property
    def filtered_reviews(self) -> pd.DataFrame:
        return self._view.reviews

    def load(self) -> "DashboardState":
        """Run the one-time load. Any failure is recorded in `error`, never raised."""
        if not self.loading:
            return self
        try:
            bundle = self._loader()
        except Exception as exc:
            logger.exception("Data loading failed")
            self.error = str(exc) or type(exc).__name__
        else:
            self.apps = bundle.apps
            self.reviews = bundle.reviews
            self.error = None
        finally:
            self.loading = False
        self._refresh()
        return self

    def set_filters(self, criteria: FilterCriteria) -> FilteredView:
        self.filters = criteria
        self._refresh()
        return self._view

    def clear_filters(self) -> FilteredView:
        return self.set_filters(clear_filters())

    def _refresh(self) -> None:
        if not self.ready:
            return
        self._view = derive_view(self.apps, self.reviews, self.filters, now=self.now())
        logger.debug(
            "Filters applied: %d/%d apps, %d/%d reviews",
            len(self._view.apps),
            len(self.apps),
            len(self._view.reviews),
            len(self.reviews),
        )
