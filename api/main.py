from __future__ import annotations

import logging
import math
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Callable, Dict, Optional

import numpy as np
import pandas as pd
from fastapi import FastAPI, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from api.schemas import CompareRequest, FilterCriteriaModel, MetaOptionsResponse, StatusResponse
from playstore import aggregations as agg
from playstore.config import configure_logging
from playstore.data import DataBundle
from playstore.filters import FilteredView, derive_view, normalize_filters
from playstore.metrics_categories import compute_categories
from playstore.metrics_compare import compute_compare, compute_search
from playstore.metrics_installs import compute_installs
from playstore.metrics_overview import compute_overview
from playstore.metrics_ratings import compute_ratings
from playstore.metrics_recency import compute_recency
from playstore.metrics_report import compute_report
from playstore.metrics_sentiment import compute_sentiment
from playstore.metrics_size import compute_size
from playstore.metrics_versions import compute_versions
from playstore.models import AppType, ContentRating, Sentiment
from playstore.state import DashboardState

logger = logging.getLogger(__name__)

PAGES: Dict[str, Callable[[FilteredView], dict]] = {
    "overview": compute_overview,
    "categories": compute_categories,
    "ratings": compute_ratings,
    "installs": compute_installs,
    "sentiment": compute_sentiment,
    "size": compute_size,
    "recency": compute_recency,
    "versions": compute_versions,
    "report": compute_report,
}


def _json(data: object) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except Exception:
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
                pd.Timestamp: lambda ts: ts.isoformat(),
            },
        ),
    )


def _error(exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": str(exc), "type": type(exc).__name__})


def _state(request: Request) -> DashboardState:
    return request.app.state.dashboard


def _view(request: Request, filters: FilterCriteriaModel) -> FilteredView:
    # Each request derives its own view; the shared session state is read-only here.
    state = _state(request)
    criteria = normalize_filters(filters.model_dump())
    return derive_view(state.apps, state.reviews, criteria, now=state.now())


def _not_ready(request: Request) -> Optional[JSONResponse]:
    state = _state(request)
    if state.ready:
        return None
    return JSONResponse(status_code=503, content={"error": state.error or "Data is still loading", "type": "NotReady"})


def _page_endpoint(name: str, compute: Callable[[FilteredView], dict]):
    def endpoint(filters: FilterCriteriaModel, request: Request):
        blocked = _not_ready(request)
        if blocked is not None:
            return blocked
        try:
            return _json(compute(_view(request, filters)))
        except Exception as exc:
            logger.exception("%s failed", name)
            return _error(exc)

    return endpoint


def create_app(
    loader: Optional[Callable[[], DataBundle]] = None, *, clock: Callable[[], datetime] = datetime.now
) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging()
        configure_logging("api")
        app.state.dashboard = DashboardState(loader, clock=clock).load()
        yield

    app = FastAPI(title="Play Store Insights API", version="0.1.0", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/status", response_model=StatusResponse)
    def status(request: Request):
        state = _state(request)
        return StatusResponse(status=state.status, error=state.error, apps=len(state.apps), reviews=len(state.reviews))

    @app.get("/meta/options", response_model=MetaOptionsResponse)
    def meta_options(request: Request):
        apps = _state(request).apps
        return MetaOptionsResponse(
            categories=sorted(apps["category"].dropna().astype(str).unique().tolist()),
            content_ratings=[c.value for c in ContentRating],
            app_types=[t.value for t in AppType],
            sentiments=[s.value for s in Sentiment],
        )

    for name, compute in PAGES.items():
        app.add_api_route(f"/{name}", _page_endpoint(name, compute), methods=["POST"], name=name)

    @app.post("/top-apps")
    def top_apps(
        filters: FilterCriteriaModel,
        request: Request,
        field: str = Query(default="installs"),
        n: int = Query(default=20, ge=1, le=500),
    ):
        blocked = _not_ready(request)
        if blocked is not None:
            return blocked
        try:
            ranked = agg.top_apps(_view(request, filters).apps, field, n)
        except ValueError as exc:
            return JSONResponse(status_code=422, content={"error": str(exc), "type": type(exc).__name__})
        return _json({"field": field, "apps": agg.to_records(ranked, agg.TABLE_COLUMNS)})

    @app.post("/search")
    def search(filters: FilterCriteriaModel, request: Request, q: str = Query(default="")):
        blocked = _not_ready(request)
        if blocked is not None:
            return blocked
        try:
            return _json(compute_search(_view(request, filters), q))
        except Exception as exc:
            logger.exception("search failed")
            return _error(exc)

    @app.post("/compare")
    def compare(body: CompareRequest, request: Request):
        blocked = _not_ready(request)
        if blocked is not None:
            return blocked
        try:
            return _json(compute_compare(_view(request, body.filters), body.names))
        except Exception as exc:
            logger.exception("compare failed")
            return _error(exc)

    @app.post("/export/{dataset}")
    def export(dataset: str, filters: FilterCriteriaModel, request: Request):
        blocked = _not_ready(request)
        if blocked is not None:
            return blocked
        view = _view(request, filters)
        if dataset == "apps":
            export_df = view.apps
        elif dataset == "reviews":
            export_df = view.reviews
        else:
            return JSONResponse(status_code=404, content={"error": f"Unknown dataset: {dataset}", "type": "NotFound"})
        csv_bytes = export_df.to_csv(index=False).encode("utf-8")
        return Response(
            content=csv_bytes,
            media_type="text/csv",
            headers={"Content-Disposition": f"attachment; filename={dataset}.csv"},
        )

    return app


app = create_app()
