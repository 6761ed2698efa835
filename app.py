from contextlib import contextmanager
from typing import Any, Callable, Dict

import pandas as pd
import streamlit as st

from playstore.config import configure_logging
from playstore.filters import INSTALLS_BOUNDS, RATING_BOUNDS, FilterCriteria, FilteredView
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
from playstore.normalize import format_install_count, format_percent, format_rating
from playstore.state import DashboardState

configure_logging()

INSTALL_STEPS = [0, 1_000, 10_000, 100_000, 1_000_000, 10_000_000, 100_000_000, INSTALLS_BOUNDS[1]]
FILTER_KEYS = ["f_categories", "f_rating", "f_sentiments", "f_types", "f_installs", "f_content", "f_recent"]


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .app-top-bar {padding: 6px 0 4px;border-bottom: 1px solid #e5e7eb;margin-bottom: 10px;}
        .app-top-bar .page-title {font-size: 1.4rem;font-weight: 700;color: #111827;}
        .card {border: 1px solid #e5e7eb;border-radius: 12px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #111827;margin-bottom: 8px;}
        .chip-row {display: flex;flex-wrap: wrap;gap: 6px;margin-top: 6px;}
        .chip {background: #f3f4f6;border: 1px solid #e5e7eb;border-radius: 14px;padding: 4px 10px;font-size: 0.85rem;color: #374151;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str):
    container = st.container()
    container.markdown(f"<div class='card'><div class='card-title'>{title}</div>", unsafe_allow_html=True)
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


def format_filter_summary(criteria: FilterCriteria) -> str:
    chips = [
        f"Categories: {', '.join(criteria.selected_categories)}" if criteria.selected_categories else "Categories: All",
        f"Rating: {criteria.rating_range[0]:.1f}-{criteria.rating_range[1]:.1f}",
        f"Installs: {format_install_count(criteria.installs_range[0])}-{format_install_count(criteria.installs_range[1])}",
    ]
    if criteria.selected_sentiments:
        chips.append(f"Sentiment: {', '.join(criteria.selected_sentiments)}")
    if criteria.selected_app_types:
        chips.append(f"Type: {', '.join(criteria.selected_app_types)}")
    if criteria.selected_content_ratings:
        chips.append(f"Content: {', '.join(criteria.selected_content_ratings)}")
    if criteria.recently_updated_only:
        chips.append("Updated in last 6 months")
    return "".join(f"<span class='chip'>{txt}</span>" for txt in chips)


def render_page_header(title: str, view: FilteredView):
    inject_base_styles()
    c1, c2 = st.columns([8, 2])
    with c1:
        st.markdown(f"<div class='app-top-bar'><div class='page-title'>{title}</div></div>", unsafe_allow_html=True)
    with c2:
        if not view.apps.empty:
            st.download_button(
                "Export CSV",
                data=view.apps.to_csv(index=False).encode("utf-8"),
                file_name="apps.csv",
                mime="text/csv",
            )
    st.markdown(f"<div class='chip-row'>{format_filter_summary(view.criteria)}</div>", unsafe_allow_html=True)


def _kpi_display(key: str, value: Any) -> str:
    if value is None:
        return "N/A"
    if isinstance(value, dict):
        label = value.get("name") or value.get("category") or ""
        return str(label) if label else "N/A"
    if key.endswith(("_ratio", "_rate")) or key.startswith("share_"):
        return format_percent(value)
    if "rating" in key or "polarity" in key:
        return format_rating(value) if "rating" in key else f"{value:.2f}"
    if isinstance(value, float):
        return f"{value:,.1f}"
    if isinstance(value, int):
        return f"{value:,}"
    return str(value)


def render_kpis(kpis: Dict[str, Any]):
    shown = [(k, v) for k, v in kpis.items() if not k.endswith("_display") and not isinstance(v, list)]
    for start in range(0, len(shown), 4):
        cols = st.columns(4)
        for col, (key, value) in zip(cols, shown[start : start + 4]):
            display = kpis.get(f"{key}_display") or _kpi_display(key, value)
            col.metric(key.replace("_", " ").title(), display)


def render_charts(charts: Dict[str, Dict[str, Any]]):
    items = list(charts.items())
    for start in range(0, len(items), 2):
        cols = st.columns(2)
        for col, (_, spec) in zip(cols, items[start : start + 2]):
            with col:
                st.vega_lite_chart(spec, use_container_width=True)


def render_tables(tables: Dict[str, Any]):
    for name, rows in tables.items():
        if isinstance(rows, dict):
            render_tables({f"{name} {key}": sub for key, sub in rows.items()})
            continue
        with card(name.replace("_", " ").title()):
            if rows:
                st.dataframe(pd.DataFrame(rows), hide_index=True, use_container_width=True)
            else:
                st.info("No rows match the current filters.")


def render_payload_page(title: str, compute: Callable[[FilteredView], Dict[str, Any]], view: FilteredView):
    render_page_header(title, view)
    payload = compute(view)
    with card("Key Metrics"):
        render_kpis(payload.get("kpis", {}))
    if view.apps.empty:
        st.info("No apps match the current filters.")
        return
    render_charts(payload.get("charts", {}))
    render_tables(payload.get("tables", {}))


def render_search_page(view: FilteredView):
    render_page_header("Search & Compare", view)
    with card("Search Apps"):
        query = st.text_input("App name or category", "")
        if query:
            results = compute_search(view, query)["results"]
            if results:
                st.dataframe(pd.DataFrame(results), hide_index=True, use_container_width=True)
            else:
                st.info("No apps found.")
    with card("Compare Apps"):
        names = sorted(view.apps["name"].dropna().unique())
        picked = st.multiselect("Pick two apps", options=names, max_selections=2)
        if len(picked) == 2:
            compared = compute_compare(view, picked)["apps"]
            cols = st.columns(2)
            for col, row in zip(cols, compared):
                with col:
                    st.markdown(f"**{row['name']}**")
                    st.metric("Rating", format_rating(row["rating"]))
                    st.metric("Installs", format_install_count(row["installs_count"]))
                    st.metric("Reviews", f"{row['reviews']:,}")
                    st.metric("Review sentiment", row["sentiment_label"], f"{row['avg_sentiment']:+.3f}")


def reset_filters():
    for key in FILTER_KEYS:
        st.session_state.pop(key, None)
    st.session_state["dashboard"].clear_filters()


# ---------- UI setup ----------
st.set_page_config(page_title="Play Store Insights", layout="wide")
inject_base_styles()
st.title("Play Store Insights")
st.caption("Explore apps, ratings, installs and review sentiment from the Google Play catalog.")

if "dashboard" not in st.session_state:
    with st.spinner("Loading Play Store data..."):
        st.session_state["dashboard"] = DashboardState().load()
state: DashboardState = st.session_state["dashboard"]

if state.error:
    st.error(f"Could not load data: {state.error}")
    st.stop()

# ----- Sidebar: navigation + filters -----
with st.sidebar:
    st.markdown("### Navigate")
    current_page = st.radio(
        "Navigate",
        ["Overview", "Categories", "Ratings", "Installs", "Sentiment", "Size", "Recency", "Versions", "Report", "Search & Compare"],
        index=0,
    )

    st.markdown("---")
    st.markdown("### Filters")
    category_options = sorted(state.apps["category"].dropna().unique())
    selected_categories = st.multiselect("Category", options=category_options, key="f_categories")
    rating_range = st.slider("Rating", RATING_BOUNDS[0], RATING_BOUNDS[1], RATING_BOUNDS, 0.1, key="f_rating")
    installs_range = st.select_slider(
        "Installs",
        options=INSTALL_STEPS,
        value=(INSTALL_STEPS[0], INSTALL_STEPS[-1]),
        format_func=format_install_count,
        key="f_installs",
    )
    with st.expander("More filters", expanded=False):
        selected_sentiments = st.multiselect("Review sentiment", options=[s.value for s in Sentiment], key="f_sentiments")
        selected_types = st.multiselect("App type", options=[t.value for t in AppType], key="f_types")
        selected_content = st.multiselect("Content rating", options=[c.value for c in ContentRating], key="f_content")
        recently_updated = st.checkbox("Updated in the last 6 months", key="f_recent")
    st.button("Clear filters", on_click=reset_filters)

criteria = FilterCriteria(
    selected_categories=list(selected_categories),
    rating_range=tuple(rating_range),
    selected_sentiments=list(selected_sentiments),
    selected_app_types=list(selected_types),
    installs_range=tuple(installs_range),
    selected_content_ratings=list(selected_content),
    recently_updated_only=bool(recently_updated),
)
view = state.set_filters(criteria) if criteria != state.filters else state.view
st.sidebar.caption(f"{len(view.apps):,} of {len(state.apps):,} apps · {len(view.reviews):,} reviews")

PAGES: Dict[str, Callable[[FilteredView], Dict[str, Any]]] = {
    "Overview": compute_overview,
    "Categories": compute_categories,
    "Ratings": compute_ratings,
    "Installs": compute_installs,
    "Sentiment": compute_sentiment,
    "Size": compute_size,
    "Recency": compute_recency,
    "Versions": compute_versions,
    "Report": compute_report,
}

if current_page in PAGES:
    render_payload_page(current_page, PAGES[current_page], view)
else:
    render_search_page(view)
