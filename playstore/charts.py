from __future__ import annotations

from typing import Any, Dict, List, Optional

import altair as alt
import pandas as pd

alt.data_transformers.disable_max_rows()


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def _frame(points: List[Dict[str, Any]], columns: List[str]) -> pd.DataFrame:
    return pd.DataFrame(points, columns=columns)


def bar_chart(
    points: List[Dict[str, Any]],
    *,
    title: str = "",
    value_title: str = "Apps",
    horizontal: bool = False,
    value_format: str = "~s",
) -> Dict[str, Any]:
    df = _frame(points, ["name", "value"])
    name_enc = alt.X("name:N", title=None, sort=None) if not horizontal else alt.Y("name:N", title=None, sort=None)
    value_enc = (
        alt.Y("value:Q", title=value_title, axis=alt.Axis(format=value_format))
        if not horizontal
        else alt.X("value:Q", title=value_title, axis=alt.Axis(format=value_format))
    )
    chart = (
        alt.Chart(df, title=title)
        .mark_bar()
        .encode(name_enc, value_enc, tooltip=["name:N", alt.Tooltip("value:Q", format=",")])
        .properties(height=280)
    )
    return to_vega_spec(chart)


def pie_chart(points: List[Dict[str, Any]], *, title: str = "") -> Dict[str, Any]:
    df = _frame(points, ["name", "value"])
    chart = (
        alt.Chart(df, title=title)
        .mark_arc(innerRadius=40)
        .encode(
            theta=alt.Theta("value:Q"),
            color=alt.Color("name:N", title=None),
            tooltip=["name:N", alt.Tooltip("value:Q", format=",")],
        )
        .properties(height=280)
    )
    return to_vega_spec(chart)


def line_chart(points: List[Dict[str, Any]], *, title: str = "", value_title: str = "Apps") -> Dict[str, Any]:
    df = _frame(points, ["name", "value"])
    chart = (
        alt.Chart(df, title=title)
        .mark_line(point={"filled": True, "size": 60})
        .encode(
            x=alt.X("name:O", title=None, axis=alt.Axis(grid=False)),
            y=alt.Y("value:Q", title=value_title, axis=alt.Axis(gridDash=[4, 4], domain=False, ticks=False)),
            tooltip=["name:N", alt.Tooltip("value:Q", format=",")],
        )
        .properties(height=260)
    )
    return to_vega_spec(chart)


def scatter_chart(
    samples: List[Dict[str, Any]],
    *,
    title: str = "",
    x_title: str = "x",
    y_title: str = "y",
    log_x: bool = False,
) -> Dict[str, Any]:
    df = _frame(samples, ["name", "x", "y"])
    x_scale: Optional[alt.Scale] = alt.Scale(type="log") if log_x else alt.Undefined
    chart = (
        alt.Chart(df, title=title)
        .mark_circle(size=40, opacity=0.6)
        .encode(
            x=alt.X("x:Q", title=x_title, scale=x_scale),
            y=alt.Y("y:Q", title=y_title),
            tooltip=["name:N", alt.Tooltip("x:Q", title=x_title, format=","), alt.Tooltip("y:Q", title=y_title)],
        )
        .properties(height=300)
    )
    return to_vega_spec(chart)
