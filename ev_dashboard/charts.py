from __future__ import annotations

from typing import Any, Dict, List, Optional

import altair as alt
import pandas as pd

alt.data_transformers.disable_max_rows()

CHART_COLORS = ["#3B82F6", "#10B981", "#F59E0B", "#EF4444"]


def to_vega_spec(chart: alt.TopLevelMixin) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def _series_frame(series: List[Dict[str, Any]]) -> pd.DataFrame:
    df = pd.DataFrame(series)
    if df.empty:
        return pd.DataFrame({"label": pd.Series(dtype=str), "value": pd.Series(dtype=int)})
    return df


def bar_chart(
    series: List[Dict[str, Any]],
    *,
    x_title: str,
    y_title: str = "Number of Vehicles",
    color: str = CHART_COLORS[0],
    height: int = 300,
) -> alt.Chart:
    # sort=None keeps the series order (histogram bins are already numeric-ordered).
    return (
        alt.Chart(_series_frame(series))
        .mark_bar(color=color)
        .encode(
            x=alt.X("label:N", title=x_title, sort=None, axis=alt.Axis(labelAngle=-45)),
            y=alt.Y("value:Q", title=y_title, axis=alt.Axis(format="~s", gridDash=[3, 3])),
            tooltip=[alt.Tooltip("label:N", title=x_title), alt.Tooltip("value:Q", title=y_title, format=",")],
        )
        .properties(height=height)
    )


def pie_chart(series: List[Dict[str, Any]], *, title: str, height: int = 300) -> alt.Chart:
    return (
        alt.Chart(_series_frame(series))
        .mark_arc(outerRadius=100)
        .encode(
            theta=alt.Theta("value:Q"),
            color=alt.Color("label:N", title=title, scale=alt.Scale(range=CHART_COLORS)),
            tooltip=[alt.Tooltip("label:N", title=title), alt.Tooltip("value:Q", title="Vehicles", format=",")],
        )
        .properties(height=height)
    )


def postal_code_chart(series: List[Dict[str, Any]], *, height: int = 300) -> alt.Chart:
    df = _series_frame(series).copy()
    df["unique_models"] = df["models"].map(len) if "models" in df.columns else 0
    df = df.drop(columns=["models"], errors="ignore")
    return (
        alt.Chart(df)
        .mark_bar(color=CHART_COLORS[0])
        .encode(
            x=alt.X("label:N", title="Postal Code", sort=None),
            y=alt.Y("value:Q", title="Number of Vehicles"),
            tooltip=[
                alt.Tooltip("label:N", title="Postal Code"),
                alt.Tooltip("value:Q", title="Total Vehicles", format=","),
                alt.Tooltip("unique_models:Q", title="Unique Models"),
            ],
        )
        .properties(height=height)
    )


def range_histogram_chart(series: List[Dict[str, Any]], *, unit: Optional[str] = "miles") -> alt.Chart:
    labelled = [{**b, "label": f"{b['label']} {unit}" if unit else b["label"]} for b in series]
    return bar_chart(labelled, x_title="Range (miles)", color="#9C27B0", height=380)


def model_year_chart(series: List[Dict[str, Any]]) -> alt.Chart:
    return bar_chart(series, x_title="Model Year", color="#2196F3", height=380)
