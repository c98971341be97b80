from __future__ import annotations

from typing import Any, Dict, List

import altair as alt
import pandas as pd

from bi_core.matchers import blank_mask

alt.data_transformers.disable_max_rows()

CHART_COLORS = [
    "#3b82f6",
    "#10b981",
    "#f59e0b",
    "#ef4444",
    "#8b5cf6",
    "#ec4899",
    "#06b6d4",
    "#f97316",
    "#14b8a6",
    "#6366f1",
    "#84cc16",
    "#a855f7",
    "#f43f5e",
    "#22d3ee",
    "#facc15",
]
UNKNOWN_LABEL = "Unknown"


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def calculate_chart_data(frame: pd.DataFrame, field: str, top_n: int = 10) -> List[Dict[str, Any]]:
    """Top `top_n` groups of `frame[field]` by count; blanks group under "Unknown"."""
    if frame.empty or field not in frame.columns:
        return []
    series = frame[field]
    labels = series.astype(str).where(~blank_mask(series), UNKNOWN_LABEL)
    counts = labels.value_counts()
    rows = [{"name": str(name), "value": int(counts[name])} for name in pd.unique(labels)]
    rows.sort(key=lambda r: -r["value"])
    return rows[:top_n]


def pie_chart(data: List[Dict[str, Any]], title: str = "") -> alt.Chart:
    df = pd.DataFrame(data, columns=["name", "value"])
    return (
        alt.Chart(df, title=title)
        .mark_arc(innerRadius=50)
        .encode(
            theta=alt.Theta("value:Q"),
            color=alt.Color(
                "name:N",
                sort=df["name"].tolist(),
                scale=alt.Scale(range=CHART_COLORS),
                legend=alt.Legend(title=None),
            ),
            tooltip=["name", alt.Tooltip("value:Q", title="Count", format=",")],
        )
    )
