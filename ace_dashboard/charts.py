from __future__ import annotations

from typing import Any, Dict, Optional

import altair as alt
import pandas as pd

from ace_dashboard.filters import ALL_RACES, Selection, timeframe_order

alt.data_transformers.disable_max_rows()


class UnknownPlotTypeError(ValueError):
    """Raised for a plot type outside Line/Bar/Heatmap."""


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def _plot_rows(rows: pd.DataFrame) -> pd.DataFrame:
    df = rows.copy()
    df["Data"] = pd.to_numeric(df["Data"], errors="coerce")
    df = df.dropna(subset=["Data"])
    df["TimeFrame"] = df["TimeFrame"].astype(str)
    df["Race"] = df["Race"].astype(str)
    return df


def _title(selection: Selection, *, with_race: bool) -> str:
    location = selection.location or "All locations"
    if not with_race:
        return location
    race = selection.race or ALL_RACES
    return f"{race} in {location}"


def render_chart(rows: pd.DataFrame, plot_type: str, selection: Selection) -> Optional[alt.Chart]:
    """Build the chart for ``rows``; ``None`` when there is nothing to plot."""
    if plot_type not in ("Line", "Bar", "Heatmap"):
        raise UnknownPlotTypeError(f"Unknown plot type: {plot_type!r}")
    if rows is None or rows.empty:
        return None
    df = _plot_rows(rows)
    if df.empty:
        return None

    y_title = "Percent" if selection.dataset_kind == "Percent" else "Number"
    order = timeframe_order(df["TimeFrame"])
    x = alt.X("TimeFrame:O", title="Time Frame", sort=order, axis=alt.Axis(labelAngle=0))
    tooltip = [
        alt.Tooltip("TimeFrame:O", title="Time Frame"),
        alt.Tooltip("Race:N", title="Race"),
        alt.Tooltip("Data:Q", title=y_title, format=",.2~f"),
    ]

    if plot_type == "Line":
        return (
            alt.Chart(df, title=_title(selection, with_race=True))
            .mark_line(point=True)
            .encode(
                x=x,
                y=alt.Y("Data:Q", title=y_title),
                color=alt.Color("Race:N", title="Race"),
                tooltip=tooltip,
            )
        )
    if plot_type == "Bar":
        return (
            alt.Chart(df, title=_title(selection, with_race=True))
            .mark_bar()
            .encode(
                x=x,
                xOffset=alt.XOffset("Race:N"),
                y=alt.Y("Data:Q", title=y_title),
                color=alt.Color("Race:N", title="Race"),
                tooltip=tooltip,
            )
        )
    return (
        alt.Chart(df, title=_title(selection, with_race=False))
        .mark_rect()
        .encode(
            x=x,
            y=alt.Y("Race:N", title="Race"),
            color=alt.Color("Data:Q", title=y_title, scale=alt.Scale(scheme="orangered")),
            tooltip=tooltip,
        )
    )
