import html
import logging
import os
from contextlib import contextmanager
from typing import List, Optional

import pandas as pd
import streamlit as st

from ace_dashboard.data import DATA_DIR, MissingColumnsError, format_value, load_dashboard_data, resolve_log_level
from ace_dashboard.diagnostics import compute_debug
from ace_dashboard.filters import DATASET_KINDS, PLOT_TYPES, format_selection_summary, selection_params
from ace_dashboard.state import DashboardSession, session_from_params

logging.basicConfig(
    level=resolve_log_level(os.environ.get("ACE_DASHBOARD_LOG_LEVEL")),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
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
    container.markdown(f"<div class='card'><div class='card-title'>{html.escape(title)}</div>", unsafe_allow_html=True)
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


def _index_of(options: List[str], value: str) -> int:
    return options.index(value) if value in options else 0


def display_rows(df: pd.DataFrame) -> pd.DataFrame:
    out = df.drop(columns=["RawData"], errors="ignore").copy()
    if "Data" in out.columns:
        out["Data"] = out["Data"].apply(format_value)
    return out


def get_session(data_ctx: dict) -> DashboardSession:
    # Rebuild when the underlying cleaned tables change (new or edited files).
    tables = data_ctx["tables"]
    session: Optional[DashboardSession] = st.session_state.get("ace_session")
    if session is None or st.session_state.get("ace_tables_id") != id(tables):
        session = session_from_params(tables, st.query_params.to_dict())
        st.session_state["ace_session"] = session
        st.session_state["ace_tables_id"] = id(tables)
    return session


# ---------- UI setup ----------
st.set_page_config(page_title="Childhood Adversity Dashboard", layout="wide")
inject_base_styles()
st.title("Childhood Adversity Dashboard")
st.caption("Explore adverse childhood experience indicators by location and race/ethnicity.")

try:
    data_ctx = load_dashboard_data()
except MissingColumnsError as exc:
    logger.exception("Source table rejected")
    st.error(str(exc))
    st.stop()

if not data_ctx.get("files"):
    st.error(f"No data files found. Place an .xlsx or .csv export in {DATA_DIR}.")
    st.stop()

session = get_session(data_ctx)

# ----- Sidebar: controls -----
# Each control reads the current selection, and only a changed value is
# pushed into the session, so later controls see the recomputed options.
with st.sidebar:
    st.markdown("### Dataset")
    kind = st.radio("Dataset type", DATASET_KINDS, index=_index_of(DATASET_KINDS, session.selection.dataset_kind))
    if kind != session.selection.dataset_kind:
        session.set_dataset_kind(kind)

    st.markdown("---")
    st.markdown("### Filters")
    location_types = session.view.location_types
    location_type = st.selectbox(
        "Location type",
        options=location_types,
        index=_index_of(location_types, session.selection.location_type),
    )
    if location_type is not None and location_type != session.selection.location_type:
        session.set_location_type(location_type)

    locations = session.view.locations
    location = st.selectbox("Location", options=locations, index=_index_of(locations, session.selection.location))
    if location is not None and location != session.selection.location:
        session.set_location(location)

    races = session.view.races
    race = st.selectbox("Race/ethnicity", options=races, index=_index_of(races, session.selection.race))
    if race is not None and race != session.selection.race:
        session.set_race(race)

    st.markdown("---")
    plot_type = st.radio("Plot type", PLOT_TYPES, index=_index_of(PLOT_TYPES, session.selection.plot_type))
    if plot_type != session.selection.plot_type:
        session.set_plot_type(plot_type)

view = session.view
st.markdown(f"<div class='chip-row'>{format_selection_summary(session.selection)}</div>", unsafe_allow_html=True)

with card("Chart"):
    if view.notice:
        st.warning(view.notice)
    else:
        st.altair_chart(view.chart, use_container_width=True)

with card("Filtered rows"):
    st.dataframe(display_rows(view.filtered), use_container_width=True, hide_index=True)
    if not view.filtered.empty:
        st.download_button(
            "Export CSV",
            data=view.filtered.to_csv(index=False).encode("utf-8"),
            file_name="ace_filtered.csv",
            mime="text/csv",
        )

with st.expander("Data quality", expanded=False):
    debug = compute_debug(data_ctx, session.selection)
    st.json(debug["row_counts"])
    st.json(debug["cleaning_checks"])
    if debug["undefined_values"]:
        st.caption("Values that could not be read as numbers (kept out of the charts).")
        st.dataframe(pd.DataFrame(debug["undefined_values"]), use_container_width=True, hide_index=True)

# Keep the URL in step with the controls so a view can be bookmarked or shared.
params = selection_params(session.selection)
if st.query_params.to_dict() != params:
    st.query_params.clear()
    st.query_params.update(params)
