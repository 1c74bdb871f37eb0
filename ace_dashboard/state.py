"""Session state for the dashboard controls.

``DashboardSession`` owns the current :class:`Selection` and the outputs that
depend on it. Every setter updates the selection and recomputes exactly the
outputs that depend on the changed control before returning:

- dataset kind   -> location types, locations, races, rows, chart
- location type  -> locations, races, rows, chart
- location       -> races, rows, chart
- race           -> rows, chart
- plot type      -> chart

The cleaned tables are shared read-only; nothing here writes to them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Dict, List, Mapping, Optional

import altair as alt
import pandas as pd

from ace_dashboard.charts import render_chart
from ace_dashboard.data import FORMAT_BY_KIND, REQUIRED_COLUMNS
from ace_dashboard.filters import (
    DATASET_KINDS,
    PLOT_TYPES,
    Selection,
    default_location_type,
    filter_rows,
    location_types_for,
    locations_for,
    normalize_selection,
    races_for,
)

NO_DATA_NOTICE = "No data available for the current selection."

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DashboardView:
    location_types: List[str] = field(default_factory=list)
    locations: List[str] = field(default_factory=list)
    races: List[str] = field(default_factory=list)
    filtered: pd.DataFrame = field(default_factory=pd.DataFrame)
    chart: Optional[alt.Chart] = None
    notice: Optional[str] = None


def _first_or(options: List[str], current: str) -> str:
    if current in options:
        return current
    return options[0] if options else ""


class DashboardSession:
    def __init__(self, tables: Dict[str, pd.DataFrame], selection: Optional[Selection] = None):
        self._tables = tables
        selection = selection or Selection()
        if selection.dataset_kind not in DATASET_KINDS:
            raise ValueError(f"Unknown dataset kind: {selection.dataset_kind!r}")
        self._selection = selection
        self._view = DashboardView()

        # Honour any valid choices in the initial selection, default the rest.
        location_types = location_types_for(self.table)
        location_type = selection.location_type
        if location_type not in location_types:
            location_type = default_location_type(location_types)
        locations = locations_for(self.table, location_type)
        location = _first_or(locations, selection.location)
        races = races_for(self.table, location_type, location)
        race = _first_or(races, selection.race)
        self._selection = replace(selection, location_type=location_type, location=location, race=race)
        self._view = replace(self._view, location_types=location_types, locations=locations, races=races)
        self._refilter()

    @property
    def selection(self) -> Selection:
        return self._selection

    @property
    def view(self) -> DashboardView:
        return self._view

    @property
    def table(self) -> pd.DataFrame:
        fmt = FORMAT_BY_KIND.get(self._selection.dataset_kind)
        table = self._tables.get(fmt)
        if table is None:
            return pd.DataFrame(columns=REQUIRED_COLUMNS)
        return table

    # ---------- control events ----------
    def set_dataset_kind(self, kind: str) -> DashboardView:
        if kind not in DATASET_KINDS:
            raise ValueError(f"Unknown dataset kind: {kind!r}")
        self._selection = replace(self._selection, dataset_kind=kind)
        location_types = location_types_for(self.table)
        location_type = self._selection.location_type
        if location_type not in location_types:
            location_type = default_location_type(location_types)
        self._view = replace(self._view, location_types=location_types)
        self._reset_location(location_type, keep_race=False)
        return self._view

    def set_location_type(self, location_type: str) -> DashboardView:
        self._reset_location(location_type, keep_race=True)
        return self._view

    def set_location(self, location: str) -> DashboardView:
        sel = self._selection
        races = races_for(self.table, sel.location_type, location)
        self._selection = replace(sel, location=location, race=_first_or(races, sel.race))
        self._view = replace(self._view, races=races)
        self._refilter()
        return self._view

    def set_race(self, race: str) -> DashboardView:
        self._selection = replace(self._selection, race=race)
        self._refilter()
        return self._view

    def set_plot_type(self, plot_type: str) -> DashboardView:
        self._selection = replace(self._selection, plot_type=plot_type)
        self._render()
        return self._view

    # ---------- recomputation ----------
    def _reset_location(self, location_type: str, *, keep_race: bool) -> None:
        locations = locations_for(self.table, location_type)
        location = locations[0] if locations else ""
        races = races_for(self.table, location_type, location)
        race = _first_or(races, self._selection.race) if keep_race else (races[0] if races else "")
        self._selection = replace(self._selection, location_type=location_type, location=location, race=race)
        self._view = replace(self._view, locations=locations, races=races)
        self._refilter()

    def _refilter(self) -> None:
        self._view = replace(self._view, filtered=filter_rows(self.table, self._selection))
        self._render()

    def _render(self) -> None:
        sel = self._selection
        chart = render_chart(self._view.filtered, sel.plot_type, sel)
        self._view = replace(self._view, chart=chart, notice=None if chart is not None else NO_DATA_NOTICE)


def session_from_params(tables: Dict[str, pd.DataFrame], params: Mapping[str, object]) -> DashboardSession:
    """Start a session from URL-style parameters, ignoring a kind or plot type it does not know."""
    selection = normalize_selection(dict(params))
    defaults = Selection()
    if selection.dataset_kind not in DATASET_KINDS:
        logger.warning("Ignoring unknown dataset kind %r", selection.dataset_kind)
        selection = replace(selection, dataset_kind=defaults.dataset_kind)
    if selection.plot_type not in PLOT_TYPES:
        logger.warning("Ignoring unknown plot type %r", selection.plot_type)
        selection = replace(selection, plot_type=defaults.plot_type)
    return DashboardSession(tables, selection)
