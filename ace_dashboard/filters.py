from __future__ import annotations

import html
import re
from dataclasses import asdict, dataclass
from typing import Iterable, List, Optional

import pandas as pd


DATASET_KINDS = ["Numeric", "Percent"]
PLOT_TYPES = ["Line", "Bar", "Heatmap"]
DEFAULT_LOCATION_TYPE = "State"
ALL_RACES = "All races"

_KIND_ALIASES = {
    "numeric": "Numeric",
    "number": "Numeric",
    "count": "Numeric",
    "percent": "Percent",
    "percentage": "Percent",
}


@dataclass(frozen=True)
class Selection:
    dataset_kind: str = "Numeric"
    location_type: str = DEFAULT_LOCATION_TYPE
    location: str = ""
    race: str = ALL_RACES
    plot_type: str = "Line"


def _as_str(value: object) -> str:
    if value is None:
        return ""
    try:
        if pd.isna(value):
            return ""
    except (TypeError, ValueError):
        pass
    return str(value).strip()


def normalize_selection(raw: dict) -> Selection:
    dataset_kind = _as_str(raw.get("dataset_kind")) or "Numeric"
    dataset_kind = _KIND_ALIASES.get(dataset_kind.lower(), dataset_kind)

    plot_type = _as_str(raw.get("plot_type")) or "Line"
    # Unrecognised plot types are passed through so the renderer can reject them.
    plot_type = next((p for p in PLOT_TYPES if p.lower() == plot_type.lower()), plot_type)

    return Selection(
        dataset_kind=dataset_kind,
        location_type=_as_str(raw.get("location_type")) or DEFAULT_LOCATION_TYPE,
        location=_as_str(raw.get("location")),
        race=_as_str(raw.get("race")) or ALL_RACES,
        plot_type=plot_type,
    )


def _distinct(values: Iterable[object]) -> List[str]:
    out: List[str] = []
    seen = set()
    for v in values:
        s = _as_str(v)
        if not s or s in seen:
            continue
        seen.add(s)
        out.append(s)
    return out


def filter_rows(table: pd.DataFrame, selection: Selection) -> pd.DataFrame:
    """Rows of ``table`` matching the selection's location type, location and race.

    With no location chosen yet the whole table is returned.
    """
    if not selection.location:
        return table
    if table.empty:
        return table
    mask = (table["LocationType"] == selection.location_type) & (table["Location"] == selection.location)
    if selection.race and selection.race != ALL_RACES:
        mask &= table["Race"] == selection.race
    return table[mask]


def location_types_for(table: pd.DataFrame) -> List[str]:
    if table.empty:
        return []
    return _distinct(table["LocationType"])


def default_location_type(options: List[str]) -> str:
    if DEFAULT_LOCATION_TYPE in options or not options:
        return DEFAULT_LOCATION_TYPE
    return options[0]


def locations_for(table: pd.DataFrame, location_type: str) -> List[str]:
    if table.empty:
        return []
    return _distinct(table.loc[table["LocationType"] == location_type, "Location"])


def races_for(
    table: pd.DataFrame,
    location_type: Optional[str] = None,
    location: Optional[str] = None,
) -> List[str]:
    """Race options: ``ALL_RACES`` first, then the races present (scoped to a location if given)."""
    if table.empty:
        return [ALL_RACES]
    rows = table
    if location:
        mask = rows["Location"] == location
        if location_type:
            mask &= rows["LocationType"] == location_type
        rows = rows[mask]
    return [ALL_RACES] + [r for r in _distinct(rows["Race"]) if r != ALL_RACES]


def _timeframe_key(label: str):
    match = re.search(r"\d{4}", label)
    year = int(match.group(0)) if match else 10 ** 6
    return (year, label)


def timeframe_order(values: Iterable[object]) -> List[str]:
    """TimeFrame labels in chronological order ("2016-2018" sorts by 2016)."""
    return sorted(_distinct(values), key=_timeframe_key)


def selection_params(selection: Selection) -> dict:
    """Selection as flat string pairs, the shape ``normalize_selection`` reads back."""
    return {k: v for k, v in asdict(selection).items() if v}


def format_selection_summary(selection: Selection) -> str:
    """HTML chips for the current selection; labels come from the data file and are escaped."""
    chips = [
        f"Dataset: {selection.dataset_kind}",
        f"{selection.location_type or 'Location'}: {selection.location or 'All locations'}",
        f"Race: {selection.race or ALL_RACES}",
        f"Plot: {selection.plot_type}",
    ]
    return "".join([f"<span class='chip'>{html.escape(txt)}</span>" for txt in chips])
