from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, Optional

import pandas as pd

from ace_dashboard.data import undefined_rows
from ace_dashboard.filters import Selection


def compute_debug(data_ctx: Dict[str, Any], selection: Optional[Selection] = None) -> Dict[str, Any]:
    tables: Dict[str, pd.DataFrame] = data_ctx.get("tables", {}) or {}
    payload = {
        "selection": asdict(selection) if selection is not None else {},
        "files": list(data_ctx.get("files", [])),
        "row_counts": {"raw_rows": int(data_ctx.get("raw_rows", 0) or 0)},
        "cleaning_checks": {},
        "undefined_values": [],
        "location_type_counts": [],
    }

    for fmt, table in tables.items():
        bad = undefined_rows(table)
        payload["row_counts"][f"{fmt.lower()}_rows"] = int(len(table))
        payload["cleaning_checks"][f"{fmt.lower()}_undefined_values"] = int(len(bad))
        if not bad.empty:
            payload["undefined_values"].extend(
                bad[["DataFormat", "LocationType", "Location", "Race", "TimeFrame", "RawData"]].to_dict(orient="records")
            )
        if not table.empty:
            counts = (
                table.groupby("LocationType")["Location"]
                .nunique()
                .reset_index(name="locations")
                .assign(DataFormat=fmt)
            )
            payload["location_type_counts"].extend(counts.to_dict(orient="records"))
    return payload
