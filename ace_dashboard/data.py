from __future__ import annotations

import logging
import math
import os
import re
from functools import lru_cache
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np
import pandas as pd


logger = logging.getLogger(__name__)

ROOT_DIR = Path(__file__).resolve().parents[1]
DATA_DIR = Path(os.environ.get("ACE_DASHBOARD_DATA_DIR", ROOT_DIR / "data"))
FILE_GLOBS = ("*.xlsx", "*.csv")

REQUIRED_COLUMNS = ["Location", "LocationType", "Race", "TimeFrame", "Data", "DataFormat"]
LABEL_COLUMNS = ["Location", "LocationType", "Race", "TimeFrame", "DataFormat"]

FORMAT_NUMBER = "Number"
FORMAT_PERCENT = "Percent"
FORMAT_BY_KIND = {"Numeric": FORMAT_NUMBER, "Percent": FORMAT_PERCENT}

_NOT_NUMERIC_CHARS = re.compile(r"[^0-9.\-]")


def resolve_log_level(name: Optional[str], default: int = logging.INFO) -> int:
    """Map a level name like "debug" to its number; unknown names give ``default``."""
    level = logging.getLevelName(str(name or "").strip().upper())
    return level if isinstance(level, int) else default


class MissingColumnsError(ValueError):
    """Raised when a source table lacks one of the required columns."""

    def __init__(self, missing: Iterable[str], source: object = None):
        self.missing = list(missing)
        self.source = source
        where = f" in {source}" if source is not None else ""
        super().__init__(f"Missing required columns{where}: {', '.join(self.missing)}")


def get_source_files(data_dir: Optional[Path] = None) -> List[Path]:
    data_dir = Path(data_dir) if data_dir is not None else DATA_DIR
    files: List[Path] = []
    for pattern in FILE_GLOBS:
        files.extend(p for p in data_dir.glob(pattern) if not p.name.startswith("~$"))
    return sorted(files)


def file_signature(files: List[Path]) -> Tuple[Tuple[str, float], ...]:
    return tuple((str(f), f.stat().st_mtime) for f in files)


def normalize_label(value: object) -> str:
    """Render a label cell as a stripped string (2019.0 -> "2019", NaN -> "")."""
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return ""
    if isinstance(value, (float, np.floating)) and float(value).is_integer():
        return str(int(value))
    return str(value).strip()


def clean_value(raw: object) -> float:
    """Coerce a free-text ``Data`` cell to a float.

    Everything except digits, ``.`` and ``-`` is stripped first, so ``"12.3%"``
    becomes 12.3 and ``"1,234"`` becomes 1234.0. Cells that end up empty or do
    not parse (``"N/A"``, ``"-"``) return NaN, never zero.
    """
    if raw is None or isinstance(raw, bool):
        return math.nan
    if isinstance(raw, (int, float, np.integer, np.floating)):
        value = float(raw)
        return value if math.isfinite(value) else math.nan
    if pd.isna(raw):
        return math.nan
    stripped = _NOT_NUMERIC_CHARS.sub("", str(raw))
    if not stripped:
        return math.nan
    try:
        value = float(stripped)
    except ValueError:
        return math.nan
    return value if math.isfinite(value) else math.nan


def format_value(value: float) -> str:
    """Positional (no exponent) text for a cleaned value; "" for no value."""
    if value is None or pd.isna(value):
        return ""
    return np.format_float_positional(float(value), trim="-")


def check_columns(df: pd.DataFrame, source: object = None) -> pd.DataFrame:
    df = df.rename(columns=lambda c: str(c).strip())
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise MissingColumnsError(missing, source)
    return df


def read_source_file(path: Path) -> pd.DataFrame:
    if path.suffix.lower() == ".csv":
        try:
            df = pd.read_csv(path, dtype={"Data": str}, encoding="utf-8-sig")
        except UnicodeDecodeError:
            df = pd.read_csv(path, dtype={"Data": str}, encoding="latin-1")
    else:
        # Numeric cells stay numeric; str() would turn 0.00001 into "1e-05".
        df = pd.read_excel(path, sheet_name=0)
    df = check_columns(df, path.name)
    logger.info("Loaded %d rows from %s", len(df), path.name)
    return df[REQUIRED_COLUMNS]


def load_raw_table(files: Iterable[Path]) -> pd.DataFrame:
    frames = [read_source_file(Path(f)) for f in files]
    if not frames:
        return pd.DataFrame(columns=REQUIRED_COLUMNS)
    return pd.concat(frames, ignore_index=True)


def clean_table(raw: pd.DataFrame, data_format: str) -> pd.DataFrame:
    """Rows of ``raw`` whose DataFormat is ``data_format``, with ``Data`` numeric.

    The original text is kept in ``RawData``. Uncleanable values stay in the
    table as NaN and are reported through the log.
    """
    raw = check_columns(raw)
    formats = raw["DataFormat"].apply(normalize_label)
    df = raw[formats == data_format].copy()
    df["RawData"] = df["Data"]
    for col in LABEL_COLUMNS:
        df[col] = df[col].apply(normalize_label).astype(object)
    df["Data"] = df["Data"].apply(clean_value).astype(float)
    df = df[REQUIRED_COLUMNS + ["RawData"]].reset_index(drop=True)

    bad = int(df["Data"].isna().sum())
    if bad:
        sample = ", ".join(repr(v) for v in undefined_rows(df)["RawData"].head(5).tolist())
        logger.warning("%d %s value(s) could not be cleaned to a number (e.g. %s)", bad, data_format, sample)
    return df


def undefined_rows(table: pd.DataFrame) -> pd.DataFrame:
    """Rows whose ``Data`` has no numeric value; for inspection only."""
    if table.empty or "Data" not in table.columns:
        return table.iloc[0:0]
    return table[table["Data"].isna()]


# ---------------- Public API ----------------
def build_tables(raw: pd.DataFrame) -> Dict[str, pd.DataFrame]:
    return {fmt: clean_table(raw, fmt) for fmt in (FORMAT_NUMBER, FORMAT_PERCENT)}


@lru_cache(maxsize=4)
def _load_dashboard_data_cached(files_sig: Tuple[Tuple[str, float], ...]) -> Dict[str, object]:
    raw = load_raw_table(Path(name) for name, _ in files_sig)
    tables = build_tables(raw)
    return {
        "files": [Path(name).name for name, _ in files_sig],
        "raw_rows": int(len(raw)),
        "tables": tables,
    }


def load_dashboard_data(data_dir: Optional[Path] = None) -> Dict[str, object]:
    files = get_source_files(data_dir)
    if not files:
        return {"files": [], "raw_rows": 0, "tables": {}}
    return _load_dashboard_data_cached(file_signature(files))
