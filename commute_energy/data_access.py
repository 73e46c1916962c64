# -*- coding: utf-8 -*-
"""
Trip data access
================
Read the personal activity log from a flat CSV file or a DuckDB database,
normalise it into one frame layout, and export/re-read intermediate tables.

Frame layout after loading:
  id (int), start_time (datetime64[ns, LOCAL_TZ]), miles, min_temp, kcal (float),
  type (str), direction (str, optional; never trusted downstream)
"""

from __future__ import annotations

import csv
import re
from pathlib import Path
from typing import Optional

import duckdb
import pandas as pd

from . import config
from .errors import DataAccessError
from .selection import TripQuery

REQUIRED_COLUMNS = {"start_time", "miles", "min_temp", "kcal", "type"}
NUMERIC_COLUMNS = ["miles", "min_temp", "kcal"]

_OFFSET_PATTERN = r"(?:Z|[+-]\d{2}:?\d{2})$"
_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")


def load_csv(path) -> pd.DataFrame:
    """Universal CSV loader: read + lowercase column names."""
    df = pd.read_csv(path, low_memory=False)
    df.columns = df.columns.str.lower().str.strip()
    return df


def ensure_parent_dir(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


# ╔═══════════════════════════════════════════════════════════════════════════╗
# ║  TIMESTAMPS                                                              ║
# ╚═══════════════════════════════════════════════════════════════════════════╝

def to_local_time(values: pd.Series, tz: str = config.LOCAL_TZ) -> pd.Series:
    """Parse start times into tz-aware local timestamps.

    Values carrying an offset (or already tz-aware) are converted to `tz`;
    naive values are taken as wall-clock time in `tz`. A column mixing both
    is rejected, since there is no single reading of it.
    """
    if pd.api.types.is_datetime64_any_dtype(values):
        if values.dt.tz is None:
            return values.dt.tz_localize(tz, ambiguous="NaT", nonexistent="NaT")
        return values.dt.tz_convert(tz)

    text = values.astype("string").str.strip()
    present = text.notna()
    has_offset = text.str.contains(_OFFSET_PATTERN, regex=True).fillna(False).astype(bool)

    if has_offset[present].all():
        parsed = pd.to_datetime(text, utc=True, errors="coerce", format="ISO8601")
        return parsed.dt.tz_convert(tz)
    if not has_offset.any():
        parsed = pd.to_datetime(text, errors="coerce", format="ISO8601")
        return parsed.dt.tz_localize(tz, ambiguous="NaT", nonexistent="NaT")

    raise DataAccessError(
        f"start_time mixes values with and without a UTC offset "
        f"({int(has_offset.sum())} with, {int((present & ~has_offset).sum())} without)"
    )


def normalize_trips(df: pd.DataFrame, tz: str = config.LOCAL_TZ) -> pd.DataFrame:
    """Coerce a raw trip table into the common frame layout."""
    missing = REQUIRED_COLUMNS - set(df.columns)
    if missing:
        raise DataAccessError(f"Missing required columns: {sorted(missing)}")

    df = df.copy()
    if "id" not in df.columns:
        df.insert(0, "id", range(1, len(df) + 1))

    df["start_time"] = to_local_time(df["start_time"], tz)
    for col in NUMERIC_COLUMNS:
        df[col] = pd.to_numeric(df[col], errors="coerce").astype(float)
    df["type"] = df["type"].astype("string").str.strip().astype(object)

    bad_ts = int(df["start_time"].isna().sum())
    if bad_ts:
        print(f"  ⚠️ Dropped {bad_ts} rows with unreadable start_time")
        df = df.dropna(subset=["start_time"])

    return df.sort_values("start_time", kind="mergesort").reset_index(drop=True)


# ╔═══════════════════════════════════════════════════════════════════════════╗
# ║  SOURCES                                                                 ║
# ╚═══════════════════════════════════════════════════════════════════════════╝

def load_trips(path, tz: str = config.LOCAL_TZ) -> pd.DataFrame:
    """Read the flat activity log (start_time, miles, min_temp, kcal, type)."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Trip log not found: {path}")

    df = normalize_trips(load_csv(path), tz)
    print(f"  ✅ Loaded {len(df):,} activities ← {path}")
    return df


def read_trips_from_db(db_path, table: str = config.TRIPS_TABLE,
                       query: Optional[TripQuery] = None,
                       tz: str = config.LOCAL_TZ) -> pd.DataFrame:
    """Read eligible activities from a DuckDB database file.

    The type/distance predicate is pushed down as a parameterised WHERE.
    """
    if not _IDENTIFIER.match(table):
        raise DataAccessError(f"Invalid table name: {table!r}")

    query = query or TripQuery()
    where, params = query.to_where_clause()
    sql = f"SELECT * FROM {table} WHERE {where} ORDER BY start_time"

    try:
        con = duckdb.connect(str(db_path), read_only=True)
    except duckdb.Error as e:
        raise DataAccessError(str(e)) from e
    try:
        df = con.execute(sql, params).fetchdf()
    except duckdb.Error as e:
        raise DataAccessError(str(e)) from e
    finally:
        con.close()

    df.columns = df.columns.str.lower().str.strip()
    df = normalize_trips(df, tz)
    print(f"  ✅ Loaded {len(df):,} activities ← {db_path}:{table}")
    return df


def load_trip_source(query: Optional[TripQuery] = None) -> pd.DataFrame:
    """Load trips from whichever source the configuration names."""
    if config.TRIPS_DB:
        return read_trips_from_db(config.TRIPS_DB, config.TRIPS_TABLE, query, config.LOCAL_TZ)
    return load_trips(config.TRIPS_CSV, config.LOCAL_TZ)


# ╔═══════════════════════════════════════════════════════════════════════════╗
# ║  INTERMEDIATE EXPORT                                                     ║
# ╚═══════════════════════════════════════════════════════════════════════════╝

def export_table(df: pd.DataFrame, path) -> Path:
    """Write a header row + comma-separated rows, text fields double-quoted."""
    path = Path(path)
    ensure_parent_dir(path)
    df.to_csv(path, index=False, quoting=csv.QUOTE_NONNUMERIC)
    print(f"  ✅ Saved {len(df):,} rows → {path}")
    return path


def read_export(path, tz: str = config.LOCAL_TZ) -> pd.DataFrame:
    """Re-read an exported table, restoring every *start_time column."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Exported table not found: {path}")

    df = load_csv(path)
    for col in df.columns:
        if col.endswith("start_time"):
            df[col] = to_local_time(df[col], tz)
    return df
