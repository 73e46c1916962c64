# -*- coding: utf-8 -*-
"""
Relational variant of selection and pairing
===========================================
The same two transformations written as SQL window queries and run by an
in-memory DuckDB connection over the loaded trip frame:

  query_commute_trips : COUNT(*) OVER (PARTITION BY trip_date)
  query_paired_trips  : LEAD(...) OVER (PARTITION BY direction ORDER BY start)

Results have the layout of label_commute_trips / pair_consecutive_trips.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

import duckdb
import pandas as pd

from . import config
from .errors import DataAccessError
from .pairing import PAIR_COLUMNS
from .selection import COMMUTE_COLUMNS, DAY_COLUMNS, TripQuery

# Timestamps are handed to SQL as two naive columns: the UTC instant (for
# ordering and gaps) and the local wall-clock time (for hour and date).
_LABELED_CTE = """
labeled AS (
    SELECT
        id,
        CAST(start_utc AS TIMESTAMP)                            AS start_utc,
        CAST(start_local AS DATE)                               AS trip_date,
        CASE WHEN hour(CAST(start_local AS TIMESTAMP)) < CAST(? AS INTEGER)
             THEN CAST(? AS VARCHAR) ELSE CAST(? AS VARCHAR) END AS direction,
        miles,
        min_temp,
        kcal,
        kcal / miles                                            AS kcal_per_mile,
        dayofyear(CAST(start_local AS DATE) - CAST(? AS INTEGER)) AS winter_doy
    FROM trips
    WHERE {where} AND miles > 0 AND kcal IS NOT NULL
)
"""

COMMUTE_TRIPS_SQL = """
WITH {labeled},
counted AS (
    SELECT
        *,
        COUNT(*)       OVER (PARTITION BY trip_date) AS day_trip_count,
        MIN(direction) OVER (PARTITION BY trip_date) AS first_direction,
        MAX(direction) OVER (PARTITION BY trip_date) AS last_direction
    FROM labeled
)
SELECT
    id, start_utc, trip_date, direction, miles, min_temp, kcal,
    kcal_per_mile, winter_doy, day_trip_count,
    (day_trip_count > 2 OR first_direction = last_direction) AS irregular_day
FROM counted
WHERE day_trip_count > 1 {strict}
ORDER BY start_utc, id
"""

PAIRED_TRIPS_SQL = """
WITH {labeled},
paired AS (
    SELECT
        id,
        direction,
        start_utc,
        trip_date,
        winter_doy,
        min_temp,
        kcal_per_mile,
        LEAD(id)            OVER w AS next_id,
        LEAD(start_utc)     OVER w AS next_start_utc,
        LEAD(trip_date)     OVER w AS next_trip_date,
        LEAD(min_temp)      OVER w AS next_min_temp,
        LEAD(kcal_per_mile) OVER w AS next_kcal_per_mile
    FROM labeled
    WINDOW w AS (PARTITION BY direction ORDER BY start_utc, id)
)
SELECT
    id, next_id, direction, start_utc, next_start_utc,
    date_diff('second', start_utc, next_start_utc) / 3600.0 AS gap_hours,
    winter_doy,
    min_temp, next_min_temp, next_min_temp - min_temp AS temp_diff,
    kcal_per_mile, next_kcal_per_mile, next_kcal_per_mile - kcal_per_mile AS kcal_per_mile_diff
FROM paired
WHERE next_start_utc IS NOT NULL
  AND date_diff('second', start_utc, next_start_utc) < CAST(? AS DOUBLE) * 3600
  AND trip_date <> next_trip_date
ORDER BY start_utc, id
"""


def _relation_frame(trips: pd.DataFrame) -> pd.DataFrame:
    start = trips["start_time"]
    return pd.DataFrame({
        "id": trips["id"].to_numpy(),
        "start_utc": start.dt.tz_convert("UTC").dt.tz_localize(None).to_numpy(),
        "start_local": start.dt.tz_localize(None).to_numpy(),
        "miles": trips["miles"].astype(float).to_numpy(),
        "min_temp": trips["min_temp"].astype(float).to_numpy(),
        "kcal": trips["kcal"].astype(float).to_numpy(),
        "type": trips["type"].astype(str).to_numpy(),
    })


def _labeled_params(query: TripQuery) -> Tuple[str, List]:
    where, where_params = query.to_where_clause()
    params = [int(query.hour_threshold), query.outbound, query.inbound,
              int(query.season_shift_days)] + where_params
    return _LABELED_CTE.format(where=where), params


def _run(sql: str, params: List, trips: pd.DataFrame) -> pd.DataFrame:
    con = duckdb.connect(database=":memory:")
    try:
        con.register("trips", _relation_frame(trips))
        return con.execute(sql, params).fetchdf()
    except duckdb.Error as e:
        raise DataAccessError(str(e)) from e
    finally:
        con.close()


def _utc_to_local(values: pd.Series, tz: str) -> pd.Series:
    return pd.to_datetime(values).dt.tz_localize("UTC").dt.tz_convert(tz)


def query_commute_trips(trips: pd.DataFrame, query: Optional[TripQuery] = None,
                        strict: bool = config.STRICT_ROUND_TRIPS,
                        tz: str = config.LOCAL_TZ) -> pd.DataFrame:
    """SQL twin of selection.label_commute_trips."""
    query = query or TripQuery()
    if trips.empty:
        return pd.DataFrame(columns=COMMUTE_COLUMNS + DAY_COLUMNS)

    labeled, params = _labeled_params(query)
    sql = COMMUTE_TRIPS_SQL.format(
        labeled=labeled, strict="AND NOT irregular_day" if strict else "")
    res = _run(sql, params, trips)

    res["start_time"] = _utc_to_local(res["start_utc"], tz)
    res["trip_date"] = pd.to_datetime(res["trip_date"]).dt.date
    res["winter_doy"] = res["winter_doy"].astype(int)
    res["day_trip_count"] = res["day_trip_count"].astype(int)
    res["irregular_day"] = res["irregular_day"].astype(bool)
    return res[COMMUTE_COLUMNS + DAY_COLUMNS].reset_index(drop=True)


def query_paired_trips(trips: pd.DataFrame, query: Optional[TripQuery] = None,
                       max_gap_hours: float = config.MAX_PAIR_GAP_HOURS,
                       tz: str = config.LOCAL_TZ) -> pd.DataFrame:
    """SQL twin of selection.select_trips → pairing.pair_consecutive_trips."""
    query = query or TripQuery()
    if trips.empty:
        return pd.DataFrame(columns=PAIR_COLUMNS)

    labeled, params = _labeled_params(query)
    res = _run(PAIRED_TRIPS_SQL.format(labeled=labeled), params + [float(max_gap_hours)], trips)

    res["start_time"] = _utc_to_local(res["start_utc"], tz)
    res["next_start_time"] = _utc_to_local(res["next_start_utc"], tz)
    res["winter_doy"] = res["winter_doy"].astype(int)
    return res[PAIR_COLUMNS].reset_index(drop=True)
