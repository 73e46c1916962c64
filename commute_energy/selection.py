# -*- coding: utf-8 -*-
"""
Trip selection & labeling
=========================
Raw activity log → commute-eligible trips with direction, energy per mile
and the season-relative day index attached.

  select_trips         : activity type + distance band, derived columns
  label_commute_trips  : select_trips + "both directions on the same day"
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple

import numpy as np
import pandas as pd

from . import config

COMMUTE_COLUMNS = [
    "id", "start_time", "trip_date", "direction", "miles", "min_temp",
    "kcal", "kcal_per_mile", "winter_doy",
]
DAY_COLUMNS = ["day_trip_count", "irregular_day"]


@dataclass
class TripQuery:
    """Which activities count as a commute, and how they are labelled."""
    activity_type: str = config.ACTIVITY_TYPE
    min_miles: float = config.MIN_MILES
    max_miles: float = config.MAX_MILES
    hour_threshold: int = config.DIRECTION_HOUR_THRESHOLD
    outbound: str = config.OUTBOUND
    inbound: str = config.INBOUND
    season_shift_days: int = config.SEASON_SHIFT_DAYS

    def to_where_clause(self) -> Tuple[str, List]:
        """Parameterised SQL predicate for the same eligibility rule."""
        clause = "type = ? AND miles >= ? AND miles < ?"
        return clause, [self.activity_type, float(self.min_miles), float(self.max_miles)]


# ╔═══════════════════════════════════════════════════════════════════════════╗
# ║  DERIVED FIELDS                                                          ║
# ╚═══════════════════════════════════════════════════════════════════════════╝

def kcal_per_mile(kcal: pd.Series, miles: pd.Series) -> pd.Series:
    """Energy per distance; NaN where the distance is not positive."""
    miles = pd.to_numeric(miles, errors="coerce").astype(float)
    kcal = pd.to_numeric(kcal, errors="coerce").astype(float)
    return kcal / miles.where(miles > 0)


def classify_direction(hour, threshold: int = config.DIRECTION_HOUR_THRESHOLD,
                       outbound: str = config.OUTBOUND, inbound: str = config.INBOUND):
    """Outbound before `threshold` o'clock, inbound from then on.

    Accepts a single hour or a Series of hours.
    """
    if isinstance(hour, pd.Series):
        return pd.Series(np.where(hour < threshold, outbound, inbound),
                         index=hour.index, dtype=object)
    return outbound if hour < threshold else inbound


def wall_clock(start_time: pd.Series) -> pd.Series:
    # Local wall-clock time; calendar arithmetic on it is DST-safe
    if getattr(start_time.dt, "tz", None) is not None:
        return start_time.dt.tz_localize(None)
    return start_time


def winter_day_of_year(start_time: pd.Series,
                       shift_days: int = config.SEASON_SHIFT_DAYS) -> pd.Series:
    """Day of year of the local date shifted back by `shift_days`.

    With the default shift, Dec 1 → 215 and Mar 1 → 305 (or 306 after a leap
    day), so a season straddling New Year is numbered continuously.
    """
    day = wall_clock(start_time).dt.normalize()
    return (day - pd.Timedelta(days=shift_days)).dt.dayofyear.astype(int)


def winter_day_label(doy: float, shift_days: int = config.SEASON_SHIFT_DAYS,
                     year: int = 2023) -> str:
    """Calendar label ("Dec 01") for a season-day index, for chart axes."""
    stamp = (pd.Timestamp(year=year, month=1, day=1)
             + pd.Timedelta(days=int(round(doy)) - 1 + shift_days))
    return stamp.strftime("%b %d")


# ╔═══════════════════════════════════════════════════════════════════════════╗
# ║  SELECTION                                                               ║
# ╚═══════════════════════════════════════════════════════════════════════════╝

def _empty_commute_frame(with_day_columns: bool = False) -> pd.DataFrame:
    cols = COMMUTE_COLUMNS + (DAY_COLUMNS if with_day_columns else [])
    return pd.DataFrame(columns=cols)


def select_trips(trips: pd.DataFrame, query: TripQuery | None = None) -> pd.DataFrame:
    """Commute-eligible trips with direction, kcal_per_mile and winter_doy.

    Expected columns: id, start_time (tz-aware, local), miles, min_temp,
    kcal, type. The input frame is not modified.
    """
    query = query or TripQuery()

    eligible = trips[
        (trips["type"] == query.activity_type)
        & (trips["miles"] >= query.min_miles)
        & (trips["miles"] < query.max_miles)
    ].copy()

    eligible["kcal_per_mile"] = kcal_per_mile(eligible["kcal"], eligible["miles"])
    eligible = eligible.dropna(subset=["kcal_per_mile", "start_time"])
    if eligible.empty:
        return _empty_commute_frame()

    source_direction = eligible["direction"] if "direction" in eligible.columns else None

    eligible["direction"] = classify_direction(
        eligible["start_time"].dt.hour, query.hour_threshold, query.outbound, query.inbound)
    eligible["trip_date"] = wall_clock(eligible["start_time"]).dt.date
    eligible["winter_doy"] = winter_day_of_year(eligible["start_time"], query.season_shift_days)

    if source_direction is not None:
        given = source_direction.dropna().astype(str).str.strip().str.lower()
        mismatched = int((given != eligible.loc[given.index, "direction"]).sum())
        if mismatched:
            print(f"  ⚠️ {mismatched} source direction labels disagree with the "
                  f"start-hour rule; derived labels are used")

    eligible = eligible.sort_values("start_time", kind="mergesort")
    return eligible[COMMUTE_COLUMNS].reset_index(drop=True)


def flag_irregular_days(labeled: pd.DataFrame) -> pd.DataFrame:
    """Attach the trip count per date and flag dates that are not a plain
    one-out, one-back round trip."""
    out = labeled.copy()
    by_day = out.groupby("trip_date")["direction"]
    out["day_trip_count"] = by_day.transform("size").astype(int)
    n_directions = by_day.transform("nunique")
    out["irregular_day"] = (out["day_trip_count"] > 2) | (n_directions < 2)
    return out


def keep_round_trip_days(labeled: pd.DataFrame, strict: bool = config.STRICT_ROUND_TRIPS) -> pd.DataFrame:
    """Drop dates with a single trip.

    strict=False keeps every date with more than one trip and only flags the
    odd ones; strict=True keeps only dates with exactly one trip each way.
    """
    if labeled.empty:
        return _empty_commute_frame(with_day_columns=True)

    flagged = flag_irregular_days(labeled)
    kept = flagged[flagged["day_trip_count"] > 1]

    irregular_dates = sorted(kept.loc[kept["irregular_day"], "trip_date"].unique())
    if irregular_dates:
        action = "dropped" if strict else "kept"
        print(f"  ⚠️ {len(irregular_dates)} irregular commute days {action}: "
              + ", ".join(str(d) for d in irregular_dates[:10]))
    if strict:
        kept = kept[~kept["irregular_day"]]

    return kept.reset_index(drop=True)


def label_commute_trips(trips: pd.DataFrame, query: TripQuery | None = None,
                        strict: bool = config.STRICT_ROUND_TRIPS) -> pd.DataFrame:
    """First report input: eligible trips on days with both legs logged."""
    return keep_round_trip_days(select_trips(trips, query), strict=strict)
