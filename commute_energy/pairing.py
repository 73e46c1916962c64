# -*- coding: utf-8 -*-
"""
Consecutive same-direction pairing
==================================
Each trip is matched with the next trip in the same direction (lookahead of
one). A pair is kept only when the two starts are less than
MAX_PAIR_GAP_HOURS apart and fall on different local calendar days;
everything else is expected attrition.
"""

from __future__ import annotations

import pandas as pd

from . import config
from .selection import wall_clock

PAIR_COLUMNS = [
    "id", "next_id", "direction", "start_time", "next_start_time", "gap_hours",
    "winter_doy", "min_temp", "next_min_temp", "temp_diff",
    "kcal_per_mile", "next_kcal_per_mile", "kcal_per_mile_diff",
]

_CARRIED = ["id", "start_time", "min_temp", "kcal_per_mile"]


def pair_consecutive_trips(trips: pd.DataFrame,
                           max_gap_hours: float = config.MAX_PAIR_GAP_HOURS) -> pd.DataFrame:
    """Pair every direction-labelled trip with its successor.

    Expected columns: id, direction, start_time, min_temp, kcal_per_mile,
    winter_doy. Differences are later minus earlier.
    """
    if trips.empty:
        return pd.DataFrame(columns=PAIR_COLUMNS)

    ordered = trips.sort_values(["direction", "start_time"], kind="mergesort").reset_index(drop=True)
    following = ordered.groupby("direction", sort=False)[_CARRIED].shift(-1)

    pairs = ordered[["id", "direction", "start_time", "winter_doy", "min_temp", "kcal_per_mile"]].copy()
    pairs["next_id"] = following["id"]
    pairs["next_start_time"] = following["start_time"]
    pairs["next_min_temp"] = following["min_temp"]
    pairs["next_kcal_per_mile"] = following["kcal_per_mile"]

    # Last trip of each direction has no successor
    pairs = pairs.dropna(subset=["next_start_time"])
    pairs["gap_hours"] = (pairs["next_start_time"] - pairs["start_time"]).dt.total_seconds() / 3600.0
    pairs = pairs[pairs["gap_hours"] < max_gap_hours]
    # Two legs of the same day in one direction are not a day-to-day pair
    same_day = wall_clock(pairs["start_time"]).dt.date == wall_clock(pairs["next_start_time"]).dt.date
    pairs = pairs[~same_day].copy()

    pairs["next_id"] = pairs["next_id"].astype(ordered["id"].dtype)
    pairs["temp_diff"] = pairs["next_min_temp"] - pairs["min_temp"]
    pairs["kcal_per_mile_diff"] = pairs["next_kcal_per_mile"] - pairs["kcal_per_mile"]

    pairs = pairs.sort_values("start_time", kind="mergesort")
    return pairs[PAIR_COLUMNS].reset_index(drop=True)
