"""Shared fixtures: a trip-frame factory and the bundled sample log."""

from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import pandas as pd
import pytest

from commute_energy.data_access import load_trips, normalize_trips

TZ = "America/New_York"
SAMPLE_CSV = Path(__file__).resolve().parent.parent / "data" / "sample" / "commute_trips.csv"


def make_trip_frame(rows, tz=TZ):
    """Build a normalised trip frame.

    rows: (start "YYYY-MM-DD HH:MM" local, miles, min_temp, kcal[, type])
    """
    records = []
    for i, row in enumerate(rows, start=1):
        start, miles, min_temp, kcal = row[:4]
        kind = row[4] if len(row) > 4 else "Ride"
        records.append({"id": i, "start_time": start, "miles": miles,
                        "min_temp": min_temp, "kcal": kcal, "type": kind})
    if not records:
        records_df = pd.DataFrame(columns=["id", "start_time", "miles", "min_temp", "kcal", "type"])
    else:
        records_df = pd.DataFrame(records)
    return normalize_trips(records_df, tz)


@pytest.fixture
def make_trips():
    return make_trip_frame


@pytest.fixture
def week_trips():
    """Four commute days, one single-leg day, one run and one off-route ride."""
    return make_trip_frame([
        ("2023-12-01 07:30", 4.10, 20, 410),
        ("2023-12-01 17:15", 4.12, 30, 395),
        ("2023-12-04 07:40", 4.05, 12, 425),
        ("2023-12-04 17:05", 4.20, 25, 400),
        ("2023-12-05 07:35", 4.15, 5, 450),
        ("2023-12-05 17:20", 4.08, 15, 410),
        ("2023-12-06 07:32", 4.11, 18, 420),   # no ride home logged
        ("2023-12-06 12:00", 12.4, 30, 1200, "Run"),
        ("2023-12-07 07:31", 4.09, 28, 395),
        ("2023-12-07 17:10", 4.14, 35, 380),
        ("2023-12-07 18:30", 9.80, 33, 800),   # off-route ride
    ])


@pytest.fixture
def sample_trips():
    return load_trips(SAMPLE_CSV, TZ)
