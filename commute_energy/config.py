# -*- coding: utf-8 -*-
"""Global configuration for both commute reports."""

import os
from pathlib import Path

# ╔═══════════════════════════════════════════════════════════════════════════╗
# ║  DATA SOURCE                                                             ║
# ╚═══════════════════════════════════════════════════════════════════════════╝

BASE_DIR = Path(__file__).resolve().parent.parent

# Flat activity log (used when no database is configured)
TRIPS_CSV = Path(os.getenv("COMMUTE_TRIPS_CSV",
                           str(BASE_DIR / "data" / "sample" / "commute_trips.csv")))

# DuckDB database file holding the activity table; empty → read TRIPS_CSV
TRIPS_DB    = os.getenv("COMMUTE_TRIPS_DB", "")
TRIPS_TABLE = os.getenv("COMMUTE_TRIPS_TABLE", "activities")

# Timestamps without an offset are read as wall-clock time in this zone
LOCAL_TZ = os.getenv("COMMUTE_TZ", "America/New_York")

# Run labeling and pairing as DuckDB window queries instead of pandas
USE_SQL_PIPELINE = os.getenv("COMMUTE_USE_SQL", "").lower() in ("1", "true", "yes")

# ╔═══════════════════════════════════════════════════════════════════════════╗
# ║  OUTPUT                                                                  ║
# ╚═══════════════════════════════════════════════════════════════════════════╝

OUTPUT_ROOT = Path(os.getenv("COMMUTE_OUTPUT_DIR", "outputs"))

# ╔═══════════════════════════════════════════════════════════════════════════╗
# ║  TRIP SELECTION & LABELING                                               ║
# ╚═══════════════════════════════════════════════════════════════════════════╝

ACTIVITY_TYPE = os.getenv("COMMUTE_ACTIVITY_TYPE", "Ride")

# Commute route distance band in miles: MIN_MILES <= miles < MAX_MILES
MIN_MILES = 4.0
MAX_MILES = 4.3

# Trips starting before this local hour go to work
DIRECTION_HOUR_THRESHOLD = 12
OUTBOUND = "north"
INBOUND  = "south"

# Shift applied before day-of-year so Dec → Apr is numbered continuously
SEASON_SHIFT_DAYS = 120

# Keep only days with exactly one outbound + one inbound trip
STRICT_ROUND_TRIPS = False

# ╔═══════════════════════════════════════════════════════════════════════════╗
# ║  PAIRING                                                                 ║
# ╚═══════════════════════════════════════════════════════════════════════════╝

MAX_PAIR_GAP_HOURS = 60
