# -*- coding: utf-8 -*-
"""
Commute energy vs temperature (Report 1)
========================================
Usage:
    python 01_commute_temperature_report.py

Data source is taken from the environment:
    COMMUTE_TRIPS_CSV   flat activity log (default: data/sample/commute_trips.csv)
    COMMUTE_TRIPS_DB    DuckDB database file; when set, COMMUTE_TRIPS_TABLE is read instead
    COMMUTE_OUTPUT_DIR  where figures, tables and report.md are written
    COMMUTE_USE_SQL     set to 1 to label (and pair) trips with the DuckDB window queries
"""

from commute_energy.commute_report import main

if __name__ == "__main__":
    raise SystemExit(main())
