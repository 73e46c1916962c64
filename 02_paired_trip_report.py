# -*- coding: utf-8 -*-
"""
Paired same-direction trips (Report 2)
======================================
Usage:
    python 02_paired_trip_report.py

Reads the same data source as 01_commute_temperature_report.py.
"""

from commute_energy.paired_report import main

if __name__ == "__main__":
    raise SystemExit(main())
