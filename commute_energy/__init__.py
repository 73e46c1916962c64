"""
Commute energy analysis
=======================
Two narrative reports on how ambient temperature affects the energy spent on
a bicycle commute:

  commute_report : labelled commute trips, energy per mile vs temperature
  paired_report  : consecutive same-direction trips, differenced
"""

__version__ = "0.1.0"
