# -*- coding: utf-8 -*-
"""
Report 2: Paired same-direction trips
=====================================
Comparing a trip with the next trip in the same direction (within 60 hours)
removes slow drifts in fitness and season from the comparison: what is left
is how the change in temperature moves the change in energy per mile.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import pandas as pd

from . import config
from .data_access import export_table, load_trip_source
from .errors import InsufficientDataError
from .pairing import pair_consecutive_trips
from .plots import plot_scatter
from .queries import query_paired_trips
from .regression import RegressionSummary, fit_ols
from .report import ReportWriter, banner, describe_correlation
from .selection import TripQuery, select_trips

REPORT_NAME = "paired_trips"


@dataclass
class PairedReportResult:
    labeled: pd.DataFrame
    pairs: pd.DataFrame
    export_path: Path
    report_path: Path
    model: Optional[RegressionSummary] = None


def paired_effect_text(model: RegressionSummary) -> str:
    slope = model.slope("temp_diff")
    if model.exactly_determined:
        return (
            f"With only {model.n_obs} pairs the fit is exactly determined: the line passes "
            f"through both points, so its slope of {slope:.2f} kcal per mile per °F comes "
            f"with no standard error, p-value or meaningful R²."
        )
    effect = -10 * slope
    more_or_less = "more" if effect >= 0 else "less"
    return (
        f"A pair whose second ride is 10 °F colder costs about {abs(effect):.1f} kcal per "
        f"mile {more_or_less} (p = {model.coefficients.loc['temp_diff', 'p_value']:.2g}). "
        f"The temperature change explains {model.r_squared:.0%} of the change in energy "
        f"per mile."
    )


def run_paired_report(trips: Optional[pd.DataFrame] = None, output_dir=None,
                      query: Optional[TripQuery] = None,
                      max_gap_hours: float = config.MAX_PAIR_GAP_HOURS,
                      use_sql: Optional[bool] = None) -> PairedReportResult:
    query = query or TripQuery()
    use_sql = config.USE_SQL_PIPELINE if use_sql is None else use_sql
    out_dir = Path(output_dir) if output_dir is not None else config.OUTPUT_ROOT / REPORT_NAME

    banner("🚲 Report 2: paired same-direction trips")
    if trips is None:
        trips = load_trip_source(query)

    # ---- Labeling & pairing ----
    labeled = select_trips(trips, query)
    if use_sql:
        pairs = query_paired_trips(trips, query, max_gap_hours=max_gap_hours, tz=config.LOCAL_TZ)
    else:
        pairs = pair_consecutive_trips(labeled, max_gap_hours=max_gap_hours)
    print(f"  Labelled trips: {len(labeled):,} | pairs within {max_gap_hours:g} h: {len(pairs):,}")
    export_path = export_table(pairs, out_dir / "paired_trips.csv")

    writer = ReportWriter(out_dir, "Paired trips: change in temperature vs change in effort")
    writer.heading("Pairing")
    writer.text(
        f"Trips are labelled *{query.outbound}* or *{query.inbound}* by start hour. Within "
        f"each direction, every trip is paired with the next one, and the pair is kept only "
        f"when the two start on different days and less than {max_gap_hours:g} hours apart. "
        f"Of {len(labeled)} trips, {len(pairs)} pairs survive; trips with no close successor "
        f"(weekends, holidays, the end of the log) drop out."
    )
    if not pairs.empty:
        by_direction = pairs.groupby("direction").agg(
            pairs=("id", "size"),
            gap_hours_mean=("gap_hours", "mean"),
            temp_diff_mean=("temp_diff", "mean"),
            kcal_per_mile_diff_mean=("kcal_per_mile_diff", "mean"),
        )
        writer.table(by_direction.round(2), "Table_pairs_by_direction", caption="Pairs per direction")

    # ---- Chart ----
    writer.heading("Change in energy per mile against change in temperature")
    fig, r, p = plot_scatter(pairs, "temp_diff", "kcal_per_mile_diff", hue="direction",
                             xlabel="Change in minimum temperature (°F)",
                             ylabel="Change in kcal per mile",
                             title="Paired differences")
    writer.figure(fig, "Fig01_kcal_per_mile_diff_vs_temp_diff")
    writer.text(describe_correlation(r, "the temperature change", "the change in energy per mile"))

    # ---- Model ----
    writer.heading("Model")
    model = None
    try:
        model = fit_ols(pairs, "kcal_per_mile_diff", ["temp_diff"])
    except InsufficientDataError as e:
        print(f"  ⚠️ {e}")
        writer.insufficient(e)
    else:
        if model.exactly_determined:
            print(f"  ⚠️ {model.formula} is exactly determined by {model.n_obs} observations")
        else:
            print(model.model.summary().tables[1])
        writer.regression(model)
        writer.text(paired_effect_text(model))

    report_path = writer.write()
    print("\n✅ Report 2 complete")
    return PairedReportResult(labeled=labeled, pairs=pairs, export_path=export_path,
                              report_path=report_path, model=model)


def main() -> int:
    run_paired_report()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
