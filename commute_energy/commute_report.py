# -*- coding: utf-8 -*-
"""
Report 1: Does the cold make the commute cost more?
===================================================
Load → label commute trips (both legs logged that day) → export → charts →
OLS of kcal per mile on temperature, then on temperature + season index →
Markdown narrative.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

import pandas as pd

from . import config
from .data_access import export_table, load_trip_source
from .errors import InsufficientDataError
from .plots import plot_scatter
from .queries import query_commute_trips
from .regression import COLLINEARITY_CAVEAT, RegressionSummary, fit_ols
from .report import ReportWriter, banner, describe_correlation
from .selection import TripQuery, label_commute_trips

REPORT_NAME = "commute_temperature"

MODELS = {
    "temp_only": ("kcal_per_mile", ["min_temp"]),
    "temp_and_season": ("kcal_per_mile", ["min_temp", "winter_doy"]),
}


@dataclass
class CommuteReportResult:
    labeled: pd.DataFrame
    export_path: Path
    report_path: Path
    models: Dict[str, Optional[RegressionSummary]] = field(default_factory=dict)


def direction_summary(labeled: pd.DataFrame) -> pd.DataFrame:
    """Trip count and mean temperature / energy per direction."""
    if labeled.empty:
        return pd.DataFrame(columns=["trips", "min_temp_mean", "kcal_per_mile_mean", "kcal_per_mile_std"])
    return (
        labeled.groupby("direction")
        .agg(trips=("id", "size"),
             min_temp_mean=("min_temp", "mean"),
             kcal_per_mile_mean=("kcal_per_mile", "mean"),
             kcal_per_mile_std=("kcal_per_mile", "std"))
    )


def _fit(writer: ReportWriter, labeled: pd.DataFrame, name: str) -> Optional[RegressionSummary]:
    dependent, predictors = MODELS[name]
    try:
        summary = fit_ols(labeled, dependent, predictors)
    except InsufficientDataError as e:
        print(f"  ⚠️ {e}")
        writer.insufficient(e)
        return None
    if summary.exactly_determined:
        print(f"  ⚠️ {summary.formula} is exactly determined by {summary.n_obs} observations")
    else:
        print(summary.model.summary().tables[1])
    writer.regression(summary)
    return summary


def temperature_effect_text(s: RegressionSummary) -> str:
    slope = s.slope("min_temp")
    if s.exactly_determined:
        return (
            f"With {s.n_obs} trips for {len(s.coefficients)} parameters the fit is exactly "
            f"determined: the line passes through every trip, so its slope of "
            f"{slope:.2f} kcal per mile per °F comes with no standard error, p-value or "
            f"meaningful R²."
        )
    verb = "adds" if slope < 0 else "saves"
    return (
        f"Each degree colder {verb} about {abs(slope):.2f} kcal per mile "
        f"(p = {s.coefficients.loc['min_temp', 'p_value']:.2g}); temperature alone "
        f"explains {s.r_squared:.0%} of the variation in energy per mile."
    )


def joint_model_text(s: RegressionSummary) -> str:
    if s.exactly_determined:
        return (
            f"With {s.n_obs} trips for {len(s.coefficients)} parameters the joint model is "
            f"exactly determined, so it has no F-test or R² to report. {COLLINEARITY_CAVEAT}"
        )
    return (
        f"Adding the season index raises the explained share to {s.r_squared:.0%} "
        f"(F = {s.f_statistic:.2f}, p = {s.f_pvalue:.2g}). {COLLINEARITY_CAVEAT}"
    )


def run_commute_report(trips: Optional[pd.DataFrame] = None, output_dir=None,
                       query: Optional[TripQuery] = None,
                       strict: bool = config.STRICT_ROUND_TRIPS,
                       use_sql: Optional[bool] = None) -> CommuteReportResult:
    query = query or TripQuery()
    use_sql = config.USE_SQL_PIPELINE if use_sql is None else use_sql
    out_dir = Path(output_dir) if output_dir is not None else config.OUTPUT_ROOT / REPORT_NAME

    banner("🚲 Report 1: commute energy vs temperature")
    if trips is None:
        trips = load_trip_source(query)

    # ---- Selection & labeling ----
    if use_sql:
        labeled = query_commute_trips(trips, query, strict=strict, tz=config.LOCAL_TZ)
    else:
        labeled = label_commute_trips(trips, query, strict=strict)
    n_days = labeled["trip_date"].nunique() if not labeled.empty else 0
    print(f"  Commute trips: {len(labeled):,} on {n_days:,} days")
    export_path = export_table(labeled, out_dir / "commute_trips.csv")

    writer = ReportWriter(out_dir, "Does the cold make the commute cost more?")
    writer.heading("Data")
    writer.text(
        f"Every logged activity of type *{query.activity_type}* between "
        f"{query.min_miles} and {query.max_miles} miles is treated as a leg of the commute. "
        f"Legs that start before {query.hour_threshold}:00 are labelled *{query.outbound}* "
        f"(to work), the rest *{query.inbound}* (home). Days with only one logged leg are "
        f"dropped, which leaves {len(labeled)} trips on {n_days} days."
    )
    if not labeled.empty:
        writer.text(
            f"Minimum temperatures range from {labeled['min_temp'].min():.0f} °F to "
            f"{labeled['min_temp'].max():.0f} °F. Energy is heart-rate based kilocalories "
            f"divided by distance, so every trip is on the same per-mile scale."
        )
    writer.table(direction_summary(labeled).round(2), "Table_direction_summary",
                 caption="Trips per direction")

    # ---- Charts ----
    writer.heading("Energy per mile against temperature")
    fig, r, p = plot_scatter(labeled, "min_temp", "kcal_per_mile", hue="winter_doy",
                             xlabel="Minimum temperature (°F)", ylabel="kcal per mile",
                             title="Energy per mile vs temperature")
    writer.figure(fig, "Fig01_kcal_per_mile_vs_temp", "Colour shows the date in the season")
    writer.text(
        describe_correlation(r, "the temperature", "energy per mile") + " Colour marks the "
        "date in the season, which separates cold rides in mid-winter from cold snaps "
        "early or late in the season."
    )

    fig, r_season, _ = plot_scatter(labeled, "winter_doy", "kcal_per_mile", hue="min_temp",
                                    xlabel="Date", ylabel="kcal per mile",
                                    title="Energy per mile across the season")
    writer.figure(fig, "Fig02_kcal_per_mile_vs_season", "Colour shows minimum temperature")
    writer.text(describe_correlation(r_season, "the season day index", "energy per mile"))

    fig, _, _ = plot_scatter(labeled, "min_temp", "kcal_per_mile", hue="direction",
                             xlabel="Minimum temperature (°F)", ylabel="kcal per mile",
                             title="Energy per mile vs temperature by direction")
    writer.figure(fig, "Fig03_kcal_per_mile_vs_temp_by_direction")

    # ---- Models ----
    writer.heading("Temperature alone")
    models: Dict[str, Optional[RegressionSummary]] = {}
    models["temp_only"] = _fit(writer, labeled, "temp_only")
    if models["temp_only"] is not None:
        writer.text(temperature_effect_text(models["temp_only"]))

    writer.heading("Temperature and season together")
    models["temp_and_season"] = _fit(writer, labeled, "temp_and_season")
    if models["temp_and_season"] is not None:
        writer.text(joint_model_text(models["temp_and_season"]))

    report_path = writer.write()
    print("\n✅ Report 1 complete")
    return CommuteReportResult(labeled=labeled, export_path=export_path,
                               report_path=report_path, models=models)


def main() -> int:
    run_commute_report()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
