import numpy as np
import pandas as pd
import pytest

from commute_energy.errors import InsufficientDataError
from commute_energy.regression import fit_ols
from commute_energy.selection import (
    TripQuery,
    classify_direction,
    kcal_per_mile,
    label_commute_trips,
    select_trips,
    winter_day_label,
    winter_day_of_year,
)


def test_kcal_per_mile_excludes_zero_distance():
    out = kcal_per_mile(pd.Series([400.0, 10.0, 300.0]), pd.Series([4.0, 0.0, -1.0]))
    assert out.iloc[0] == pytest.approx(100.0)
    assert np.isnan(out.iloc[1])
    assert np.isnan(out.iloc[2])


@pytest.mark.parametrize("hour,expected", [(0, "north"), (7, "north"), (11, "north"),
                                           (12, "south"), (17, "south"), (23, "south")])
def test_classify_direction_by_start_hour(hour, expected):
    assert classify_direction(hour) == expected
    assert classify_direction(hour) == classify_direction(hour)


def test_classify_direction_series_and_custom_threshold():
    hours = pd.Series([6, 9, 10, 15])
    out = classify_direction(hours, threshold=10, outbound="to", inbound="from")
    assert out.tolist() == ["to", "to", "from", "from"]


def test_select_trips_distance_band_and_type(make_trips):
    trips = make_trips([
        ("2023-12-01 07:30", 3.99, 20, 400),
        ("2023-12-01 07:31", 4.00, 20, 400),
        ("2023-12-01 07:32", 4.29, 20, 400),
        ("2023-12-01 07:33", 4.30, 20, 400),
        ("2023-12-01 07:34", 4.10, 20, 400, "Run"),
    ])
    out = select_trips(trips)
    assert out["id"].tolist() == [2, 3]
    assert ((out["miles"] >= 4.0) & (out["miles"] < 4.3)).all()


def test_select_trips_derives_fields(week_trips):
    out = select_trips(week_trips)
    first = out.iloc[0]
    assert first["direction"] == "north"
    assert first["kcal_per_mile"] == pytest.approx(410 / 4.10)
    assert first["winter_doy"] == 215
    assert str(first["trip_date"]) == "2023-12-01"


def test_select_trips_does_not_modify_input(week_trips):
    before = week_trips.copy()
    select_trips(week_trips)
    pd.testing.assert_frame_equal(week_trips, before)


def test_select_trips_warns_on_disagreeing_source_direction(make_trips, capsys):
    trips = make_trips([("2023-12-01 07:30", 4.1, 20, 400), ("2023-12-01 17:30", 4.1, 25, 390)])
    trips["direction"] = ["south", "south"]
    out = select_trips(trips)
    assert out["direction"].tolist() == ["north", "south"]
    assert "1 source direction labels disagree" in capsys.readouterr().out


def test_winter_day_of_year_is_continuous_across_new_year():
    stamps = pd.Series(pd.to_datetime(
        ["2023-12-01 07:00", "2023-12-31 07:00", "2024-01-01 07:00", "2024-03-01 07:00"]
    )).dt.tz_localize("America/New_York")
    doy = winter_day_of_year(stamps).tolist()
    assert doy == [215, 245, 246, 306]


def test_winter_day_of_year_uses_local_date_across_dst():
    # 00:30 local on the day after the spring change is still that day
    stamps = pd.Series(pd.to_datetime(["2024-03-11 00:30"])).dt.tz_localize("America/New_York")
    plain = pd.Series(pd.to_datetime(["2024-03-11 12:00"]))
    assert winter_day_of_year(stamps).iloc[0] == winter_day_of_year(plain).iloc[0]


def test_winter_day_label_maps_back_to_calendar():
    assert winter_day_label(215) == "Dec 01"
    assert winter_day_label(246) == "Jan 01"


def test_label_commute_trips_drops_single_trip_days(week_trips):
    out = label_commute_trips(week_trips)
    dates = {str(d) for d in out["trip_date"]}
    assert "2023-12-06" not in dates
    assert dates == {"2023-12-01", "2023-12-04", "2023-12-05", "2023-12-07"}
    assert (out.groupby("trip_date").size() > 1).all()


def test_label_commute_trips_only_single_trip_days_is_empty(make_trips):
    trips = make_trips([
        ("2023-12-01 07:30", 4.1, 20, 400),
        ("2023-12-02 17:30", 4.1, 25, 390),
        ("2023-12-03 07:30", 4.1, 22, 395),
    ])
    out = label_commute_trips(trips)
    assert out.empty
    with pytest.raises(InsufficientDataError):
        fit_ols(out, "kcal_per_mile", ["min_temp"])


def test_irregular_days_flagged_and_kept_by_default(make_trips, capsys):
    trips = make_trips([
        ("2023-12-01 07:30", 4.1, 20, 400),
        ("2023-12-01 17:30", 4.1, 25, 390),
        ("2023-12-01 19:30", 4.2, 24, 380),   # third leg in the band
        ("2023-12-04 07:30", 4.1, 20, 400),
        ("2023-12-04 17:30", 4.1, 25, 390),
        ("2023-12-05 13:30", 4.1, 20, 400),   # two legs, same direction
        ("2023-12-05 17:30", 4.1, 25, 390),
    ])
    out = label_commute_trips(trips)
    assert len(out) == 7
    flags = out.groupby(out["trip_date"].astype(str))["irregular_day"].first().to_dict()
    assert flags == {"2023-12-01": True, "2023-12-04": False, "2023-12-05": True}
    assert "2 irregular commute days kept" in capsys.readouterr().out


def test_strict_mode_keeps_only_plain_round_trips(make_trips):
    trips = make_trips([
        ("2023-12-01 07:30", 4.1, 20, 400),
        ("2023-12-01 17:30", 4.1, 25, 390),
        ("2023-12-01 19:30", 4.2, 24, 380),
        ("2023-12-04 07:30", 4.1, 20, 400),
        ("2023-12-04 17:30", 4.1, 25, 390),
    ])
    out = label_commute_trips(trips, strict=True)
    assert {str(d) for d in out["trip_date"]} == {"2023-12-04"}
    assert sorted(out["direction"]) == ["north", "south"]


def test_trip_query_where_clause():
    clause, params = TripQuery(activity_type="Ride", min_miles=4.0, max_miles=4.3).to_where_clause()
    assert clause.count("?") == len(params) == 3
    assert params == ["Ride", 4.0, 4.3]


def test_select_trips_empty_input(make_trips):
    out = select_trips(make_trips([]))
    assert out.empty
    assert "kcal_per_mile" in out.columns
