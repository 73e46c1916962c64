import duckdb
import pandas as pd
import pytest

from commute_energy import config
from commute_energy.data_access import (
    export_table,
    load_trip_source,
    load_trips,
    read_export,
    read_trips_from_db,
    to_local_time,
)
from commute_energy.errors import DataAccessError
from commute_energy.pairing import pair_consecutive_trips
from commute_energy.selection import label_commute_trips, select_trips

TZ = "America/New_York"


def write_csv(path, text):
    path.write_text(text.strip() + "\n", encoding="utf-8")
    return path


def test_load_trips_converts_offsets_to_local_time(tmp_path):
    path = write_csv(tmp_path / "log.csv", """
ID,Start_Time,Miles,Min_Temp,KCal,Type
1,2023-12-01T12:30:00Z,4.1,20,400,Ride
2,2023-12-01T17:15:00-05:00,4.1,30,390,Ride
""")
    df = load_trips(path, TZ)
    assert str(df["start_time"].dt.tz) == TZ
    assert df["start_time"].dt.hour.tolist() == [7, 17]
    assert df["id"].tolist() == [1, 2]


def test_load_trips_reads_naive_times_as_local(tmp_path):
    path = write_csv(tmp_path / "log.csv", """
start_time,miles,min_temp,kcal,type
2023-12-01 07:30:00,4.1,20,400,Ride
2023-12-01 17:30:00,4.1,25,390,Ride
""")
    df = load_trips(path, TZ)
    assert df["start_time"].dt.hour.tolist() == [7, 17]
    # id is generated when the log has none
    assert df["id"].tolist() == [1, 2]


def test_load_trips_rejects_mixed_timestamps(tmp_path):
    path = write_csv(tmp_path / "log.csv", """
start_time,miles,min_temp,kcal,type
2023-12-01 07:30:00,4.1,20,400,Ride
2023-12-01T17:30:00-05:00,4.1,25,390,Ride
""")
    with pytest.raises(DataAccessError, match="mixes values"):
        load_trips(path, TZ)


def test_load_trips_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError, match="Trip log not found"):
        load_trips(tmp_path / "nope.csv", TZ)


def test_load_trips_missing_columns(tmp_path):
    path = write_csv(tmp_path / "log.csv", """
start_time,miles,kcal
2023-12-01 07:30:00,4.1,400
""")
    with pytest.raises(DataAccessError, match="min_temp"):
        load_trips(path, TZ)


def test_to_local_time_accepts_aware_datetimes():
    values = pd.Series(pd.to_datetime(["2023-12-01 12:30"])).dt.tz_localize("UTC")
    out = to_local_time(values, TZ)
    assert out.iloc[0].hour == 7


def test_export_round_trip_commute_trips(tmp_path, sample_trips):
    labeled = label_commute_trips(sample_trips)
    path = export_table(labeled, tmp_path / "out" / "commute_trips.csv")

    header = path.read_text(encoding="utf-8").splitlines()[0]
    assert header.startswith('"id","start_time"')
    assert '"north"' in path.read_text(encoding="utf-8")

    back = read_export(path, TZ)
    assert len(back) == len(labeled)
    assert list(back.columns) == list(labeled.columns)
    assert back["id"].tolist() == labeled["id"].tolist()
    assert back["direction"].tolist() == labeled["direction"].tolist()
    assert back["start_time"].tolist() == labeled["start_time"].tolist()
    assert back["trip_date"].tolist() == [str(d) for d in labeled["trip_date"]]
    assert back["kcal_per_mile"].tolist() == pytest.approx(labeled["kcal_per_mile"].tolist())
    assert back["irregular_day"].tolist() == labeled["irregular_day"].tolist()


def test_export_round_trip_pairs(tmp_path, sample_trips):
    pairs = pair_consecutive_trips(select_trips(sample_trips))
    back = read_export(export_table(pairs, tmp_path / "pairs.csv"), TZ)
    assert len(back) == len(pairs)
    assert back["next_start_time"].tolist() == pairs["next_start_time"].tolist()
    assert back["temp_diff"].tolist() == pytest.approx(pairs["temp_diff"].tolist())


def test_export_empty_table(tmp_path, make_trips):
    labeled = label_commute_trips(make_trips([("2023-12-01 07:30", 4.1, 20, 400)]))
    back = read_export(export_table(labeled, tmp_path / "empty.csv"), TZ)
    assert back.empty
    assert "kcal_per_mile" in back.columns


@pytest.fixture
def trip_db(tmp_path):
    src = pd.DataFrame({
        "id": [1, 2, 3, 4],
        "start_time": pd.to_datetime(["2023-12-01 07:30", "2023-12-01 12:00",
                                      "2023-12-01 17:30", "2023-12-02 07:30"]),
        "miles": [4.1, 12.0, 4.2, 4.35],
        "min_temp": [20.0, 25.0, 28.0, 18.0],
        "kcal": [400.0, 1100.0, 390.0, 420.0],
        "type": ["Ride", "Run", "Ride", "Ride"],
    })
    path = tmp_path / "trips.duckdb"
    con = duckdb.connect(str(path))
    con.register("src", src)
    con.execute("CREATE TABLE activities AS SELECT * FROM src")
    con.close()
    return path


def test_read_trips_from_db_pushes_down_filter(trip_db):
    df = read_trips_from_db(trip_db, "activities", tz=TZ)
    assert df["id"].tolist() == [1, 3]
    assert df["start_time"].dt.hour.tolist() == [7, 17]
    assert str(df["start_time"].dt.tz) == TZ


def test_read_trips_from_db_rejects_bad_table_name(trip_db):
    with pytest.raises(DataAccessError, match="Invalid table name"):
        read_trips_from_db(trip_db, "activities; DROP TABLE activities", tz=TZ)


def test_read_trips_from_db_unknown_table(trip_db):
    with pytest.raises(DataAccessError):
        read_trips_from_db(trip_db, "rides", tz=TZ)


def test_read_trips_from_db_missing_database(tmp_path):
    with pytest.raises(DataAccessError):
        read_trips_from_db(tmp_path / "missing.duckdb", "activities", tz=TZ)


def test_load_trip_source_follows_config(monkeypatch, tmp_path, trip_db):
    monkeypatch.setattr(config, "TRIPS_DB", str(trip_db))
    monkeypatch.setattr(config, "TRIPS_TABLE", "activities")
    monkeypatch.setattr(config, "LOCAL_TZ", TZ)
    assert load_trip_source()["id"].tolist() == [1, 3]

    path = write_csv(tmp_path / "log.csv", """
start_time,miles,min_temp,kcal,type
2023-12-01 07:30:00,4.1,20,400,Ride
""")
    monkeypatch.setattr(config, "TRIPS_DB", "")
    monkeypatch.setattr(config, "TRIPS_CSV", path)
    assert len(load_trip_source()) == 1
