"""Shared fixtures: a small regional rail feed loaded into a temporary database."""

from collections.abc import AsyncIterator
from pathlib import Path

import pytest

from traincheck.data.database import get_db
from traincheck.data.gtfs_loader import GTFSLoader
from traincheck.data.store import TimetableStore


@pytest.fixture
def sample_gtfs_dir(tmp_path: Path) -> Path:
    """Create a GTFS directory with two agencies and a handful of rail trips.

    Trips (all on route S1 unless noted):
    - T1 weekday: Kraków Główny 08:00 -> Bochnia 08:30 -> Tarnów 09:10
    - T2 weekday: Kraków Główny (platform stop KRK2) 09:00 -> Bochnia -> Tarnów,
      with stop_sequence 1, 5, 10
    - T3 weekday: Tarnów 07:00 -> Bochnia 07:40 -> Kraków Główny 08:15
    - T4 weekend: Kraków Główny 10:00 -> Tarnów 11:00
    - T5 weekday, route S2: Kraków Główny 12:00 -> Skawina 12:20 -> Kraków Główny 12:45
    - T6 weekday: Kraków Główny 23:50 -> Bochnia 24:20 -> Tarnów 25:05
    """
    gtfs_dir = tmp_path / "gtfs"
    gtfs_dir.mkdir()

    (gtfs_dir / "agency.txt").write_text(
        "agency_id,agency_name,agency_url,agency_timezone,agency_lang\n"
        "KML,Koleje Małopolskie,https://kolejemalopolskie.com.pl,Europe/Warsaw,pl\n"
        "PR,Polregio,https://polregio.pl,Europe/Warsaw,pl\n",
        encoding="utf-8",
    )

    (gtfs_dir / "routes.txt").write_text(
        "route_id,agency_id,route_short_name,route_long_name,route_type,route_color\n"
        "S1,KML,S1,Kraków Główny - Tarnów,2,E30613\n"
        "S2,KML,S2,Kraków Główny - Skawina,2,E30613\n"
        "PR-1,PR,R,Tarnów - Dębica,2,\n",
        encoding="utf-8",
    )

    (gtfs_dir / "stops.txt").write_text(
        "stop_id,stop_code,stop_name,stop_lat,stop_lon,platform_code\n"
        "KRK,,Kraków Główny,50.0683,19.9474,1\n"
        "KRK2,,Kraków Główny,50.0685,19.9480,2\n"
        "BOCH,,Bochnia,49.9690,20.4300,\n"
        "TAR,,Tarnów,50.0080,20.9730,\n"
        "SKA,,Skawina,49.9750,19.8280,\n"
        "WIE,,Wieliczka Rynek-Kopalnia,49.9870,20.0640,\n",
        encoding="utf-8",
    )

    (gtfs_dir / "calendar.txt").write_text(
        "service_id,monday,tuesday,wednesday,thursday,friday,saturday,sunday,start_date,end_date\n"
        "WEEKDAY,1,1,1,1,1,0,0,20250101,20251231\n"
        "WEEKEND,0,0,0,0,0,1,1,20250101,20251231\n",
        encoding="utf-8",
    )

    (gtfs_dir / "calendar_dates.txt").write_text(
        "service_id,date,exception_type\nWEEKDAY,20250106,2\nWEEKEND,20250106,1\n",
        encoding="utf-8",
    )

    (gtfs_dir / "trips.txt").write_text(
        "route_id,service_id,trip_id,trip_headsign,direction_id\n"
        "S1,WEEKDAY,T1,Tarnów,0\n"
        "S1,WEEKDAY,T2,Tarnów,0\n"
        "S1,WEEKDAY,T3,Kraków Główny,1\n"
        "S1,WEEKEND,T4,Tarnów,0\n"
        "S2,WEEKDAY,T5,Kraków Główny,0\n"
        "S1,WEEKDAY,T6,Tarnów,0\n",
        encoding="utf-8",
    )

    (gtfs_dir / "stop_times.txt").write_text(
        "trip_id,arrival_time,departure_time,stop_id,stop_sequence,pickup_type\n"
        "T1,08:00:00,08:00:00,KRK,1,0\n"
        "T1,08:30:00,08:31:00,BOCH,2,0\n"
        "T1,09:10:00,09:10:00,TAR,3,0\n"
        "T2,09:00:00,09:00:00,KRK2,1,0\n"
        "T2,09:30:00,09:31:00,BOCH,5,0\n"
        "T2,10:10:00,10:10:00,TAR,10,0\n"
        "T3,07:00:00,07:00:00,TAR,1,0\n"
        "T3,07:40:00,07:41:00,BOCH,2,0\n"
        "T3,08:15:00,08:15:00,KRK,3,0\n"
        "T4,10:00:00,10:00:00,KRK,1,0\n"
        "T4,11:00:00,11:00:00,TAR,2,0\n"
        "T5,12:00:00,12:00:00,KRK,1,0\n"
        "T5,12:20:00,12:21:00,SKA,2,0\n"
        "T5,12:45:00,12:45:00,KRK,3,0\n"
        "T6,23:50:00,23:50:00,KRK,1,0\n"
        "T6,24:20:00,24:21:00,BOCH,2,0\n"
        "T6,25:05:00,25:05:00,TAR,3,0\n",
        encoding="utf-8",
    )

    return gtfs_dir


@pytest.fixture
async def db_path(sample_gtfs_dir: Path, tmp_path: Path) -> Path:
    """Ingest the sample feed and return the database path."""
    path = tmp_path / "test.db"
    await GTFSLoader(path).ingest(sample_gtfs_dir)
    return path


@pytest.fixture
async def store(db_path: Path) -> AsyncIterator[TimetableStore]:
    """Open a TimetableStore on the ingested sample database."""
    async with get_db(db_path) as db:
        yield TimetableStore(db)
