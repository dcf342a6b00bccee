import zipfile
from pathlib import Path

import aiosqlite
import pytest

from traincheck.data.gtfs_loader import GTFSLoader, get_table_counts, init_db, truncate_tables


@pytest.fixture
def sample_gtfs_zip(sample_gtfs_dir: Path, tmp_path: Path) -> Path:
    """Create a sample GTFS ZIP file from the directory."""
    zip_path = tmp_path / "gtfs.zip"
    with zipfile.ZipFile(zip_path, "w") as zf:
        for file_path in sample_gtfs_dir.iterdir():
            zf.write(file_path, file_path.name)
    return zip_path


class TestGTFSLoader:
    """Tests for GTFSLoader."""

    async def test_ingest_from_directory(self, sample_gtfs_dir: Path, tmp_path: Path) -> None:
        db_path = tmp_path / "test.db"
        loader = GTFSLoader(db_path)

        row_counts = await loader.ingest(sample_gtfs_dir)

        assert db_path.exists()
        assert row_counts == {
            "agency": 2,
            "routes": 3,
            "stops": 6,
            "calendar": 2,
            "calendar_dates": 2,
            "trips": 6,
            "stop_times": 17,
        }

    async def test_ingest_from_zip(self, sample_gtfs_zip: Path, tmp_path: Path) -> None:
        db_path = tmp_path / "test.db"
        loader = GTFSLoader(db_path)

        row_counts = await loader.ingest(sample_gtfs_zip)

        assert row_counts["routes"] == 3
        assert row_counts["stops"] == 6
        assert row_counts["stop_times"] == 17

    async def test_atomic_swap_replaces_existing(
        self, sample_gtfs_dir: Path, tmp_path: Path
    ) -> None:
        db_path = tmp_path / "test.db"
        temp_path = db_path.with_suffix(".tmp.db")

        loader = GTFSLoader(db_path)
        await loader.ingest(sample_gtfs_dir)
        await loader.ingest(sample_gtfs_dir)

        assert db_path.exists()
        assert not temp_path.exists()
        counts = await get_table_counts(db_path)
        assert counts["routes"] == 3

    async def test_rollback_on_failure(self, tmp_path: Path) -> None:
        """Temp DB is cleaned up and no target DB is created on failure."""
        db_path = tmp_path / "test.db"
        temp_path = db_path.with_suffix(".tmp.db")

        loader = GTFSLoader(db_path)

        with pytest.raises(FileNotFoundError):
            await loader.ingest(tmp_path / "nonexistent")

        assert not db_path.exists()
        assert not temp_path.exists()

    async def test_missing_column_fails(self, sample_gtfs_dir: Path, tmp_path: Path) -> None:
        (sample_gtfs_dir / "trips.txt").write_text("trip_id,route_id\nT1,S1\n", encoding="utf-8")

        with pytest.raises(ValueError, match="trips.txt missing columns: service_id"):
            await GTFSLoader(tmp_path / "test.db").ingest(sample_gtfs_dir)

    async def test_empty_core_table_fails(self, sample_gtfs_dir: Path, tmp_path: Path) -> None:
        (sample_gtfs_dir / "stop_times.txt").write_text(
            "trip_id,arrival_time,departure_time,stop_id,stop_sequence\n", encoding="utf-8"
        )
        db_path = tmp_path / "test.db"

        with pytest.raises(ValueError, match="No stop_times loaded"):
            await GTFSLoader(db_path).ingest(sample_gtfs_dir)

        assert not db_path.exists()

    async def test_invalid_rows_skipped(self, sample_gtfs_dir: Path, tmp_path: Path) -> None:
        """Rows with a bad time or a missing required value are dropped."""
        with open(sample_gtfs_dir / "stop_times.txt", "a", encoding="utf-8") as f:
            f.write("T1,late,late,TAR,4,0\n")
            f.write("T1,10:00:00,10:00:00,,5,0\n")
            f.write("\n")

        row_counts = await GTFSLoader(tmp_path / "test.db").ingest(sample_gtfs_dir)

        assert row_counts["stop_times"] == 17

    async def test_creates_parent_directories(self, sample_gtfs_dir: Path, tmp_path: Path) -> None:
        db_path = tmp_path / "subdir" / "nested" / "test.db"

        await GTFSLoader(db_path).ingest(sample_gtfs_dir)

        assert db_path.exists()


class TestSchema:
    """Tests for tables, indexes and read-model views."""

    async def test_schema_objects(self, db_path: Path) -> None:
        async with aiosqlite.connect(db_path) as db:
            async with db.execute(
                "SELECT type, name FROM sqlite_master WHERE type IN ('table', 'view') ORDER BY name"
            ) as cursor:
                objects = {name: kind for kind, name in await cursor.fetchall()}

        assert objects == {
            "agency": "table",
            "calendar": "table",
            "calendar_dates": "table",
            "routes": "table",
            "stop_times": "table",
            "stops": "table",
            "trips": "table",
            "v_agency_activity": "view",
            "v_arrivals": "view",
            "v_departures": "view",
            "v_route_trip_count": "view",
            "v_trip_stops": "view",
        }

    async def test_indexes_created(self, db_path: Path) -> None:
        async with aiosqlite.connect(db_path) as db:
            async with db.execute(
                "SELECT name FROM sqlite_master WHERE type='index' AND name LIKE 'idx_%'"
            ) as cursor:
                indexes = {row[0] for row in await cursor.fetchall()}

        assert {
            "idx_stops_name",
            "idx_trips_service",
            "idx_calendar_dates_date",
            "idx_stop_times_stop_departure",
            "idx_stop_times_stop_arrival",
        } <= indexes

    async def test_departure_view_excludes_last_stop(self, db_path: Path) -> None:
        async with aiosqlite.connect(db_path) as db:
            async with db.execute(
                "SELECT stop_sequence FROM v_departures WHERE trip_id = 'T2' ORDER BY stop_sequence"
            ) as cursor:
                sequences = [row[0] for row in await cursor.fetchall()]

        assert sequences == [1, 5]

    async def test_arrival_view_excludes_first_stop(self, db_path: Path) -> None:
        async with aiosqlite.connect(db_path) as db:
            async with db.execute(
                "SELECT stop_sequence FROM v_arrivals WHERE trip_id = 'T2' ORDER BY stop_sequence"
            ) as cursor:
                sequences = [row[0] for row in await cursor.fetchall()]

        assert sequences == [5, 10]


class TestDataIntegrity:
    """Tests for normalized values after ingestion."""

    async def test_dates_normalized_to_iso(self, db_path: Path) -> None:
        async with aiosqlite.connect(db_path) as db:
            db.row_factory = aiosqlite.Row
            async with db.execute("SELECT * FROM calendar WHERE service_id = 'WEEKDAY'") as cursor:
                calendar = await cursor.fetchone()
            async with db.execute("SELECT date FROM calendar_dates") as cursor:
                dates = {row["date"] for row in await cursor.fetchall()}

        assert calendar["start_date"] == "2025-01-01"
        assert calendar["end_date"] == "2025-12-31"
        assert dates == {"2025-01-06"}

    async def test_seconds_derived_from_times(self, db_path: Path) -> None:
        async with aiosqlite.connect(db_path) as db:
            db.row_factory = aiosqlite.Row
            async with db.execute(
                "SELECT * FROM stop_times WHERE trip_id = 'T6' ORDER BY stop_sequence"
            ) as cursor:
                stop_times = await cursor.fetchall()

        assert [st["departure_time"] for st in stop_times] == ["23:50:00", "24:21:00", "25:05:00"]
        assert [st["departure_seconds"] for st in stop_times] == [85800, 87660, 90300]
        assert stop_times[1]["arrival_seconds"] == 87600

    async def test_extra_columns_ignored(self, db_path: Path) -> None:
        async with aiosqlite.connect(db_path) as db:
            db.row_factory = aiosqlite.Row
            async with db.execute("SELECT * FROM routes WHERE route_id = 'S1'") as cursor:
                route = await cursor.fetchone()

        assert route["route_type"] == 2
        assert "route_color" not in route.keys()

    async def test_coordinates_stored_as_numbers(self, db_path: Path) -> None:
        async with aiosqlite.connect(db_path) as db:
            db.row_factory = aiosqlite.Row
            async with db.execute("SELECT * FROM stops WHERE stop_id = 'KRK'") as cursor:
                stop = await cursor.fetchone()

        assert stop["stop_lat"] == pytest.approx(50.0683)


class TestMaintenance:
    """Tests for init, truncate and counts."""

    async def test_truncate_tables(self, db_path: Path) -> None:
        deleted = await truncate_tables(db_path)

        assert deleted["stop_times"] == 17
        counts = await get_table_counts(db_path)
        assert set(counts.values()) == {0}

    async def test_init_db_is_idempotent(self, db_path: Path) -> None:
        await init_db(db_path)

        counts = await get_table_counts(db_path)
        assert counts["trips"] == 6
