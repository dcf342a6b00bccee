"""GTFS data loader for ingesting rail timetables into SQLite."""

import csv
import io
import logging
import zipfile
from collections.abc import Iterator
from pathlib import Path
from typing import Any, TextIO

import aiosqlite

from traincheck.errors import InvalidInputError
from traincheck.services.schedule_service import gtfs_time_to_seconds, normalize_date_input

logger = logging.getLogger(__name__)

# Schema definitions
SCHEMA_SQL = """
-- agency
CREATE TABLE IF NOT EXISTS agency (
    agency_id TEXT PRIMARY KEY,
    agency_name TEXT NOT NULL,
    agency_url TEXT,
    agency_timezone TEXT
);

-- routes
CREATE TABLE IF NOT EXISTS routes (
    route_id TEXT PRIMARY KEY,
    agency_id TEXT,
    route_short_name TEXT,
    route_long_name TEXT,
    route_type INTEGER NOT NULL
);

-- stops
CREATE TABLE IF NOT EXISTS stops (
    stop_id TEXT PRIMARY KEY,
    stop_name TEXT NOT NULL,
    stop_lat REAL,
    stop_lon REAL
);

-- calendar (dates stored as YYYY-MM-DD)
CREATE TABLE IF NOT EXISTS calendar (
    service_id TEXT PRIMARY KEY,
    monday INTEGER,
    tuesday INTEGER,
    wednesday INTEGER,
    thursday INTEGER,
    friday INTEGER,
    saturday INTEGER,
    sunday INTEGER,
    start_date TEXT,
    end_date TEXT
);

-- calendar_dates
CREATE TABLE IF NOT EXISTS calendar_dates (
    service_id TEXT,
    date TEXT,
    exception_type INTEGER,
    PRIMARY KEY (service_id, date)
);

-- trips
CREATE TABLE IF NOT EXISTS trips (
    trip_id TEXT PRIMARY KEY,
    route_id TEXT NOT NULL,
    service_id TEXT NOT NULL
);

-- stop_times (*_seconds derived from the HH:MM:SS text at load time)
CREATE TABLE IF NOT EXISTS stop_times (
    trip_id TEXT NOT NULL,
    stop_sequence INTEGER NOT NULL,
    arrival_time TEXT,
    departure_time TEXT,
    stop_id TEXT NOT NULL,
    arrival_seconds INTEGER,
    departure_seconds INTEGER,
    PRIMARY KEY (trip_id, stop_sequence)
);
"""

INDEX_SQL = """
CREATE INDEX IF NOT EXISTS idx_stops_name ON stops(stop_name);
CREATE INDEX IF NOT EXISTS idx_trips_route ON trips(route_id);
CREATE INDEX IF NOT EXISTS idx_trips_service ON trips(service_id);
CREATE INDEX IF NOT EXISTS idx_calendar_dates_date ON calendar_dates(date);
CREATE INDEX IF NOT EXISTS idx_stop_times_stop ON stop_times(stop_id);
CREATE INDEX IF NOT EXISTS idx_stop_times_stop_departure ON stop_times(stop_id, departure_seconds);
CREATE INDEX IF NOT EXISTS idx_stop_times_stop_arrival ON stop_times(stop_id, arrival_seconds);
"""

# Read models used by the query engine and the statistics
VIEW_SQL = """
CREATE VIEW IF NOT EXISTS v_trip_stops AS
SELECT st.trip_id, st.stop_sequence, st.stop_id, s.stop_name,
       st.arrival_time, st.departure_time, st.arrival_seconds, st.departure_seconds
FROM stop_times st
JOIN stops s ON s.stop_id = st.stop_id;

-- boarding points: every stop except the trip's last
CREATE VIEW IF NOT EXISTS v_departures AS
SELECT ts.trip_id, ts.stop_sequence, ts.stop_id, ts.stop_name,
       ts.departure_time, ts.departure_seconds, t.route_id, t.service_id
FROM v_trip_stops ts
JOIN trips t ON t.trip_id = ts.trip_id
WHERE ts.stop_sequence < (
    SELECT MAX(tail.stop_sequence) FROM stop_times tail WHERE tail.trip_id = ts.trip_id
);

-- alighting points: every stop except the trip's first
CREATE VIEW IF NOT EXISTS v_arrivals AS
SELECT ts.trip_id, ts.stop_sequence, ts.stop_id, ts.stop_name,
       ts.arrival_time, ts.arrival_seconds, t.route_id, t.service_id
FROM v_trip_stops ts
JOIN trips t ON t.trip_id = ts.trip_id
WHERE ts.stop_sequence > (
    SELECT MIN(head.stop_sequence) FROM stop_times head WHERE head.trip_id = ts.trip_id
);

CREATE VIEW IF NOT EXISTS v_agency_activity AS
SELECT a.agency_id, a.agency_name, COUNT(t.trip_id) AS trip_count
FROM agency a
LEFT JOIN routes r ON r.agency_id = a.agency_id
LEFT JOIN trips t ON t.route_id = r.route_id
GROUP BY a.agency_id, a.agency_name;

CREATE VIEW IF NOT EXISTS v_route_trip_count AS
SELECT r.route_id, r.route_long_name, COUNT(t.trip_id) AS trip_count
FROM routes r
LEFT JOIN trips t ON t.route_id = r.route_id
GROUP BY r.route_id, r.route_long_name;
"""

# Table definitions: table_name -> (csv_filename, columns)
TABLE_DEFINITIONS: dict[str, tuple[str, list[str]]] = {
    "agency": (
        "agency.txt",
        ["agency_id", "agency_name", "agency_url", "agency_timezone"],
    ),
    "routes": (
        "routes.txt",
        ["route_id", "agency_id", "route_short_name", "route_long_name", "route_type"],
    ),
    "stops": (
        "stops.txt",
        ["stop_id", "stop_name", "stop_lat", "stop_lon"],
    ),
    "calendar": (
        "calendar.txt",
        [
            "service_id",
            "monday",
            "tuesday",
            "wednesday",
            "thursday",
            "friday",
            "saturday",
            "sunday",
            "start_date",
            "end_date",
        ],
    ),
    "calendar_dates": (
        "calendar_dates.txt",
        ["service_id", "date", "exception_type"],
    ),
    "trips": (
        "trips.txt",
        ["trip_id", "route_id", "service_id"],
    ),
    "stop_times": (
        "stop_times.txt",
        ["trip_id", "stop_sequence", "arrival_time", "departure_time", "stop_id"],
    ),
}

# Columns that must be present for a row to be inserted.
REQUIRED_COLUMNS: dict[str, list[str]] = {
    "agency": ["agency_id", "agency_name"],
    "routes": ["route_id", "route_type"],
    "stops": ["stop_id", "stop_name"],
    "calendar": ["service_id", "start_date", "end_date"],
    "calendar_dates": ["service_id", "date", "exception_type"],
    "trips": ["trip_id", "route_id", "service_id"],
    "stop_times": ["trip_id", "stop_id", "stop_sequence"],
}

# Columns holding GTFS dates (normalized to YYYY-MM-DD)
DATE_COLUMNS: dict[str, list[str]] = {
    "calendar": ["start_date", "end_date"],
    "calendar_dates": ["date"],
}

# Derived integer columns: table -> {derived_column: source_time_column}
SECONDS_COLUMNS: dict[str, dict[str, str]] = {
    "stop_times": {
        "arrival_seconds": "arrival_time",
        "departure_seconds": "departure_time",
    },
}

# Chunk size for bulk inserts
CHUNK_SIZE = 10000


class GTFSLoader:
    """Loader for ingesting GTFS data into SQLite."""

    def __init__(self, db_path: Path):
        """Initialize the loader.

        Args:
            db_path: Path where the SQLite database will be created.
        """
        self.db_path = Path(db_path)

    async def ingest(self, gtfs_path: Path) -> dict[str, int]:
        """Ingest GTFS data from a directory or ZIP file into SQLite.

        Uses atomic swap: loads into temp DB, then replaces the target DB.

        Args:
            gtfs_path: Path to GTFS directory or ZIP file.

        Returns:
            Dictionary with row counts per table.

        Raises:
            FileNotFoundError: If GTFS path doesn't exist.
            ValueError: If required columns are missing or a core table is empty.
        """
        gtfs_path = Path(gtfs_path)
        if not gtfs_path.exists():
            raise FileNotFoundError(f"GTFS path not found: {gtfs_path}")

        # Ensure parent directory exists
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        temp_db = self.db_path.with_suffix(".tmp.db")

        try:
            # Remove temp db if it exists from a previous failed run
            temp_db.unlink(missing_ok=True)

            async with aiosqlite.connect(temp_db) as db:
                # Performance optimizations for bulk loading
                await db.execute("PRAGMA journal_mode=OFF")
                await db.execute("PRAGMA synchronous=OFF")
                await db.execute("PRAGMA cache_size=10000")

                await create_schema(db)
                row_counts = await self._load_all_tables(db, gtfs_path)
                await self._create_indexes(db)
                await self._verify_integrity(db)

            # atomic swap
            if self.db_path.exists():
                self.db_path.unlink()
            temp_db.rename(self.db_path)

            logger.info(f"GTFS ingestion complete: {self.db_path}")
            return row_counts

        except Exception:
            temp_db.unlink(missing_ok=True)
            raise

    async def _create_indexes(self, db: aiosqlite.Connection) -> None:
        """Create indexes after bulk loading."""
        logger.info("Creating indexes...")
        await db.executescript(INDEX_SQL)
        await db.commit()

    async def _load_all_tables(self, db: aiosqlite.Connection, gtfs_path: Path) -> dict[str, int]:
        """Load all GTFS tables from directory or ZIP."""
        row_counts: dict[str, int] = {}

        if gtfs_path.is_file() and gtfs_path.suffix == ".zip":
            with zipfile.ZipFile(gtfs_path, "r") as zf:
                names = set(zf.namelist())
                for table_name, (csv_filename, columns) in TABLE_DEFINITIONS.items():
                    if csv_filename not in names:
                        logger.warning(f"File {csv_filename} not found in ZIP")
                        row_counts[table_name] = 0
                        continue
                    with zf.open(csv_filename) as f:
                        text_file = io.TextIOWrapper(f, encoding="utf-8-sig")
                        row_counts[table_name] = await self._load_table(
                            db, table_name, columns, text_file, csv_filename
                        )
        else:
            for table_name, (csv_filename, columns) in TABLE_DEFINITIONS.items():
                csv_path = gtfs_path / csv_filename
                if not csv_path.exists():
                    logger.warning(f"File {csv_filename} not found")
                    row_counts[table_name] = 0
                    continue
                with open(csv_path, encoding="utf-8-sig") as f:
                    row_counts[table_name] = await self._load_table(
                        db, table_name, columns, f, csv_filename
                    )

        return row_counts

    async def _load_table(
        self,
        db: aiosqlite.Connection,
        table_name: str,
        columns: list[str],
        text_file: TextIO,
        filename: str,
    ) -> int:
        """Load a single CSV stream into a table."""
        logger.info(f"Loading {table_name} from {filename}...")

        derived = SECONDS_COLUMNS.get(table_name, {})
        all_columns = columns + list(derived)
        placeholders = ",".join(["?"] * len(all_columns))
        insert_sql = (
            f"INSERT OR REPLACE INTO {table_name} ({','.join(all_columns)}) VALUES ({placeholders})"
        )

        total_rows = 0
        skipped_rows = 0
        chunk: list[tuple[Any, ...]] = []

        for values in self._iter_rows(table_name, columns, text_file, filename):
            if values is None:
                skipped_rows += 1
                continue
            chunk.append(values)

            if len(chunk) >= CHUNK_SIZE:
                await db.executemany(insert_sql, chunk)
                total_rows += len(chunk)
                chunk = []

        if chunk:
            await db.executemany(insert_sql, chunk)
            total_rows += len(chunk)

        await db.commit()
        logger.info(
            f"  Loaded {total_rows:,} rows into {table_name}"
            + (f" (skipped {skipped_rows:,} invalid)" if skipped_rows else "")
        )
        return total_rows

    def _iter_rows(
        self,
        table_name: str,
        columns: list[str],
        text_file: TextIO,
        filename: str,
    ) -> Iterator[tuple[Any, ...] | None]:
        """Yield insert tuples for each CSV row, or None for rows to skip."""
        reader = csv.reader(text_file)
        header_index = self._build_header_index(reader, columns, filename)
        required = REQUIRED_COLUMNS.get(table_name, [])
        date_columns = DATE_COLUMNS.get(table_name, [])
        derived = SECONDS_COLUMNS.get(table_name, {})

        for row in reader:
            if not any(cell.strip() for cell in row):
                continue
            row_dict = self._row_from_index(row, header_index)
            if not self._has_required_values(row_dict, required):
                yield None
                continue

            values = {col: self._convert_value(row_dict.get(col)) for col in columns}
            try:
                for col in date_columns:
                    if values[col] is not None:
                        values[col] = normalize_date_input(values[col])
                seconds = [
                    gtfs_time_to_seconds(values[source]) if values[source] is not None else None
                    for source in derived.values()
                ]
            except InvalidInputError as e:
                logger.debug(f"Skipping row in {filename}: {e}")
                yield None
                continue

            yield tuple(values[col] for col in columns) + tuple(seconds)

    def _convert_value(self, value: str | None) -> Any:
        """Convert CSV value to appropriate Python type."""
        if value is None or value.strip() == "":
            return None
        return value.strip()

    def _has_required_values(self, row: dict[str, str | None], required: list[str]) -> bool:
        """Return True if all required columns have non-empty values."""
        for col in required:
            value = row.get(col)
            if value is None or value.strip() == "":
                return False
        return True

    def _build_header_index(
        self, reader: Iterator[list[str]], columns: list[str], filename: str
    ) -> dict[str, int]:
        """Build header index mapping for a CSV reader.

        Extra columns are ignored; missing ones fail the load.
        """
        header = next(reader, None)
        if header is None:
            raise ValueError(f"{filename} is empty")
        expected = set(columns)
        header_index: dict[str, int] = {}
        for idx, name in enumerate(header):
            cleaned = name.strip()
            if cleaned in expected and cleaned not in header_index:
                header_index[cleaned] = idx
        missing = [col for col in columns if col not in header_index]
        if missing:
            raise ValueError(f"{filename} missing columns: {', '.join(missing)}")
        return header_index

    def _row_from_index(self, row: list[str], header_index: dict[str, int]) -> dict[str, str]:
        """Map a CSV row list to a dict by header index."""
        row_dict: dict[str, str] = {}
        for col, idx in header_index.items():
            row_dict[col] = row[idx] if idx < len(row) else ""
        return row_dict

    async def _verify_integrity(self, db: aiosqlite.Connection) -> None:
        """Verify the core tables have data after loading."""
        logger.info("Verifying database integrity...")

        for table_name in ("routes", "stops", "trips", "stop_times"):
            async with db.execute(f"SELECT COUNT(*) FROM {table_name}") as cursor:
                row = await cursor.fetchone()
                if row is None or row[0] == 0:
                    raise ValueError(f"No {table_name} loaded - check GTFS data")

        logger.info("Database integrity verified")


async def create_schema(db: aiosqlite.Connection) -> None:
    """Create tables and read-model views if they don't exist."""
    await db.executescript(SCHEMA_SQL)
    await db.executescript(VIEW_SQL)
    await db.commit()


async def init_db(db_path: Path) -> None:
    """Create an empty timetable database with schema, indexes and views."""
    db_path = Path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    async with aiosqlite.connect(db_path) as db:
        await create_schema(db)
        await db.executescript(INDEX_SQL)
        await db.commit()
    logger.info(f"Initialized empty database: {db_path}")


async def truncate_tables(db_path: Path) -> dict[str, int]:
    """Delete every row from the GTFS tables.

    Returns:
        Dictionary mapping table names to the number of rows deleted.
    """
    deleted: dict[str, int] = {}
    async with aiosqlite.connect(db_path) as db:
        for table_name in TABLE_DEFINITIONS:
            cursor = await db.execute(f"DELETE FROM {table_name}")
            deleted[table_name] = cursor.rowcount
            await cursor.close()
        await db.commit()
    logger.info(f"Truncated GTFS tables in {db_path}")
    return deleted


async def get_table_counts(db_path: Path) -> dict[str, int]:
    """Get row counts for all tables in the database.

    Args:
        db_path: Path to the SQLite database.

    Returns:
        Dictionary mapping table names to row counts.
    """
    counts: dict[str, int] = {}
    async with aiosqlite.connect(db_path) as db:
        for table_name in TABLE_DEFINITIONS:
            async with db.execute(f"SELECT COUNT(*) FROM {table_name}") as cursor:
                row = await cursor.fetchone()
                counts[table_name] = row[0] if row else 0
    return counts
