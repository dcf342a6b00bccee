"""Relational store for timetable queries and custom trip writes.

All SQL used by the query engine lives here. The store wraps a single
aiosqlite connection that the caller owns, so services can be exercised
against a throwaway database or a mock.
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

import aiosqlite

from traincheck.errors import ConflictError, NotFoundError, StoreUnavailableError
from traincheck.models.gtfs import (
    Agency,
    CalendarException,
    Route,
    ServiceCalendar,
    Trip,
)
from traincheck.models.responses import AgencyActivity, RouteTripCount, StopUsage
from traincheck.services.schedule_service import gtfs_time_to_seconds

logger = logging.getLogger(__name__)


@dataclass
class DepartureCandidate:
    """A trip boarding at the queried station (not its last stop)."""

    trip_id: str
    route_id: str
    route_long_name: str | None
    route_short_name: str | None
    departure_time: str  # GTFS time at the station
    departure_seconds: int
    stop_sequence: int  # Station's position in the trip


@dataclass
class ArrivalCandidate:
    """A trip alighting at the queried station (not its first stop)."""

    trip_id: str
    route_id: str
    route_long_name: str | None
    route_short_name: str | None
    arrival_time: str
    arrival_seconds: int
    stop_sequence: int


@dataclass
class ConnectionCandidate:
    """A trip visiting the start station before the end station."""

    trip_id: str
    route_id: str
    route_long_name: str | None
    route_short_name: str | None
    departure_time: str
    departure_seconds: int
    departure_sequence: int
    arrival_time: str
    arrival_seconds: int
    arrival_sequence: int


@dataclass
class TripStop:
    """One stop of an expanded trip."""

    stop_sequence: int
    stop_name: str


def _placeholders(values: Sequence[Any]) -> str:
    return ",".join(["?" for _ in values])


class TimetableStore:
    """Query and write operations over the GTFS tables."""

    def __init__(self, db: aiosqlite.Connection):
        """Initialize the store.

        Args:
            db: Open connection with aiosqlite.Row as row factory.
        """
        self._db = db

    async def _fetchall(self, sql: str, params: Sequence[Any] = ()) -> list[aiosqlite.Row]:
        try:
            async with self._db.execute(sql, params) as cursor:
                return list(await cursor.fetchall())
        except aiosqlite.Error as e:
            logger.error(f"Store query failed: {e}")
            raise StoreUnavailableError("Timetable store query failed") from e

    async def _fetchone(self, sql: str, params: Sequence[Any] = ()) -> aiosqlite.Row | None:
        rows = await self._fetchall(sql, params)
        return rows[0] if rows else None

    async def _write(self, sql: str, params: Sequence[Any], conflict_message: str) -> None:
        """Execute one write statement and commit it on its own."""
        try:
            await self._db.execute(sql, params)
            await self._db.commit()
        except aiosqlite.IntegrityError as e:
            await self._db.rollback()
            logger.info(f"Write rejected: {e}")
            raise ConflictError(conflict_message) from e
        except aiosqlite.Error as e:
            logger.error(f"Store write failed: {e}")
            raise StoreUnavailableError("Timetable store write failed") from e

    # Calendar

    async def fetch_weekly_service_ids(self, iso_date: str, weekday_column: str) -> set[str]:
        """Service ids whose weekly pattern covers a date (exceptions not applied)."""
        sql = f"""
            SELECT service_id
            FROM calendar
            WHERE ? BETWEEN start_date AND end_date
              AND {weekday_column} = 1
        """
        rows = await self._fetchall(sql, (iso_date,))
        return {row["service_id"] for row in rows}

    async def fetch_exceptions_on(self, iso_date: str) -> list[tuple[str, int]]:
        """All (service_id, exception_type) pairs for a date."""
        sql = "SELECT service_id, exception_type FROM calendar_dates WHERE date = ?"
        rows = await self._fetchall(sql, (iso_date,))
        return [(row["service_id"], int(row["exception_type"])) for row in rows]

    async def fetch_service_calendar(self, service_id: str) -> ServiceCalendar | None:
        """Weekly pattern of one service; blank weekday flags read as 0."""
        sql = """
            SELECT service_id,
                   COALESCE(monday, 0) AS monday,
                   COALESCE(tuesday, 0) AS tuesday,
                   COALESCE(wednesday, 0) AS wednesday,
                   COALESCE(thursday, 0) AS thursday,
                   COALESCE(friday, 0) AS friday,
                   COALESCE(saturday, 0) AS saturday,
                   COALESCE(sunday, 0) AS sunday,
                   start_date, end_date
            FROM calendar
            WHERE service_id = ?
        """
        row = await self._fetchone(sql, (service_id,))
        if row is None:
            return None
        return ServiceCalendar(**dict(row))

    async def fetch_service_exceptions(
        self, service_id: str, iso_date: str
    ) -> list[CalendarException]:
        sql = """
            SELECT service_id, date, exception_type
            FROM calendar_dates
            WHERE service_id = ? AND date = ?
              AND exception_type IN (1, 2)
        """
        rows = await self._fetchall(sql, (service_id, iso_date))
        return [CalendarException(**dict(row)) for row in rows]

    # Candidate selection

    async def find_departure_candidates(
        self,
        station_name: str,
        service_ids: Iterable[str],
        min_seconds: int,
        limit: int,
    ) -> list[DepartureCandidate]:
        """Trips leaving a station at or after a time, earliest first.

        Args:
            station_name: Exact (case-sensitive) stop name.
            service_ids: Services active on the query date.
            min_seconds: Earliest departure, seconds since midnight.
            limit: Maximum number of candidates.
        """
        services = sorted(service_ids)
        if not services:
            return []

        sql = f"""
            SELECT d.trip_id, d.route_id, r.route_long_name, r.route_short_name,
                   d.departure_time, d.departure_seconds, d.stop_sequence
            FROM v_departures d
            JOIN routes r ON r.route_id = d.route_id
            WHERE d.stop_name = ?
              AND d.departure_seconds >= ?
              AND d.service_id IN ({_placeholders(services)})
            ORDER BY d.departure_seconds ASC
            LIMIT ?
        """
        rows = await self._fetchall(sql, [station_name, min_seconds, *services, limit])
        return [
            DepartureCandidate(
                trip_id=row["trip_id"],
                route_id=row["route_id"],
                route_long_name=row["route_long_name"],
                route_short_name=row["route_short_name"],
                departure_time=row["departure_time"],
                departure_seconds=int(row["departure_seconds"]),
                stop_sequence=int(row["stop_sequence"]),
            )
            for row in rows
        ]

    async def find_arrival_candidates(
        self,
        station_name: str,
        service_ids: Iterable[str],
        min_seconds: int,
        limit: int,
    ) -> list[ArrivalCandidate]:
        """Trips reaching a station at or after a time, earliest first."""
        services = sorted(service_ids)
        if not services:
            return []

        sql = f"""
            SELECT a.trip_id, a.route_id, r.route_long_name, r.route_short_name,
                   a.arrival_time, a.arrival_seconds, a.stop_sequence
            FROM v_arrivals a
            JOIN routes r ON r.route_id = a.route_id
            WHERE a.stop_name = ?
              AND a.arrival_seconds >= ?
              AND a.service_id IN ({_placeholders(services)})
            ORDER BY a.arrival_seconds ASC
            LIMIT ?
        """
        rows = await self._fetchall(sql, [station_name, min_seconds, *services, limit])
        return [
            ArrivalCandidate(
                trip_id=row["trip_id"],
                route_id=row["route_id"],
                route_long_name=row["route_long_name"],
                route_short_name=row["route_short_name"],
                arrival_time=row["arrival_time"],
                arrival_seconds=int(row["arrival_seconds"]),
                stop_sequence=int(row["stop_sequence"]),
            )
            for row in rows
        ]

    async def find_direct_connection_candidates(
        self,
        start_station: str,
        end_station: str,
        service_ids: Iterable[str],
        min_seconds: int,
        limit: int,
    ) -> list[ConnectionCandidate]:
        """Trips serving start then end, by departure from start.

        Direction of travel comes from stop_sequence order, not from times.
        """
        services = sorted(service_ids)
        if not services:
            return []

        sql = f"""
            SELECT d.trip_id, d.route_id, r.route_long_name, r.route_short_name,
                   d.departure_time, d.departure_seconds, d.stop_sequence AS departure_sequence,
                   a.arrival_time, a.arrival_seconds, a.stop_sequence AS arrival_sequence
            FROM v_departures d
            JOIN v_arrivals a ON a.trip_id = d.trip_id
            JOIN routes r ON r.route_id = d.route_id
            WHERE d.stop_name = ?
              AND a.stop_name = ?
              AND d.stop_sequence < a.stop_sequence
              AND d.departure_seconds >= ?
              AND d.service_id IN ({_placeholders(services)})
            ORDER BY d.departure_seconds ASC
            LIMIT ?
        """
        params = [start_station, end_station, min_seconds, *services, limit]
        rows = await self._fetchall(sql, params)
        return [
            ConnectionCandidate(
                trip_id=row["trip_id"],
                route_id=row["route_id"],
                route_long_name=row["route_long_name"],
                route_short_name=row["route_short_name"],
                departure_time=row["departure_time"],
                departure_seconds=int(row["departure_seconds"]),
                departure_sequence=int(row["departure_sequence"]),
                arrival_time=row["arrival_time"],
                arrival_seconds=int(row["arrival_seconds"]),
                arrival_sequence=int(row["arrival_sequence"]),
            )
            for row in rows
        ]

    # Stop expansion

    async def expand_trip_stops(self, trip_ids: Iterable[str]) -> dict[str, list[TripStop]]:
        """Every stop of each trip, grouped by trip and ordered by sequence."""
        ids = list(dict.fromkeys(trip_ids))
        if not ids:
            return {}

        sql = f"""
            SELECT trip_id, stop_sequence, stop_name
            FROM v_trip_stops
            WHERE trip_id IN ({_placeholders(ids)})
            ORDER BY trip_id ASC, stop_sequence ASC
        """
        rows = await self._fetchall(sql, ids)

        by_trip: dict[str, list[TripStop]] = {trip_id: [] for trip_id in ids}
        for row in rows:
            by_trip[row["trip_id"]].append(
                TripStop(stop_sequence=int(row["stop_sequence"]), stop_name=row["stop_name"])
            )
        return by_trip

    # Stops

    async def get_all_stop_names(self) -> list[str]:
        rows = await self._fetchall("SELECT DISTINCT stop_name FROM stops ORDER BY stop_name ASC")
        return [row["stop_name"] for row in rows]

    async def station_exists(self, station_name: str) -> bool:
        row = await self._fetchone("SELECT 1 FROM stops WHERE stop_name = ? LIMIT 1", (station_name,))
        return row is not None

    async def resolve_stop_id_by_name(self, station_name: str) -> str:
        """Canonical stop id for a name; the lowest id wins on duplicates.

        Raises:
            NotFoundError: If no stop has this exact name.
        """
        sql = "SELECT stop_id FROM stops WHERE stop_name = ? ORDER BY stop_id ASC LIMIT 1"
        row = await self._fetchone(sql, (station_name,))
        if row is None:
            raise NotFoundError(f"Station not found: {station_name}")
        return row["stop_id"]

    # Custom trip writes

    async def upsert_agency(self, agency: Agency) -> None:
        sql = """
            INSERT INTO agency (agency_id, agency_name, agency_url, agency_timezone)
            VALUES (?, ?, ?, ?)
            ON CONFLICT (agency_id) DO NOTHING
        """
        params = (agency.agency_id, agency.agency_name, agency.agency_url, agency.agency_timezone)
        await self._write(sql, params, f"Agency already exists: {agency.agency_id}")

    async def upsert_route(self, route: Route) -> None:
        """Insert a route, or update only the long name of an existing one."""
        sql = """
            INSERT INTO routes (route_id, agency_id, route_short_name, route_long_name, route_type)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT (route_id) DO UPDATE SET route_long_name = excluded.route_long_name
        """
        params = (
            route.route_id,
            route.agency_id,
            route.route_short_name,
            route.route_long_name,
            route.route_type,
        )
        await self._write(sql, params, f"Route already exists: {route.route_id}")

    async def insert_trip(self, trip: Trip) -> None:
        """Insert a trip.

        Raises:
            ConflictError: If the trip id already exists.
        """
        sql = "INSERT INTO trips (trip_id, route_id, service_id) VALUES (?, ?, ?)"
        await self._write(
            sql,
            (trip.trip_id, trip.route_id, trip.service_id),
            f"Trip already exists: {trip.trip_id}",
        )

    async def upsert_calendar_exception(self, exception: CalendarException) -> None:
        sql = """
            INSERT INTO calendar_dates (service_id, date, exception_type)
            VALUES (?, ?, ?)
            ON CONFLICT (service_id, date) DO UPDATE SET exception_type = excluded.exception_type
        """
        params = (exception.service_id, exception.date, int(exception.exception_type))
        await self._write(sql, params, f"Calendar exception conflict: {exception.service_id}")

    async def insert_stop_time_pair(
        self,
        trip_id: str,
        start_stop_id: str,
        end_stop_id: str,
        departure_time: str,
        arrival_time: str,
    ) -> None:
        """Insert sequence 1 (departure at start) and 2 (arrival at end)."""
        departure_seconds = gtfs_time_to_seconds(departure_time)
        arrival_seconds = gtfs_time_to_seconds(arrival_time)
        sql = """
            INSERT INTO stop_times (
                trip_id, stop_sequence, arrival_time, departure_time, stop_id,
                arrival_seconds, departure_seconds
            )
            VALUES (?, 1, ?, ?, ?, ?, ?), (?, 2, ?, ?, ?, ?, ?)
        """
        params = (
            trip_id, departure_time, departure_time, start_stop_id,
            departure_seconds, departure_seconds,
            trip_id, arrival_time, arrival_time, end_stop_id,
            arrival_seconds, arrival_seconds,
        )
        await self._write(sql, params, f"Stop times already exist for trip: {trip_id}")

    # Statistics

    async def get_top_stops(self, limit: int) -> list[StopUsage]:
        sql = """
            SELECT s.stop_name, COUNT(*) AS usage_count
            FROM stop_times st
            JOIN stops s ON st.stop_id = s.stop_id
            GROUP BY s.stop_id, s.stop_name
            ORDER BY usage_count DESC, s.stop_name ASC
            LIMIT ?
        """
        rows = await self._fetchall(sql, (limit,))
        return [StopUsage(stop_name=row["stop_name"], usage_count=row["usage_count"]) for row in rows]

    async def get_agency_activity(self) -> list[AgencyActivity]:
        sql = """
            SELECT agency_id, agency_name, trip_count
            FROM v_agency_activity
            ORDER BY trip_count DESC, agency_name ASC
        """
        rows = await self._fetchall(sql)
        return [AgencyActivity(**dict(row)) for row in rows]

    async def get_route_trip_counts(self) -> list[RouteTripCount]:
        sql = """
            SELECT route_id, route_long_name, trip_count
            FROM v_route_trip_count
            ORDER BY trip_count DESC, route_long_name ASC, route_id ASC
        """
        rows = await self._fetchall(sql)
        return [RouteTripCount(**dict(row)) for row in rows]

