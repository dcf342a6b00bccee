"""Departure boards, arrival boards and direct connections.

Each query runs in two store round trips: candidate trips are selected
(station, time and calendar filters, limited), then only those trips are
expanded into their full stop sequences to derive destination, origin and
intermediate stops.
"""

import logging

from traincheck.data.config import TrainCheckConfig, get_config
from traincheck.data.store import TimetableStore, TripStop
from traincheck.errors import InvalidInputError
from traincheck.matching.normalizers import same_station
from traincheck.models.responses import (
    Arrival,
    ArrivalsResponse,
    Connection,
    ConnectionsResponse,
    Departure,
    DeparturesResponse,
)
from traincheck.services.calendar_service import get_active_service_ids
from traincheck.services.schedule_service import (
    clamp_limit,
    format_duration,
    format_gtfs_time,
    gtfs_time_to_seconds,
    parse_query_date,
    require_text,
    seconds_to_gtfs_time,
)
from traincheck.services.stop_service import ensure_station_exists

logger = logging.getLogger(__name__)

NO_CONNECTIONS_MESSAGE = "No connections found for the given criteria"


def intermediate_stop_names(stops: list[TripStop], after_seq: int, before_seq: int) -> list[str]:
    """Names of stops strictly between two sequence numbers, in travel order."""
    return [s.stop_name for s in stops if after_seq < s.stop_sequence < before_seq]


async def get_next_departures(
    store: TimetableStore,
    station_name: str,
    date: str,
    time: str,
    limit: int | None = None,
    config: TrainCheckConfig | None = None,
) -> DeparturesResponse:
    """Get the next departures from a station.

    Args:
        store: Timetable store.
        station_name: Exact stop name (case-sensitive).
        date: Service date, YYYY-MM-DD or YYYYMMDD.
        time: Earliest departure, HH:MM or HH:MM:SS.
        limit: Maximum number of departures (default 10, max 50).
        config: Optional configuration override.

    Returns:
        DeparturesResponse ordered by departure time.

    Raises:
        InvalidInputError: If a field is missing or malformed.
        NotFoundError: If nothing departs and no stop has this name.
    """
    config = config or get_config()
    station = require_text(station_name, "station_name")
    service_date = parse_query_date(require_text(date, "date"))
    min_seconds = gtfs_time_to_seconds(require_text(time, "time"))
    limit = clamp_limit(limit, config.default_limit, config.max_limit)

    active_services = await get_active_service_ids(store, service_date)
    candidates = await store.find_departure_candidates(
        station, active_services, min_seconds, limit
    )
    if not candidates:
        await ensure_station_exists(store, station)

    stops_by_trip = await store.expand_trip_stops(c.trip_id for c in candidates)

    departures: list[Departure] = []
    for candidate in candidates:
        stops = stops_by_trip.get(candidate.trip_id, [])
        if not stops:
            continue
        destination = stops[-1]
        # A trip visiting the station twice would otherwise show up as A -> A
        if same_station(destination.stop_name, station):
            continue

        departures.append(
            Departure(
                trip_id=candidate.trip_id,
                route_id=candidate.route_id,
                route_long_name=candidate.route_long_name,
                route_short_name=candidate.route_short_name,
                departure_time=candidate.departure_time,
                departure_time_formatted=format_gtfs_time(candidate.departure_time),
                destination=destination.stop_name,
                intermediate_stops=intermediate_stop_names(
                    stops, candidate.stop_sequence, destination.stop_sequence
                ),
            )
        )

    logger.debug(f"{len(departures)} departures from {station} on {service_date}")
    return DeparturesResponse(
        station=station,
        departures=departures,
        service_date=service_date.isoformat(),
        query_time=seconds_to_gtfs_time(min_seconds),
        count=len(departures),
    )


async def get_next_arrivals(
    store: TimetableStore,
    station_name: str,
    date: str,
    time: str,
    limit: int | None = None,
    config: TrainCheckConfig | None = None,
) -> ArrivalsResponse:
    """Get the next arrivals at a station.

    Same inputs and errors as get_next_departures, keyed on arrival time.
    Each arrival reports the trip's first stop as its origin.
    """
    config = config or get_config()
    station = require_text(station_name, "station_name")
    service_date = parse_query_date(require_text(date, "date"))
    min_seconds = gtfs_time_to_seconds(require_text(time, "time"))
    limit = clamp_limit(limit, config.default_limit, config.max_limit)

    active_services = await get_active_service_ids(store, service_date)
    candidates = await store.find_arrival_candidates(station, active_services, min_seconds, limit)
    if not candidates:
        await ensure_station_exists(store, station)

    stops_by_trip = await store.expand_trip_stops(c.trip_id for c in candidates)

    arrivals: list[Arrival] = []
    for candidate in candidates:
        stops = stops_by_trip.get(candidate.trip_id, [])
        if not stops:
            continue
        origin = stops[0]
        if same_station(origin.stop_name, station):
            continue

        arrivals.append(
            Arrival(
                trip_id=candidate.trip_id,
                route_id=candidate.route_id,
                route_long_name=candidate.route_long_name,
                route_short_name=candidate.route_short_name,
                arrival_time=candidate.arrival_time,
                arrival_time_formatted=format_gtfs_time(candidate.arrival_time),
                origin=origin.stop_name,
                intermediate_stops=intermediate_stop_names(
                    stops, origin.stop_sequence, candidate.stop_sequence
                ),
            )
        )

    logger.debug(f"{len(arrivals)} arrivals at {station} on {service_date}")
    return ArrivalsResponse(
        station=station,
        arrivals=arrivals,
        service_date=service_date.isoformat(),
        query_time=seconds_to_gtfs_time(min_seconds),
        count=len(arrivals),
    )


async def get_direct_connections(
    store: TimetableStore,
    start_station: str,
    end_station: str,
    date: str,
    time: str,
    limit: int | None = None,
    config: TrainCheckConfig | None = None,
) -> ConnectionsResponse:
    """Find single trips from start_station to end_station.

    Args:
        store: Timetable store.
        start_station: Exact boarding stop name.
        end_station: Exact alighting stop name.
        date: Service date, YYYY-MM-DD or YYYYMMDD.
        time: Earliest departure from start_station, HH:MM or HH:MM:SS.
        limit: Maximum number of connections (default 10, max 50).
        config: Optional configuration override.

    Returns:
        ConnectionsResponse ordered by departure time. An empty result
        carries an explanatory message.

    Raises:
        InvalidInputError: If a field is malformed or both stations are the same.
        NotFoundError: If nothing is found and either station name is unknown.
    """
    config = config or get_config()
    start = require_text(start_station, "start_station")
    end = require_text(end_station, "end_station")
    if same_station(start, end):
        raise InvalidInputError("Start and end station must be different")
    service_date = parse_query_date(require_text(date, "date"))
    min_seconds = gtfs_time_to_seconds(require_text(time, "time"))
    limit = clamp_limit(limit, config.default_limit, config.max_limit)

    active_services = await get_active_service_ids(store, service_date)
    candidates = await store.find_direct_connection_candidates(
        start, end, active_services, min_seconds, limit
    )
    if not candidates:
        await ensure_station_exists(store, start)
        await ensure_station_exists(store, end)

    stops_by_trip = await store.expand_trip_stops(c.trip_id for c in candidates)

    connections: list[Connection] = []
    for candidate in candidates:
        stops = stops_by_trip.get(candidate.trip_id, [])
        travel_seconds = candidate.arrival_seconds - candidate.departure_seconds
        connections.append(
            Connection(
                trip_id=candidate.trip_id,
                route_id=candidate.route_id,
                route_long_name=candidate.route_long_name,
                route_short_name=candidate.route_short_name,
                departure_date=service_date.isoformat(),
                departure_time=candidate.departure_time,
                departure_time_formatted=format_gtfs_time(candidate.departure_time),
                arrival_time=candidate.arrival_time,
                arrival_time_formatted=format_gtfs_time(candidate.arrival_time),
                travel_time=format_duration(travel_seconds),
                travel_minutes=travel_seconds // 60,
                destination=stops[-1].stop_name if stops else None,
                intermediate_stops=intermediate_stop_names(
                    stops, candidate.departure_sequence, candidate.arrival_sequence
                ),
            )
        )

    logger.debug(f"{len(connections)} connections {start} -> {end} on {service_date}")
    return ConnectionsResponse(
        start_station=start,
        end_station=end,
        connections=connections,
        service_date=service_date.isoformat(),
        query_time=seconds_to_gtfs_time(min_seconds),
        count=len(connections),
        message=None if connections else NO_CONNECTIONS_MESSAGE,
    )
