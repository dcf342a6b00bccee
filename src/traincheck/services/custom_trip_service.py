"""Creation of ad-hoc direct trips that the regular query path can see."""

import logging

from traincheck.data.config import TrainCheckConfig, get_config
from traincheck.data.store import TimetableStore
from traincheck.errors import InvalidInputError
from traincheck.matching.normalizers import same_station
from traincheck.models.gtfs import Agency, CalendarException, ExceptionType, Route, Trip
from traincheck.models.responses import CustomTripResult
from traincheck.services.schedule_service import (
    compact_date,
    gtfs_time_to_seconds,
    normalize_date_input,
    require_text,
    seconds_to_gtfs_time,
)

logger = logging.getLogger(__name__)


def custom_trip_id(route_id: str, iso_date: str) -> str:
    """Trip and service id for a custom trip: <route>_<YYYYMMDD>."""
    return f"{route_id}_{compact_date(iso_date)}"


async def create_custom_trip(
    store: TimetableStore,
    route_name: str,
    date: str,
    start_station: str,
    end_station: str,
    departure_time: str,
    arrival_time: str,
    config: TrainCheckConfig | None = None,
) -> CustomTripResult:
    """Create a two-stop trip running on a single date.

    Writes, in order and each committed on its own: the synthetic agency,
    the route, the trip, an ADD calendar exception for the date, and the
    two stop times. A failure stops the sequence; earlier writes stay.

    Args:
        store: Timetable store.
        route_name: Used as both route id and route long name.
        date: Service date, YYYY-MM-DD or YYYYMMDD.
        start_station: Exact name of the departure stop.
        end_station: Exact name of the arrival stop.
        departure_time: HH:MM or HH:MM:SS at start_station.
        arrival_time: HH:MM or HH:MM:SS at end_station.
        config: Optional configuration override.

    Returns:
        CustomTripResult with the created identifiers.

    Raises:
        InvalidInputError: Missing or malformed field, arrival not after
            departure, or identical stations. Nothing is written.
        ConflictError: The route already has a trip on this date.
        NotFoundError: A station name has no matching stop.
    """
    config = config or get_config()

    route_id = require_text(route_name, "route_name")
    iso_date = normalize_date_input(require_text(date, "date"))
    start = require_text(start_station, "start_station")
    end = require_text(end_station, "end_station")
    departure_seconds = gtfs_time_to_seconds(require_text(departure_time, "departure_time"))
    arrival_seconds = gtfs_time_to_seconds(require_text(arrival_time, "arrival_time"))

    if arrival_seconds <= departure_seconds:
        raise InvalidInputError("Arrival time must be later than departure time")
    if same_station(start, end):
        raise InvalidInputError("Start and end station must be different")

    departure = seconds_to_gtfs_time(departure_seconds)
    arrival = seconds_to_gtfs_time(arrival_seconds)
    trip_id = custom_trip_id(route_id, iso_date)
    service_id = trip_id

    await store.upsert_agency(
        Agency(
            agency_id=config.custom_agency_id,
            agency_name=config.custom_agency_name,
            agency_url=config.custom_agency_url,
            agency_timezone=config.custom_agency_timezone,
        )
    )
    logger.debug(f"Custom trip {trip_id}: agency {config.custom_agency_id} ensured")

    await store.upsert_route(
        Route(
            route_id=route_id,
            agency_id=config.custom_agency_id,
            route_short_name=config.custom_route_short_name,
            route_long_name=route_id,
            route_type=config.custom_route_type,
        )
    )
    logger.debug(f"Custom trip {trip_id}: route {route_id} ensured")

    await store.insert_trip(Trip(trip_id=trip_id, route_id=route_id, service_id=service_id))
    logger.debug(f"Custom trip {trip_id}: trip inserted")

    await store.upsert_calendar_exception(
        CalendarException(service_id=service_id, date=iso_date, exception_type=ExceptionType.ADDED)
    )
    logger.debug(f"Custom trip {trip_id}: service added on {iso_date}")

    start_stop_id = await store.resolve_stop_id_by_name(start)
    end_stop_id = await store.resolve_stop_id_by_name(end)
    await store.insert_stop_time_pair(trip_id, start_stop_id, end_stop_id, departure, arrival)
    logger.debug(f"Custom trip {trip_id}: stop times {start_stop_id} -> {end_stop_id} inserted")

    logger.info(f"Created custom trip {trip_id} ({start} {departure} -> {end} {arrival})")
    return CustomTripResult(
        route_id=route_id,
        route_long_name=route_id,
        trip_id=trip_id,
        service_id=service_id,
        date=iso_date,
        start_stop_id=start_stop_id,
        end_stop_id=end_stop_id,
        departure_time=departure,
        arrival_time=arrival,
    )
