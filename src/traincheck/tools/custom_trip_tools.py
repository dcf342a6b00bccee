"""MCP tool for creating ad-hoc direct trips."""

from traincheck.app import mcp
from traincheck.data.database import open_store
from traincheck.errors import TimetableError
from traincheck.models.responses import CreateCustomTripResponse
from traincheck.services.custom_trip_service import create_custom_trip as _create_custom_trip


@mcp.tool()
async def create_custom_trip(
    route_name: str,
    date: str,
    start_station: str,
    end_station: str,
    departure_time: str,
    arrival_time: str,
) -> CreateCustomTripResponse:
    """Add a one-off direct train between two stations on a single date.

    The trip shows up in departures, arrivals and connections for that
    date. Creating the same route on the same date twice is a conflict.

    Examples:
        create_custom_trip(
            route_name="R1", date="2025-01-10",
            start_station="Kraków Główny", end_station="Tarnów",
            departure_time="10:00", arrival_time="11:05",
        )

    Args:
        route_name: Route identifier, also used as its display name.
        date: Service date as YYYY-MM-DD or YYYYMMDD.
        start_station: Exact departure station name.
        end_station: Exact arrival station name.
        departure_time: HH:MM or HH:MM:SS.
        arrival_time: HH:MM or HH:MM:SS, later than departure_time.

    Returns:
        CreateCustomTripResponse with the created trip's identifiers.
    """
    try:
        async with open_store() as store:
            trip = await _create_custom_trip(
                store,
                route_name=route_name,
                date=date,
                start_station=start_station,
                end_station=end_station,
                departure_time=departure_time,
                arrival_time=arrival_time,
            )
    except TimetableError as e:
        return CreateCustomTripResponse(success=False, error=e.to_detail())

    return CreateCustomTripResponse(trip=trip, message=f"Created trip {trip.trip_id}")
