"""MCP tools for departure boards, arrival boards and direct connections."""

from traincheck.app import mcp
from traincheck.data.database import open_store
from traincheck.errors import TimetableError
from traincheck.models.responses import (
    ArrivalsResponse,
    ConnectionsResponse,
    DeparturesResponse,
)
from traincheck.services.timetable_service import (
    get_direct_connections as _get_direct_connections,
)
from traincheck.services.timetable_service import (
    get_next_arrivals as _get_next_arrivals,
)
from traincheck.services.timetable_service import (
    get_next_departures as _get_next_departures,
)


@mcp.tool()
async def get_next_departures(
    station_name: str,
    date: str,
    time: str,
    limit: int = 10,
) -> DeparturesResponse:
    """Get the next trains leaving a station.

    Only trips running on the given date are listed (weekly calendar plus
    dated additions and cancellations). A train whose last stop is the
    station itself is never listed.

    Examples:
        get_next_departures(station_name="Kraków Główny", date="2025-01-10", time="08:00")
        get_next_departures(station_name="Tarnów", date="20250110", time="23:30:00")

    Args:
        station_name: Exact station name, case-sensitive. Use suggest_stations()
                      or get_all_stop_names() to find it.
        date: Service date as YYYY-MM-DD or YYYYMMDD.
        time: Earliest departure as HH:MM or HH:MM:SS.
              Hours past 24 address trains running after midnight.
        limit: Maximum number of departures (default 10, max 50).

    Returns:
        DeparturesResponse with departures ordered by time, each with its
        destination and the stops in between. On failure success is False
        and error carries kind, message and status_code.
    """
    # Validate limit
    if limit < 1:
        limit = 1
    elif limit > 50:
        limit = 50

    try:
        async with open_store() as store:
            return await _get_next_departures(store, station_name, date, time, limit)
    except TimetableError as e:
        return DeparturesResponse(station=station_name or "", success=False, error=e.to_detail())


@mcp.tool()
async def get_next_arrivals(
    station_name: str,
    date: str,
    time: str,
    limit: int = 10,
) -> ArrivalsResponse:
    """Get the next trains reaching a station.

    Mirror of get_next_departures keyed on arrival time. Each arrival
    reports where the train started and the stops in between.

    Args:
        station_name: Exact station name, case-sensitive.
        date: Service date as YYYY-MM-DD or YYYYMMDD.
        time: Earliest arrival as HH:MM or HH:MM:SS.
        limit: Maximum number of arrivals (default 10, max 50).

    Returns:
        ArrivalsResponse with arrivals ordered by time.
    """
    # Validate limit
    if limit < 1:
        limit = 1
    elif limit > 50:
        limit = 50

    try:
        async with open_store() as store:
            return await _get_next_arrivals(store, station_name, date, time, limit)
    except TimetableError as e:
        return ArrivalsResponse(station=station_name or "", success=False, error=e.to_detail())


@mcp.tool()
async def get_direct_connections(
    start_station: str,
    end_station: str,
    date: str,
    time: str,
    limit: int = 10,
) -> ConnectionsResponse:
    """Find trains going from one station to another without a change.

    A train qualifies only when it calls at start_station before
    end_station on the same trip.

    Examples:
        get_direct_connections(
            start_station="Kraków Główny", end_station="Tarnów",
            date="2025-01-10", time="07:30",
        )

    Args:
        start_station: Exact boarding station name.
        end_station: Exact alighting station name (must differ from start).
        date: Service date as YYYY-MM-DD or YYYYMMDD.
        time: Earliest departure from start_station as HH:MM or HH:MM:SS.
        limit: Maximum number of connections (default 10, max 50).

    Returns:
        ConnectionsResponse with connections ordered by departure, each with
        arrival time, travel time and intermediate stops. When nothing is
        found, message explains it.
    """
    # Validate limit
    if limit < 1:
        limit = 1
    elif limit > 50:
        limit = 50

    try:
        async with open_store() as store:
            return await _get_direct_connections(
                store, start_station, end_station, date, time, limit
            )
    except TimetableError as e:
        return ConnectionsResponse(
            start_station=start_station or "",
            end_station=end_station or "",
            success=False,
            error=e.to_detail(),
        )
