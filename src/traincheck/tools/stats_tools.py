"""MCP tools for timetable usage statistics."""

from traincheck.app import mcp
from traincheck.data.database import open_store
from traincheck.errors import TimetableError
from traincheck.models.responses import (
    AgencyActivityResponse,
    RouteTripCountsResponse,
    TopStopsResponse,
)
from traincheck.services.stats_service import get_agency_activity as _get_agency_activity
from traincheck.services.stats_service import get_route_trip_counts as _get_route_trip_counts
from traincheck.services.stats_service import get_top_stops as _get_top_stops


@mcp.tool()
async def get_top_stops(limit: int = 10) -> TopStopsResponse:
    """Get the busiest stations by number of scheduled calls.

    Args:
        limit: Number of stations (default 10, max 100).
    """
    # Validate limit
    if limit < 1:
        limit = 1
    elif limit > 100:
        limit = 100

    try:
        async with open_store() as store:
            return await _get_top_stops(store, limit)
    except TimetableError as e:
        return TopStopsResponse(success=False, error=e.to_detail())


@mcp.tool()
async def get_agency_activity() -> AgencyActivityResponse:
    """Get the number of trips operated by each agency, busiest first."""
    try:
        async with open_store() as store:
            return await _get_agency_activity(store)
    except TimetableError as e:
        return AgencyActivityResponse(success=False, error=e.to_detail())


@mcp.tool()
async def get_route_trip_counts() -> RouteTripCountsResponse:
    """Get the number of trips on each route, busiest first."""
    try:
        async with open_store() as store:
            return await _get_route_trip_counts(store)
    except TimetableError as e:
        return RouteTripCountsResponse(success=False, error=e.to_detail())
