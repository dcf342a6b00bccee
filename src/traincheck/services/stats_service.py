"""Read-only usage statistics over the loaded timetable."""

from traincheck.data.config import TrainCheckConfig, get_config
from traincheck.data.store import TimetableStore
from traincheck.models.responses import (
    AgencyActivityResponse,
    RouteTripCountsResponse,
    TopStopsResponse,
)
from traincheck.services.schedule_service import clamp_limit


async def get_top_stops(
    store: TimetableStore,
    limit: int | None = None,
    config: TrainCheckConfig | None = None,
) -> TopStopsResponse:
    """Get stops ranked by how many stop times reference them.

    Args:
        store: Timetable store.
        limit: Number of stops (default 10, max 100).
        config: Optional configuration override.
    """
    config = config or get_config()
    limit = clamp_limit(limit, config.default_limit, config.max_stats_limit)
    stops = await store.get_top_stops(limit)
    return TopStopsResponse(stops=stops, count=len(stops))


async def get_agency_activity(store: TimetableStore) -> AgencyActivityResponse:
    agencies = await store.get_agency_activity()
    return AgencyActivityResponse(agencies=agencies, count=len(agencies))


async def get_route_trip_counts(store: TimetableStore) -> RouteTripCountsResponse:
    routes = await store.get_route_trip_counts()
    return RouteTripCountsResponse(routes=routes, count=len(routes))
