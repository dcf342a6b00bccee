"""Station name listing, suggestions and existence checks."""

from traincheck.data.store import TimetableStore
from traincheck.errors import NotFoundError
from traincheck.matching.station_matcher import rank_stations
from traincheck.models.responses import StopNamesResponse, SuggestStationsResponse
from traincheck.services.schedule_service import clamp_limit, require_text

MAX_SUGGESTIONS = 20
NOT_FOUND_SUGGESTIONS = 3


async def get_all_stop_names(store: TimetableStore) -> StopNamesResponse:
    """Get every distinct stop name in ascending order."""
    names = await store.get_all_stop_names()
    return StopNamesResponse(names=names, count=len(names))


async def suggest_stations(
    store: TimetableStore,
    query: str,
    limit: int = 5,
) -> SuggestStationsResponse:
    """Suggest station names close to a free-text query.

    Args:
        store: Timetable store.
        query: Partial or misspelled station name.
        limit: Maximum number of suggestions (1-20).

    Returns:
        SuggestStationsResponse ordered by descending score.
    """
    text = require_text(query, "query")
    limit = clamp_limit(limit, 5, MAX_SUGGESTIONS)
    names = await store.get_all_stop_names()
    return SuggestStationsResponse(query=text, suggestions=rank_stations(text, names, limit=limit))


async def ensure_station_exists(store: TimetableStore, station_name: str) -> None:
    """Raise NotFoundError with close matches when no stop has this exact name."""
    if await store.station_exists(station_name):
        return

    names = await store.get_all_stop_names()
    suggestions = rank_stations(station_name, names, limit=NOT_FOUND_SUGGESTIONS)
    message = f"Station not found: {station_name}"
    if suggestions:
        message += ". Did you mean: " + ", ".join(s.stop_name for s in suggestions) + "?"
    raise NotFoundError(message)
