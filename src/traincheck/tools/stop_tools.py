"""MCP tools for looking up station names."""

from traincheck.app import mcp
from traincheck.data.database import open_store
from traincheck.errors import TimetableError
from traincheck.models.responses import StopNamesResponse, SuggestStationsResponse
from traincheck.services.stop_service import get_all_stop_names as _get_all_stop_names
from traincheck.services.stop_service import suggest_stations as _suggest_stations


@mcp.tool()
async def get_all_stop_names() -> StopNamesResponse:
    """List every station name, alphabetically.

    Names are returned exactly as the other tools expect them.
    """
    try:
        async with open_store() as store:
            return await _get_all_stop_names(store)
    except TimetableError as e:
        return StopNamesResponse(success=False, error=e.to_detail())


@mcp.tool()
async def suggest_stations(query: str, limit: int = 5) -> SuggestStationsResponse:
    """Suggest station names matching a partial or misspelled query.

    Accents, letter case and common abbreviations are ignored, so
    "krakow gl" finds "Kraków Główny".

    Args:
        query: Free-text station name.
        limit: Maximum number of suggestions (default 5, max 20).

    Returns:
        SuggestStationsResponse with names and match scores (0-100).
    """
    # Validate limit
    if limit < 1:
        limit = 1
    elif limit > 20:
        limit = 20

    try:
        async with open_store() as store:
            return await _suggest_stations(store, query, limit)
    except TimetableError as e:
        return SuggestStationsResponse(query=query or "", success=False, error=e.to_detail())
