"""Tests for station listing and suggestions."""

import pytest

from traincheck.data.store import TimetableStore
from traincheck.errors import InvalidInputError, NotFoundError
from traincheck.services.stop_service import (
    ensure_station_exists,
    get_all_stop_names,
    suggest_stations,
)


class TestGetAllStopNames:
    async def test_distinct_sorted(self, store: TimetableStore) -> None:
        response = await get_all_stop_names(store)

        assert response.names == [
            "Bochnia",
            "Kraków Główny",
            "Skawina",
            "Tarnów",
            "Wieliczka Rynek-Kopalnia",
        ]
        assert response.count == 5


class TestSuggestStations:
    async def test_unaccented_prefix(self, store: TimetableStore) -> None:
        response = await suggest_stations(store, "krakow")

        assert response.query == "krakow"
        assert response.suggestions[0].stop_name == "Kraków Główny"

    async def test_abbreviation(self, store: TimetableStore) -> None:
        response = await suggest_stations(store, "Kraków Gł.")
        assert response.suggestions[0].stop_name == "Kraków Główny"
        assert response.suggestions[0].score == 100.0

    async def test_typo(self, store: TimetableStore) -> None:
        response = await suggest_stations(store, "Tarnow")
        assert response.suggestions[0].stop_name == "Tarnów"

    async def test_limit(self, store: TimetableStore) -> None:
        response = await suggest_stations(store, "a", limit=1)
        assert len(response.suggestions) <= 1

    async def test_blank_query(self, store: TimetableStore) -> None:
        with pytest.raises(InvalidInputError):
            await suggest_stations(store, " ")


class TestEnsureStationExists:
    async def test_existing(self, store: TimetableStore) -> None:
        await ensure_station_exists(store, "Bochnia")

    async def test_missing_with_suggestion(self, store: TimetableStore) -> None:
        with pytest.raises(NotFoundError, match="Did you mean: Skawina"):
            await ensure_station_exists(store, "Skawna")

    async def test_missing_without_suggestion(self, store: TimetableStore) -> None:
        with pytest.raises(NotFoundError) as exc_info:
            await ensure_station_exists(store, "Zzzzzz")
        assert exc_info.value.message == "Station not found: Zzzzzz"
