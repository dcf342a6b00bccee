"""Station name normalization and fuzzy suggestions."""

from traincheck.matching.normalizers import (
    normalize_station_name,
    normalize_text,
    remove_accents,
    same_station,
)
from traincheck.matching.station_matcher import rank_stations, score_station

__all__ = [
    # Matchers
    "rank_stations",
    "score_station",
    # Normalizers
    "normalize_station_name",
    "normalize_text",
    "remove_accents",
    "same_station",
]
