"""Fuzzy ranking of station names.

Queries match stop names exactly; this module only powers suggestions
(autocomplete and "did you mean" hints on unknown stations).
"""

from rapidfuzz import fuzz

from traincheck.matching.normalizers import get_meaningful_tokens, normalize_text
from traincheck.models.responses import StationSuggestion

DEFAULT_MIN_SCORE = 60.0

# Bonus when the normalized name starts with the normalized query
PREFIX_BONUS = 10.0


def score_station(query: str, stop_name: str) -> float:
    """Score how well a stop name matches a query (0-100).

    Blends token_set_ratio (word order) with partial_ratio (substrings),
    then adjusts by how many meaningful query tokens the name covers.
    """
    query_normalized = normalize_text(query)
    target_normalized = normalize_text(stop_name)
    if not query_normalized or not target_normalized:
        return 0.0
    if query_normalized == target_normalized:
        return 100.0

    token_score = fuzz.token_set_ratio(query_normalized, target_normalized)
    partial_score = fuzz.partial_ratio(query_normalized, target_normalized)
    score = token_score * 0.7 + partial_score * 0.3

    query_tokens = get_meaningful_tokens(query)
    target_tokens = get_meaningful_tokens(stop_name)
    if query_tokens and target_tokens:
        coverage = len(query_tokens & target_tokens) / len(query_tokens)
        score = score * 0.8 + (coverage * 100) * 0.2

    if target_normalized.startswith(query_normalized):
        score += PREFIX_BONUS

    return min(99.0, score)


def rank_stations(
    query: str,
    stop_names: list[str],
    limit: int = 5,
    min_score: float = DEFAULT_MIN_SCORE,
) -> list[StationSuggestion]:
    """Rank stop names against a query, best first.

    Args:
        query: Free-text station query.
        stop_names: Candidate names (e.g. every distinct stop name).
        limit: Maximum number of suggestions.
        min_score: Minimum score 0-100 to be included.

    Returns:
        Suggestions ordered by descending score, then name.
    """
    scored = [
        StationSuggestion(stop_name=name, score=round(score, 1))
        for name in dict.fromkeys(stop_names)
        if (score := score_station(query, name)) >= min_score
    ]
    scored.sort(key=lambda s: (-s.score, s.stop_name))
    return scored[:limit]
