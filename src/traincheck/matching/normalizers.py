import re
import unicodedata
from functools import lru_cache

# Characters NFD does not decompose
EXTRA_TRANSLITERATIONS = str.maketrans({"ł": "l", "Ł": "L", "ß": "ss"})

# Generic tokens to ignore when comparing station names
GENERIC_TOKENS = frozenset({
    "stacja", "przystanek", "station", "dworzec", "pkp", "gl", "glowny",
})

# Common abbreviations on Polish timetables (lowercase -> expanded)
ABBREVIATIONS: dict[str, str] = {
    "gł.": "główny",
    "gl.": "glowny",
    "pl.": "plac",
    "os.": "osiedle",
    "ul.": "ulica",
}


def normalize_station_name(name: str | None) -> str:
    """Key used to decide whether two station names denote the same station.

    Only trims and casefolds; no fuzzy rewriting.

    Example: "  Kraków Główny " -> "kraków główny"
    """
    return str(name or "").strip().casefold()


def same_station(a: str | None, b: str | None) -> bool:
    """Case-insensitive equality of two station names."""
    return normalize_station_name(a) == normalize_station_name(b)


@lru_cache(maxsize=4096)
def remove_accents(text: str) -> str:
    """Remove accents from text.

    Example: "Kraków Łobzów" -> "Krakow Lobzow"
    """
    # Normalize to NFD (decomposes accented characters)
    normalized = unicodedata.normalize("NFD", text.translate(EXTRA_TRANSLITERATIONS))
    # Remove combining diacritical marks
    return "".join(c for c in normalized if unicodedata.category(c) != "Mn")


@lru_cache(maxsize=4096)
def normalize_text(text: str) -> str:
    """Normalize text for fuzzy matching.

    - Converts to lowercase
    - Expands abbreviations
    - Removes accents
    - Normalizes whitespace and dashes

    Example: "Kraków Gł." -> "krakow glowny"
    """
    result = text.lower().strip()

    for abbrev, expanded in ABBREVIATIONS.items():
        result = result.replace(abbrev, expanded)

    result = remove_accents(result)
    result = re.sub(r"\s*-\s*", "-", result)

    # Normalize whitespace
    return " ".join(result.split())


def get_meaningful_tokens(text: str) -> set[str]:
    """Extract tokens from normalized text, excluding generic/noise words.

    Example: "Kraków Główny" -> {"krakow"}
    """
    normalized = normalize_text(text)
    raw_tokens = re.split(r"[\s/\-]+", normalized)
    return {t for t in raw_tokens if t and len(t) > 1 and t not in GENERIC_TOKENS}
