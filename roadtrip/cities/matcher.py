"""
Fuzzy city matching for the trip planner.

Ranks gazetteer cities against free-text input such as "san fran",
"Portland, OR" or "sacrmento". Well-known short codes ("NYC", "YVR")
are expanded through a fixed table instead of being scored.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable

from .gazetteer import City

EXACT_MATCH = 1.0
STARTS_WITH = 0.9
CONTAINS = 0.7
FUZZY_POSITION_WEIGHT = 0.5
REGION_MATCH_BOOST = 0.3
POPULATION_CAP = 20_000_000
POPULATION_BOOST_WEIGHT = 0.05
MINIMUM_SCORE = 0.3
MAX_REPORTED_SCORE = 1.0

# Control characters other than whitespace; tabs and newlines are collapsed instead
_UNSAFE_CHARS = re.compile(r"[<>\"`\\\x00-\x08\x0e-\x1f\x7f]")
_WHITESPACE = re.compile(r"\s+")

CITY_ABBREVIATIONS: dict[str, str] = {
    # Major US metros
    "NYC": "New York, NY",
    "LA": "Los Angeles, CA",
    "SF": "San Francisco, CA",
    "SD": "San Diego, CA",
    "DC": "Washington, DC",
    "CHI": "Chicago, IL",
    "BOS": "Boston, MA",
    "ATL": "Atlanta, GA",
    "MIA": "Miami, FL",
    "SEA": "Seattle, WA",
    "PHX": "Phoenix, AZ",
    "DEN": "Denver, CO",
    "PDX": "Portland, OR",
    "LV": "Las Vegas, NV",
    "VEGAS": "Las Vegas, NV",
    "NOLA": "New Orleans, LA",
    "PHILLY": "Philadelphia, PA",
    # Texas
    "DFW": "Dallas, TX",
    "HOU": "Houston, TX",
    "SA": "San Antonio, TX",
    "ATX": "Austin, TX",
    # Canada (airport codes)
    "YYZ": "Toronto, ON",
    "YVR": "Vancouver, BC",
    "YUL": "Montreal, QC",
    "YYC": "Calgary, AB",
    "YEG": "Edmonton, AB",
    "YOW": "Ottawa, ON",
    "YWG": "Winnipeg, MB",
    "YHZ": "Halifax, NS",
    "YQB": "Quebec City, QC",
}


@dataclass(frozen=True)
class LocationQuery:
    term: str
    region: str | None = None


@dataclass(frozen=True)
class CityMatch:
    city: City
    score: float


def sanitize_input(text: str) -> str:
    cleaned = _UNSAFE_CHARS.sub("", text or "")
    return _WHITESPACE.sub(" ", cleaned).strip()


def parse_input(text: str) -> LocationQuery:
    """
    Split input into a city term and optional region code.

    "San Francisco"     -> LocationQuery("San Francisco", None)
    "San Francisco, ca" -> LocationQuery("San Francisco", "CA")
    """
    sanitized = sanitize_input(text)
    if "," not in sanitized:
        return LocationQuery(term=sanitized)

    parts = [sanitize_input(p) for p in sanitized.split(",")]
    region = parts[1].upper() if len(parts) > 1 and parts[1] else None
    return LocationQuery(term=parts[0], region=region)


def fuzzy_score(term: str, candidate: str) -> float:
    term_lower = term.lower()
    candidate_lower = candidate.lower()

    if not term_lower:
        return 0.0
    if term_lower == candidate_lower:
        return EXACT_MATCH
    if candidate_lower.startswith(term_lower):
        return STARTS_WITH
    if term_lower in candidate_lower:
        return CONTAINS

    # Subsequence walk; earlier matches in the candidate weigh more
    score = 0.0
    matched = 0
    length = len(candidate_lower)
    for i, ch in enumerate(candidate_lower):
        if matched == len(term_lower):
            break
        if ch == term_lower[matched]:
            score += (1.0 - i / length) * FUZZY_POSITION_WEIGHT
            matched += 1

    if matched == len(term_lower):
        return score / len(term_lower)
    return 0.0


def population_boost(population: int) -> float:
    if population <= 0:
        return 0.0
    return min(population, POPULATION_CAP) / POPULATION_CAP * POPULATION_BOOST_WEIGHT


def score_city(query: LocationQuery, city: City) -> float:
    score = fuzzy_score(query.term, city.name)
    if query.region and city.region == query.region:
        score += REGION_MATCH_BOOST
    return score + population_boost(city.population)


def match_cities(text: str, cities: Iterable[City], max_results: int = 10) -> list[CityMatch]:
    """Return up to ``max_results`` cities ranked by relevance to ``text``."""
    if not text or not text.strip():
        return []

    query = parse_input(text)
    if not query.term:
        return []

    scored = [(score_city(query, city), city) for city in cities]
    scored = [item for item in scored if item[0] > MINIMUM_SCORE]
    scored.sort(key=lambda item: item[0], reverse=True)

    return [CityMatch(city=city, score=min(raw, MAX_REPORTED_SCORE)) for raw, city in scored[:max_results]]


def expand_abbreviation(text: str) -> str | None:
    return CITY_ABBREVIATIONS.get(sanitize_input(text).upper())


def format_city(city: City) -> str:
    return f"{city.name}, {city.region}"
