"""
City gazetteer.

Reference list of known cities used by the resolver. Loaded once from a
bundled JSON file (or the file named by the ``CITIES_DATA_PATH`` setting)
and never mutated afterwards.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from django.conf import settings

logger = logging.getLogger(__name__)

DEFAULT_DATA_PATH = Path(__file__).parent / "data" / "cities.json"


@dataclass(frozen=True)
class City:
    name: str
    region: str
    population: int = 0

    @property
    def label(self) -> str:
        return f"{self.name}, {self.region}"


def load_cities_from_file(path: str | Path) -> tuple[City, ...]:
    with open(path, "r", encoding="utf-8") as f:
        rows = json.load(f)

    cities = []
    for row in rows:
        name = (row.get("city") or "").strip()
        region = (row.get("state") or "").strip().upper()
        if not name or not region:
            continue
        cities.append(City(name=name, region=region, population=int(row.get("population") or 0)))

    logger.debug("Loaded %d cities from %s", len(cities), path)
    return tuple(cities)


@lru_cache(maxsize=1)
def load_cities() -> tuple[City, ...]:
    """Return the configured gazetteer (cached for the life of the process)."""
    path = getattr(settings, "CITIES_DATA_PATH", None) or DEFAULT_DATA_PATH
    return load_cities_from_file(path)
