"""
Address geocoding through OpenStreetMap Nominatim (via geopy).

Nominatim's usage policy allows at most one request per second from a
single, identified client. This module only performs single lookups; the
pacing of batch runs lives with the caller (see TripPlanner.geocode_missing).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Union

from django.conf import settings

from geopy.exc import GeocoderServiceError, GeocoderTimedOut, GeopyError
from geopy.geocoders import Nominatim

from roadtrip.routing.exceptions import UpstreamErrorKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GeocodeMatch:
    latitude: float
    longitude: float
    display_name: str = ""


@dataclass(frozen=True)
class GeocodeFailure:
    kind: UpstreamErrorKind
    message: str


GeocodeResult = Union[GeocodeMatch, GeocodeFailure]


def build_geocode_query(restaurant) -> str:
    """
    Prefer the full street address; otherwise build "city, state, zip[, country]".

    Country is only appended for non-US entries.
    """
    if restaurant.address and restaurant.address.strip():
        parts = [restaurant.address.strip()]
        for extra in (restaurant.city, restaurant.state):
            if extra and extra.strip() and extra.strip().lower() not in parts[0].lower():
                parts.append(extra.strip())
        return ", ".join(parts)

    parts = [p.strip() for p in (restaurant.city, restaurant.state, restaurant.zip_code) if p and p.strip()]
    if restaurant.country and restaurant.country != "US":
        parts.append(restaurant.country)
    return ", ".join(parts)


class NominatimGeocoder:

    def __init__(self, user_agent: str | None = None, timeout: float = 10.0, geolocator=None):
        self.timeout = timeout
        self.geolocator = geolocator or Nominatim(
            user_agent=user_agent or settings.NOMINATIM_USER_AGENT,
            timeout=timeout,
        )

    def geocode(self, query: str) -> GeocodeResult:
        query = (query or "").strip()
        if not query:
            return GeocodeFailure(UpstreamErrorKind.INVALID_REQUEST, "No address data to geocode")

        try:
            location = self.geolocator.geocode(query, exactly_one=True)
        except GeocoderTimedOut:
            return GeocodeFailure(UpstreamErrorKind.TIMEOUT, f"Geocoder timed out for: {query}")
        except GeocoderServiceError as e:
            return GeocodeFailure(UpstreamErrorKind.UNAVAILABLE, f"Geocoder service error: {e}")
        except GeopyError as e:
            return GeocodeFailure(UpstreamErrorKind.UNAVAILABLE, f"Geocoder error: {e}")

        if not location:
            return GeocodeFailure(UpstreamErrorKind.NOT_FOUND, f"No results found for: {query}")

        return GeocodeMatch(
            latitude=float(location.latitude),
            longitude=float(location.longitude),
            display_name=getattr(location, "address", "") or "",
        )
