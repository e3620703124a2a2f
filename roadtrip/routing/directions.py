from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Union

from django.conf import settings

import polyline
import requests

from .exceptions import UpstreamErrorKind

logger = logging.getLogger(__name__)

METERS_PER_MILE = 1609.344

_STATUS_KINDS = {
    "ZERO_RESULTS": (UpstreamErrorKind.NO_ROUTE, "No route found between these locations"),
    "NOT_FOUND": (UpstreamErrorKind.NOT_FOUND, "One or both locations not found"),
    "INVALID_REQUEST": (UpstreamErrorKind.INVALID_REQUEST, "Invalid origin or destination"),
}


@dataclass(frozen=True)
class DirectionsRoute:
    polyline: str
    points: list[tuple[float, float]]
    distance_meters: int
    duration_seconds: int
    bounds: dict
    origin_place_id: str = ""
    destination_place_id: str = ""
    raw: dict = field(default_factory=dict, repr=False)

    @property
    def distance_miles(self) -> float:
        return self.distance_meters / METERS_PER_MILE


@dataclass(frozen=True)
class DirectionsFailure:
    kind: UpstreamErrorKind
    message: str


DirectionsResult = Union[DirectionsRoute, DirectionsFailure]


def bounds_for_points(points: list[tuple[float, float]]) -> dict:
    if not points:
        return {}
    lats = [p[0] for p in points]
    lngs = [p[1] for p in points]
    return {
        "northeast": {"lat": max(lats), "lng": max(lngs)},
        "southwest": {"lat": min(lats), "lng": min(lngs)},
    }


class DirectionsClient:
    """Google Directions API. Every call returns a DirectionsResult, never raises for provider failures."""

    def __init__(self, api_key: str | None = None, base_url: str | None = None, timeout: float = 15.0):
        self.api_key = (api_key if api_key is not None else settings.GOOGLE_MAPS_API_KEY).strip()
        self.base_url = base_url or settings.GOOGLE_DIRECTIONS_URL
        self.timeout = timeout

    def get_directions(self, origin: str, destination: str, mode: str = "driving") -> DirectionsResult:
        if not self.api_key:
            logger.error("GOOGLE_MAPS_API_KEY is missing; cannot fetch directions")
            return DirectionsFailure(UpstreamErrorKind.UNAVAILABLE, "Directions provider is not configured")

        params = {
            "origin": origin,
            "destination": destination,
            "mode": mode,
            "key": self.api_key,
        }

        try:
            resp = requests.get(self.base_url, params=params, timeout=self.timeout)
        except requests.Timeout:
            logger.warning("Directions request timed out: %s -> %s", origin, destination)
            return DirectionsFailure(UpstreamErrorKind.TIMEOUT, "Directions request timed out")
        except requests.RequestException as e:
            logger.warning("Directions request failed: %s", e)
            return DirectionsFailure(UpstreamErrorKind.UNAVAILABLE, f"Directions request failed: {e}")

        if resp.status_code >= 400:
            return DirectionsFailure(UpstreamErrorKind.UNAVAILABLE, f"Directions API HTTP error: {resp.status_code}")

        try:
            data = resp.json()
        except ValueError:
            return DirectionsFailure(UpstreamErrorKind.UNAVAILABLE, "Directions API returned invalid JSON")

        return parse_directions_response(data)


def parse_directions_response(data: dict) -> DirectionsResult:
    status = data.get("status")
    if status != "OK":
        kind, message = _STATUS_KINDS.get(status, (UpstreamErrorKind.UNAVAILABLE, f"Directions API error: {status}"))
        return DirectionsFailure(kind, message)

    try:
        route = data["routes"][0]
        legs = route["legs"]
        encoded = route["overview_polyline"]["points"]
    except (KeyError, IndexError, TypeError):
        return DirectionsFailure(UpstreamErrorKind.UNAVAILABLE, "Directions API response is missing route data")

    points = [(float(lat), float(lng)) for lat, lng in polyline.decode(encoded)]
    if not points:
        return DirectionsFailure(UpstreamErrorKind.NO_ROUTE, "Directions API returned an empty route")

    distance = sum((leg.get("distance") or {}).get("value", 0) for leg in legs)
    duration = sum((leg.get("duration") or {}).get("value", 0) for leg in legs)

    bounds = route.get("bounds") or bounds_for_points(points)

    waypoints = data.get("geocoded_waypoints") or []
    origin_place_id = waypoints[0].get("place_id", "") if waypoints else ""
    destination_place_id = waypoints[-1].get("place_id", "") if waypoints else ""

    return DirectionsRoute(
        polyline=encoded,
        points=points,
        distance_meters=int(distance),
        duration_seconds=int(duration),
        bounds=bounds,
        origin_place_id=origin_place_id,
        destination_place_id=destination_place_id,
        raw=data,
    )
