from __future__ import annotations

from math import cos, radians

from django.db.models import F, Q, QuerySet
from django.utils import timezone

from roadtrip.restaurants.models import Restaurant

MILES_PER_DEGREE_LAT = 69.0934


def padded_bounds(bounds: dict, pad_miles: float) -> tuple[float, float, float, float] | None:
    """Return (south, west, north, east) grown by ``pad_miles`` on every side."""
    if not bounds:
        return None

    ne = bounds["northeast"]
    sw = bounds["southwest"]

    lat_pad = pad_miles / MILES_PER_DEGREE_LAT
    widest_lat = min(89.0, max(abs(ne["lat"]), abs(sw["lat"])) + lat_pad)
    lng_pad = pad_miles / (MILES_PER_DEGREE_LAT * cos(radians(widest_lat)))

    return (sw["lat"] - lat_pad, sw["lng"] - lng_pad, ne["lat"] + lat_pad, ne["lng"] + lng_pad)


def restaurants_within_bounds(bounds: dict, pad_miles: float) -> list[Restaurant]:

    box = padded_bounds(bounds, pad_miles)
    if box is None:
        return []

    south, west, north, east = box

    return list(
        Restaurant.objects.filter(
            is_public=True,
            latitude__isnull=False,
            longitude__isnull=False,
            latitude__gte=south,
            latitude__lte=north,
            longitude__gte=west,
            longitude__lte=east,
        )
    )


def restaurants_missing_coordinates(
    *,
    state: str | None = None,
    retry_failed: bool = False,
    max_attempts: int = 3,
    limit: int | None = None,
) -> QuerySet:

    qs = Restaurant.objects.filter(status="open").filter(Q(latitude__isnull=True) | Q(longitude__isnull=True))

    if retry_failed:
        qs = qs.filter(geocode_status="failed", geocode_attempts__lt=max_attempts)
    else:
        qs = qs.filter(geocode_status="pending")

    if state:
        qs = qs.filter(state=state.upper())

    qs = qs.order_by("state", "city", "id")

    if limit:
        qs = qs[:limit]

    return qs


def update_coordinates(restaurant_id: int, lat: float, lng: float) -> int:
    return Restaurant.objects.filter(pk=restaurant_id).update(
        latitude=lat,
        longitude=lng,
        geocode_status="success",
        geocode_last_error=None,
        geocode_attempts=F("geocode_attempts") + 1,
        geocoded_at=timezone.now(),
    )


def record_geocode_failure(restaurant_id: int, error: str) -> int:
    return Restaurant.objects.filter(pk=restaurant_id).update(
        geocode_status="failed",
        geocode_last_error=error,
        geocode_attempts=F("geocode_attempts") + 1,
    )
