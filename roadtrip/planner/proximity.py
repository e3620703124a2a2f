"""
Corridor matching: which catalog entries lie within N miles of a route.

The route polyline is downsampled to at most MAX_SAMPLED_POINTS vertices
and each entry is measured against the segments between consecutive
samples. Cost is O(entries x segments); callers prefilter the catalog
with the route's padded bounding box (restaurants_within_bounds). If the
catalog grows well past a few thousand rows, a grid index over the
segments belongs in _nearest_on_route.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from math import asin, cos, radians, sin, sqrt
from typing import Any, Iterable, Sequence

EARTH_RADIUS_MILES = 3958.7613
MILES_PER_DEGREE = 2 * math.pi * EARTH_RADIUS_MILES / 360

RADIUS_TIERS_MILES = (5, 10, 15, 20, 25)
DEFAULT_RADIUS_MILES = 15
MAX_SAMPLED_POINTS = 500
MAX_MATCHES = 200


@dataclass(frozen=True)
class Waypoint:
    lat: float
    lng: float
    cumulative_miles: float


@dataclass(frozen=True)
class ProximityMatch:
    restaurant_id: Any
    distance_miles: float
    within_radius: bool
    route_position: float = 0.0
    entry: Any = field(default=None, repr=False, compare=False)


def haversine_miles(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    dlat = radians(lat2 - lat1)
    dlon = radians(lon2 - lon1)
    a = sin(dlat / 2) ** 2 + cos(radians(lat1)) * cos(radians(lat2)) * sin(dlon / 2) ** 2
    return 2 * EARTH_RADIUS_MILES * asin(sqrt(min(1.0, a)))


def clamp_radius(value) -> int:
    """
    Snap a requested radius onto the nearest allowed tier.

    None gives the default tier; ties go to the smaller tier (12.5 -> 10).
    Negative or non-numeric input raises ValueError.
    """
    if value is None:
        return DEFAULT_RADIUS_MILES
    if isinstance(value, bool):
        raise ValueError("Radius must be a number of miles")
    try:
        miles = float(value)
    except (TypeError, ValueError):
        raise ValueError("Radius must be a number of miles")
    if not math.isfinite(miles) or miles < 0:
        raise ValueError("Radius must be a non-negative number of miles")

    return min(RADIUS_TIERS_MILES, key=lambda tier: (abs(tier - miles), tier))


def build_waypoints(points: Sequence[tuple[float, float]], max_points: int = MAX_SAMPLED_POINTS) -> list[Waypoint]:
    """
    Keep every Kth vertex (plus first and last) so at most ``max_points`` remain.

    cumulative_miles is measured along the full polyline, not the samples.
    """
    if not points:
        return []

    max_points = max(2, max_points)
    step = 1
    if len(points) > max_points:
        step = math.ceil((len(points) - 1) / (max_points - 1))

    lat0, lng0 = points[0]
    waypoints = [Waypoint(lat=lat0, lng=lng0, cumulative_miles=0.0)]

    cum = 0.0
    prev_lat, prev_lng = lat0, lng0
    last = len(points) - 1

    for i in range(1, len(points)):
        lat, lng = points[i]
        cum += haversine_miles(prev_lat, prev_lng, lat, lng)
        if i % step == 0 or i == last:
            waypoints.append(Waypoint(lat=lat, lng=lng, cumulative_miles=cum))
        prev_lat, prev_lng = lat, lng

    return waypoints


def _segment_boxes(waypoints: list[Waypoint], radius_miles: float):
    pairs = list(zip(waypoints, waypoints[1:])) or [(waypoints[0], waypoints[0])]

    widest_lat = max(abs(w.lat) for w in waypoints)
    lat_pad = radius_miles / MILES_PER_DEGREE
    lng_pad = radius_miles / (MILES_PER_DEGREE * max(cos(radians(min(89.0, widest_lat + lat_pad))), 1e-6))

    boxes = []
    for a, b in pairs:
        boxes.append(
            (
                min(a.lat, b.lat) - lat_pad,
                max(a.lat, b.lat) + lat_pad,
                min(a.lng, b.lng) - lng_pad,
                max(a.lng, b.lng) + lng_pad,
                a,
                b,
            )
        )
    return boxes


def _distance_to_segment(lat: float, lng: float, a: Waypoint, b: Waypoint) -> tuple[float, float]:
    # Project onto a local equirectangular plane centred on the entry
    kx = MILES_PER_DEGREE * cos(radians(lat))
    ky = MILES_PER_DEGREE

    ax = (a.lng - lng) * kx
    ay = (a.lat - lat) * ky
    dx = (b.lng - a.lng) * kx
    dy = (b.lat - a.lat) * ky

    seg2 = dx * dx + dy * dy
    t = 0.0 if seg2 == 0 else max(0.0, min(1.0, -(ax * dx + ay * dy) / seg2))

    near_lat = a.lat + t * (b.lat - a.lat)
    near_lng = a.lng + t * (b.lng - a.lng)
    return haversine_miles(lat, lng, near_lat, near_lng), t


def _nearest_on_route(lat: float, lng: float, boxes) -> tuple[float, float] | None:
    best: tuple[float, float] | None = None

    for south, north, west, east, a, b in boxes:
        if lat < south or lat > north or lng < west or lng > east:
            continue
        distance, t = _distance_to_segment(lat, lng, a, b)
        if best is None or distance < best[0]:
            along = a.cumulative_miles + t * (b.cumulative_miles - a.cumulative_miles)
            best = (distance, along)

    return best


def _rank_key(match: ProximityMatch):
    rating = getattr(match.entry, "rating", None)
    return (
        match.distance_miles,
        rating is None,
        -(rating or 0.0),
        match.restaurant_id,
    )


def find_near(route, catalog: Iterable[Any], radius_miles=DEFAULT_RADIUS_MILES) -> list[ProximityMatch]:
    """
    Rank catalog entries within ``radius_miles`` of ``route``.

    ``route`` needs a ``points`` sequence of (lat, lng); entries need
    ``latitude``/``longitude`` and an ``id`` (``rating`` breaks ties).
    Entries without coordinates are skipped.
    """
    radius = clamp_radius(radius_miles)

    waypoints = build_waypoints(route.points)
    if not waypoints:
        return []

    total_miles = waypoints[-1].cumulative_miles
    boxes = _segment_boxes(waypoints, radius)

    matches: list[ProximityMatch] = []
    for entry in catalog:
        lat = getattr(entry, "latitude", None)
        lng = getattr(entry, "longitude", None)
        if lat is None or lng is None:
            continue

        nearest = _nearest_on_route(float(lat), float(lng), boxes)
        if nearest is None:
            continue

        distance, along = nearest
        if distance > radius:
            continue

        matches.append(
            ProximityMatch(
                restaurant_id=entry.id,
                distance_miles=distance,
                within_radius=True,
                route_position=along / total_miles if total_miles > 0 else 0.0,
                entry=entry,
            )
        )

    matches.sort(key=_rank_key)
    return matches[:MAX_MATCHES]
