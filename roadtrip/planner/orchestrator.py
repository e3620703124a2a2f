"""
Trip planning and batch geocoding.

TripPlanner ties the resolver, route cache, directions provider,
proximity matcher and rate limiter together. It holds no ambient state:
the process-wide instance is built in PlannerConfig.ready() and tests
construct their own.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Sequence

from roadtrip.cities.gazetteer import City
from roadtrip.cities.matcher import (
    EXACT_MATCH,
    STARTS_WITH,
    expand_abbreviation,
    format_city,
    fuzzy_score,
    match_cities,
    parse_input,
    sanitize_input,
)
from roadtrip.restaurants import queries
from roadtrip.restaurants.geocoding import GeocodeFailure, GeocodeMatch, build_geocode_query
from roadtrip.routing.cache import RouteCacheStore, normalize_endpoint
from roadtrip.routing.directions import DirectionsFailure
from roadtrip.routing.exceptions import USER_INPUT_KINDS, RouteNotFound, UpstreamThrottled, UpstreamUnavailable
from roadtrip.routing.models import RouteCache

from .proximity import ProximityMatch, clamp_radius, find_near
from .ratelimit import RATE_LIMITS, RateLimitRule, SlidingWindowRateLimiter
from .throttle import ThrottledTask

logger = logging.getLogger(__name__)

MAX_UPSTREAM_WAIT_MS = 5_000
GEOCODE_MIN_INTERVAL_SECONDS = 1.0


@dataclass(frozen=True)
class ResolvedEndpoint:
    text: str
    key: str
    source: str
    city: City | None = None


@dataclass
class TripPlan:
    route: RouteCache
    restaurants: list[ProximityMatch]
    cached: bool
    radius_miles: int
    origin: ResolvedEndpoint
    destination: ResolvedEndpoint


@dataclass
class GeocodeStats:
    total: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    elapsed_seconds: float = 0.0
    errors: dict = field(default_factory=dict)


class TripPlanner:

    def __init__(
        self,
        *,
        cities: Sequence[City],
        route_cache: RouteCacheStore,
        directions,
        rate_limiter: SlidingWindowRateLimiter,
        geocoder=None,
        load_catalog: Callable[[dict, float], list] = queries.restaurants_within_bounds,
        upstream_rules: dict[str, RateLimitRule] | None = None,
        max_upstream_wait_ms: int = MAX_UPSTREAM_WAIT_MS,
        geocode_interval: float = GEOCODE_MIN_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.cities = cities
        self.route_cache = route_cache
        self.directions = directions
        self.rate_limiter = rate_limiter
        self.geocoder = geocoder
        self.load_catalog = load_catalog
        self.upstream_rules = upstream_rules or {
            "directions": RATE_LIMITS["directions"],
            "geocoding": RATE_LIMITS["geocoding"],
        }
        self.max_upstream_wait_ms = max_upstream_wait_ms
        self.geocode_interval = geocode_interval
        self._clock = clock
        self._sleep = sleep

    # ---- endpoints ----

    def resolve_endpoint(self, text: str) -> ResolvedEndpoint:
        expanded = expand_abbreviation(text)
        if expanded:
            return ResolvedEndpoint(text=expanded, key=normalize_endpoint(expanded), source="abbreviation")

        city = self._canonical_city(text)
        if city is not None:
            canonical = format_city(city)
            return ResolvedEndpoint(text=canonical, key=normalize_endpoint(canonical), source="gazetteer", city=city)

        cleaned = sanitize_input(text)
        return ResolvedEndpoint(text=cleaned, key=normalize_endpoint(cleaned), source="input")

    def _canonical_city(self, text: str) -> City | None:
        """
        The gazetteer city that ``text`` unambiguously names, if any.

        Exact names count; a prefix counts only with a matching region. A
        typed region must agree with the city's, and a bare name shared by
        several regions ("Springfield") is left as typed.
        """
        query = parse_input(text)

        for match in match_cities(text, self.cities):
            city = match.city
            if query.region and city.region != query.region:
                continue

            tier = fuzzy_score(query.term, city.name)
            if tier == EXACT_MATCH or (tier == STARTS_WITH and query.region):
                if query.region is None and self._shares_name(city):
                    return None
                return city

        return None

    def _shares_name(self, city: City) -> bool:
        name = city.name.lower()
        return sum(1 for c in self.cities if c.name.lower() == name) > 1

    # ---- trip planning ----

    def plan_trip(self, origin: str, destination: str, radius_miles=None) -> TripPlan:
        radius = clamp_radius(radius_miles)
        start = self.resolve_endpoint(origin)
        end = self.resolve_endpoint(destination)
        if not start.text or not end.text:
            raise ValueError("Origin and destination must name a place")

        route = self.route_cache.find_cached_route(start.key, end.key)
        cached = route is not None

        if cached:
            logger.info("Route cache hit: %s (id=%s, hits=%s)", route.label, route.pk, route.hit_count)
            self.route_cache.record_hit(route)
        else:
            logger.info("Route cache miss: %s -> %s", start.text, end.text)
            route = self._fetch_and_store(start, end)

        return TripPlan(
            route=route,
            restaurants=self.find_restaurants(route, radius),
            cached=cached,
            radius_miles=radius,
            origin=start,
            destination=end,
        )

    def find_restaurants(self, route: RouteCache, radius_miles) -> list[ProximityMatch]:
        radius = clamp_radius(radius_miles)
        catalog = self.load_catalog(route.route_bounds, radius)
        return find_near(route, catalog, radius)

    def _fetch_and_store(self, start: ResolvedEndpoint, end: ResolvedEndpoint) -> RouteCache:
        self._acquire_upstream("directions")
        result = self.directions.get_directions(start.text, end.text)

        if isinstance(result, DirectionsFailure):
            if result.kind in USER_INPUT_KINDS:
                raise RouteNotFound(result.message, kind=result.kind)
            raise UpstreamUnavailable(result.message, kind=result.kind)

        route_id = self.route_cache.save_route(start.text, end.text, result)
        return self.route_cache.get_route(route_id)

    def _acquire_upstream(self, name: str) -> None:
        """Wait for an outbound slot; give up once the wait budget is spent."""
        rule = self.upstream_rules[name]
        waited_ms = 0.0

        while True:
            decision = self.rate_limiter.check(f"upstream:{name}", rule)
            if decision.allowed:
                return
            if waited_ms + decision.reset_in_ms > self.max_upstream_wait_ms:
                raise UpstreamThrottled(
                    f"Upstream {name} calls are throttled", retry_after_ms=decision.reset_in_ms
                )
            logger.debug("Deferring %s call for %d ms", name, decision.reset_in_ms)
            self._sleep(decision.reset_in_ms / 1000.0)
            waited_ms += max(decision.reset_in_ms, 1)

    # ---- batch geocoding ----

    def geocode_missing(
        self,
        *,
        state: str | None = None,
        limit: int | None = None,
        retry_failed: bool = False,
        max_attempts: int = 3,
        dry_run: bool = False,
        on_result: Callable | None = None,
    ) -> GeocodeStats:
        if self.geocoder is None:
            raise RuntimeError("TripPlanner was built without a geocoder")

        started = self._clock()
        entries = list(
            queries.restaurants_missing_coordinates(
                state=state, retry_failed=retry_failed, max_attempts=max_attempts, limit=limit
            )
        )
        stats = GeocodeStats(total=len(entries))

        pending = []
        for restaurant in entries:
            query = build_geocode_query(restaurant)
            if query:
                pending.append((restaurant, query))
            else:
                logger.warning("No address data for restaurant %s (%s)", restaurant.pk, restaurant.name)
                stats.skipped += 1
                if not dry_run:
                    queries.record_geocode_failure(restaurant.pk, "No address data to geocode")

        task = ThrottledTask(pending, self.geocode_interval, clock=self._clock, sleep=self._sleep)
        for restaurant, query in task:
            self._acquire_upstream("geocoding")
            result = self.geocoder.geocode(query)

            if isinstance(result, GeocodeFailure):
                logger.warning("Geocoding failed for %s (%s): %s", restaurant.pk, query, result.message)
                stats.failed += 1
                stats.errors[restaurant.pk] = result.message
                if not dry_run:
                    queries.record_geocode_failure(restaurant.pk, result.message)
            elif isinstance(result, GeocodeMatch):
                stats.succeeded += 1
                if not dry_run:
                    queries.update_coordinates(restaurant.pk, result.latitude, result.longitude)

            if on_result is not None:
                on_result(restaurant, result)

        stats.elapsed_seconds = self._clock() - started
        return stats
