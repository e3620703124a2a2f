"""
Persistent cache of directions lookups.

Rows are keyed by the ordered pair (origin_key, destination_key), so
"A to B" and "B to A" are separate entries. A unique constraint on the
pair plus ``get_or_create`` makes concurrent saves for the same pair
collapse onto the first stored row.
"""

from __future__ import annotations

import logging
from datetime import timedelta

from django.conf import settings
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from roadtrip.cities.matcher import sanitize_input

from .directions import DirectionsRoute
from .models import RouteCache

logger = logging.getLogger(__name__)


def normalize_endpoint(text: str) -> str:
    return sanitize_input(text).lower()


def route_label(origin_text: str, destination_text: str) -> str:
    return f"{origin_text} → {destination_text}"


class RouteCacheStore:

    def __init__(self, ttl_days: int | None = None):
        self.ttl_days = ttl_days if ttl_days is not None else settings.ROUTE_CACHE_TTL_DAYS

    def find_cached_route(self, origin_key: str, destination_key: str) -> RouteCache | None:
        try:
            cached = RouteCache.objects.get(origin_key=origin_key, destination_key=destination_key)
        except RouteCache.DoesNotExist:
            return None

        if cached.is_expired():
            logger.info("Dropping expired cached route %s (%s)", cached.pk, cached.label)
            cached.delete()
            return None
        return cached

    def get_route(self, route_id: int) -> RouteCache | None:
        return RouteCache.objects.filter(pk=route_id).first()

    def save_route(self, origin_text: str, destination_text: str, directions: DirectionsRoute) -> int:
        now = timezone.now()
        fields = {
            "origin_text": origin_text,
            "destination_text": destination_text,
            "label": route_label(origin_text, destination_text),
            "origin_place_id": directions.origin_place_id,
            "destination_place_id": directions.destination_place_id,
            "polyline": directions.polyline,
            "polyline_points": [[lat, lng] for lat, lng in directions.points],
            "distance_meters": directions.distance_meters,
            "duration_seconds": directions.duration_seconds,
            "bounds": directions.bounds,
            "raw_response": directions.raw or None,
            "fetched_at": now,
            "last_accessed_at": now,
            "expires_at": now + timedelta(days=self.ttl_days) if self.ttl_days else None,
        }

        with transaction.atomic():
            route, created = RouteCache.objects.get_or_create(
                origin_key=normalize_endpoint(origin_text),
                destination_key=normalize_endpoint(destination_text),
                defaults=fields,
            )
            if not created and route.is_expired(now):
                for name, value in fields.items():
                    setattr(route, name, value)
                route.hit_count = 1
                route.save()
            elif not created:
                logger.info("Route %s already cached by a concurrent request; keeping it", route.label)

        return route.pk

    def record_hit(self, route: RouteCache) -> None:
        RouteCache.objects.filter(pk=route.pk).update(hit_count=F("hit_count") + 1, last_accessed_at=timezone.now())

    def invalidate(self, name_pattern: str) -> int:
        pattern = (name_pattern or "").strip()
        if not pattern:
            raise ValueError("A non-empty name pattern is required to invalidate cached routes")

        deleted, _ = RouteCache.objects.filter(label__icontains=pattern).delete()
        logger.info("Invalidated %d cached routes matching %r", deleted, pattern)
        return deleted

    def purge_expired(self) -> int:
        deleted, _ = RouteCache.objects.filter(expires_at__lte=timezone.now()).delete()
        return deleted
