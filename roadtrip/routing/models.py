from django.db import models
from django.utils import timezone

from .directions import METERS_PER_MILE, bounds_for_points


class RouteCache(models.Model):
    origin_key = models.CharField(max_length=255)
    destination_key = models.CharField(max_length=255)
    origin_text = models.CharField(max_length=255)
    destination_text = models.CharField(max_length=255)
    label = models.CharField(max_length=520, db_index=True)

    origin_place_id = models.CharField(max_length=255, blank=True, default="")
    destination_place_id = models.CharField(max_length=255, blank=True, default="")

    polyline = models.TextField()
    polyline_points = models.JSONField()
    distance_meters = models.IntegerField()
    duration_seconds = models.IntegerField()
    bounds = models.JSONField(default=dict)
    raw_response = models.JSONField(null=True, blank=True)

    hit_count = models.IntegerField(default=1)
    last_accessed_at = models.DateTimeField(default=timezone.now)
    fetched_at = models.DateTimeField(default=timezone.now)
    expires_at = models.DateTimeField(null=True, blank=True, db_index=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["origin_key", "destination_key"], name="unique_route_endpoint_pair"),
        ]
        indexes = [
            models.Index(fields=["origin_key", "destination_key", "expires_at"], name="routecache_lookup_idx"),
            models.Index(fields=["-hit_count"], name="routecache_hits_idx"),
        ]

    def __str__(self):
        return self.label

    @property
    def points(self) -> list[tuple[float, float]]:
        return [(float(lat), float(lng)) for lat, lng in self.polyline_points or []]

    @property
    def distance_miles(self) -> float:
        return self.distance_meters / METERS_PER_MILE

    @property
    def route_bounds(self) -> dict:
        return self.bounds or bounds_for_points(self.points)

    def is_expired(self, now=None) -> bool:
        if self.expires_at is None:
            return False
        return (now or timezone.now()) >= self.expires_at
