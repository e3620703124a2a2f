from django.contrib import admin

from .models import RouteCache


@admin.register(RouteCache)
class RouteCacheAdmin(admin.ModelAdmin):
    list_display = ("label", "distance_meters", "duration_seconds", "hit_count", "fetched_at", "expires_at")
    search_fields = ("label", "origin_key", "destination_key")
    readonly_fields = ("polyline", "polyline_points", "raw_response")
