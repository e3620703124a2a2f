from datetime import timedelta

from django.test import TestCase
from django.utils import timezone

from roadtrip.routing.cache import RouteCacheStore, normalize_endpoint, route_label
from roadtrip.routing.directions import DirectionsRoute, bounds_for_points
from roadtrip.routing.models import RouteCache

POINTS = [(37.7749, -122.4194), (36.0, -120.0), (34.0522, -118.2437)]


def make_directions(points=POINTS):
    return DirectionsRoute(
        polyline="encoded",
        points=points,
        distance_meters=615_000,
        duration_seconds=21_600,
        bounds=bounds_for_points(points),
    )


class RouteCacheStoreTests(TestCase):

    def setUp(self):
        self.store = RouteCacheStore(ttl_days=30)

    def test_save_then_find(self):
        route_id = self.store.save_route("San Francisco, CA", "Los Angeles, CA", make_directions())

        cached = self.store.find_cached_route("san francisco, ca", "los angeles, ca")

        self.assertEqual(cached.pk, route_id)
        self.assertEqual(cached.points, POINTS)
        self.assertEqual(cached.label, "San Francisco, CA → Los Angeles, CA")
        self.assertEqual(cached.hit_count, 1)
        self.assertIsNotNone(cached.expires_at)

    def test_lookup_is_order_sensitive(self):
        self.store.save_route("San Francisco, CA", "Los Angeles, CA", make_directions())

        self.assertIsNone(self.store.find_cached_route("los angeles, ca", "san francisco, ca"))

    def test_duplicate_save_keeps_first_row(self):
        first = self.store.save_route("San Francisco, CA", "Los Angeles, CA", make_directions())
        second = self.store.save_route("san  francisco, ca", "LOS ANGELES, CA", make_directions(POINTS[:2]))

        self.assertEqual(first, second)
        self.assertEqual(RouteCache.objects.count(), 1)
        self.assertEqual(RouteCache.objects.get().points, POINTS)

    def test_expired_row_is_a_miss_and_is_dropped(self):
        route_id = self.store.save_route("San Francisco, CA", "Los Angeles, CA", make_directions())
        RouteCache.objects.filter(pk=route_id).update(expires_at=timezone.now() - timedelta(seconds=1))

        self.assertIsNone(self.store.find_cached_route("san francisco, ca", "los angeles, ca"))
        self.assertFalse(RouteCache.objects.exists())

    def test_expired_row_is_refreshed_on_save(self):
        route_id = self.store.save_route("San Francisco, CA", "Los Angeles, CA", make_directions())
        RouteCache.objects.filter(pk=route_id).update(expires_at=timezone.now() - timedelta(days=1), hit_count=9)

        again = self.store.save_route("San Francisco, CA", "Los Angeles, CA", make_directions(POINTS[:2]))

        route = RouteCache.objects.get()
        self.assertEqual(again, route_id)
        self.assertEqual(route.points, POINTS[:2])
        self.assertEqual(route.hit_count, 1)
        self.assertFalse(route.is_expired())

    def test_no_ttl_never_expires(self):
        route_id = RouteCacheStore(ttl_days=0).save_route("A", "B", make_directions())

        self.assertIsNone(RouteCache.objects.get(pk=route_id).expires_at)

    def test_record_hit(self):
        route_id = self.store.save_route("San Francisco, CA", "Los Angeles, CA", make_directions())
        route = self.store.get_route(route_id)

        self.store.record_hit(route)
        self.store.record_hit(route)

        route.refresh_from_db()
        self.assertEqual(route.hit_count, 3)

    def test_get_missing_route(self):
        self.assertIsNone(self.store.get_route(12345))

    def test_invalidate_by_name(self):
        self.store.save_route("San Francisco, CA", "Los Angeles, CA", make_directions())
        self.store.save_route("Los Angeles, CA", "San Diego, CA", make_directions())
        self.store.save_route("Denver, CO", "Boulder, CO", make_directions())

        self.assertEqual(self.store.invalidate("los angeles"), 2)
        self.assertEqual(list(RouteCache.objects.values_list("origin_text", flat=True)), ["Denver, CO"])

    def test_invalidate_rejects_blank_pattern(self):
        self.store.save_route("Denver, CO", "Boulder, CO", make_directions())

        for pattern in ("", "   ", None):
            with self.subTest(pattern=pattern), self.assertRaises(ValueError):
                self.store.invalidate(pattern)

        self.assertEqual(RouteCache.objects.count(), 1)

    def test_purge_expired(self):
        keep = self.store.save_route("Denver, CO", "Boulder, CO", make_directions())
        drop = self.store.save_route("Boulder, CO", "Denver, CO", make_directions())
        RouteCache.objects.filter(pk=drop).update(expires_at=timezone.now() - timedelta(minutes=5))

        self.assertEqual(self.store.purge_expired(), 1)
        self.assertEqual(list(RouteCache.objects.values_list("pk", flat=True)), [keep])


class KeyTests(TestCase):

    def test_normalize_endpoint(self):
        self.assertEqual(normalize_endpoint("  San   Francisco, CA "), "san francisco, ca")

    def test_route_label(self):
        self.assertEqual(route_label("A", "B"), "A → B")
