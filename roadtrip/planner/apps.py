from django.apps import AppConfig, apps


class PlannerConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "roadtrip.planner"
    label = "planner"

    rate_limiter = None
    trip_planner = None

    def ready(self):
        from roadtrip.cities.gazetteer import load_cities
        from roadtrip.restaurants.geocoding import NominatimGeocoder
        from roadtrip.routing.cache import RouteCacheStore
        from roadtrip.routing.directions import DirectionsClient

        from .orchestrator import TripPlanner
        from .ratelimit import SlidingWindowRateLimiter

        self.rate_limiter = SlidingWindowRateLimiter()
        self.trip_planner = TripPlanner(
            cities=load_cities(),
            route_cache=RouteCacheStore(),
            directions=DirectionsClient(),
            rate_limiter=self.rate_limiter,
            geocoder=NominatimGeocoder(),
        )


def get_rate_limiter():
    return apps.get_app_config("planner").rate_limiter


def get_trip_planner():
    return apps.get_app_config("planner").trip_planner
