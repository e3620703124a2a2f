from django.urls import path

from .views import CitySearchView, RouteRestaurantsView, TripPlanView

urlpatterns = [
    path("roadtrip", TripPlanView.as_view(), name="plan_trip"),
    path("cities", CitySearchView.as_view(), name="search_cities"),
    path("routes/<int:route_id>/restaurants", RouteRestaurantsView.as_view(), name="route_restaurants"),
]
