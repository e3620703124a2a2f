import logging
import time

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from roadtrip.cities.matcher import expand_abbreviation, match_cities
from roadtrip.routing.exceptions import RouteNotFound, UpstreamUnavailable

from .apps import get_trip_planner
from .proximity import clamp_radius
from .ratelimit import rate_limited
from .serializers import (
    CityMatchSerializer,
    CitySearchQuerySerializer,
    RadiusQuerySerializer,
    RestaurantMatchSerializer,
    RouteSerializer,
    TripPlanRequestSerializer,
    TripPlanResponseSerializer,
)

logger = logging.getLogger(__name__)

UNAVAILABLE_MESSAGE = "Routing service is temporarily unavailable. Please try again later."
INTERNAL_ERROR_MESSAGE = "An unexpected error occurred while planning the trip."


def _invalid(errors):
    return Response({"error": "Invalid input", "details": errors}, status=status.HTTP_400_BAD_REQUEST)


class TripPlanView(APIView):

    @rate_limited("roadtrip")
    def post(self, request):
        start_time = time.time()

        serializer = TripPlanRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return _invalid(serializer.errors)

        data = serializer.validated_data

        try:
            plan = get_trip_planner().plan_trip(
                data["origin"],
                data["destination"],
                radius_miles=data.get("radius_miles"),
            )
        except RouteNotFound as e:
            logger.info("No route for %r -> %r: %s", data["origin"], data["destination"], e)
            return Response(
                {"error": "Route not found", "detail": str(e)},
                status=status.HTTP_422_UNPROCESSABLE_ENTITY,
            )
        except UpstreamUnavailable as e:
            logger.warning("Upstream %s failure for %r -> %r: %s", e.kind.value, data["origin"], data["destination"], e)
            return Response({"error": UNAVAILABLE_MESSAGE}, status=status.HTTP_503_SERVICE_UNAVAILABLE)
        except Exception:
            logger.exception("Trip planning failed for %r -> %r", data["origin"], data["destination"])
            return Response({"error": INTERNAL_ERROR_MESSAGE}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

        response_data = dict(TripPlanResponseSerializer(plan).data)
        response_data["computation_time_ms"] = int((time.time() - start_time) * 1000)

        return Response(response_data, status=status.HTTP_200_OK)


class CitySearchView(APIView):

    @rate_limited("search")
    def get(self, request):
        serializer = CitySearchQuerySerializer(data=request.query_params)
        if not serializer.is_valid():
            return _invalid(serializer.errors)

        query = serializer.validated_data["q"]
        limit = serializer.validated_data["limit"]

        planner = get_trip_planner()
        matches = match_cities(query, planner.cities, max_results=limit)

        return Response(
            {
                "query": query,
                "expanded": expand_abbreviation(query),
                "results": CityMatchSerializer(matches, many=True).data,
            },
            status=status.HTTP_200_OK,
        )


class RouteRestaurantsView(APIView):

    @rate_limited("general")
    def get(self, request, route_id):
        serializer = RadiusQuerySerializer(data=request.query_params)
        if not serializer.is_valid():
            return _invalid(serializer.errors)

        planner = get_trip_planner()
        route = planner.route_cache.get_route(route_id)
        if route is None:
            return Response({"error": "Route not found"}, status=status.HTTP_404_NOT_FOUND)

        radius = clamp_radius(serializer.validated_data.get("radius_miles"))
        matches = planner.find_restaurants(route, radius)

        return Response(
            {
                "route": RouteSerializer(route).data,
                "restaurants": RestaurantMatchSerializer(matches, many=True).data,
                "radius_miles": radius,
            },
            status=status.HTTP_200_OK,
        )
