from rest_framework import serializers

from roadtrip.cities.matcher import sanitize_input

from .proximity import clamp_radius


class TripPlanRequestSerializer(serializers.Serializer):
    origin = serializers.CharField(
        max_length=200,
        trim_whitespace=True,
        help_text="Start location (e.g., 'San Francisco, CA' or 'SF')",
    )
    destination = serializers.CharField(
        max_length=200,
        trim_whitespace=True,
        help_text="End location (e.g., 'Los Angeles, CA' or 'LA')",
    )
    radius_miles = serializers.FloatField(
        required=False,
        allow_null=True,
        help_text="Search corridor in miles; snapped to 5, 10, 15, 20 or 25 (default: 15)",
    )

    def validate_radius_miles(self, value):
        try:
            return clamp_radius(value)
        except ValueError as e:
            raise serializers.ValidationError(str(e))

    def _validate_location(self, value):
        if not sanitize_input(value):
            raise serializers.ValidationError("Enter a city or address.")
        return value

    validate_origin = _validate_location
    validate_destination = _validate_location


class RadiusQuerySerializer(serializers.Serializer):
    radius_miles = serializers.FloatField(required=False, allow_null=True)

    def validate_radius_miles(self, value):
        try:
            return clamp_radius(value)
        except ValueError as e:
            raise serializers.ValidationError(str(e))


class CitySearchQuerySerializer(serializers.Serializer):
    q = serializers.CharField(max_length=200, trim_whitespace=True)
    limit = serializers.IntegerField(required=False, default=10, min_value=1, max_value=20)


class RouteSerializer(serializers.Serializer):
    id = serializers.IntegerField(source="pk")  # noqa: A003
    origin = serializers.CharField(source="origin_text")
    destination = serializers.CharField(source="destination_text")
    polyline = serializers.SerializerMethodField()
    encoded_polyline = serializers.CharField(source="polyline")
    distance_meters = serializers.IntegerField()
    distance_miles = serializers.SerializerMethodField()
    duration_seconds = serializers.IntegerField()
    bounds = serializers.DictField(source="route_bounds")

    def get_polyline(self, route):
        return [[lat, lng] for lat, lng in route.points]

    def get_distance_miles(self, route):
        return round(route.distance_miles, 2)


class RestaurantMatchSerializer(serializers.Serializer):
    id = serializers.IntegerField(source="restaurant_id")  # noqa: A003
    name = serializers.CharField(source="entry.name")
    address = serializers.CharField(source="entry.address")
    city = serializers.CharField(source="entry.city")
    state = serializers.CharField(source="entry.state")
    latitude = serializers.FloatField(source="entry.latitude")
    longitude = serializers.FloatField(source="entry.longitude")
    rating = serializers.FloatField(source="entry.rating", allow_null=True)
    distance_miles = serializers.SerializerMethodField()
    route_position = serializers.SerializerMethodField()
    within_radius = serializers.BooleanField()

    def get_distance_miles(self, match):
        return round(match.distance_miles, 2)

    def get_route_position(self, match):
        return round(match.route_position, 4)


class TripPlanResponseSerializer(serializers.Serializer):
    route = RouteSerializer()
    restaurants = RestaurantMatchSerializer(many=True)
    radius_miles = serializers.IntegerField()
    cached = serializers.BooleanField(help_text="Whether this route was retrieved from cache")


class CityMatchSerializer(serializers.Serializer):
    name = serializers.CharField(source="city.name")
    region = serializers.CharField(source="city.region")
    population = serializers.IntegerField(source="city.population")
    label = serializers.CharField(source="city.label")
    score = serializers.SerializerMethodField()

    def get_score(self, match):
        return round(match.score, 4)
