from unittest.mock import Mock, patch

from django.test import SimpleTestCase, override_settings

import polyline
import requests

from roadtrip.routing.directions import DirectionsClient, DirectionsFailure, DirectionsRoute, parse_directions_response
from roadtrip.routing.exceptions import UpstreamErrorKind

POINTS = [(37.7749, -122.4194), (36.6002, -121.8947), (34.0522, -118.2437)]


def ok_payload(points=POINTS):
    return {
        "status": "OK",
        "geocoded_waypoints": [{"place_id": "sf-place"}, {"place_id": "la-place"}],
        "routes": [
            {
                "bounds": {
                    "northeast": {"lat": 37.7749, "lng": -118.2437},
                    "southwest": {"lat": 34.0522, "lng": -122.4194},
                },
                "overview_polyline": {"points": polyline.encode(points)},
                "legs": [
                    {"distance": {"value": 300_000}, "duration": {"value": 10_000}},
                    {"distance": {"value": 315_000}, "duration": {"value": 11_600}},
                ],
            }
        ],
    }


class ParseDirectionsResponseTests(SimpleTestCase):

    def test_parses_route(self):
        result = parse_directions_response(ok_payload())

        self.assertIsInstance(result, DirectionsRoute)
        self.assertEqual(result.points, POINTS)
        self.assertEqual(result.distance_meters, 615_000)
        self.assertEqual(result.duration_seconds, 21_600)
        self.assertAlmostEqual(result.distance_miles, 382.14, places=2)
        self.assertEqual(result.origin_place_id, "sf-place")
        self.assertEqual(result.destination_place_id, "la-place")
        self.assertEqual(result.bounds["northeast"]["lat"], 37.7749)

    def test_bounds_fall_back_to_points(self):
        payload = ok_payload()
        del payload["routes"][0]["bounds"]

        result = parse_directions_response(payload)

        self.assertEqual(result.bounds["southwest"], {"lat": 34.0522, "lng": -122.4194})

    def test_status_mapping(self):
        cases = {
            "ZERO_RESULTS": UpstreamErrorKind.NO_ROUTE,
            "NOT_FOUND": UpstreamErrorKind.NOT_FOUND,
            "INVALID_REQUEST": UpstreamErrorKind.INVALID_REQUEST,
            "OVER_QUERY_LIMIT": UpstreamErrorKind.UNAVAILABLE,
            "REQUEST_DENIED": UpstreamErrorKind.UNAVAILABLE,
        }
        for status, kind in cases.items():
            with self.subTest(status=status):
                result = parse_directions_response({"status": status})
                self.assertIsInstance(result, DirectionsFailure)
                self.assertEqual(result.kind, kind)

    def test_missing_route_data(self):
        result = parse_directions_response({"status": "OK", "routes": []})

        self.assertEqual(result.kind, UpstreamErrorKind.UNAVAILABLE)


class DirectionsClientTests(SimpleTestCase):

    def setUp(self):
        self.client = DirectionsClient(api_key="test-key", base_url="https://directions.test/json")

    @patch("roadtrip.routing.directions.requests.get")
    def test_success(self, get):
        get.return_value = Mock(status_code=200, json=Mock(return_value=ok_payload()))

        result = self.client.get_directions("San Francisco, CA", "Los Angeles, CA")

        self.assertIsInstance(result, DirectionsRoute)
        _, kwargs = get.call_args
        self.assertEqual(kwargs["params"]["origin"], "San Francisco, CA")
        self.assertEqual(kwargs["params"]["key"], "test-key")
        self.assertEqual(kwargs["timeout"], 15.0)

    @patch("roadtrip.routing.directions.requests.get", side_effect=requests.Timeout("slow"))
    def test_timeout(self, get):
        result = self.client.get_directions("A", "B")

        self.assertEqual(result.kind, UpstreamErrorKind.TIMEOUT)

    @patch("roadtrip.routing.directions.requests.get", side_effect=requests.ConnectionError("down"))
    def test_connection_error(self, get):
        self.assertEqual(self.client.get_directions("A", "B").kind, UpstreamErrorKind.UNAVAILABLE)

    @patch("roadtrip.routing.directions.requests.get")
    def test_http_error(self, get):
        get.return_value = Mock(status_code=502)

        self.assertEqual(self.client.get_directions("A", "B").kind, UpstreamErrorKind.UNAVAILABLE)

    @patch("roadtrip.routing.directions.requests.get")
    def test_invalid_json(self, get):
        get.return_value = Mock(status_code=200, json=Mock(side_effect=ValueError("not json")))

        self.assertEqual(self.client.get_directions("A", "B").kind, UpstreamErrorKind.UNAVAILABLE)

    @override_settings(GOOGLE_MAPS_API_KEY="")
    @patch("roadtrip.routing.directions.requests.get")
    def test_missing_key_never_calls_out(self, get):
        result = DirectionsClient().get_directions("A", "B")

        self.assertEqual(result.kind, UpstreamErrorKind.UNAVAILABLE)
        get.assert_not_called()
