import httpx
import pytest

from jogroute.models.domain import GeoPoint, RouteResult
from jogroute.services.directions import (
    GoogleDirectionsClient,
    OSRMDirectionsClient,
    RouteQueryClient,
    build_provider,
    decode_polyline,
)
from jogroute.services.directions.base import format_distance, format_duration
from jogroute.services.directions.osrm import describe_step
from jogroute.services.places import GoogleGeocodingResolver, PlaceLookupError
from jogroute.services.synthesis.errors import ProviderError, ProviderErrorKind

ORIGIN = GeoPoint(40.7128, -74.006)
DESTINATION = GeoPoint(40.7306, -73.9866)
WAYPOINT = GeoPoint(40.72, -74.0)

GOOGLE_OK = {
    "status": "OK",
    "routes": [
        {
            "overview_polyline": {"points": "_p~iF~ps|U_ulLnnqC_mqNvxq`@"},
            "legs": [
                {
                    "distance": {"value": 1200, "text": "1.2 km"},
                    "duration": {"value": 900, "text": "15 mins"},
                    "start_location": {"lat": 40.7128, "lng": -74.006},
                    "end_location": {"lat": 40.72, "lng": -74.0},
                    "steps": [
                        {
                            "html_instructions": "Head <b>north</b> on <b>Broadway</b>",
                            "distance": {"text": "0.6 km"},
                            "duration": {"text": "8 mins"},
                        }
                    ],
                },
                {
                    "distance": {"value": 1800, "text": "1.8 km"},
                    "duration": {"value": 1300, "text": "22 mins"},
                    "start_location": {"lat": 40.72, "lng": -74.0},
                    "end_location": {"lat": 40.7306, "lng": -73.9866},
                    "steps": [],
                },
            ],
        }
    ],
}


def _google(handler) -> GoogleDirectionsClient:
    return GoogleDirectionsClient(
        api_key="test-key",
        base_url="https://maps.test/directions/json",
        client=httpx.Client(transport=httpx.MockTransport(handler)),
    )


def _osrm(handler, profile="foot") -> OSRMDirectionsClient:
    return OSRMDirectionsClient(
        base_url="https://osrm.test",
        profile=profile,
        client=httpx.Client(transport=httpx.MockTransport(handler)),
    )


def test_decode_polyline_reference_string():
    points = decode_polyline("_p~iF~ps|U_ulLnnqC_mqNvxq`@")

    assert [p.as_tuple() for p in points] == [
        pytest.approx((38.5, -120.2)),
        pytest.approx((40.7, -120.95)),
        pytest.approx((43.252, -126.453)),
    ]


def test_google_client_sends_ordered_waypoints_and_parses_legs():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.update(request.url.params)
        return httpx.Response(200, json=GOOGLE_OK)

    route = _google(handler).route(ORIGIN, DESTINATION, [WAYPOINT], "walking", True)

    assert seen["origin"] == "40.7128,-74.006"
    assert seen["destination"] == "40.7306,-73.9866"
    assert seen["waypoints"] == "optimize:false|40.72,-74.0"
    assert seen["mode"] == "walking"
    assert seen["avoid"] == "highways"
    assert seen["key"] == "test-key"

    assert isinstance(route, RouteResult)
    assert route.total_distance_km == pytest.approx(3.0)
    assert route.total_duration_seconds == pytest.approx(2200)
    assert route.waypoints == (WAYPOINT,)
    assert route.legs[0].steps[0].instruction == "Head <b>north</b> on <b>Broadway</b>"
    assert route.legs[1].end_location == DESTINATION
    assert len(route.geometry) == 3


def test_google_client_omits_optional_params():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.update(request.url.params)
        return httpx.Response(200, json=GOOGLE_OK)

    _google(handler).route(ORIGIN, DESTINATION, [], "walking", False)

    assert "waypoints" not in seen
    assert "avoid" not in seen


@pytest.mark.parametrize(
    "status, kind",
    [
        ("ZERO_RESULTS", ProviderErrorKind.NO_ROUTE_FOUND),
        ("NOT_FOUND", ProviderErrorKind.INVALID_WAYPOINT),
        ("MAX_WAYPOINTS_EXCEEDED", ProviderErrorKind.INVALID_WAYPOINT),
        ("OVER_QUERY_LIMIT", ProviderErrorKind.QUOTA_EXCEEDED),
        ("REQUEST_DENIED", ProviderErrorKind.QUOTA_EXCEEDED),
        ("UNKNOWN_ERROR", ProviderErrorKind.NETWORK),
    ],
)
def test_google_status_maps_to_error_kind(status, kind):
    client = _google(lambda request: httpx.Response(200, json={"status": status, "routes": []}))

    with pytest.raises(ProviderError) as excinfo:
        client.route(ORIGIN, DESTINATION, [], "walking", True)
    assert excinfo.value.kind is kind


@pytest.mark.parametrize(
    "status_code, kind",
    [
        (429, ProviderErrorKind.QUOTA_EXCEEDED),
        (500, ProviderErrorKind.NETWORK),
        (503, ProviderErrorKind.NETWORK),
        (400, ProviderErrorKind.INVALID_WAYPOINT),
    ],
)
def test_google_http_errors_map_to_error_kind(status_code, kind):
    client = _google(lambda request: httpx.Response(status_code, text="nope"))

    with pytest.raises(ProviderError) as excinfo:
        client.route(ORIGIN, DESTINATION, [], "walking", True)
    assert excinfo.value.kind is kind


def test_google_client_requires_api_key(monkeypatch):
    from jogroute.config import settings

    monkeypatch.setattr(settings, "google_maps_api_key", None)
    with pytest.raises(ValueError):
        GoogleDirectionsClient(client=httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(200))))


def test_osrm_client_builds_lon_lat_path_and_parses_route():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["params"] = dict(request.url.params)
        return httpx.Response(
            200,
            json={
                "code": "Ok",
                "routes": [
                    {
                        "geometry": "_p~iF~ps|U_ulLnnqC_mqNvxq`@",
                        "legs": [
                            {
                                "distance": 2500.0,
                                "duration": 1800.0,
                                "steps": [
                                    {"maneuver": {"type": "depart"}, "name": "Main St", "distance": 300, "duration": 200},
                                    {"maneuver": {"type": "arrive"}, "name": "", "distance": 0, "duration": 0},
                                ],
                            },
                            {"distance": 1500.0, "duration": 1100.0, "steps": []},
                        ],
                    }
                ],
            },
        )

    route = _osrm(handler).route(ORIGIN, DESTINATION, [WAYPOINT])

    assert seen["path"] == "/route/v1/foot/-74.006,40.7128;-74.0,40.72;-73.9866,40.7306"
    assert seen["params"]["steps"] == "true"
    assert "exclude" not in seen["params"]
    assert route.total_distance_km == pytest.approx(4.0)
    assert route.legs[0].start_location == ORIGIN
    assert route.legs[1].end_location == DESTINATION
    assert route.legs[0].steps[0].instruction == "Head out onto Main St"
    assert route.legs[0].steps[1].instruction == "Arrive at destination"
    assert route.legs[0].distance_text == "2.5 km"


def test_osrm_excludes_motorways_on_car_profiles():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.update(request.url.params)
        return httpx.Response(200, json={"code": "Ok", "routes": [{"legs": [{"distance": 10.0, "duration": 5.0}]}]})

    _osrm(handler, profile="driving").route(ORIGIN, DESTINATION, [])

    assert seen["exclude"] == "motorway"


@pytest.mark.parametrize(
    "code, kind",
    [
        ("NoRoute", ProviderErrorKind.NO_ROUTE_FOUND),
        ("NoSegment", ProviderErrorKind.INVALID_WAYPOINT),
        ("InvalidQuery", ProviderErrorKind.INVALID_WAYPOINT),
    ],
)
def test_osrm_error_codes(code, kind):
    client = _osrm(lambda request: httpx.Response(400, json={"code": code, "message": "bad"}))

    with pytest.raises(ProviderError) as excinfo:
        client.route(ORIGIN, DESTINATION, [])
    assert excinfo.value.kind is kind


def test_osrm_rate_limit_maps_to_quota():
    client = _osrm(lambda request: httpx.Response(429, text="slow down"))

    with pytest.raises(ProviderError) as excinfo:
        client.route(ORIGIN, DESTINATION, [])
    assert excinfo.value.kind is ProviderErrorKind.QUOTA_EXCEEDED


def test_describe_step_variants():
    assert describe_step({"maneuver": {"type": "turn", "modifier": "left"}, "name": "Elm"}) == "Turn left onto Elm"
    assert describe_step({"maneuver": {"type": "roundabout", "exit": 2}}) == "At the roundabout take exit 2"
    assert describe_step({"maneuver": {"type": "arrive"}, "name": "Park"}) == "Arrive at Park"


def test_format_helpers():
    assert format_distance(420.4) == "420 m"
    assert format_distance(1530) == "1.5 km"
    assert format_duration(0) == "<1 min"
    assert format_duration(20) == "<1 min"
    assert format_duration(45) == "1 min"
    assert format_duration(600) == "10 mins"
    assert format_duration(3600) == "1 hour"
    assert format_duration(5400) == "1 hour 30 mins"


class _RaisingProvider:
    def __init__(self, exc: Exception) -> None:
        self.exc = exc
        self.calls = 0

    def route(self, origin, destination, waypoints, travel_mode, avoid_highways):
        self.calls += 1
        raise self.exc


@pytest.mark.parametrize(
    "exc",
    [
        httpx.ConnectError("connection refused"),
        httpx.ReadTimeout("timed out"),
        ConnectionResetError("reset by peer"),
    ],
)
def test_query_client_maps_transport_failures_to_network(exc):
    provider = _RaisingProvider(exc)

    with pytest.raises(ProviderError) as excinfo:
        RouteQueryClient(provider).query(ORIGIN, DESTINATION)
    assert excinfo.value.kind is ProviderErrorKind.NETWORK
    assert provider.calls == 1


def test_query_client_passes_provider_errors_through():
    original = ProviderError(ProviderErrorKind.QUOTA_EXCEEDED, "quota")

    with pytest.raises(ProviderError) as excinfo:
        RouteQueryClient(_RaisingProvider(original)).query(ORIGIN, DESTINATION)
    assert excinfo.value is original


@pytest.mark.parametrize(
    "payload",
    [
        {"status": "OK", "routes": [{"legs": [{"duration": {"value": 60}}]}]},
        {"status": "OK", "routes": [{"legs": [{"distance": {"value": "far"}, "duration": {"value": 60}}]}]},
        {"status": "OK", "routes": [{"legs": [{"distance": None, "duration": {"value": 60}}]}]},
        {"status": "OK", "routes": [{"overview_polyline": {"points": "_p~iF"}, "legs": GOOGLE_OK["routes"][0]["legs"]}]},
    ],
)
def test_query_client_maps_malformed_payloads_to_network(payload):
    client = _google(lambda request: httpx.Response(200, json=payload))

    with pytest.raises(ProviderError) as excinfo:
        RouteQueryClient(client).query(ORIGIN, DESTINATION)
    assert excinfo.value.kind is ProviderErrorKind.NETWORK
    assert "Malformed" in excinfo.value.message


def test_query_client_rejects_routes_without_legs():
    class EmptyProvider:
        def route(self, origin, destination, waypoints, travel_mode, avoid_highways):
            return RouteResult(legs=[], origin=origin, destination=destination)

    with pytest.raises(ProviderError) as excinfo:
        RouteQueryClient(EmptyProvider()).query(ORIGIN, DESTINATION)
    assert excinfo.value.kind is ProviderErrorKind.NO_ROUTE_FOUND


def test_query_client_requests_walking_without_highways(fake_directions):
    provider = fake_directions(lambda o, d, w: 3.0)

    RouteQueryClient(provider).query(ORIGIN, DESTINATION, (WAYPOINT,))

    assert provider.calls[0]["travel_mode"] == "walking"
    assert provider.calls[0]["avoid_highways"] is True
    assert provider.calls[0]["waypoints"] == (WAYPOINT,)


def test_build_provider_rejects_unknown_name():
    with pytest.raises(ValueError):
        build_provider("carrier-pigeon")


def test_build_provider_osrm(monkeypatch):
    from jogroute.config import settings

    monkeypatch.setattr(settings, "osrm_base_url", "https://osrm.test")
    provider = build_provider("osrm")

    assert isinstance(provider, OSRMDirectionsClient)
    provider.close()


def test_geocoding_resolver_returns_first_result():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["address"] == "Central Park"
        return httpx.Response(
            200,
            json={"status": "OK", "results": [{"geometry": {"location": {"lat": 40.78, "lng": -73.96}}}]},
        )

    resolver = GoogleGeocodingResolver(
        api_key="k", base_url="https://maps.test/geocode/json", client=httpx.Client(transport=httpx.MockTransport(handler))
    )

    assert resolver.resolve("  Central Park ") == GeoPoint(40.78, -73.96)


def test_geocoding_resolver_zero_results_and_failures():
    responses = iter(
        [
            httpx.Response(200, json={"status": "ZERO_RESULTS", "results": []}),
            httpx.Response(200, json={"status": "REQUEST_DENIED", "error_message": "bad key"}),
            httpx.Response(500, text="boom"),
        ]
    )
    resolver = GoogleGeocodingResolver(
        api_key="k",
        base_url="https://maps.test/geocode/json",
        client=httpx.Client(transport=httpx.MockTransport(lambda request: next(responses))),
    )

    assert resolver.resolve("Atlantis") is None
    with pytest.raises(PlaceLookupError, match="bad key"):
        resolver.resolve("Atlantis")
    with pytest.raises(PlaceLookupError):
        resolver.resolve("Atlantis")
