"""TomTomProvider: request shapes and status-code → error mapping."""

import asyncio

import httpx
import pytest

from conftest import BANDRA, DADAR, route_payload, line_points
from errors import (
    FailureReason, ConfigurationError, RateLimited, TransientProviderError,
    NoResultsError, RoutingError, NoRoutesFoundError,
)
from models import Location

START = Location(latitude=BANDRA[0], longitude=BANDRA[1], address="Bandra")
END = Location(latitude=DADAR[0], longitude=DADAR[1], address="Dadar")


def test_geocode_request_and_result(fake, provider):
    loc = asyncio.run(provider.geocode("  Bandra West  "))
    assert loc == Location(latitude=BANDRA[0], longitude=BANDRA[1],
                           address="Bandra West, Mumbai, Maharashtra")
    req = fake.requests[0]
    assert req.url.path == "/search/2/geocode/Bandra West.json"
    assert "Bandra%20West.json" in str(req.url)
    assert req.url.params["key"] == "test-key"
    assert req.url.params["limit"] == "1"
    assert req.url.params["countrySet"] == "IN"


def test_geocode_falls_back_to_query_text(fake, provider):
    fake.set("geocode", 200, {"results": [{"position": {"lat": 1.0, "lon": 2.0}, "address": {}}]})
    assert asyncio.run(provider.geocode("Dadar")).address == "Dadar"


def test_geocode_empty_address_rejected(fake, provider):
    with pytest.raises(ValueError):
        asyncio.run(provider.geocode("   "))
    assert fake.count() == 0


@pytest.mark.parametrize("status,error", [
    (403, ConfigurationError),
    (429, RateLimited),
    (500, TransientProviderError),
])
def test_geocode_status_mapping(fake, provider, status, error):
    fake.set("geocode", status, {"detail": "nope"})
    with pytest.raises(error) as exc_info:
        asyncio.run(provider.geocode("Bandra"))
    assert exc_info.value.status_code == status


def test_geocode_no_results(fake, provider):
    fake.set("geocode", 200, {"results": []})
    with pytest.raises(NoResultsError, match="more specific address"):
        asyncio.run(provider.geocode("Nowhere"))


def test_calculate_route_request_and_parsing(fake, provider):
    routes = asyncio.run(provider.calculate_route(START, END))
    assert len(routes) == 1
    route = routes[0]
    assert route.distanceMeters == 5000
    assert route.durationSeconds == 900
    assert len(route.coordinates) == 10
    assert route.coordinates[0].latitude == BANDRA[0]
    assert route.summary["lengthInMeters"] == 5000

    req = fake.requests[0]
    assert req.url.path == f"/routing/1/calculateRoute/{BANDRA[0]},{BANDRA[1]}:{DADAR[0]},{DADAR[1]}/json"
    assert req.url.params["travelMode"] == "car"
    assert req.url.params["routeType"] == "fastest"
    assert req.url.params["maxAlternatives"] == "2"


def test_calculate_route_keeps_provider_order(fake, provider):
    fake.set("route", 200, {"routes": [
        route_payload(line_points(BANDRA, DADAR, 4), length=length)
        for length in (7000, 5000, 6000)
    ]})
    routes = asyncio.run(provider.calculate_route(START, END))
    assert [r.distanceMeters for r in routes] == [7000, 5000, 6000]


def test_calculate_route_empty_raises_no_routes(fake, provider):
    fake.set("route", 200, {"routes": []})
    with pytest.raises(NoRoutesFoundError) as exc_info:
        asyncio.run(provider.calculate_route(START, END))
    assert isinstance(exc_info.value, RoutingError)
    assert isinstance(exc_info.value, NoResultsError)


@pytest.mark.parametrize("status,reason", [
    (429, FailureReason.RATE_LIMITED),
    (500, FailureReason.HTTP_ERROR),
    (404, FailureReason.NOT_FOUND),
])
def test_calculate_route_failures_become_routing_errors(fake, provider, status, reason):
    fake.set("route", status, {})
    with pytest.raises(RoutingError) as exc_info:
        asyncio.run(provider.calculate_route(START, END))
    assert exc_info.value.reason is reason


def test_calculate_route_invalid_key_is_configuration_error(fake, provider):
    fake.set("route", 403, {})
    with pytest.raises(ConfigurationError):
        asyncio.run(provider.calculate_route(START, END))


def test_calculate_route_malformed_geometry(fake, provider):
    fake.set("route", 200, {"routes": [{"summary": {}}]})
    with pytest.raises(RoutingError) as exc_info:
        asyncio.run(provider.calculate_route(START, END))
    assert exc_info.value.reason is FailureReason.MALFORMED


def test_count_pois_request(fake, provider):
    fake.set("police", 200, {"results": [{}, {}, {}, {}]})
    assert asyncio.run(provider.count_pois(19.0, 72.8, "police station")) == 3
    req = fake.requests[0]
    assert req.url.path == "/search/2/poiSearch/police station.json"
    assert req.url.params["radius"] == "5000"
    assert req.url.params["limit"] == "3"
    assert req.url.params["lat"] == "19.0"
    assert req.url.params["lon"] == "72.8"


def test_traffic_flow_request(fake, provider):
    flow = asyncio.run(provider.traffic_flow(19.0, 72.8))
    assert flow.currentSpeed == 40
    assert flow.freeFlowSpeed == 50
    req = fake.requests[0]
    assert req.url.path == "/traffic/services/4/flowSegmentData/absolute/10/json"
    assert req.url.params["point"] == "19.0,72.8"
    assert req.url.params["zoom"] == "12"


def test_traffic_flow_missing_segment(fake, provider):
    fake.set("traffic", 200, {})
    assert asyncio.run(provider.traffic_flow(19.0, 72.8)) is None


def test_reverse_geocode_request(fake, provider):
    address = asyncio.run(provider.reverse_geocode(19.0, 72.8))
    assert address["municipality"] == "Mumbai"
    assert fake.requests[0].url.path == "/search/2/reverseGeocode/19.0,72.8.json"


def test_timeout_and_transport_reasons(fake, provider):
    fake.set("traffic", error=httpx.ConnectTimeout("slow"))
    with pytest.raises(TransientProviderError) as exc_info:
        asyncio.run(provider.traffic_flow(19.0, 72.8))
    assert exc_info.value.reason is FailureReason.TIMEOUT

    fake.set("traffic", error=httpx.ConnectError("refused"))
    with pytest.raises(TransientProviderError) as exc_info:
        asyncio.run(provider.traffic_flow(19.0, 72.8))
    assert exc_info.value.reason is FailureReason.TRANSPORT


def test_malformed_json(fake, provider):
    fake.responses["police"] = httpx.Response(200, content=b"<html>")
    with pytest.raises(TransientProviderError) as exc_info:
        asyncio.run(provider.count_pois(19.0, 72.8, "police station"))
    assert exc_info.value.reason is FailureReason.MALFORMED


@pytest.mark.parametrize("response,working,message", [
    ((200, {}), True, "API Key is working correctly!"),
    ((403, {}), False, "API Key is invalid or not activated"),
    ((500, {}), False, "API returned status: 500"),
])
def test_check_api_key(fake, provider, response, working, message):
    fake.responses["keycheck"] = response
    assert asyncio.run(provider.check_api_key()) == (working, message)


def test_check_api_key_transport_error(fake, provider):
    fake.set("keycheck", error=httpx.ConnectError("offline"))
    working, message = asyncio.run(provider.check_api_key())
    assert working is False
    assert "offline" in message
