"""Shared fixtures: a scripted TomTom stand-in behind httpx.MockTransport."""

import httpx
import pytest

from data_fetchers import TomTomProvider
from factors import SafetyFactorCollector
from pipeline import RoutePipeline
from rate_limit import RequestPacer

BANDRA = (19.0760, 72.8777)
DADAR = (19.0176, 72.8562)


def line_points(start, end, n):
    """n evenly spaced points from start to end, inclusive."""
    (lat1, lng1), (lat2, lng2) = start, end
    return [
        {"latitude": lat1 + (lat2 - lat1) * i / (n - 1),
         "longitude": lng1 + (lng2 - lng1) * i / (n - 1)}
        for i in range(n)
    ]


def route_payload(points, length=5000, travel_time=900):
    return {
        "legs": [{"points": points}],
        "summary": {"lengthInMeters": length, "travelTimeInSeconds": travel_time},
    }


class FakeTomTom:
    """Answers provider requests by endpoint kind and records them.

    Kinds: geocode, route, police, hospital, traffic, reverse, keycheck.
    A response may be an httpx.Response, a (status, json) tuple, or an
    exception instance to raise.
    """

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.responses = {
            "geocode": (200, {"results": [{
                "position": {"lat": BANDRA[0], "lon": BANDRA[1]},
                "address": {"freeformAddress": "Bandra West, Mumbai, Maharashtra"},
            }]}),
            "route": (200, {"routes": [route_payload(line_points(BANDRA, DADAR, 10))]}),
            "police": (200, {"results": [{"id": i} for i in range(3)]}),
            "hospital": (200, {"results": [{"id": i} for i in range(3)]}),
            "traffic": (200, {"flowSegmentData": {"currentSpeed": 40, "freeFlowSpeed": 50}}),
            "reverse": (200, {"addresses": [{"address": {
                "freeformAddress": "Hill Road, Bandra West, Mumbai",
                "municipality": "Mumbai",
                "countrySubdivision": "Maharashtra",
            }}]}),
            "keycheck": (200, {"results": []}),
        }

    @staticmethod
    def kind_of(request: httpx.Request) -> str:
        path = request.url.path
        if "/calculateRoute/" in path:
            return "route"
        if "/poiSearch/" in path:
            return "police" if "police" in path else "hospital"
        if "/flowSegmentData/" in path:
            return "traffic"
        if "/reverseGeocode/" in path:
            return "reverse"
        if path.endswith("/geocode/mumbai.json") and "countrySet" not in request.url.params:
            return "keycheck"
        return "geocode"

    def set(self, kind, status=200, json=None, error=None):
        self.responses[kind] = error if error is not None else (status, json if json is not None else {})

    def count(self, kind=None) -> int:
        if kind is None:
            return len(self.requests)
        return sum(1 for r in self.requests if self.kind_of(r) == kind)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses[self.kind_of(request)]
        if isinstance(response, Exception):
            raise response
        if isinstance(response, httpx.Response):
            return response
        status, body = response
        return httpx.Response(status, json=body)


@pytest.fixture
def fake():
    return FakeTomTom()


def make_provider(fake, pacer=None):
    client = httpx.AsyncClient(transport=httpx.MockTransport(fake.handler))
    return TomTomProvider(client, api_key="test-key", base_url="https://api.tomtom.test",
                          pacer=pacer or RequestPacer(0))


@pytest.fixture
def provider(fake):
    return make_provider(fake)


@pytest.fixture
def collector(provider):
    return SafetyFactorCollector(provider, poi_spacing=0, spacing=0)


@pytest.fixture
def pipeline(provider, collector):
    return RoutePipeline(provider, collector=collector, point_interval=0)
