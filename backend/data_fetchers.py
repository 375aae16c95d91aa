"""SafeRoute Backend — TomTom GeoProvider client (geocode, routing, POI, traffic)"""

import logging
from typing import Optional
from urllib.parse import quote

import httpx

from config import (
    TOMTOM_API_KEY, TOMTOM_BASE_URL, COUNTRY_SET, PROVIDER_TIMEOUT,
    REQUEST_INTERVAL, MAX_ALTERNATIVES, POI_RADIUS_METERS, POI_LIMIT,
)
from errors import (
    FailureReason, ProviderError, ConfigurationError, RateLimited,
    TransientProviderError, NoResultsError, RoutingError, NoRoutesFoundError,
)
from models import Location, Route, TrafficFlow
from rate_limit import RequestPacer

logger = logging.getLogger("saferoute.provider")


def build_client(timeout: float = PROVIDER_TIMEOUT) -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=timeout)


class TomTomProvider:
    """Thin async wrapper over the TomTom REST endpoints.

    Every method either returns parsed data or raises a ProviderError
    subclass; deciding what to substitute on failure is left to callers.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_key: str = TOMTOM_API_KEY,
        base_url: str = TOMTOM_BASE_URL,
        pacer: Optional[RequestPacer] = None,
    ):
        self.client = client
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.pacer = pacer or RequestPacer(REQUEST_INTERVAL)

    async def _get(self, path: str, params: Optional[dict] = None, spacing: float = 0.0) -> dict:
        await self.pacer.acquire(spacing)
        query = {"key": self.api_key, **(params or {})}
        endpoint = path.split("/")[1]
        try:
            r = await self.client.get(f"{self.base_url}{path}", params=query)
        except httpx.TimeoutException as e:
            raise TransientProviderError(f"{endpoint} timed out: {e}", FailureReason.TIMEOUT) from e
        except httpx.HTTPError as e:
            raise TransientProviderError(f"{endpoint} transport error: {e}", FailureReason.TRANSPORT) from e

        if r.status_code == 403:
            raise ConfigurationError(
                "TomTom API Key Error (403): Your API key is invalid or not activated. "
                "Please check your TomTom dashboard.",
                status_code=403,
            )
        if r.status_code == 429:
            raise RateLimited("Rate limit exceeded. Please try again in a moment.", status_code=429)
        if r.status_code == 404:
            raise TransientProviderError(f"{endpoint} not found (404)", FailureReason.NOT_FOUND, 404)
        if not r.is_success:
            raise TransientProviderError(
                f"TomTom API Error {r.status_code}: {r.text[:200]}",
                FailureReason.HTTP_ERROR, r.status_code,
            )
        try:
            data = r.json()
        except ValueError as e:
            raise TransientProviderError(f"{endpoint} returned invalid JSON", FailureReason.MALFORMED) from e
        if not isinstance(data, dict):
            raise TransientProviderError(f"{endpoint} returned unexpected payload", FailureReason.MALFORMED)
        return data

    # ─────────────────────────── Geocoding ──────────────────────────

    async def geocode(self, address: str) -> Location:
        clean = address.strip()
        if not clean:
            raise ValueError("Address cannot be empty")

        logger.info(f"Geocoding address: {clean}")
        data = await self._get(
            f"/search/2/geocode/{quote(clean, safe='')}.json",
            {"limit": 1, "countrySet": COUNTRY_SET},
        )
        results = data.get("results") or []
        if not results:
            raise NoResultsError(f'No results found for "{address}". Please try a more specific address.')

        try:
            result = results[0]
            position = result["position"]
            return Location(
                latitude=position["lat"],
                longitude=position["lon"],
                address=(result.get("address") or {}).get("freeformAddress") or clean,
            )
        except (KeyError, TypeError, ValueError) as e:
            raise TransientProviderError("Geocode result missing position", FailureReason.MALFORMED) from e

    async def reverse_geocode(self, lat: float, lng: float, spacing: float = 0.0) -> dict:
        """Return the address dict of the first match, or {} when there is none."""
        data = await self._get(f"/search/2/reverseGeocode/{lat},{lng}.json", spacing=spacing)
        addresses = data.get("addresses") or []
        if not addresses:
            return {}
        address = addresses[0].get("address") if isinstance(addresses[0], dict) else None
        return address if isinstance(address, dict) else {}

    # ─────────────────────────── Routing ────────────────────────────

    async def calculate_route(
        self, start: Location, end: Location,
        travel_mode: str = "car", max_alternatives: int = MAX_ALTERNATIVES,
    ) -> list[Route]:
        logger.info(
            f"Calculating routes {start.latitude:.4f},{start.longitude:.4f} → "
            f"{end.latitude:.4f},{end.longitude:.4f} ({travel_mode})"
        )
        try:
            data = await self._get(
                f"/routing/1/calculateRoute/{start.latitude},{start.longitude}:"
                f"{end.latitude},{end.longitude}/json",
                {
                    "travelMode": travel_mode,
                    "routeType": "fastest",
                    "maxAlternatives": max_alternatives,
                },
            )
        except ConfigurationError:
            raise
        except ProviderError as e:
            raise RoutingError(f"Routing failed: {e}", e.reason, e.status_code) from e

        raw_routes = data.get("routes") or []
        if not raw_routes:
            raise NoRoutesFoundError("No routes found between these locations")

        routes = []
        for raw in raw_routes:
            try:
                points = raw["legs"][0]["points"]
                summary = raw.get("summary") or {}
                routes.append(Route(
                    coordinates=[
                        Location(latitude=p["latitude"], longitude=p["longitude"])
                        for p in points
                    ],
                    distanceMeters=summary.get("lengthInMeters", 0),
                    durationSeconds=summary.get("travelTimeInSeconds", 0),
                    summary=summary,
                ))
            except (KeyError, IndexError, TypeError, ValueError) as e:
                raise RoutingError("Routing response missing route geometry",
                                   FailureReason.MALFORMED) from e
        logger.info(f"Routing returned {len(routes)} route(s)")
        return routes

    # ─────────────────────────── POI / Traffic ──────────────────────

    async def count_pois(
        self, lat: float, lng: float, category: str,
        radius: int = POI_RADIUS_METERS, limit: int = POI_LIMIT, spacing: float = 0.0,
    ) -> int:
        data = await self._get(
            f"/search/2/poiSearch/{quote(category, safe='')}.json",
            {"lat": lat, "lon": lng, "radius": radius, "limit": limit},
            spacing=spacing,
        )
        results = data.get("results") or []
        return min(len(results), limit)

    async def traffic_flow(self, lat: float, lng: float, spacing: float = 0.0) -> Optional[TrafficFlow]:
        """Current vs free-flow speed at a point; None when the segment has no data."""
        data = await self._get(
            "/traffic/services/4/flowSegmentData/absolute/10/json",
            {"point": f"{lat},{lng}", "zoom": 12},
            spacing=spacing,
        )
        flow = data.get("flowSegmentData")
        if not flow:
            return None
        try:
            return TrafficFlow(currentSpeed=flow["currentSpeed"], freeFlowSpeed=flow["freeFlowSpeed"])
        except (KeyError, TypeError, ValueError) as e:
            raise TransientProviderError("Traffic flow payload incomplete", FailureReason.MALFORMED) from e

    # ─────────────────────────── Key check ──────────────────────────

    async def check_api_key(self) -> tuple[bool, str]:
        try:
            await self.pacer.acquire()
            r = await self.client.get(
                f"{self.base_url}/search/2/geocode/mumbai.json",
                params={"key": self.api_key, "limit": 1},
            )
        except httpx.HTTPError as e:
            return False, f"API test failed: {e}"
        if r.status_code == 200:
            return True, "API Key is working correctly!"
        if r.status_code == 403:
            return False, "API Key is invalid or not activated"
        return False, f"API returned status: {r.status_code}"
