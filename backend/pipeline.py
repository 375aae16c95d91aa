"""SafeRoute Backend — Route safety pipeline

calculate_routes() fetches candidate routes and scores each one. Work is
strictly sequential so the whole invocation stays inside the provider's
shared rate limit; cancelling the awaiting task abandons it at the next
network call or pacing wait.
"""

import logging
from typing import Optional

from config import SAMPLE_COUNT, MAX_ALTERNATIVES, POINT_INTERVAL
from factors import SafetyFactorCollector
from models import Location, Route, RouteSafetyScore, SafetyFactors, ScoredRoute
from scoring import aggregate_safety_factors, default_safety_factors, sample_route_points

logger = logging.getLogger("saferoute.pipeline")


class RoutePipeline:
    def __init__(
        self,
        provider,
        collector: Optional[SafetyFactorCollector] = None,
        sample_count: int = SAMPLE_COUNT,
        max_alternatives: int = MAX_ALTERNATIVES,
        point_interval: float = POINT_INTERVAL,
    ):
        self.provider = provider
        self.collector = collector or SafetyFactorCollector(provider)
        self.sample_count = sample_count
        self.max_alternatives = max_alternatives
        self.point_interval = point_interval

    async def _collect_point(self, point: Location, label: str) -> SafetyFactors:
        try:
            return await self.collector.collect(point.latitude, point.longitude)
        except Exception as e:
            logger.error(f"Error processing {label}, using default factors: {e}")
            return default_safety_factors()

    async def score_route(self, route: Route) -> RouteSafetyScore:
        samples = sample_route_points(route.coordinates, self.sample_count)
        logger.info(f"Sampling {len(samples)} of {len(route.coordinates)} points for safety analysis")

        per_point = []
        for i, point in enumerate(samples):
            if i > 0:
                self.provider.pacer.pause(self.point_interval)
            per_point.append(await self._collect_point(point, f"point {i + 1}/{len(samples)}"))

        return aggregate_safety_factors(per_point)

    async def calculate_routes(
        self, start: Location, end: Location, travel_mode: str = "car",
    ) -> list[ScoredRoute]:
        """Score every candidate route, in the provider's order.

        Raises ConfigurationError or RoutingError (NoRoutesFoundError when the
        provider has nothing) from the route-calculation call; nothing past
        that point is fatal.
        """
        routes = await self.provider.calculate_route(
            start, end, travel_mode=travel_mode, max_alternatives=self.max_alternatives,
        )

        scored = []
        for index, route in enumerate(routes):
            logger.info(f"Scoring route {index + 1}/{len(routes)} ({route.distanceMeters:.0f} m)")
            if index > 0:
                self.provider.pacer.pause(self.point_interval)
            safety = await self.score_route(route)
            scored.append(ScoredRoute(route=route, safety=safety))
        return scored
