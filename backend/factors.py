"""SafeRoute Backend — Per-point safety factor collection

Each remote sub-signal is captured as a Signal (value or failure reason).
Defaults for failed signals are applied in one place, the "Default
substitution" section below, so collection never raises.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Awaitable, Callable, Generic, Optional, TypeVar

from config import (
    POLICE_CATEGORY, HOSPITAL_CATEGORY, POI_INTERVAL, REQUEST_INTERVAL,
    DEFAULT_POI_COUNT, DEFAULT_TRAFFIC_INCIDENTS,
    DENSE_METRO_BOUNDS, PEAK_HOURS, CONGESTION_LEVELS,
    LIGHTING_SCORES, DENSITY_SCORES,
    CITY_ROAD_SAFETY, CITY_RADIUS_KM, BASELINE_ROAD_SAFETY,
    AREA_SAFETY_BASE, AREA_TYPE_BONUS,
    AREA_SAFETY_POLICE_STEP, AREA_SAFETY_POLICE_CAP,
    AREA_SAFETY_HOSPITAL_STEP, AREA_SAFETY_HOSPITAL_CAP,
    AREA_SAFETY_INCIDENT_STEP, AREA_SAFETY_INCIDENT_CAP,
)
from area import AreaClassifier
from errors import FailureReason, ProviderError
from models import AreaType, SafetyFactors, TrafficFlow
from scoring import haversine_km, in_bounds

logger = logging.getLogger("saferoute.factors")

T = TypeVar("T")


@dataclass(frozen=True)
class Signal(Generic[T]):
    value: Optional[T] = None
    failure: Optional[FailureReason] = None

    @property
    def ok(self) -> bool:
        return self.failure is None


async def attempt(call: Awaitable[T], label: str) -> Signal:
    try:
        return Signal(value=await call)
    except ProviderError as e:
        logger.warning(f"{label} unavailable ({e.reason.value}): {e}")
        return Signal(failure=e.reason)


# ─────────────────────────── Derived sub-scores ─────────────────

def estimate_lighting(area_type: Optional[AreaType]) -> int:
    key = area_type.value if area_type else "default"
    return LIGHTING_SCORES.get(key, LIGHTING_SCORES["default"])


def estimate_population_density(area_type: Optional[AreaType]) -> int:
    key = area_type.value if area_type else "default"
    return DENSITY_SCORES.get(key, DENSITY_SCORES["default"])


def estimate_road_safety(lat: float, lng: float) -> int:
    """Best road-safety constant among known cities within range, else the baseline."""
    best = BASELINE_ROAD_SAFETY
    for city_lat, city_lng, safety in CITY_ROAD_SAFETY.values():
        if haversine_km(lat, lng, city_lat, city_lng) < CITY_RADIUS_KM:
            best = max(best, safety)
    return best


def calculate_area_safety(police: int, hospitals: int, incidents: int,
                          area_type: Optional[AreaType]) -> int:
    score = AREA_SAFETY_BASE
    if police > 0:
        score += min(AREA_SAFETY_POLICE_CAP, police * AREA_SAFETY_POLICE_STEP)
    if hospitals > 0:
        score += min(AREA_SAFETY_HOSPITAL_CAP, hospitals * AREA_SAFETY_HOSPITAL_STEP)
    if area_type is not None:
        score += AREA_TYPE_BONUS.get(area_type.value, 0)
    if incidents > 0:
        score -= min(AREA_SAFETY_INCIDENT_CAP, incidents * AREA_SAFETY_INCIDENT_STEP)
    return max(0, min(100, score))


def congestion_severity(flow: Optional[TrafficFlow]) -> int:
    """0, 1 or 2 depending on how far current speed falls below free flow."""
    if flow is None:
        return 0
    for ratio, severity in CONGESTION_LEVELS:
        if flow.currentSpeed < flow.freeFlowSpeed * ratio:
            return severity
    return 0


def is_peak_hour(hour: int) -> bool:
    return any(start <= hour <= end for start, end in PEAK_HOURS)


def estimate_incidents_by_clock(lat: float, lng: float, now: datetime) -> int:
    """Peak hours inside a dense metro suggest at least one incident."""
    if not is_peak_hour(now.hour):
        return 0
    if any(in_bounds(lat, lng, b) for b in DENSE_METRO_BOUNDS.values()):
        return 1
    return 0


# ─────────────────────────── Default substitution ───────────────

# Traffic failures that mean "no data here" rather than "told to back off"
_TRAFFIC_HEURISTIC_FAILURES = {
    FailureReason.NOT_FOUND,
    FailureReason.TIMEOUT,
    FailureReason.TRANSPORT,
    FailureReason.MALFORMED,
}


def resolve_poi_count(signal: Signal) -> int:
    return signal.value if signal.ok else DEFAULT_POI_COUNT


def resolve_incidents(signal: Signal, lat: float, lng: float,
                      clock: Callable[[], datetime]) -> int:
    if signal.ok:
        return congestion_severity(signal.value)
    if signal.failure in _TRAFFIC_HEURISTIC_FAILURES:
        return estimate_incidents_by_clock(lat, lng, clock())
    return DEFAULT_TRAFFIC_INCIDENTS


# ─────────────────────────── Collector ──────────────────────────

class SafetyFactorCollector:
    """Gathers the raw signals for one coordinate, sequentially and paced."""

    def __init__(
        self,
        provider,
        area_classifier: Optional[AreaClassifier] = None,
        cache=None,
        clock: Callable[[], datetime] = datetime.now,
        poi_spacing: float = POI_INTERVAL,
        spacing: float = REQUEST_INTERVAL,
    ):
        self.provider = provider
        self.cache = cache
        self.area_classifier = area_classifier or AreaClassifier(provider, cache=cache, spacing=spacing)
        self.clock = clock
        self.poi_spacing = poi_spacing
        self.spacing = spacing

    async def _cached(self, category: str, lat: float, lng: float, fetch: Callable[[], Awaitable]) -> Signal:
        if self.cache is not None:
            cached = self.cache.get(category, lat, lng)
            if cached is not None:
                return Signal(value=cached)
        signal = await attempt(fetch(), category)
        if self.cache is not None and signal.ok and signal.value is not None:
            self.cache.set(category, lat, lng, signal.value)
        return signal

    async def poi_signal(self, lat: float, lng: float, category: str) -> Signal:
        return await self._cached(
            category, lat, lng,
            lambda: self.provider.count_pois(lat, lng, category, spacing=self.poi_spacing),
        )

    async def traffic_signal(self, lat: float, lng: float) -> Signal:
        return await self._cached(
            "traffic", lat, lng,
            lambda: self.provider.traffic_flow(lat, lng, spacing=self.spacing),
        )

    async def collect(self, lat: float, lng: float) -> SafetyFactors:
        police_signal = await self.poi_signal(lat, lng, POLICE_CATEGORY)
        hospital_signal = await self.poi_signal(lat, lng, HOSPITAL_CATEGORY)
        traffic_signal = await self.traffic_signal(lat, lng)
        area_type = await self.area_classifier.classify(lat, lng)

        police = resolve_poi_count(police_signal)
        hospitals = resolve_poi_count(hospital_signal)
        incidents = resolve_incidents(traffic_signal, lat, lng, self.clock)
        logger.info(
            f"Factors at {lat:.4f},{lng:.4f}: police={police} hospitals={hospitals} "
            f"incidents={incidents} area={area_type.value}"
        )

        return SafetyFactors(
            lighting=estimate_lighting(area_type),
            populationDensity=estimate_population_density(area_type),
            policeStations=police,
            hospitals=hospitals,
            roadType=estimate_road_safety(lat, lng),
            trafficIncidents=incidents,
            areaSafety=calculate_area_safety(police, hospitals, incidents, area_type),
        )
