"""SafeRoute Backend — Route sampling, safety aggregation & presentation helpers"""

import math
from typing import Sequence, TypeVar

import numpy as np

from config import (
    FACTOR_WEIGHTS, SCORE_BOOST, DEFAULT_SAFETY_FACTORS, DEFAULT_OVERALL_SCORE,
    DATA_SOURCES,
)
from models import SafetyFactors, RouteSafetyScore

T = TypeVar("T")

FACTOR_FIELDS = list(FACTOR_WEIGHTS)
_WEIGHT_VECTOR = np.array([FACTOR_WEIGHTS[f] for f in FACTOR_FIELDS])

GENERIC_WARNING = "Safety data unavailable for this route, showing estimated values"
SAFE_ROUTE_MESSAGE = "Route appears generally safe"


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
#  Geo utilities
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in kilometres (Haversine formula)."""
    R = 6371.0
    dlat = math.radians(lat2 - lat1)
    dlng = math.radians(lng2 - lng1)
    a = (math.sin(dlat / 2) ** 2
         + math.cos(math.radians(lat1))
         * math.cos(math.radians(lat2))
         * math.sin(dlng / 2) ** 2)
    a = max(0.0, min(1.0, a))
    return R * 2 * math.atan2(math.sqrt(a), math.sqrt(1.0 - a))


def bounding_box(lat: float, lng: float, radius_km: float) -> str:
    """`minLon,minLat,maxLon,maxLat` square around a point (111 km per degree).

    Not used by the scoring path; kept for TomTom endpoints that take a
    `boundingBox` parameter (e.g. incident details).
    """
    delta = radius_km / 111
    return f"{lng - delta:.6f},{lat - delta:.6f},{lng + delta:.6f},{lat + delta:.6f}"


def in_bounds(lat: float, lng: float, bounds: tuple[float, float, float, float]) -> bool:
    south, west, north, east = bounds
    return south <= lat <= north and west <= lng <= east


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
#  Route sampling
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def sample_route_points(coordinates: Sequence[T], count: int) -> list[T]:
    """Fixed-stride systematic sample of `count` points, order preserved.

    Routes with no more than `count` points come back unchanged. Otherwise
    step = len // count and indices 0, step, 2*step, ... are taken, with the
    last index clamped to the final point.
    """
    if count <= 0:
        return []
    if len(coordinates) <= count:
        return list(coordinates)
    step = len(coordinates) // count
    last = len(coordinates) - 1
    return [coordinates[min(i * step, last)] for i in range(count)]


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
#  Aggregation
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def default_safety_factors() -> SafetyFactors:
    return SafetyFactors(**DEFAULT_SAFETY_FACTORS)


def default_safety_score() -> RouteSafetyScore:
    return RouteSafetyScore(
        overallScore=DEFAULT_OVERALL_SCORE,
        factors=default_safety_factors(),
        warnings=[GENERIC_WARNING],
        recommendations=[SAFE_ROUTE_MESSAGE],
        dataSources=list(DATA_SOURCES),
    )


def weighted_score(means: np.ndarray) -> int:
    """Weighted sum, then the flat boost, then clamp to [0, 100]."""
    boosted = float(means @ _WEIGHT_VECTOR) * SCORE_BOOST
    return round_half_up(max(0.0, min(100.0, boosted)))


def aggregate_safety_factors(per_point: Sequence[SafetyFactors]) -> RouteSafetyScore:
    """Combine per-sample factors into one route score. Pure and total.

    The overall score uses the unrounded per-field means; the reported
    factors are the means rounded half-up.
    """
    if not per_point:
        return default_safety_score()

    matrix = np.array(
        [[getattr(f, field) for field in FACTOR_FIELDS] for f in per_point],
        dtype=float,
    )
    means = matrix.mean(axis=0)
    aggregated = SafetyFactors(**{
        field: round_half_up(m) for field, m in zip(FACTOR_FIELDS, means)
    })

    return RouteSafetyScore(
        overallScore=weighted_score(means),
        factors=aggregated,
        warnings=generate_warnings(aggregated),
        recommendations=generate_recommendations(aggregated),
        dataSources=list(DATA_SOURCES),
    )


def generate_warnings(factors: SafetyFactors) -> list[str]:
    warnings = []
    if factors.policeStations == 0:
        warnings.append("Limited police presence in this area")
    if factors.trafficIncidents > 3:
        warnings.append("Higher than average traffic incidents reported")
    if factors.lighting < 50:
        warnings.append("Area may have limited street lighting")
    if factors.hospitals == 0:
        warnings.append("No hospitals in immediate vicinity")
    return warnings


def generate_recommendations(factors: SafetyFactors) -> list[str]:
    recommendations = []
    if factors.policeStations == 0:
        recommendations.append("Stay on main roads with more traffic")
    if factors.trafficIncidents > 2:
        recommendations.append("Be aware of recent traffic incidents in area")
    if factors.lighting < 60:
        recommendations.append("Consider traveling during daylight hours")
    if factors.hospitals == 0:
        recommendations.append("Keep emergency contacts handy")
    return recommendations or [SAFE_ROUTE_MESSAGE]


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
#  Presentation
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

_ROUTE_LABELS = ["Safest Route", "Balanced Route", "Fastest Route"]


def route_label(index: int) -> str:
    """Card label by provider order (index 0 is the provider's primary route)."""
    if index < len(_ROUTE_LABELS):
        return _ROUTE_LABELS[index]
    return f"Alternative Route {index + 1}"


def describe_safety(score: int) -> str:
    """
    Mapping:
      >= 85  → Very Safe Route
      70-84  → Safe Route
      55-69  → Moderately Safe
      < 55   → Use Caution
    """
    if score >= 85:
        return "Very Safe Route"
    elif score >= 70:
        return "Safe Route"
    elif score >= 55:
        return "Moderately Safe"
    else:
        return "Use Caution"


def safety_band(score: int) -> str:
    if score >= 80:
        return "Very Safe"
    elif score >= 60:
        return "Moderately Safe"
    else:
        return "Use Caution"


def route_advantages(score: int, index: int) -> list[str]:
    advantages = []
    if score >= 80:
        advantages += ["Well-lit areas throughout", "Frequent police patrols", "Good CCTV coverage"]
    if index == 0:
        advantages += ["Most popular route", "Well-maintained roads"]
    if score >= 70:
        advantages += ["Adequate street lighting", "Busy main roads"]
    return advantages or ["Direct route available"]


def route_disadvantages(score: int, index: int) -> list[str]:
    disadvantages = []
    if score < 60:
        disadvantages += ["Some poorly lit areas", "Less crowded streets"]
    if index == 2:
        disadvantages.append("May pass through isolated areas")
    if score < 70:
        disadvantages.append("Limited surveillance in some sections")
    return disadvantages or ["Standard route precautions apply"]


def format_distance(meters: float) -> str:
    return f"{meters / 1000:.1f} km"


def format_duration(seconds: float) -> str:
    mins = round_half_up(seconds / 60)
    if mins >= 60:
        return f"{mins // 60} hour {mins % 60} mins"
    return f"{mins} mins"
