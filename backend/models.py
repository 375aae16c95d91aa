"""SafeRoute Backend — Pydantic Models"""

from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class AreaType(str, Enum):
    COMMERCIAL = "commercial"
    RESIDENTIAL = "residential"
    MIXED = "mixed"


class Location(BaseModel):
    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float
    address: str = ""


class Route(BaseModel):
    model_config = ConfigDict(frozen=True)

    coordinates: tuple[Location, ...]  # travel order, start → end
    distanceMeters: float
    durationSeconds: float
    summary: dict[str, Any] = Field(default_factory=dict)


class TrafficFlow(BaseModel):
    currentSpeed: float
    freeFlowSpeed: float


_PERCENT_FIELDS = ("lighting", "populationDensity", "roadType", "areaSafety")
_COUNT_FIELDS = ("policeStations", "hospitals", "trafficIncidents")


class SafetyFactors(BaseModel):
    """Safety signal at one sample point, or averaged over a route."""

    lighting: int
    populationDensity: int
    policeStations: int
    hospitals: int
    roadType: int
    trafficIncidents: int
    areaSafety: int

    @field_validator(*_PERCENT_FIELDS, mode="before")
    @classmethod
    def _clamp_percent(cls, v):
        return max(0, min(100, int(v)))

    @field_validator(*_COUNT_FIELDS, mode="before")
    @classmethod
    def _non_negative(cls, v):
        return max(0, int(v))


class RouteSafetyScore(BaseModel):
    overallScore: int = Field(ge=0, le=100)
    factors: SafetyFactors
    warnings: list[str]
    recommendations: list[str]
    dataSources: list[str]


class ScoredRoute(BaseModel):
    route: Route
    safety: RouteSafetyScore


# ─────────────────────────── API models ─────────────────────────

class RouteRequest(BaseModel):
    source: str = ""
    destination: str = ""
    sourceLat: Optional[float] = None
    sourceLng: Optional[float] = None
    destLat: Optional[float] = None
    destLng: Optional[float] = None
    travelMode: str = "car"  # car, pedestrian, bicycle, motorcycle


class PointRequest(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


class ScoredRouteOut(BaseModel):
    id: str
    label: str            # Safest / Balanced / Fastest
    description: str      # score band, e.g. "Safe Route"
    safetyLabel: str
    distance: str
    duration: str
    distanceMeters: float
    durationSeconds: float
    polyline: list[list[float]]  # [[lat, lng], ...]
    safety: RouteSafetyScore
    advantages: list[str] = []
    disadvantages: list[str] = []


class RouteResponse(BaseModel):
    source: Location
    destination: Location
    routes: list[ScoredRouteOut]


class KeyStatus(BaseModel):
    working: bool
    message: str
