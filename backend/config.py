"""SafeRoute Backend — Configuration & Constants"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env from project root (one level up from backend/)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path)

# ── Provider ──
TOMTOM_API_KEY = os.environ.get("TOMTOM_API_KEY", "")
TOMTOM_BASE_URL = os.environ.get("TOMTOM_BASE_URL", "https://api.tomtom.com")
COUNTRY_SET = os.environ.get("COUNTRY_SET", "IN")
PROVIDER_TIMEOUT = float(os.environ.get("PROVIDER_TIMEOUT", "5.0"))  # seconds, per remote call

# ── Pacing (seconds) ──
REQUEST_INTERVAL = float(os.environ.get("REQUEST_INTERVAL", "0.05"))  # between any two provider calls
POI_INTERVAL = float(os.environ.get("POI_INTERVAL", "0.2"))            # before each POI search
POINT_INTERVAL = float(os.environ.get("POINT_INTERVAL", "0.5"))        # between sample points

# ── Pipeline ──
SAMPLE_COUNT = max(1, int(os.environ.get("SAMPLE_COUNT", "2")))
MAX_ALTERNATIVES = int(os.environ.get("MAX_ALTERNATIVES", "2"))
POI_RADIUS_METERS = 5000
POI_LIMIT = 3
POLICE_CATEGORY = "police station"
HOSPITAL_CATEGORY = "hospital medical center"

# 0 disables the signal cache
SIGNAL_CACHE_TTL = int(os.environ.get("SIGNAL_CACHE_TTL", "0"))
SIGNAL_CACHE_SIZE = int(os.environ.get("SIGNAL_CACHE_SIZE", "2048"))

# ── Inbound API ──
API_RATE_LIMIT = int(os.environ.get("API_RATE_LIMIT", "30"))  # requests per minute per client
API_RATE_WINDOW = 60

# ── Area classification ──
# Commercial keywords win when both lists match.
COMMERCIAL_KEYWORDS = [
    "market", "mall", "commercial", "shopping", "mg road", "main road",
    "corporate", "business", "trade", "shop", "store", "plaza", "complex",
    "center", "centre", "business park", "industrial", "trade center",
    "kurla", "bandra", "express", "highway", "link road", "sea link",
]

RESIDENTIAL_KEYWORDS = [
    "residential", "colony", "society", "nagar", "vihar", "enclave",
    "apartment", "housing", "sector", "block", "phase", "estate",
    "villa", "residency", "home", "house",
]

# Reverse-geocode address fields joined for keyword matching (in this order)
ADDRESS_FIELDS = [
    "freeformAddress", "street", "streetName", "localName",
    "municipality", "municipalitySubdivision", "countrySubdivision",
]

# name → (south, west, north, east)
COMMERCIAL_METRO_BOUNDS = {
    "mumbai": (18.9, 72.7, 19.3, 72.9),
}

DENSE_METRO_BOUNDS = {
    "mumbai": (18.9, 72.7, 19.3, 72.9),
}

# Inclusive local-hour ranges
PEAK_HOURS = [(7, 11), (17, 21)]

# ── Derived sub-scores ──
LIGHTING_SCORES = {
    "commercial": 90,
    "residential": 75,
    "mixed": 65,
    "default": 55,
}

DENSITY_SCORES = {
    "commercial": 90,
    "residential": 80,
    "mixed": 70,
    "default": 60,
}

# name → (lat, lng, road safety)
CITY_ROAD_SAFETY = {
    "delhi": (28.6139, 77.2090, 85),
    "mumbai": (19.0760, 72.8777, 80),
    "bangalore": (12.9716, 77.5946, 88),
    "chennai": (13.0827, 80.2707, 82),
    "kolkata": (22.5726, 88.3639, 80),
    "hyderabad": (17.3850, 78.4867, 85),
    "jaipur": (26.9124, 75.7873, 80),
    "ahmedabad": (23.0225, 72.5714, 82),
}
CITY_RADIUS_KM = 50
BASELINE_ROAD_SAFETY = 75

AREA_SAFETY_BASE = 70
AREA_SAFETY_POLICE_STEP, AREA_SAFETY_POLICE_CAP = 8, 25
AREA_SAFETY_HOSPITAL_STEP, AREA_SAFETY_HOSPITAL_CAP = 7, 20
AREA_SAFETY_INCIDENT_STEP, AREA_SAFETY_INCIDENT_CAP = 3, 20
AREA_TYPE_BONUS = {"commercial": 15, "residential": 10}

# Traffic: current/free-flow speed ratio thresholds → incident severity
CONGESTION_LEVELS = [(0.5, 2), (0.7, 1)]

# ── Aggregation ──
# Applied to count fields exactly like percentage fields.
FACTOR_WEIGHTS = {
    "lighting": 0.15,
    "populationDensity": 0.12,
    "policeStations": 0.18,
    "hospitals": 0.12,
    "roadType": 0.20,
    "trafficIncidents": 0.08,
    "areaSafety": 0.15,
}
SCORE_BOOST = 1.10

DEFAULT_SAFETY_FACTORS = {
    "lighting": 70,
    "populationDensity": 70,
    "policeStations": 2,
    "hospitals": 2,
    "roadType": 70,
    "trafficIncidents": 0,
    "areaSafety": 70,
}
DEFAULT_OVERALL_SCORE = 70

# Substituted when a sub-signal cannot be collected
DEFAULT_POI_COUNT = 2
DEFAULT_TRAFFIC_INCIDENTS = 0

DATA_SOURCES = [
    "TomTom Search API - Points of Interest",
    "TomTom Traffic API - Incident Data",
    "TomTom Geocoding API - Area Classification",
    "TomTom Routing API - Road Infrastructure",
]
