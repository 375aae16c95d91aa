"""SafeRoute Backend — Area classification (commercial / residential / mixed)"""

import logging
from typing import Optional

from config import (
    COMMERCIAL_KEYWORDS, RESIDENTIAL_KEYWORDS, ADDRESS_FIELDS,
    COMMERCIAL_METRO_BOUNDS, REQUEST_INTERVAL,
)
from errors import ProviderError
from models import AreaType
from scoring import in_bounds

logger = logging.getLogger("saferoute.area")


def address_text(address: dict) -> str:
    """Join the non-empty descriptive address fields into one lowercase string."""
    parts = [address.get(field) for field in ADDRESS_FIELDS]
    return " ".join(str(p) for p in parts if p not in (None, "")).lower()


def classify_address(text: str) -> Optional[AreaType]:
    """Keyword match; commercial wins when both lists hit."""
    if not text:
        return None
    if any(keyword in text for keyword in COMMERCIAL_KEYWORDS):
        return AreaType.COMMERCIAL
    if any(keyword in text for keyword in RESIDENTIAL_KEYWORDS):
        return AreaType.RESIDENTIAL
    return None


def classify_by_region(lat: float, lng: float) -> AreaType:
    for name, bounds in COMMERCIAL_METRO_BOUNDS.items():
        if in_bounds(lat, lng, bounds):
            logger.info(f"{name.title()} commercial area detected via coordinates")
            return AreaType.COMMERCIAL
    return AreaType.MIXED


class AreaClassifier:
    """Reverse-geocode keyword heuristic with a bounding-box fallback. Never raises."""

    def __init__(self, provider, cache=None, spacing: float = REQUEST_INTERVAL):
        self.provider = provider
        self.cache = cache
        self.spacing = spacing

    async def _reverse_geocode(self, lat: float, lng: float) -> dict:
        if self.cache is not None:
            cached = self.cache.get("address", lat, lng)
            if cached is not None:
                return cached
        address = await self.provider.reverse_geocode(lat, lng, spacing=self.spacing)
        if self.cache is not None and address:
            self.cache.set("address", lat, lng, address)
        return address

    async def classify(self, lat: float, lng: float) -> AreaType:
        try:
            address = await self._reverse_geocode(lat, lng)
        except ProviderError as e:
            logger.warning(f"Reverse geocoding failed ({e.reason.value}), using region fallback")
            return classify_by_region(lat, lng)

        area_type = classify_address(address_text(address))
        if area_type is not None:
            logger.debug(f"Area type detected: {area_type.value}")
            return area_type
        return classify_by_region(lat, lng)
