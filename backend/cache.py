"""SafeRoute Backend — Optional time-bounded signal cache"""

import logging
from typing import Any, Optional

from cachetools import TTLCache

logger = logging.getLogger("saferoute.cache")

_MISSING = object()


class SignalCache:
    """Caches successful provider signals per (category, rounded coordinate).

    Nearby sample points across requests collapse onto the same key once the
    coordinate is rounded to `precision` decimal places (~110 m at 3 dp).
    """

    def __init__(self, ttl: int = 900, max_size: int = 2048, precision: int = 3):
        self._store = TTLCache(maxsize=max_size, ttl=ttl)
        self._precision = precision

    def key(self, category: str, lat: float, lng: float) -> tuple:
        return (category, round(lat, self._precision), round(lng, self._precision))

    def get(self, category: str, lat: float, lng: float) -> Optional[Any]:
        value = self._store.get(self.key(category, lat, lng), _MISSING)
        if value is _MISSING:
            return None
        logger.debug(f"Signal cache hit for {category} at {lat:.3f},{lng:.3f}")
        return value

    def set(self, category: str, lat: float, lng: float, value: Any):
        self._store[self.key(category, lat, lng)] = value


def build_signal_cache(ttl: int, max_size: int = 2048) -> Optional[SignalCache]:
    """Return a cache when `ttl` is positive, otherwise None (caching off)."""
    if ttl <= 0:
        return None
    return SignalCache(ttl=ttl, max_size=max_size)
