"""SafeRoute Backend — FastAPI Routes"""

import logging
import time
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import (
    TOMTOM_API_KEY, PROVIDER_TIMEOUT, REQUEST_INTERVAL,
    SIGNAL_CACHE_TTL, SIGNAL_CACHE_SIZE, API_RATE_LIMIT, API_RATE_WINDOW,
)
from cache import build_signal_cache
from data_fetchers import TomTomProvider, build_client
from errors import (
    ProviderError, ConfigurationError, RateLimited, NoResultsError,
)
from factors import SafetyFactorCollector
from models import (
    Location, RouteRequest, RouteResponse, PointRequest, SafetyFactors,
    ScoredRouteOut, KeyStatus,
)
from pipeline import RoutePipeline
from rate_limit import RequestPacer
from scoring import (
    route_label, describe_safety, safety_band, route_advantages,
    route_disadvantages, format_distance, format_duration,
)

logger = logging.getLogger("saferoute.api")

API_VERSION = "1.0.0"

# ─────────────────────────── App Setup ──────────────────────────

app = FastAPI(title="SafeRoute Safety API", version=API_VERSION)

_allowed_origins = [
    f"http://localhost:{p}" for p in (8081, 19000, 19006)
] + [
    f"http://127.0.0.1:{p}" for p in (8081, 19000, 19006)
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=_allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ─────────────────────────── Provider wiring ────────────────────

_pipeline: Optional[RoutePipeline] = None


async def get_pipeline() -> RoutePipeline:
    """Process-wide pipeline; one pacer so concurrent searches share the provider budget.

    Runs on the event loop and never awaits, so the first build cannot
    interleave with another request's.
    """
    global _pipeline
    if _pipeline is None:
        if not TOMTOM_API_KEY:
            logger.warning("TOMTOM_API_KEY is not set, provider calls will be rejected")
        provider = TomTomProvider(build_client(PROVIDER_TIMEOUT), pacer=RequestPacer(REQUEST_INTERVAL))
        cache = build_signal_cache(SIGNAL_CACHE_TTL, SIGNAL_CACHE_SIZE)
        _pipeline = RoutePipeline(provider, SafetyFactorCollector(provider, cache=cache))
    return _pipeline


@app.on_event("startup")
async def startup_event():
    await get_pipeline()
    logger.info("SafeRoute API ready")


@app.on_event("shutdown")
async def shutdown_event():
    if _pipeline is not None:
        await _pipeline.provider.client.aclose()


# ─────────────────────────── Rate Limiting ──────────────────────

_rate_store: dict[str, list[float]] = {}
_RATE_EVICT_INTERVAL = 300  # evict stale clients every 5 minutes
_last_rate_evict = 0.0


@app.middleware("http")
async def rate_limit_middleware(request: Request, call_next):
    client_ip = request.client.host if request.client else "unknown"
    now = time.time()

    global _last_rate_evict
    if now - _last_rate_evict > _RATE_EVICT_INTERVAL:
        stale_ips = [ip for ip, timestamps in _rate_store.items()
                     if not timestamps or now - timestamps[-1] > API_RATE_WINDOW * 2]
        for ip in stale_ips:
            del _rate_store[ip]
        _last_rate_evict = now

    window = [t for t in _rate_store.get(client_ip, []) if now - t < API_RATE_WINDOW]
    _rate_store[client_ip] = window

    if len(window) >= API_RATE_LIMIT:
        return JSONResponse(
            status_code=429,
            content={"detail": "Rate limit exceeded. Try again in a minute."},
        )

    window.append(now)
    return await call_next(request)


# ─────────────────────────── Error mapping ──────────────────────

def _status_for(error: ProviderError) -> int:
    if isinstance(error, ConfigurationError):
        return 503
    if isinstance(error, NoResultsError):
        return 404
    if isinstance(error, RateLimited):
        return 429
    return 502


@app.exception_handler(ProviderError)
async def provider_error_handler(request: Request, exc: ProviderError):
    status = _status_for(exc)
    logger.warning(f"{request.url.path} failed ({exc.reason.value}): {exc}")
    return JSONResponse(status_code=status, content={"detail": str(exc), "reason": exc.reason.value})


# ─────────────────────────── Endpoints ──────────────────────────

async def _resolve_endpoint(pipeline: RoutePipeline, address: str,
                            lat: Optional[float], lng: Optional[float]) -> Location:
    if lat is not None and lng is not None:
        return Location(latitude=lat, longitude=lng, address=address)
    try:
        return await pipeline.provider.geocode(address)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))


@app.post("/api/routes", response_model=RouteResponse)
async def get_routes(req: RouteRequest, pipeline: RoutePipeline = Depends(get_pipeline)):
    start = await _resolve_endpoint(pipeline, req.source, req.sourceLat, req.sourceLng)
    end = await _resolve_endpoint(pipeline, req.destination, req.destLat, req.destLng)

    scored = await pipeline.calculate_routes(start, end, travel_mode=req.travelMode)

    routes = []
    for index, item in enumerate(scored):
        score = item.safety.overallScore
        routes.append(ScoredRouteOut(
            id=f"route-{index}",
            label=route_label(index),
            description=describe_safety(score),
            safetyLabel=safety_band(score),
            distance=format_distance(item.route.distanceMeters),
            duration=format_duration(item.route.durationSeconds),
            distanceMeters=item.route.distanceMeters,
            durationSeconds=item.route.durationSeconds,
            polyline=[[p.latitude, p.longitude] for p in item.route.coordinates],
            safety=item.safety,
            advantages=route_advantages(score, index),
            disadvantages=route_disadvantages(score, index),
        ))
    return RouteResponse(source=start, destination=end, routes=routes)


@app.post("/api/safety", response_model=SafetyFactors)
async def get_point_safety(req: PointRequest, pipeline: RoutePipeline = Depends(get_pipeline)):
    return await pipeline.collector.collect(req.lat, req.lng)


@app.get("/api/geocode", response_model=Location)
async def geocode(query: str, pipeline: RoutePipeline = Depends(get_pipeline)):
    try:
        return await pipeline.provider.geocode(query)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))


@app.get("/api/key-status", response_model=KeyStatus)
async def key_status(pipeline: RoutePipeline = Depends(get_pipeline)):
    working, message = await pipeline.provider.check_api_key()
    return KeyStatus(working=working, message=message)


@app.get("/api/health")
async def health():
    return {"status": "ok", "provider": "tomtom", "version": API_VERSION}
