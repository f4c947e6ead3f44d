import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.middleware.base import BaseHTTPMiddleware

from aws_ip_lookup import __version__
from aws_ip_lookup.address import InvalidAddressError
from aws_ip_lookup.cache import RangeCache
from aws_ip_lookup.config import settings
from aws_ip_lookup.fetcher import FetchFailedError, FetchResult, fetch_ranges
from aws_ip_lookup.lookup import LookupResult, lookup

logger = logging.getLogger(__name__)

INSTANCE_ID = str(uuid.uuid4())
CORS_MAX_AGE_SECONDS = 86400


async def fetch_configured_ranges() -> FetchResult:
    return await fetch_ranges(
        settings.ranges_url,
        timeout=settings.fetch_timeout_seconds,
        max_age=settings.upstream_max_age_seconds,
    )


cache = RangeCache(fetch=fetch_configured_ranges, ttl_seconds=settings.cache_ttl_seconds)
limiter = Limiter(key_func=get_remote_address)


# --- Security Headers Middleware ---


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Referrer-Policy"] = "no-referrer"
        response.headers["Cache-Control"] = "no-store"
        return response


# --- Lifespan ---


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.getLogger().setLevel(settings.log_level.upper())
    logger.info("Starting aws-ip-lookup %s (instance %s)", __version__, INSTANCE_ID)
    if settings.warm_on_startup:
        try:
            await cache.current()
        except FetchFailedError:
            # The first lookup will retry
            logger.exception("Startup cache warm-up failed")
    yield


# --- App ---

app = FastAPI(
    title="AWS IP Lookup",
    lifespan=lifespan,
    docs_url=None,
    redoc_url=None,
    openapi_url=None,
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "HEAD", "OPTIONS"],
    max_age=CORS_MAX_AGE_SECONDS,
)


@app.get("/")
@limiter.limit("60/minute")
async def lookup_ip(request: Request, ip: str | None = Query(None)) -> LookupResult:
    if ip is None:
        raise HTTPException(status_code=400, detail='"ip" parameter is missing!')
    if not ip:
        raise HTTPException(status_code=400, detail='"ip" parameter is empty!')
    try:
        return await lookup(ip, cache)
    except InvalidAddressError:
        logger.info("Rejected invalid ip parameter: %r", ip)
        raise HTTPException(
            status_code=400, detail='"ip" parameter is not a valid IP address!'
        ) from None
    except FetchFailedError:
        logger.exception("Unable to fetch AWS ranges")
        raise HTTPException(status_code=500, detail="Unable to fetch AWS ranges") from None


@app.get("/health")
async def health() -> dict:
    state = cache.state
    return {
        "status": "ok",
        "cache_status": state.cache_status.value if state else None,
        "sync_token": cache.sync_token,
        "create_date": state.table.create_date if state else None,
        "last_refresh": cache.last_refresh.isoformat() if cache.last_refresh else None,
        "ipv4_blocks": len(state.table.ipv4) if state else 0,
        "ipv6_blocks": len(state.table.ipv6) if state else 0,
    }


@app.get("/version")
@limiter.limit("30/minute")
async def version(request: Request) -> dict:
    return {"instance_id": INSTANCE_ID, "version": __version__}
