import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from urllib.parse import urlparse

import httpx

from aws_ip_lookup.ranges import RangesDocument

logger = logging.getLogger(__name__)

AWS_RANGES_URL = "https://ip-ranges.amazonaws.com/ip-ranges.json"
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_MAX_AGE_SECONDS = 3600
MAX_RESPONSE_BYTES = 20 * 1024 * 1024  # 20 MB safety ceiling
PHASE_TIMEOUT_CAP_SECONDS = 10.0

CF_CACHE_HIT_STATUSES = frozenset({"HIT", "STALE", "UPDATING", "REVALIDATED"})


class FetchFailedError(RuntimeError):
    pass


class CacheStatus(str, Enum):
    """Where the ranges behind a lookup came from.

    HIT and MISS describe the upstream edge cache on the request that loaded
    the table; LOCAL means the table was already held in this process.
    """

    HIT = "HIT"
    MISS = "MISS"
    LOCAL = "LOCAL"


@dataclass(frozen=True)
class FetchResult:
    document: RangesDocument
    cache_status: CacheStatus


def _validate_ranges_url(url: str) -> str:
    parsed = urlparse(url)
    if parsed.scheme != "https":
        raise ValueError(f"Expected HTTPS URL, got scheme: {parsed.scheme!r}")
    return url


def _cache_status(headers) -> CacheStatus:
    # CloudFront fronts ip-ranges.amazonaws.com; Cloudflare when proxied through a worker
    x_cache = (headers.get("x-cache") or "").lower()
    if x_cache.startswith(("hit", "refreshhit")):
        return CacheStatus.HIT
    if (headers.get("cf-cache-status") or "").upper() in CF_CACHE_HIT_STATUSES:
        return CacheStatus.HIT
    return CacheStatus.MISS


async def _download(url: str, timeout: float, max_age: int) -> tuple[RangesDocument, httpx.Headers]:
    phase_timeout = min(PHASE_TIMEOUT_CAP_SECONDS, timeout)
    async with httpx.AsyncClient(
        follow_redirects=True,
        timeout=httpx.Timeout(timeout, connect=phase_timeout, pool=phase_timeout),
        max_redirects=3,
    ) as client:
        response = await client.get(url, headers={"Cache-Control": f"max-age={max_age}"})
        response.raise_for_status()
        if len(response.content) > MAX_RESPONSE_BYTES:
            raise FetchFailedError("ip-ranges response too large")
        return RangesDocument.model_validate(response.json()), response.headers


async def fetch_ranges(
    url: str = AWS_RANGES_URL,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    max_age: int = DEFAULT_MAX_AGE_SECONDS,
) -> FetchResult:
    try:
        _validate_ranges_url(url)
        # httpx timeouts are per phase and per chunk; this bounds the whole fetch
        document, headers = await asyncio.wait_for(_download(url, timeout, max_age), timeout)
    except FetchFailedError:
        raise
    except asyncio.TimeoutError as exc:
        raise FetchFailedError(f"Timed out after {timeout}s fetching AWS ranges from {url}") from exc
    except (httpx.HTTPError, ValueError) as exc:
        raise FetchFailedError(f"Unable to fetch AWS ranges from {url}: {exc}") from exc

    cache_status = _cache_status(headers)
    logger.info(
        "Fetched AWS ranges: syncToken=%s, %d IPv4 / %d IPv6 entries, cache=%s",
        document.sync_token,
        len(document.prefixes),
        len(document.ipv6_prefixes),
        cache_status.value,
    )
    return FetchResult(document=document, cache_status=cache_status)
