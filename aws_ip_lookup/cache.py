import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from aws_ip_lookup.fetcher import CacheStatus, FetchFailedError, FetchResult, fetch_ranges
from aws_ip_lookup.ranges import BlockTable, RangesDocument

logger = logging.getLogger(__name__)

FetchFn = Callable[[], Awaitable[FetchResult]]


@dataclass(frozen=True)
class CacheState:
    table: BlockTable
    cache_status: CacheStatus
    loaded_at: datetime
    valid_until: datetime | None = None

    def expired(self, now: datetime) -> bool:
        return self.valid_until is not None and now >= self.valid_until


class RangeCache:
    """Process-wide holder of the parsed AWS ranges.

    The table is loaded on first use and then reused for the lifetime of the
    process, or until ``ttl_seconds`` elapses when one is configured. Each
    refresh publishes a brand-new ``CacheState`` with a single assignment, so
    readers never need a lock; the lock only keeps concurrent cold-start
    callers down to one upstream fetch.
    """

    def __init__(self, fetch: FetchFn = fetch_ranges, ttl_seconds: int | None = None):
        self._fetch = fetch
        self._ttl = timedelta(seconds=ttl_seconds) if ttl_seconds is not None else None
        self._state: CacheState | None = None
        self._refresh_lock: asyncio.Lock | None = None
        self._lock_loop: asyncio.AbstractEventLoop | None = None

    @property
    def state(self) -> CacheState | None:
        return self._state

    @property
    def last_refresh(self) -> datetime | None:
        state = self._state
        return state.loaded_at if state else None

    @property
    def sync_token(self) -> str | None:
        state = self._state
        return state.table.sync_token if state else None

    def _lock(self) -> asyncio.Lock:
        # A lock is tied to the loop it was first contended on
        loop = asyncio.get_running_loop()
        if self._refresh_lock is None or self._lock_loop is not loop:
            self._refresh_lock = asyncio.Lock()
            self._lock_loop = loop
        return self._refresh_lock

    def _valid_state(self) -> CacheState | None:
        state = self._state
        if state is None or state.expired(datetime.now(timezone.utc)):
            return None
        return state

    async def current(self) -> tuple[BlockTable, CacheStatus]:
        state = self._valid_state()
        if state is not None:
            return state.table, CacheStatus.LOCAL

        async with self._lock():
            # Another caller may have published while we waited
            state = self._valid_state()
            if state is not None:
                return state.table, CacheStatus.LOCAL
            try:
                result = await self._fetch()
            except FetchFailedError:
                stale = self._state
                if stale is None:
                    raise
                logger.warning(
                    "Refresh failed, serving ranges loaded at %s", stale.loaded_at.isoformat(),
                    exc_info=True,
                )
                return stale.table, CacheStatus.LOCAL
            state = self.load(result.document, result.cache_status)
        return state.table, state.cache_status

    def load(self, document: RangesDocument, cache_status: CacheStatus = CacheStatus.MISS) -> CacheState:
        table = BlockTable.from_document(document)
        now = datetime.now(timezone.utc)
        state = CacheState(
            table=table,
            cache_status=cache_status,
            loaded_at=now,
            valid_until=now + self._ttl if self._ttl is not None else None,
        )
        # Single reference swap: readers see the old state or the new one, never a mix
        self._state = state
        logger.info(
            "Cache refreshed: syncToken=%s, %d IPv4 / %d IPv6 blocks",
            table.sync_token,
            len(table.ipv4),
            len(table.ipv6),
        )
        return state

    def invalidate(self) -> None:
        self._state = None
