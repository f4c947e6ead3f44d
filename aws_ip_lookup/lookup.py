from pydantic import BaseModel

from aws_ip_lookup.address import classify
from aws_ip_lookup.cache import RangeCache
from aws_ip_lookup.fetcher import CacheStatus
from aws_ip_lookup.matcher import match
from aws_ip_lookup.ranges import ParsedBlock


class RangeMatch(BaseModel):
    ip_prefix: str
    region: str
    service: str
    network_border_group: str

    @classmethod
    def from_block(cls, block: ParsedBlock) -> "RangeMatch":
        entry = block.entry
        return cls(
            ip_prefix=entry.prefix,
            region=entry.region,
            service=entry.service,
            network_border_group=entry.network_border_group,
        )


class LookupResult(BaseModel):
    requested_ip: str
    cache_status: CacheStatus
    matches: list[RangeMatch]


async def lookup(address: str, cache: RangeCache) -> LookupResult:
    """Find the AWS ranges containing ``address``.

    Raises ``InvalidAddressError`` before touching the cache when the address
    does not parse, and ``FetchFailedError`` when the ranges cannot be loaded.
    """
    classified = classify(address)
    table, cache_status = await cache.current()
    return LookupResult(
        requested_ip=address,
        cache_status=cache_status,
        matches=[RangeMatch.from_block(block) for block in match(classified, table)],
    )
