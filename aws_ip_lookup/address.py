import ipaddress
from dataclasses import dataclass
from enum import IntEnum


class InvalidAddressError(ValueError):
    pass


class AddressFamily(IntEnum):
    IPV4 = 4
    IPV6 = 6


@dataclass(frozen=True)
class ClassifiedAddress:
    address: ipaddress.IPv4Address | ipaddress.IPv6Address

    @property
    def family(self) -> AddressFamily:
        return AddressFamily(self.address.version)

    @property
    def canonical(self) -> str:
        return str(self.address)


def classify(value: str) -> ClassifiedAddress:
    """Parse a bare IPv4/IPv6 literal; hostnames, CIDRs and padded input are rejected."""
    if not isinstance(value, str) or not value:
        raise InvalidAddressError(f"Not an IP address: {value!r}")
    try:
        address = ipaddress.ip_address(value)
    except ValueError as exc:
        raise InvalidAddressError(f"Not an IP address: {value!r}") from exc
    # Zone IDs (fe80::1%eth0) are interface-local, not global literals
    if getattr(address, "scope_id", None) is not None:
        raise InvalidAddressError(f"Not an IP address: {value!r}")
    return ClassifiedAddress(address)
