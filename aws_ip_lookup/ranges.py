import ipaddress
import logging
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from aws_ip_lookup.address import AddressFamily

logger = logging.getLogger(__name__)


class RangeEntry(BaseModel):
    """One record of the AWS ip-ranges document. Business fields are passed through untouched."""

    model_config = ConfigDict(frozen=True)

    prefix: str
    region: str = ""
    service: str = ""
    network_border_group: str = ""

    @field_validator("region", "service", "network_border_group", mode="before")
    @classmethod
    def _pass_through(cls, value: Any) -> str:
        return "" if value is None else str(value)


class Ipv4RangeEntry(RangeEntry):
    prefix: str = Field(alias="ip_prefix")


class Ipv6RangeEntry(RangeEntry):
    prefix: str = Field(alias="ipv6_prefix")


class RangesDocument(BaseModel):
    # Entries stay raw here so a single bad record cannot fail the whole document
    prefixes: list[Any] = []
    ipv6_prefixes: list[Any] = []
    sync_token: str | None = Field(None, alias="syncToken")
    create_date: str | None = Field(None, alias="createDate")


@dataclass(frozen=True)
class ParsedBlock:
    entry: RangeEntry
    network: ipaddress.IPv4Network | ipaddress.IPv6Network

    @property
    def family(self) -> AddressFamily:
        return AddressFamily(self.network.version)

    @property
    def prefix(self) -> str:
        return self.entry.prefix


@dataclass(frozen=True)
class BlockTable:
    ipv4: tuple[ParsedBlock, ...] = ()
    ipv6: tuple[ParsedBlock, ...] = ()
    sync_token: str | None = None
    create_date: str | None = None

    def blocks_for(self, family: AddressFamily) -> tuple[ParsedBlock, ...]:
        return self.ipv4 if family is AddressFamily.IPV4 else self.ipv6

    def __len__(self) -> int:
        return len(self.ipv4) + len(self.ipv6)

    @classmethod
    def from_document(cls, document: RangesDocument) -> "BlockTable":
        return cls(
            ipv4=_parse_blocks(document.prefixes, Ipv4RangeEntry, AddressFamily.IPV4, "prefixes"),
            ipv6=_parse_blocks(
                document.ipv6_prefixes, Ipv6RangeEntry, AddressFamily.IPV6, "ipv6_prefixes"
            ),
            sync_token=document.sync_token,
            create_date=document.create_date,
        )


def _parse_blocks(
    raw_entries: list[Any],
    model: type[RangeEntry],
    family: AddressFamily,
    collection: str,
) -> tuple[ParsedBlock, ...]:
    blocks: list[ParsedBlock] = []
    for index, raw in enumerate(raw_entries):
        try:
            block = _parse_block(raw, model, family)
        except (ValidationError, ValueError) as exc:
            logger.warning("Skipping %s[%d]: %s", collection, index, exc)
            continue
        blocks.append(block)
    return tuple(blocks)


def _parse_block(raw: Any, model: type[RangeEntry], family: AddressFamily) -> ParsedBlock:
    if not isinstance(raw, dict):
        raise ValueError(f"expected an object, got {type(raw).__name__}")
    entry = model.model_validate(raw)
    # Host bits are masked off rather than rejected
    network = ipaddress.ip_network(entry.prefix, strict=False)
    if network.version != family:
        raise ValueError(f"{entry.prefix!r} is not an IPv{family.value} prefix")
    return ParsedBlock(entry=entry, network=network)
