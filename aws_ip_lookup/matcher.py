from aws_ip_lookup.address import ClassifiedAddress
from aws_ip_lookup.ranges import BlockTable, ParsedBlock


def match(address: ClassifiedAddress, table: BlockTable) -> list[ParsedBlock]:
    """Return every block of the address's family that contains it, in table order.

    Overlapping entries (e.g. ``AMAZON`` and ``EC2`` over the same CIDR) are all
    returned; no longest-prefix ranking or deduplication is applied.
    """
    ip = address.address
    return [block for block in table.blocks_for(address.family) if ip in block.network]
