import ipaddress

import pytest

from aws_ip_lookup.address import AddressFamily, InvalidAddressError, classify


def test_classify_ipv4():
    result = classify("52.1.1.1")
    assert result.family is AddressFamily.IPV4
    assert result.address == ipaddress.IPv4Address("52.1.1.1")
    assert result.canonical == "52.1.1.1"


def test_classify_ipv6_canonical_form():
    result = classify("2600:1F18:0000::0001")
    assert result.family is AddressFamily.IPV6
    assert result.canonical == "2600:1f18::1"


def test_ipv4_mapped_ipv6_stays_ipv6():
    assert classify("::ffff:10.0.0.1").family is AddressFamily.IPV6


@pytest.mark.parametrize(
    "value",
    [
        "",
        "not-an-ip",
        "10.0.0.0/8",
        "999.1.1.1",
        " 10.0.0.1",
        "10.0.0.1\n",
        "ip-ranges.amazonaws.com",
        "2001:db8::/32",
        "2600:1f18::1%eth0",
        "fe80::1%1",
    ],
)
def test_invalid_addresses_rejected(value):
    with pytest.raises(InvalidAddressError):
        classify(value)


def test_non_string_rejected():
    # ipaddress accepts integers, lookups must not
    with pytest.raises(InvalidAddressError):
        classify(167772161)
