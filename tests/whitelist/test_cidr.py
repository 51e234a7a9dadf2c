import ipaddress

import pytest

from core.whitelist.cidr import parse_address, quantize, quantize_address
from utils.exceptions import InputError


@pytest.mark.parametrize("ip, prefixlen, expected", [
    ("192.0.2.17", 24, "192.0.2.0/24"),
    ("192.0.2.17", 32, "192.0.2.17"),
    ("192.0.2.17", 0, "192.0.2.17"),
    ("10.1.2.3", 8, "10.0.0.0/8"),
    ("2001:db8::1", 64, "2001:db8::/64"),
    ("2001:db8::1", 128, "2001:db8::1"),
    ("2001:db8::1", 0, "2001:db8::1"),
    ("2001:db8:abcd:1234::1", 48, "2001:db8:abcd::/48"),
])
def test_quantize(ip, prefixlen, expected):
    assert quantize(ip, prefixlen) == expected


def test_quantize_accepts_address_objects():
    assert quantize(ipaddress.ip_address("198.51.100.200"), 25) == "198.51.100.128/25"


@pytest.mark.parametrize("ip, prefixlen", [
    ("192.0.2.1", 33),
    ("192.0.2.1", -1),
    ("2001:db8::1", 129),
])
def test_quantize_rejects_out_of_range_prefix(ip, prefixlen):
    with pytest.raises(InputError):
        quantize(ip, prefixlen)


def test_quantize_address_picks_prefix_by_family():
    assert quantize_address("192.0.2.17", 24, 64) == "192.0.2.0/24"
    assert quantize_address("2001:db8::1", 24, 64) == "2001:db8::/64"


@pytest.mark.parametrize("value", ["", "not-an-ip", "300.1.1.1", "1.2.3.4/24"])
def test_parse_address_rejects_malformed(value):
    with pytest.raises(InputError):
        parse_address(value)


def test_parse_address_strips_whitespace():
    assert parse_address(" 10.0.0.1 ") == ipaddress.ip_address("10.0.0.1")
