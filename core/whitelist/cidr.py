# ipgate/core/whitelist/cidr.py
import ipaddress
from typing import Union

from utils.exceptions import InputError

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]


def parse_address(ip: Union[str, IPAddress]) -> IPAddress:
    """Parses `ip` into an address object, raising InputError when malformed."""
    if isinstance(ip, (ipaddress.IPv4Address, ipaddress.IPv6Address)):
        return ip
    try:
        return ipaddress.ip_address(str(ip).strip())
    except ValueError as e:
        raise InputError(f"Invalid IP address: {ip!r}") from e


def quantize(ip: Union[str, IPAddress], prefixlen: int) -> str:
    """
    Renders `ip` as the subnet of length `prefixlen` that contains it.

    A prefix length of 0 or of the full address width yields the bare address,
    e.g. quantize("192.0.2.17", 24) == "192.0.2.0/24" and
    quantize("192.0.2.17", 32) == "192.0.2.17".
    """
    address = parse_address(ip)
    if prefixlen == 0 or prefixlen == address.max_prefixlen:
        return str(address)
    if not 0 < prefixlen < address.max_prefixlen:
        raise InputError(f"Prefix length {prefixlen} is out of range for IPv{address.version}")
    # scope ids are not part of the subnet
    network_cls = ipaddress.IPv4Network if address.version == 4 else ipaddress.IPv6Network
    return network_cls((int(address), prefixlen), strict=False).with_prefixlen


def quantize_address(ip: Union[str, IPAddress], ipv4_prefixlen: int, ipv6_prefixlen: int) -> str:
    """Quantizes `ip` with the prefix length configured for its address family."""
    address = parse_address(ip)
    prefixlen = ipv4_prefixlen if address.version == 4 else ipv6_prefixlen
    return quantize(address, prefixlen)


def address_sort_key(ip: IPAddress):
    return (ip.version, int(ip))
