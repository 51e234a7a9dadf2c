# ipgate/core/whitelist/__init__.py
from .cidr import IPAddress, parse_address, quantize, quantize_address
from .writer import ProxyConfigWriter
from .coordinator import WhitelistCoordinator, CoordinatorState
from .service import WhitelistService

__all__ = [
    "IPAddress",
    "parse_address",
    "quantize",
    "quantize_address",
    "ProxyConfigWriter",
    "WhitelistCoordinator",
    "CoordinatorState",
    "WhitelistService",
]
