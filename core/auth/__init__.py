# ipgate/core/auth/__init__.py
from .service import GateAuthService, parse_forwarded_address

__all__ = [
    "GateAuthService",
    "parse_forwarded_address",
]
