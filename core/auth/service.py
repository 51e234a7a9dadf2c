# core/auth/service.py
import ipaddress
import logging
import secrets
from typing import Optional

from fastapi import Request as FastAPIRequest

from core.whitelist.cidr import IPAddress
from schemas.auth import AuthResult

logger = logging.getLogger(f"ipgate.{__name__}")

FORWARDED_FOR_HEADER = "X-Forwarded-For"


def parse_forwarded_address(value: str) -> Optional[IPAddress]:
    """
    Parses one address as it appears in X-Forwarded-For: a bare IP,
    `ipv4:port` or `[ipv6]:port`. Returns None when unparsable.
    """
    value = value.strip()
    if not value:
        return None
    try:
        return ipaddress.ip_address(value)
    except ValueError:
        pass
    if value.startswith("["):
        host, sep, _port = value[1:].partition("]")
        if not sep:
            return None
    else:
        host, sep, port = value.rpartition(":")
        if not sep or not port.isdigit():
            return None
    try:
        return ipaddress.ip_address(host)
    except ValueError:
        return None


class GateAuthService:
    """
    Checks the shared whitelist token and resolves the client address of a request.
    """
    def __init__(self, token: str, allow_proxy: bool = True):
        self._token = token
        self.allow_proxy = allow_proxy
        if allow_proxy:
            logger.warning(f"Proxy support is enabled; {FORWARDED_FOR_HEADER} is trusted, beware of spoofed client addresses.")

    def get_client_ip(self, request: FastAPIRequest) -> Optional[IPAddress]:
        if self.allow_proxy:
            forwarded = request.headers.get(FORWARDED_FOR_HEADER)
            if forwarded:
                address = parse_forwarded_address(forwarded.split(",", 1)[0])
                if address is not None:
                    return address
                logger.debug(f"Ignoring unparsable {FORWARDED_FOR_HEADER}: {forwarded!r}")
        if request.client is None:
            return None
        try:
            return ipaddress.ip_address(request.client.host)
        except ValueError:
            return None

    def authenticate(self, token: Optional[str], client_ip: Optional[IPAddress]) -> AuthResult:
        if not token or not secrets.compare_digest(token.encode("utf-8"), self._token.encode("utf-8")):
            logger.warning(f"Unauthorized access: {client_ip}")
            return AuthResult(error_message="Invalid token.", status_code=403)
        return AuthResult(is_authenticated=True, client_ip=str(client_ip) if client_ip else None)
