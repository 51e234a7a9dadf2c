# ipgate/core/enrichment/location.py
import ipaddress
from typing import Union

import requests

from core.whitelist.cidr import IPAddress, parse_address
from utils.exceptions import InputError, RemoteError
from .base import BaseLocationService
from .cache import ExpiringLRUCache
import logging

logger = logging.getLogger(f"ipgate.{__name__}")

BAIDU_LOCATION_URL = "https://api.map.baidu.com/location/ip"
DEFAULT_TIMEOUT_SECONDS = 15
DEFAULT_CACHE_TTL_SECONDS = 24 * 60 * 60
DEFAULT_CACHE_SIZE = 100


class BaiduLocationService(BaseLocationService):
    """
    IPv4 geolocation through the Baidu map IP location API.
    Successful results are cached for a day, at most 100 addresses.
    """
    def __init__(self,
                 ak: str,
                 referrer: str,
                 timeout: float = DEFAULT_TIMEOUT_SECONDS,
                 cache: ExpiringLRUCache = None,
                 session: requests.Session = None):
        self.ak = ak
        self.referrer = referrer
        self.timeout = timeout
        self.cache: ExpiringLRUCache[str] = cache or ExpiringLRUCache(DEFAULT_CACHE_SIZE, DEFAULT_CACHE_TTL_SECONDS)
        self._session = session or requests.Session()

    def lookup(self, ip: Union[str, IPAddress]) -> str:
        address = parse_address(ip)
        if not isinstance(address, ipaddress.IPv4Address):
            raise InputError(f"Location lookup only supports IPv4, got {address}")
        if not self.ak or not self.referrer:
            raise InputError("Baidu location service is missing ak or referrer")

        cached = self.cache.get(address)
        if cached is not None:
            logger.debug(f"Location of {address} from cache: {cached}")
            return cached

        try:
            resp = self._session.get(
                BAIDU_LOCATION_URL,
                params={"ak": self.ak, "ip": str(address)},
                headers={"Referer": self.referrer},
                timeout=self.timeout,
            )
            resp.raise_for_status()
            data = resp.json()
        except requests.RequestException as e:
            raise RemoteError(f"Location request for {address} failed: {e}") from e
        except ValueError as e:
            raise RemoteError(f"Location response for {address} is not valid JSON: {e}") from e

        location = None
        if isinstance(data, dict) and data.get("status") == 0:
            content = data.get("content")
            if isinstance(content, dict) and isinstance(content.get("address"), str):
                location = content["address"]
        if location is None:
            raise RemoteError(f"Could not parse location response for {address}", details={"response": data})

        logger.debug(f"Location of {address} from remote: {location}")
        self.cache.put(address, location)
        return location
