# ipgate/core/enrichment/base.py
import ipaddress
from abc import ABC, abstractmethod
from typing import Union


class BaseLocationService(ABC):
    """
    Resolves an address to a human-readable location.
    """
    @abstractmethod
    def lookup(self, ip: Union[ipaddress.IPv4Address, ipaddress.IPv6Address]) -> str:
        """
        Returns the location of `ip`.

        Raises:
            InputError: the address or the service configuration is not usable.
            RemoteError: the remote call or its response failed.
        """
        pass


class BaseNotifier(ABC):
    """
    Delivers a text message to an external push endpoint.
    """
    @abstractmethod
    def notify(self, text: str) -> None:
        """
        Sends `text`.

        Raises:
            InputError: empty text or no endpoint configured.
            RemoteError: network failure or non-success response.
        """
        pass
