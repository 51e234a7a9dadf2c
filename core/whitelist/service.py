# ipgate/core/whitelist/service.py
import threading
import time
from typing import Callable, Optional, Union

from core.enrichment.base import BaseLocationService, BaseNotifier
from schemas.config import WhitelistServiceConfig
from utils.exceptions import ServiceUnavailableError
from .cidr import IPAddress, parse_address
from .coordinator import WhitelistCoordinator
from .writer import ProxyConfigWriter
import logging

logger = logging.getLogger(f"ipgate.{__name__}")


class WhitelistService:
    """
    Public handle of the whitelist coordinator.

    Request handlers call `push(ip)`; it only enqueues and never waits on
    network or file I/O. The coordinator's worker is stopped by `stop()`,
    by leaving a `with` block, or when the handle is garbage collected.
    """
    def __init__(self,
                 config: WhitelistServiceConfig,
                 location_service: Optional[BaseLocationService] = None,
                 notifier: Optional[BaseNotifier] = None,
                 writer: Optional[ProxyConfigWriter] = None,
                 clock: Callable[[], float] = time.monotonic):
        self._lock = threading.Lock()
        self._coordinator: Optional[WhitelistCoordinator] = WhitelistCoordinator(
            config,
            writer=writer,
            location_service=location_service,
            notifier=notifier,
            clock=clock,
        )
        self._coordinator.start(wait=True)

    @property
    def running(self) -> bool:
        with self._lock:
            return self._coordinator is not None and self._coordinator.is_running()

    def push(self, ip: Union[str, IPAddress]) -> None:
        """
        Adds `ip` to the whitelist or refreshes its expiry at the next tick.

        Raises:
            InputError: `ip` is not a valid address.
            ServiceUnavailableError: the service has been stopped.
        """
        address = parse_address(ip)
        with self._lock:
            if self._coordinator is None:
                raise ServiceUnavailableError("Whitelist service has been stopped")
            self._coordinator.submit(address)
        logger.debug(f"Queued {address} for the next tick.")

    def stop(self, timeout: Optional[float] = None) -> None:
        """
        Asks the coordinator to leave its loop. Idempotent.
        With a timeout, waits up to that many seconds for the worker to exit.
        """
        with self._lock:
            coordinator, self._coordinator = self._coordinator, None
        if coordinator is None:
            return
        coordinator.request_stop()
        if timeout is not None and not coordinator.join(timeout):
            logger.warning(f"Whitelist coordinator did not stop within {timeout}s.")

    def __enter__(self) -> "WhitelistService":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.stop()

    def __del__(self):
        if getattr(self, "_lock", None) is not None:
            self.stop()
