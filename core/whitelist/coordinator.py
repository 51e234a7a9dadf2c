# ipgate/core/whitelist/coordinator.py
import queue
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from enum import Enum
from typing import Callable, Dict, FrozenSet, Iterable, List, Optional, Set

from core.enrichment.base import BaseLocationService, BaseNotifier
from schemas.config import WhitelistServiceConfig
from utils.exceptions import (
    InputError,
    RemoteError,
    PersistenceError,
    ProxyValidationError,
    ProxyReloadError,
    ServiceUnavailableError,
)
from .cidr import IPAddress, address_sort_key
from .writer import ProxyConfigWriter
import logging

logger = logging.getLogger(f"ipgate.{__name__}")


class CoordinatorState(str, Enum):
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"


class AddMember:
    """Request to add `ip` to the whitelist or refresh its expiry."""
    __slots__ = ("ip",)

    def __init__(self, ip: IPAddress):
        self.ip = ip


class StopCoordinator:
    """Request to leave the tick loop. The last applied config stays in force."""
    __slots__ = ()


def _join_addresses(addresses: Iterable[IPAddress], sep: str = "\n\t") -> str:
    return sep.join(str(ip) for ip in addresses)


class WhitelistCoordinator:
    """
    Owns the membership map and projects it into the proxy configuration.

    All state (members, last emitted snapshot) and all file/process I/O live
    on one worker thread. Other threads talk to it only through `submit()`
    and `request_stop()`, which put messages on an inbox queue.

    Every `loop_delay` seconds a tick merges the adds received since the
    previous tick, evicts expired members and, if the snapshot differs from
    the last one successfully applied, announces newly joined addresses and
    applies the new snapshot. The last emitted snapshot only advances when
    write, validate and reload all succeed, so a failed tick is retried by
    the next one.
    """
    def __init__(self,
                 config: WhitelistServiceConfig,
                 writer: Optional[ProxyConfigWriter] = None,
                 location_service: Optional[BaseLocationService] = None,
                 notifier: Optional[BaseNotifier] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.config = config
        self._writer = writer or ProxyConfigWriter(config)
        self._location_service = location_service
        self._notifier = notifier
        self._clock = clock

        self._inbox: "queue.Queue[object]" = queue.Queue()
        self._pending: List[IPAddress] = []
        self._members: Dict[IPAddress, float] = {} # ip -> expires_at
        # None until the first successful apply; forces a retry every tick
        self._last_emitted: Optional[FrozenSet[IPAddress]] = None
        # joined addresses already announced but not yet applied
        self._announced: Set[IPAddress] = set()

        self._state = CoordinatorState.RUNNING
        self._thread: Optional[threading.Thread] = None
        self._started = threading.Event()

    # --- Any thread ---

    @property
    def state(self) -> CoordinatorState:
        return self._state

    @property
    def last_emitted(self) -> Optional[FrozenSet[IPAddress]]:
        return self._last_emitted

    def is_running(self) -> bool:
        if self._state is not CoordinatorState.RUNNING:
            return False
        return self._thread is None or self._thread.is_alive()

    def submit(self, ip: IPAddress) -> None:
        if not self.is_running():
            raise ServiceUnavailableError(f"Whitelist coordinator is {self._state.value}")
        self._inbox.put_nowait(AddMember(ip))

    def request_stop(self) -> None:
        self._inbox.put_nowait(StopCoordinator())

    def start(self, wait: bool = True) -> None:
        """
        Starts the worker thread. The worker first applies an empty member
        list; with `wait` the caller blocks until that attempt has finished.
        """
        if self._thread is not None:
            logger.info("Whitelist coordinator already started.")
            return
        self._thread = threading.Thread(target=self._run, name="ipgate-whitelist", daemon=True)
        self._thread.start()
        if wait:
            self._started.wait()

    def join(self, timeout: Optional[float] = None) -> bool:
        """Waits for the worker to exit. Returns True if it has."""
        if self._thread is None:
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()

    # --- Worker thread ---

    def _run(self):
        logger.info(f"Whitelist coordinator started (timeout={self.config.timeout}s, loop_delay={self.config.loop_delay}s).")
        try:
            try:
                self.emit_initial()
            except Exception as e:
                logger.error(f"Initial whitelist emission failed, retrying next tick: {e}", exc_info=True)
            self._started.set()
            while self._state is CoordinatorState.RUNNING:
                if not self._wait_for_tick():
                    break
                try:
                    self.tick()
                except Exception as e:
                    logger.error(f"Whitelist tick failed, retrying next tick: {e}", exc_info=True)
        except Exception as e:
            logger.error(f"Whitelist coordinator crashed: {e}", exc_info=True)
        finally:
            self._state = CoordinatorState.STOPPED
            self._started.set()
            logger.info("Whitelist coordinator stopped.")

    def _handle(self, message: object) -> bool:
        """Buffers an add request. Returns False once a stop request is seen."""
        if isinstance(message, StopCoordinator):
            logger.info("Stop requested, leaving the tick loop.")
            self._state = CoordinatorState.STOPPING
            return False
        self._pending.append(message.ip)
        return True

    def _wait_for_tick(self) -> bool:
        deadline = time.monotonic() + self.config.loop_delay
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return True
            try:
                message = self._inbox.get(timeout=remaining)
            except queue.Empty:
                return True
            if not self._handle(message):
                return False

    def _drain_inbox(self) -> bool:
        while True:
            try:
                message = self._inbox.get_nowait()
            except queue.Empty:
                return True
            if not self._handle(message):
                return False

    def emit_initial(self) -> bool:
        """Applies an empty member list so the proxy starts from a known rule file."""
        return self._emit(frozenset())

    def tick(self) -> bool:
        """
        Runs one evaluation. Returns True if a new configuration was applied.
        """
        if not self._drain_inbox():
            return False

        now = self._clock()
        for ip in self._pending:
            self._members[ip] = now + self.config.timeout
        self._pending.clear()

        expired = [ip for ip, expires_at in self._members.items() if expires_at <= now]
        for ip in expired:
            del self._members[ip]

        snapshot = frozenset(self._members)
        previous = self._last_emitted if self._last_emitted is not None else frozenset()
        joined = snapshot - previous
        left = previous - snapshot
        self._announced &= snapshot

        if not joined and not left and self._last_emitted is not None:
            return False

        if joined:
            self._announce(sorted(joined, key=address_sort_key))
        if left:
            logger.debug(f"Removed IPs:\n\t{_join_addresses(sorted(left, key=address_sort_key))}")
        return self._emit(snapshot)

    def _announce(self, joined: List[IPAddress]):
        logger.debug(f"New IPs:\n\t{_join_addresses(joined)}")
        fresh = [ip for ip in joined if ip not in self._announced]
        # lookups only feed the notification
        if not fresh or self._notifier is None:
            return
        labels = self._describe(fresh)
        self._announced.update(fresh)
        try:
            self._notifier.notify("; ".join(labels))
        except (InputError, RemoteError) as e:
            logger.error(f"Failed to send message: {e.message}")

    def _describe(self, addresses: List[IPAddress]) -> List[str]:
        if self._location_service is None:
            return [str(ip) for ip in addresses]
        workers = min(self.config.lookup_workers, len(addresses))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="ipgate-lookup") as pool:
            return list(pool.map(self._describe_one, addresses))

    def _describe_one(self, ip: IPAddress) -> str:
        try:
            location = self._location_service.lookup(ip)
        except (InputError, RemoteError) as e:
            logger.error(f"Failed to get location of {ip}: {e.message}")
            return str(ip)
        return f"{ip}({location})"

    def _emit(self, snapshot: FrozenSet[IPAddress]) -> bool:
        entries = self._writer.quantized_members(snapshot)
        if entries:
            logger.info(f"Current list:\n\t{_join_addresses(entries)}")
        else:
            logger.info("Current list: <empty>")
        try:
            self._writer.apply(snapshot)
        except PersistenceError as e:
            logger.error(f"Failed to write config file: {e.message}")
            return False
        except ProxyValidationError as e:
            logger.error(f"New config file failed the test: {e.message}")
            return False
        except ProxyReloadError as e:
            logger.error(f"Failed to reload config: {e.message}")
            return False
        self._last_emitted = snapshot
        self._announced.clear()
        return True
