import ipaddress
from pathlib import Path
from typing import List, Optional

import pytest

from core.whitelist.writer import ProxyConfigWriter
from schemas.config import WhitelistServiceConfig
from utils.exceptions import ProxyValidationError, ProxyReloadError


class FakeClock:
    """Manually advanced monotonic clock."""
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class RecordingWriter(ProxyConfigWriter):
    """
    Writes real files but replaces the proxy commands with recorded calls
    whose outcome the test controls.
    """
    def __init__(self, config: WhitelistServiceConfig):
        super().__init__(config)
        self.calls: List[str] = []
        self.fail_validate = False
        self.fail_reload = False

    def validate(self) -> None:
        self.calls.append("validate")
        if self.fail_validate:
            raise ProxyValidationError("nginx: [emerg] invalid geo entry")

    def reload(self) -> None:
        self.calls.append("reload")
        if self.fail_reload:
            raise ProxyReloadError("nginx: [error] no master process")

    @property
    def reloads(self) -> int:
        return self.calls.count("reload")

    def read(self) -> Optional[str]:
        path = Path(self.config.nginx_conf)
        return path.read_text(encoding="utf-8") if path.exists() else None


def ip(value: str):
    return ipaddress.ip_address(value)


@pytest.fixture
def service_config(tmp_path) -> WhitelistServiceConfig:
    return WhitelistServiceConfig(
        nginx_conf=str(tmp_path / "ip_whitelist.geo"),
        nginx_exe=str(tmp_path / "sbin" / "nginx"),
        timeout=60,
        loop_delay=15,
        preset=["127.0.0.1", "192.168.0.0/16"],
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def writer(service_config) -> RecordingWriter:
    return RecordingWriter(service_config)
