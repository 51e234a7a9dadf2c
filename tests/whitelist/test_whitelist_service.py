import gc
import time

import pytest

from conftest import RecordingWriter
from core.whitelist.service import WhitelistService
from schemas.config import WhitelistServiceConfig
from utils.exceptions import InputError, ServiceUnavailableError


@pytest.fixture
def fast_config(tmp_path) -> WhitelistServiceConfig:
    return WhitelistServiceConfig(
        nginx_conf=str(tmp_path / "ip_whitelist.geo"),
        nginx_exe=str(tmp_path / "nginx"),
        timeout=60,
        loop_delay=0.05,
    )


def wait_for(predicate, timeout: float = 5.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return False


def test_start_emits_initial_config(fast_config):
    writer = RecordingWriter(fast_config)
    with WhitelistService(fast_config, writer=writer) as service:
        assert service.running
        # start() waits for the initial emission
        assert writer.calls[:2] == ["validate", "reload"]
        assert "default 0;" in writer.read()


def test_push_reaches_config_file(fast_config):
    writer = RecordingWriter(fast_config)
    with WhitelistService(fast_config, writer=writer) as service:
        service.push("10.0.0.1")
        assert wait_for(lambda: "10.0.0.1 1;" in (writer.read() or ""))


def test_push_rejects_invalid_address(fast_config):
    with WhitelistService(fast_config, writer=RecordingWriter(fast_config)) as service:
        with pytest.raises(InputError):
            service.push("not-an-ip")


def test_stop_is_idempotent_and_rejects_further_pushes(fast_config):
    service = WhitelistService(fast_config, writer=RecordingWriter(fast_config))
    service.stop(timeout=5)
    service.stop(timeout=5)
    assert not service.running
    with pytest.raises(ServiceUnavailableError):
        service.push("10.0.0.1")


def test_stop_keeps_last_applied_config(fast_config):
    writer = RecordingWriter(fast_config)
    service = WhitelistService(fast_config, writer=writer)
    service.push("10.0.0.1")
    assert wait_for(lambda: "10.0.0.1 1;" in (writer.read() or ""))
    reloads = writer.reloads

    service.stop(timeout=5)
    time.sleep(0.15)
    assert writer.reloads == reloads
    assert "10.0.0.1 1;" in writer.read()


def test_failed_initial_emission_does_not_stop_service(fast_config):
    writer = RecordingWriter(fast_config)
    writer.fail_validate = True
    with WhitelistService(fast_config, writer=writer) as service:
        assert service.running
        writer.fail_validate = False
        assert wait_for(lambda: writer.reloads >= 1)


class FlakyWriter(RecordingWriter):
    """Raises an unexpected error from validate until `broken` is cleared."""
    def __init__(self, config):
        super().__init__(config)
        self.broken = True

    def validate(self) -> None:
        if self.broken:
            self.calls.append("validate")
            raise UnicodeDecodeError("utf-8", b"\xff\xfe", 0, 1, "invalid start byte")
        super().validate()


def test_unexpected_tick_error_does_not_stop_service(fast_config):
    writer = FlakyWriter(fast_config)
    with WhitelistService(fast_config, writer=writer) as service:
        service.push("10.0.0.1")
        assert wait_for(lambda: writer.calls.count("validate") >= 3)
        assert service.running
        service.push("10.0.0.2")

        writer.broken = False
        assert wait_for(lambda: "10.0.0.2 1;" in (writer.read() or "") and writer.reloads >= 1)
        assert "10.0.0.1 1;" in writer.read()


def test_discarding_handle_stops_worker(fast_config):
    service = WhitelistService(fast_config, writer=RecordingWriter(fast_config))
    coordinator = service._coordinator
    assert coordinator.is_running()

    del service
    gc.collect()
    assert coordinator.join(5)
    assert not coordinator.is_running()
