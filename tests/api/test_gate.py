from typing import List

import pytest
from fastapi.testclient import TestClient

from conftest import ip
from main import create_app
from schemas.config import AppConfig
from utils.exceptions import ServiceUnavailableError

TOKEN = "s3cret"


class FakeWhitelistService:
    def __init__(self):
        self.pushed: List[str] = []
        self.stopped = False

    def push(self, address):
        if self.stopped:
            raise ServiceUnavailableError("Whitelist service has been stopped")
        self.pushed.append(str(address))

    def stop(self, timeout=None):
        self.stopped = True


def make_config(tmp_path, path: str = "/", allow_proxy: bool = True) -> AppConfig:
    return AppConfig.model_validate({
        "listen": {"path": path, "allow_proxy": allow_proxy},
        "whitelist": {
            "token": TOKEN,
            "nginx_conf": str(tmp_path / "ip_whitelist.geo"),
            "nginx_exe": str(tmp_path / "nginx"),
        },
        "logging": {"file": {"path": None}},
    })


@pytest.fixture
def service() -> FakeWhitelistService:
    return FakeWhitelistService()


@pytest.fixture
def client(tmp_path, service):
    app = create_app(make_config(tmp_path), whitelist_service=service)
    with TestClient(app) as client:
        yield client


def test_get_serves_token_form(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/html")
    assert '<input name="token" id="token"/>' in resp.text


def test_valid_token_whitelists_forwarded_address(client, service):
    resp = client.post("/", data={"token": TOKEN}, headers={"X-Forwarded-For": "203.0.113.7, 10.0.0.1"})
    assert resp.status_code == 200
    assert "hello" in resp.text
    assert service.pushed == [str(ip("203.0.113.7"))]


def test_forwarded_address_with_port(client, service):
    resp = client.post("/", data={"token": TOKEN}, headers={"X-Forwarded-For": "[2001:db8::1]:443"})
    assert resp.status_code == 200
    assert service.pushed == ["2001:db8::1"]


def test_wrong_token_is_forbidden(client, service):
    resp = client.post("/", data={"token": "nope"}, headers={"X-Forwarded-For": "203.0.113.7"})
    assert resp.status_code == 403
    assert resp.json()["error_code"] == "GATE_INVALID_TOKEN"
    assert service.pushed == []


def test_missing_token_is_forbidden(client, service):
    resp = client.post("/", data={"name": "guest"}, headers={"X-Forwarded-For": "203.0.113.7"})
    assert resp.status_code == 403
    assert service.pushed == []


def test_non_form_body_is_rejected(client, service):
    resp = client.post("/", json={"token": TOKEN}, headers={"X-Forwarded-For": "203.0.113.7"})
    assert resp.status_code == 400
    assert resp.json()["error_code"] == "GATE_UNSUPPORTED_CONTENT_TYPE"
    assert service.pushed == []


def test_unresolvable_client_address(tmp_path, service):
    # TestClient reports its peer as "testclient", which is not an address
    app = create_app(make_config(tmp_path, allow_proxy=False), whitelist_service=service)
    with TestClient(app) as client:
        resp = client.post("/", data={"token": TOKEN}, headers={"X-Forwarded-For": "203.0.113.7"})
    assert resp.status_code == 400
    assert resp.json()["error_code"] == "GATE_INVALID_ADDRESS"
    assert service.pushed == []


def test_stopped_service_returns_503(client, service):
    service.stopped = True
    resp = client.post("/", data={"token": TOKEN}, headers={"X-Forwarded-For": "203.0.113.7"})
    assert resp.status_code == 503
    assert resp.json()["error_code"] == "WHITELIST_SERVICE_STOPPED"


def test_other_paths_and_methods(client):
    assert client.get("/elsewhere").status_code == 404
    assert client.put("/", data={"token": TOKEN}).status_code == 405


def test_custom_listen_path(tmp_path, service):
    app = create_app(make_config(tmp_path, path="/knock"), whitelist_service=service)
    with TestClient(app) as client:
        assert client.get("/knock").status_code == 200
        assert client.get("/").status_code == 404
        resp = client.post("/knock", data={"token": TOKEN}, headers={"X-Forwarded-For": "198.51.100.1"})
    assert resp.status_code == 200
    assert service.pushed == ["198.51.100.1"]


def test_injected_service_is_not_stopped_on_shutdown(tmp_path, service):
    app = create_app(make_config(tmp_path), whitelist_service=service)
    with TestClient(app):
        pass
    assert not service.stopped
