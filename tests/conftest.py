"""Shared fixtures for N26 CLI tests."""

import os

import httpx
import pytest

from n26_cli.api.transport import ApiTransport
from n26_cli.auth.auth_session import AuthSession
from n26_cli.auth.credential_store import MemoryCredentialStore
from n26_cli.auth.device import DeviceIdentity, MemoryKeyValueStore
from n26_cli.config import Settings, reset_settings

BASE_URL = "https://api.tech26.de"
TOKEN_URL = f"{BASE_URL}/oauth/token"
MFA_URL = f"{BASE_URL}/api/mfa/challenge"
DEVICE_TOKEN = "3f1c5a8e-2b7d-4e0a-9c61-0d5b2e7f4a11"


class FakeClock:
    """Controllable epoch-seconds clock."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def token_pair(access: str = "access-1", refresh: str = "refresh-1", expires_in: int = 3600) -> dict:
    """Token endpoint success body."""
    return {
        "access_token": access,
        "refresh_token": refresh,
        "expires_in": expires_in,
        "token_type": "bearer",
    }


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep the user's config file and N26_* environment out of tests."""
    monkeypatch.setattr("n26_cli.config.CONFIG_PATH", tmp_path / "config.yaml")
    for key in list(os.environ):
        if key.upper().startswith("N26_"):
            monkeypatch.delenv(key)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def device():
    return DeviceIdentity(MemoryKeyValueStore({"device_token": DEVICE_TOKEN}))


@pytest.fixture
def store():
    return MemoryCredentialStore()


@pytest.fixture
def http_client():
    with httpx.Client(base_url=BASE_URL) as client:
        yield client


@pytest.fixture
def auth(store, clock):
    return AuthSession(
        store,
        ("user@example.com", "secret"),
        mfa_wait=5,
        mfa_max_wait=60,
        clock=clock,
    )


@pytest.fixture
def transport(http_client, device, auth):
    transport = ApiTransport(http_client, device, auth.get_access_token)
    auth.attach(transport)
    return transport


@pytest.fixture
def settings(tmp_path):
    return Settings(
        cache_dir=tmp_path / "cache",
        username="user@example.com",
        password="secret",
        device_backend="memory",
    )
