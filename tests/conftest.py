"""
tests/conftest.py -- shared fixtures for the auth test suite.

Every test gets a fresh app built by create_app("testing"): an in-memory
SQLite store (StaticPool keeps the single connection alive), cheap argon2
parameters and a TickingClock injected into the AuthService and TokenCodec.

The clock starts a few seconds behind real time because PyJWT checks exp/iat
against the wall clock and rejects an iat from the future. It advances 1ms per
read so rows issued back to back still order deterministically by created_at.
"""
from __future__ import annotations

import os
from datetime import datetime, timedelta

os.environ.setdefault("APP_ENV", "testing")

import pytest

from api import create_app
from models import Role, utc_now

from tests.helpers import PASSWORD


class TickingClock:
    def __init__(self, start: datetime | None = None, step: timedelta = timedelta(milliseconds=1)):
        self.current = start or utc_now() - timedelta(seconds=5)
        self.step = step

    def __call__(self) -> datetime:
        self.current += self.step
        return self.current

    def advance(self, delta: timedelta) -> None:
        self.current += delta


@pytest.fixture
def clock() -> TickingClock:
    return TickingClock()


@pytest.fixture
def app(clock):
    app = create_app("testing", clock=clock)
    yield app
    app.extensions["storage"].dispose()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def storage(app):
    return app.extensions["storage"]


@pytest.fixture
def auth_service(app):
    return app.extensions["auth_service"]


@pytest.fixture
def make_account(auth_service):
    """Factory: register an account through the service and return the AuthResult."""
    counter = {"n": 0}

    def _make(email: str | None = None, role: Role = Role.CUSTOMER, password: str = PASSWORD,
              full_name: str = "Test User"):
        counter["n"] += 1
        email = email or f"user{counter['n']}@example.com"
        return auth_service.register(email, password, full_name, role=role)

    return _make


@pytest.fixture
def register_http(client):
    """Factory: register through POST /api/auth/register and return the JSON body."""
    def _register(email: str, role: str | None = None, password: str = PASSWORD, full_name: str = "Test User"):
        body = {"email": email, "password": password, "fullName": full_name}
        if role:
            body["role"] = role
        resp = client.post("/api/auth/register", json=body)
        assert resp.status_code == 201, resp.get_json()
        return resp.get_json()

    return _register
