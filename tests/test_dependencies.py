# tests/test_dependencies.py
"""Tests for the FastAPI rolling token dependencies."""

from __future__ import annotations

import threading
import time
from collections.abc import Iterator

import pytest
from fastapi import FastAPI, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials
from fastapi.testclient import TestClient

from rolling_token_auth.api.dependencies import (
    RollingTokenDep,
    RollingTokenGuard,
    get_token_guard,
    rolling_token_lifespan,
)
from rolling_token_auth.core.errors import RollingTokenConfigurationError
from rolling_token_auth.core.settings import settings
from rolling_token_auth.services.validator import RollingTokenManager


@pytest.fixture()
def guard(manager: RollingTokenManager) -> RollingTokenGuard:
    return RollingTokenGuard(manager)


@pytest.fixture()
def app(guard: RollingTokenGuard) -> FastAPI:
    app = FastAPI()

    @app.get("/protected")
    def protected(token: RollingTokenDep) -> dict[str, str]:
        return {"token": token}

    app.dependency_overrides[get_token_guard] = lambda: guard
    return app


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client


class TestRollingTokenGuard:
    """Test the guard used by the dependency."""

    def test_verify_accepts_current_token(self, guard, manager):
        token = manager.generate_token().token
        credentials = HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)

        assert guard.verify(credentials) == token

    def test_verify_missing_credentials(self, guard):
        with pytest.raises(HTTPException) as exc_info:
            guard.verify(None)

        assert exc_info.value.status_code == status.HTTP_401_UNAUTHORIZED
        assert exc_info.value.headers == {"WWW-Authenticate": "Bearer"}

    def test_verify_rejects_other_scheme(self, guard, manager):
        credentials = HTTPAuthorizationCredentials(
            scheme="Basic", credentials=manager.generate_token().token
        )

        with pytest.raises(HTTPException) as exc_info:
            guard.verify(credentials)

        assert exc_info.value.status_code == status.HTTP_401_UNAUTHORIZED

    def test_verify_rejects_expired_token(self, guard, manager, caplog):
        credentials = HTTPAuthorizationCredentials(
            scheme="Bearer", credentials=manager.generate_token(offset=-2).token
        )

        with pytest.raises(HTTPException) as exc_info:
            guard.verify(credentials)

        assert exc_info.value.detail == "Could not validate credentials"
        assert credentials.credentials not in caplog.text


class TestProtectedRoute:
    """Exercise the dependency through a FastAPI app."""

    def test_valid_token(self, client, manager):
        token = manager.generate_token(offset=1).token
        response = client.get("/protected", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"token": token}

    def test_missing_header(self, client):
        response = client.get("/protected")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.headers["www-authenticate"] == "Bearer"

    def test_invalid_token(self, client):
        response = client.get("/protected", headers={"Authorization": "Bearer deadbeef"})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_token_expires_as_clock_advances(self, client, manager, clock):
        token = manager.generate_token().token
        headers = {"Authorization": f"Bearer {token}"}
        assert client.get("/protected", headers=headers).status_code == status.HTTP_200_OK

        clock.at_bucket(102)

        assert client.get("/protected", headers=headers).status_code == status.HTTP_401_UNAUTHORIZED


def test_get_token_guard_uses_settings(monkeypatch):
    monkeypatch.setattr(settings, "secret", "from-settings")
    monkeypatch.setattr(settings, "tolerance", 2)

    guard = get_token_guard()

    assert guard is get_token_guard()
    assert guard.manager.tolerance == 2
    assert guard.manager.interval == settings.interval_seconds
    expected = RollingTokenManager("from-settings", settings.interval_seconds)
    assert guard.is_valid(expected.generate_token().token)


class _OverlapTrackingManager(RollingTokenManager):
    """Records how many `is_valid` calls run at the same time."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._counter_lock = threading.Lock()
        self.active = 0
        self.max_active = 0

    def is_valid(self, token: str) -> bool:
        with self._counter_lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            time.sleep(0.001)
            return super().is_valid(token)
        finally:
            with self._counter_lock:
                self.active -= 1


def test_guard_serializes_concurrent_callers(clock):
    manager = _OverlapTrackingManager("test_secret", 30, tolerance=1, now=clock)
    guard = RollingTokenGuard(manager)
    token = manager.generate_token().token
    results: list[bool] = []
    results_lock = threading.Lock()

    def worker() -> None:
        for _ in range(10):
            outcome = guard.is_valid(token)
            with results_lock:
                results.append(outcome)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(results) == 80
    assert all(results)
    assert manager.max_active == 1


class TestRollingTokenLifespan:
    """Test building the guard at application startup."""

    def test_missing_secret_fails_startup(self, monkeypatch):
        monkeypatch.setattr(settings, "secret", None)
        app = FastAPI(lifespan=rolling_token_lifespan)

        with pytest.raises(RollingTokenConfigurationError, match="ROLLING_TOKEN_SECRET"):
            with TestClient(app):
                pass

    def test_configured_guard_is_ready_before_first_request(self, monkeypatch):
        monkeypatch.setattr(settings, "secret", "from-settings")
        app = FastAPI(lifespan=rolling_token_lifespan)

        @app.get("/protected")
        def protected(token: RollingTokenDep) -> dict[str, str]:
            return {"token": token}

        with TestClient(app) as test_client:
            guard = app.state.rolling_token_guard
            assert guard is get_token_guard()
            token = guard.manager.generate_token().token
            response = test_client.get("/protected", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == status.HTTP_200_OK
