# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Iterator

import pytest

os.environ.setdefault("PYTEST_RUNNING", "true")

from rolling_token_auth.api.dependencies import get_token_guard
from rolling_token_auth.core.settings import Settings
from rolling_token_auth.services.generator import RollingAuthorizationToken
from rolling_token_auth.services.validator import RollingTokenManager

TEST_SECRET = "test_secret"
TEST_INTERVAL = 30


class FakeClock:
    """Controllable clock returning unix seconds."""

    def __init__(self, seconds: float = 0.0) -> None:
        self.seconds = seconds

    def __call__(self) -> float:
        return self.seconds

    def at_bucket(self, bucket: int, interval: int = TEST_INTERVAL) -> FakeClock:
        self.seconds = float(bucket * interval)
        return self

    def advance(self, seconds: float) -> None:
        self.seconds += seconds


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock().at_bucket(100)


@pytest.fixture()
def manager(clock: FakeClock) -> RollingTokenManager:
    return RollingTokenManager(TEST_SECRET, TEST_INTERVAL, tolerance=1, now=clock)


@pytest.fixture()
def generator(clock: FakeClock) -> RollingAuthorizationToken:
    return RollingAuthorizationToken(TEST_SECRET, TEST_INTERVAL, now=clock)


@pytest.fixture()
def test_settings() -> Settings:
    return Settings(
        ROLLING_TOKEN_SECRET=TEST_SECRET,
        ROLLING_TOKEN_INTERVAL_SECONDS=TEST_INTERVAL,
        ROLLING_TOKEN_TOLERANCE=1,
        _env_file=None,
    )


@pytest.fixture(autouse=True)
def reset_token_guard() -> Iterator[None]:
    get_token_guard.cache_clear()
    yield
    get_token_guard.cache_clear()
