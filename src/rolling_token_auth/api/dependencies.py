"""FastAPI dependencies that guard routes with rolling bearer tokens."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from functools import lru_cache
from threading import Lock
from typing import Annotated

from fastapi import Depends, FastAPI, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from rolling_token_auth.services.validator import RollingTokenManager, get_token_validator

logger = logging.getLogger(__name__)

# Missing credentials are reported as 401 by the guard itself
bearer_scheme = HTTPBearer(auto_error=False)

_UNAUTHORIZED_HEADERS = {"WWW-Authenticate": "Bearer"}


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers=_UNAUTHORIZED_HEADERS,
    )


class RollingTokenGuard:
    """Serializes validation on a single manager shared by request handlers.

    The manager refreshes its cache on every check, so concurrent checks on
    one instance are guarded by a lock.
    """

    def __init__(self, manager: RollingTokenManager) -> None:
        self.manager = manager
        self._lock = Lock()

    def is_valid(self, token: str) -> bool:
        """Return True if `token` is currently accepted by the manager."""
        with self._lock:
            return self.manager.is_valid(token)

    def verify(self, credentials: HTTPAuthorizationCredentials | None) -> str:
        """Return the bearer token from `credentials` if it is currently valid.

        Raises:
            HTTPException: 401 when credentials are missing, use another
                scheme, or carry a token outside the accepted window.
        """
        if credentials is None:
            raise _unauthorized("Not authenticated")
        if credentials.scheme.lower() != "bearer":
            raise _unauthorized("Unsupported authorization scheme")

        token = credentials.credentials
        if not self.is_valid(token):
            logger.warning("Rejected rolling bearer token")
            raise _unauthorized("Could not validate credentials")
        return token


@lru_cache(maxsize=1)
def get_token_guard() -> RollingTokenGuard:
    """Return the process-wide guard built from settings.

    Raises:
        RollingTokenConfigurationError: If no secret is configured. Use
            `rolling_token_lifespan` to surface this at startup instead of as a
            500 on the first protected request.
    """
    return RollingTokenGuard(get_token_validator())


def require_rolling_token(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    guard: Annotated[RollingTokenGuard, Depends(get_token_guard)],
) -> str:
    """Dependency returning the validated rolling token of the current request."""
    return guard.verify(credentials)


# Type alias for routes that require a valid rolling token
RollingTokenDep = Annotated[str, Depends(require_rolling_token)]


@asynccontextmanager
async def rolling_token_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """App lifespan that builds the guard at startup.

    A missing or invalid configuration aborts startup instead of failing
    the first protected request.
    """
    app.state.rolling_token_guard = get_token_guard()
    yield
