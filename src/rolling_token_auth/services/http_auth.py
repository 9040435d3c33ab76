"""Outbound HTTP helpers that attach rolling tokens as bearer credentials.

The core only produces hex token strings; these helpers place them in the
`Authorization` header of httpx requests.
"""

from __future__ import annotations

import logging
from collections.abc import Generator
from typing import Any, Union

import httpx

from rolling_token_auth.services.generator import RollingAuthorizationToken
from rolling_token_auth.services.validator import RollingTokenManager

logger = logging.getLogger(__name__)

AUTHORIZATION_HEADER = "Authorization"
BEARER_SCHEME = "Bearer"

TokenSource = Union[RollingAuthorizationToken, RollingTokenManager]


def bearer_value(token: str) -> str:
    """Return the `Authorization` header value for `token`."""
    return f"{BEARER_SCHEME} {token}"


def token_from(source: TokenSource, offset: int = 0) -> str:
    """Generate a token string from a generator or a manager.

    `offset` is the bucket offset from the current one (`0` is now).
    """
    return source.generate_token(offset).token


def add_bearer_token(request: httpx.Request, token: str) -> httpx.Request:
    """Set the request's `Authorization` header to `Bearer <token>`."""
    request.headers[AUTHORIZATION_HEADER] = bearer_value(token)
    return request


def add_authentication(
    request: httpx.Request, source: TokenSource, offset: int = 0
) -> httpx.Request:
    """Generate a token from `source` and attach it to `request`."""
    return add_bearer_token(request, token_from(source, offset))


def build_request(
    method: str,
    url: httpx.URL | str,
    authentication: TokenSource,
    *,
    timeout: float | None = None,
    **kwargs: Any,
) -> httpx.Request:
    """Create an httpx request that already carries a rolling bearer token.

    Args:
        method: HTTP method.
        url: Target URL.
        authentication: Generator or manager used to produce the token.
        timeout: Optional timeout in seconds applied to this request only.
        **kwargs: Passed through to `httpx.Request`.
    """
    if timeout is not None:
        extensions = dict(kwargs.pop("extensions", None) or {})
        extensions["timeout"] = httpx.Timeout(timeout).as_dict()
        kwargs["extensions"] = extensions
    request = httpx.Request(method, url, **kwargs)
    return add_authentication(request, authentication)


class RollingBearerAuth(httpx.Auth):
    """httpx auth flow that sends a freshly generated token with every request.

    Suitable for long-lived clients, where a token computed once at startup
    would expire after a few intervals.
    """

    def __init__(self, source: TokenSource, offset: int = 0) -> None:
        self._source = source
        self._offset = offset

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        add_authentication(request, self._source, self._offset)
        logger.debug("Attached rolling bearer token to %s %s", request.method, request.url.path)
        yield request
