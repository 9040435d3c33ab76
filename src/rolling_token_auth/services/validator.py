"""Rolling token validation with clock-drift tolerance.

`RollingTokenManager` accepts tokens from the current time bucket and from
`tolerance` buckets on either side of it. Tokens for the accepted window are
cached and refreshed lazily on each validation call, so repeated checks
within the same bucket never recompute a hash.
"""

from __future__ import annotations

import hmac
import logging
import time

from rolling_token_auth.core.errors import RollingTokenConfigurationError
from rolling_token_auth.core.settings import Settings
from rolling_token_auth.core.settings import settings as default_settings
from rolling_token_auth.models import RollingToken
from rolling_token_auth.services.generator import (
    Clock,
    SecretInput,
    coerce_secret,
    current_bucket,
    derive_token,
    validate_interval,
)

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE = 1


def validate_tolerance(tolerance: int) -> int:
    """Return `tolerance` if it is a non-negative integer."""
    if isinstance(tolerance, bool) or not isinstance(tolerance, int):
        raise RollingTokenConfigurationError("tolerance must be an integer")
    if tolerance < 0:
        raise RollingTokenConfigurationError("tolerance must not be negative")
    return tolerance


class RollingTokenManager:
    """Generates and validates rolling tokens, typically server-side.

    `is_valid` mutates the internal token cache. Calls on a single instance
    must be serialized by the caller; independent instances agree on every
    token and need no shared state.
    """

    def __init__(
        self,
        secret: SecretInput,
        interval: int,
        tolerance: int = DEFAULT_TOLERANCE,
        *,
        now: Clock = time.time,
    ) -> None:
        self._secret = coerce_secret(secret)
        self._interval = validate_interval(interval)
        self._tolerance = validate_tolerance(tolerance)
        self._now = now
        self._active_tokens: list[RollingToken] = []

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(interval={self._interval}, tolerance={self._tolerance})"
        )

    @property
    def interval(self) -> int:
        """Size of each time bucket in seconds."""
        return self._interval

    @property
    def tolerance(self) -> int:
        """Number of buckets accepted before and after the current one."""
        return self._tolerance

    @property
    def window_size(self) -> int:
        """Number of buckets accepted at any moment."""
        return 1 + 2 * self._tolerance

    def current_timestamp(self) -> int:
        """Return the current time bucket."""
        return current_bucket(self._interval, self._now)

    def generate_token(self, offset: int = 0) -> RollingToken:
        """Return the token for the bucket `offset` steps from the current one."""
        timestamp = self.current_timestamp() + offset
        return self._token_for(timestamp)

    def is_valid(self, token: str) -> bool:
        """Return True if `token` matches any bucket in the tolerance window.

        Refreshes the internal cache first. Anything that is not a string is
        simply rejected.
        """
        self._refresh_tokens()
        if not isinstance(token, str):
            return False

        # str may hold lone surrogates; they must encode so they simply fail to match.
        candidate = token.encode("utf-8", "surrogatepass")
        matched = False
        for active in self._active_tokens:
            # Scan every entry so timing does not reveal the matching bucket.
            if hmac.compare_digest(candidate, active.token.encode("utf-8")):
                matched = True
        return matched

    def _token_for(self, timestamp: int) -> RollingToken:
        return RollingToken(token=derive_token(self._secret, timestamp), timestamp=timestamp)

    def _refresh_tokens(self) -> None:
        # Eviction must run before the size check, otherwise a full cache of
        # stale buckets would be served as current.
        current = self.current_timestamp()
        before = len(self._active_tokens)
        self._active_tokens = [
            active
            for active in self._active_tokens
            if abs(active.timestamp - current) <= self._tolerance
        ]
        evicted = before - len(self._active_tokens)

        if len(self._active_tokens) == self.window_size:
            return

        existing = {active.timestamp for active in self._active_tokens}
        computed = 0
        for offset in range(-self._tolerance, self._tolerance + 1):
            timestamp = current + offset
            if timestamp in existing:
                continue
            self._active_tokens.append(self._token_for(timestamp))
            computed += 1

        logger.debug(
            "Refreshed rolling token window at bucket %d (evicted=%d, computed=%d)",
            current,
            evicted,
            computed,
        )


def get_token_validator(
    config: Settings | None = None, *, now: Clock = time.time
) -> RollingTokenManager:
    """Build a validating manager from settings.

    Raises:
        RollingTokenConfigurationError: If no secret is configured.
    """
    config = config or default_settings
    secret = config.secret_bytes
    if secret is None:
        raise RollingTokenConfigurationError("ROLLING_TOKEN_SECRET is not configured")
    return RollingTokenManager(secret, config.interval_seconds, config.tolerance, now=now)
