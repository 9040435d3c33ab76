"""Rolling token derivation and the generate-only token helper.

A token is the hex-encoded HMAC-SHA256 of the decimal time bucket, keyed by
the shared secret. The bucket is the current unix time divided by the
configured interval, so two parties with synchronized clocks compute the
same token without any exchange.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Union

from rolling_token_auth.core.errors import RollingTokenConfigurationError
from rolling_token_auth.core.settings import Settings
from rolling_token_auth.core.settings import settings as default_settings
from rolling_token_auth.models import RollingToken
from rolling_token_auth.utils.hash import hmac_sha256_hexdigest

SecretInput = Union[str, bytes, bytearray, memoryview]
Clock = Callable[[], float]


def coerce_secret(secret: SecretInput) -> bytes:
    """Return the secret as immutable bytes.

    Strings are encoded as UTF-8, so `"abc"` and `b"abc"` are equivalent.

    Raises:
        RollingTokenConfigurationError: If `secret` is not a string or byte sequence.
    """
    if isinstance(secret, str):
        return secret.encode("utf-8")
    if isinstance(secret, (bytes, bytearray, memoryview)):
        return bytes(secret)
    raise RollingTokenConfigurationError(
        f"secret must be str or bytes, got {type(secret).__name__}"
    )


def validate_interval(interval: int) -> int:
    """Return `interval` if it is a positive integer number of seconds."""
    if isinstance(interval, bool) or not isinstance(interval, int):
        raise RollingTokenConfigurationError("interval must be an integer number of seconds")
    if interval <= 0:
        raise RollingTokenConfigurationError("interval must be greater than zero")
    return interval


def derive_token(secret: bytes, bucket: int) -> str:
    """Derive the token value for a time bucket.

    Args:
        secret: Shared secret bytes.
        bucket: Time bucket index; any integer, including negative values.

    Returns:
        64-character lowercase hex HMAC-SHA256 of the bucket's decimal string.
    """
    return hmac_sha256_hexdigest(secret, str(bucket).encode("utf-8"))


def current_bucket(interval: int, now: Clock = time.time) -> int:
    """Return the time bucket for the clock reading `now()`.

    The reading is truncated to whole seconds first and then divided by the
    interval, both truncating toward zero.
    """
    seconds = int(now())
    if seconds >= 0:
        return seconds // interval
    return -(-seconds // interval)


class RollingAuthorizationToken:
    """Generate-only rolling token helper, typically used client-side.

    Holds no mutable state after construction and is safe to share between
    threads.
    """

    __slots__ = ("_secret", "_interval", "_now")

    def __init__(self, secret: SecretInput, interval: int, *, now: Clock = time.time) -> None:
        self._secret = coerce_secret(secret)
        self._interval = validate_interval(interval)
        self._now = now

    def __repr__(self) -> str:
        return f"{type(self).__name__}(interval={self._interval})"

    @property
    def interval(self) -> int:
        """Size of each time bucket in seconds."""
        return self._interval

    def current_timestamp(self) -> int:
        """Return the current time bucket."""
        return current_bucket(self._interval, self._now)

    def generate(self, timestamp: int | None = None) -> str:
        """Return the token for `timestamp`, or for the current bucket when omitted."""
        if timestamp is None:
            timestamp = self.current_timestamp()
        return derive_token(self._secret, timestamp)

    def generate_token(self, offset: int = 0) -> RollingToken:
        """Return the token for the bucket `offset` steps from the current one.

        `0` is the current bucket, negative offsets are in the past and
        positive offsets in the future.
        """
        timestamp = self.current_timestamp() + offset
        return RollingToken(token=derive_token(self._secret, timestamp), timestamp=timestamp)


def get_token_generator(
    config: Settings | None = None, *, now: Clock = time.time
) -> RollingAuthorizationToken:
    """Build a generator from settings.

    Raises:
        RollingTokenConfigurationError: If no secret is configured.
    """
    config = config or default_settings
    secret = config.secret_bytes
    if secret is None:
        raise RollingTokenConfigurationError("ROLLING_TOKEN_SECRET is not configured")
    return RollingAuthorizationToken(secret, config.interval_seconds, now=now)
