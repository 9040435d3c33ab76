# src/rolling_token_auth/utils/hash.py
"""Keyed hashing helpers used for token derivation."""

from __future__ import annotations

import hashlib
import hmac

SHA256_HEX_LENGTH = 64


def hex_encode(data: bytes) -> str:
    """Return `data` as lowercase hex, two characters per byte, no separators."""
    return data.hex()


def hmac_sha256_digest(key: bytes, message: bytes) -> bytes:
    """Return the raw 32-byte HMAC-SHA256 of `message` under `key`."""
    return hmac.new(key, message, hashlib.sha256).digest()


def hmac_sha256_hexdigest(key: bytes, message: bytes) -> str:
    """Return the hex-encoded HMAC-SHA256 of `message` under `key`."""
    return hex_encode(hmac_sha256_digest(key, message))
