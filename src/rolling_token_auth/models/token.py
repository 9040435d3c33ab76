# src/rolling_token_auth/models/token.py
"""Rolling token value type."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol


class BucketSource(Protocol):
    """Anything that can report the current time bucket."""

    def current_timestamp(self) -> int: ...


@dataclass(frozen=True)
class RollingToken:
    """A generated token together with the time bucket it belongs to.

    Identity is the token value alone; the bucket is metadata and does not
    take part in equality or hashing.
    """

    token: str
    timestamp: int = field(compare=False)

    def offset_in(self, source: BucketSource) -> int:
        """Return this token's bucket offset from `source`'s current bucket.

        `0` is the current bucket, `-1` the previous one and `1` the next.
        """
        return self.timestamp - source.current_timestamp()
