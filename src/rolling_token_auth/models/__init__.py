"""Value types for rolling tokens."""

from .token import BucketSource, RollingToken

__all__ = ["BucketSource", "RollingToken"]
