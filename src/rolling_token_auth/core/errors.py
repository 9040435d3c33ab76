"""Exceptions raised by rolling token components."""

from __future__ import annotations


class RollingTokenConfigurationError(ValueError):
    """Raised when a generator or manager is constructed with invalid parameters.

    A misconfigured instance is unusable for its whole lifetime, so this is
    raised eagerly at construction time rather than on first use.
    """
