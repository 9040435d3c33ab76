"""FastAPI integration for rolling token authentication."""

from .dependencies import (
    RollingTokenDep,
    RollingTokenGuard,
    get_token_guard,
    require_rolling_token,
    rolling_token_lifespan,
)

__all__ = [
    "RollingTokenDep",
    "RollingTokenGuard",
    "get_token_guard",
    "require_rolling_token",
    "rolling_token_lifespan",
]
