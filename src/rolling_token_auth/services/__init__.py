"""Token generation, validation and transport helpers."""

from .generator import RollingAuthorizationToken, get_token_generator
from .validator import RollingTokenManager, get_token_validator

__all__ = [
    "RollingAuthorizationToken",
    "RollingTokenManager",
    "get_token_generator",
    "get_token_validator",
]
