"""Rolling shared-secret authorization tokens.

Both parties derive the same short-lived token from a shared secret and the
current time bucket, so tokens never need to be exchanged or stored.
"""

from .core.errors import RollingTokenConfigurationError
from .services.generator import RollingAuthorizationToken
from .models import RollingToken
from .services.validator import RollingTokenManager

__all__ = [
    "RollingAuthorizationToken",
    "RollingToken",
    "RollingTokenConfigurationError",
    "RollingTokenManager",
]
