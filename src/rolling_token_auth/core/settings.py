"""Rolling token settings.

Settings are loaded from environment variables (or a `.env` file) so that
both the issuing and the verifying side can be configured without code
changes.
"""

from typing import Any, Literal

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LogLevel = Literal["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET"]


class Settings(BaseSettings):
    """Rolling token configuration loaded from environment variables."""

    # Shared secret; masked in repr and never logged
    secret: SecretStr | None = Field(default=None, alias="ROLLING_TOKEN_SECRET")

    # Seconds per time bucket
    interval_seconds: int = Field(default=30, gt=0, alias="ROLLING_TOKEN_INTERVAL_SECONDS")

    # Buckets accepted on each side of the current one
    tolerance: int = Field(default=1, ge=0, alias="ROLLING_TOKEN_TOLERANCE")

    log_level: LogLevel = Field(default="WARNING", alias="ROLLING_TOKEN_LOG_LEVEL")

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @property
    def secret_bytes(self) -> bytes | None:
        """Return the configured secret as UTF-8 bytes, or None when unset."""
        if self.secret is None:
            return None
        return self.secret.get_secret_value().encode("utf-8")


settings = Settings()
