"""
core/config.py -- Centralized configuration via pydantic-settings.

All environment variable reads for LearnLite auth happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file. Field names map to env var names
      (e.g. secret_key -> SECRET_KEY, bcrypt_work_factor -> BCRYPT_WORK_FACTOR).

  Immutable AuthConfig: Settings is the loader; AuthConfig is the value handed
      to the hasher, token codec and gates. It is frozen, so nothing downstream
      can change the signing key or work factor after startup.

Security notes:
  [K1] SECRET_KEY shorter than 32 chars is rejected. HMAC-SHA256 token
       signatures are only as strong as the key.

  [K2] Outside DEBUG mode a missing SECRET_KEY is a hard startup failure.

Layer rule: core/ is the kernel. This module may not import from api/ or auth/.
"""

import logging
import secrets
from functools import lru_cache

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("learnlite.config")

DEFAULT_TOKEN_TTL_SECONDS = 86400
DEFAULT_WORK_FACTOR = 12
MIN_SECRET_KEY_LENGTH = 32


class AuthConfig(BaseModel):
    """Process-wide auth configuration, built once and passed by reference."""

    model_config = ConfigDict(frozen=True)

    secret_key: bytes
    token_ttl_seconds: int = DEFAULT_TOKEN_TTL_SECONDS
    work_factor: int = DEFAULT_WORK_FACTOR


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file (provided DEBUG=true or SECRET_KEY
    is set). The model_validator enforces the key policy at startup.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    app_name: str = "learnlite"
    log_level: str = "INFO"

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    # Empty string is the sentinel for "not configured". The validator below
    # either generates a dev key or raises, so callers never see "".
    secret_key: str = ""
    token_ttl_seconds: int = Field(default=DEFAULT_TOKEN_TTL_SECONDS, gt=0)
    bcrypt_work_factor: int = Field(default=DEFAULT_WORK_FACTOR, ge=1, le=31)

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_secret_key(self) -> "Settings":
        """Enforce the SECRET_KEY policy [K1][K2].

        Dev mode (DEBUG=true): auto-generate a random key with a warning.
            Tokens will not survive a restart -- acceptable for local dev.

        Production mode: refuse to start if SECRET_KEY is missing.
        """
        if not self.secret_key:
            if self.debug:
                self.secret_key = secrets.token_hex(32)
                logger.warning("Using auto-generated SECRET_KEY. Issued tokens will not survive a restart.")
            else:
                raise ValueError(
                    "SECRET_KEY is required in production mode. "
                    "Set SECRET_KEY in your environment or .env file. "
                    "To run in development mode, set DEBUG=true."
                )
        if len(self.secret_key) < MIN_SECRET_KEY_LENGTH:
            raise ValueError(f"SECRET_KEY must be at least {MIN_SECRET_KEY_LENGTH} characters.")
        return self

    @model_validator(mode="after")
    def validate_log_level(self) -> "Settings":
        level = self.log_level.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Invalid LOG_LEVEL value: {self.log_level}")
        self.log_level = level
        return self

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    def auth_config(self) -> AuthConfig:
        """Return the immutable configuration value injected into the auth core."""
        return AuthConfig(
            secret_key=self.secret_key.encode("utf-8"),
            token_ttl_seconds=self.token_ttl_seconds,
            work_factor=self.bcrypt_work_factor,
        )

    def redacted_summary(self) -> dict[str, object]:
        """Config view that is safe to log -- the signing key is never included."""
        return {
            "app_name": self.app_name,
            "debug": self.debug,
            "log_level": self.log_level,
            "secret_key": "[REDACTED]" if self.secret_key else "[NOT SET]",
            "token_ttl_seconds": self.token_ttl_seconds,
            "bcrypt_work_factor": self.bcrypt_work_factor,
        }


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
