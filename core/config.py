"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for LeetShare happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead,
and pass the values you need into the service constructors.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. jwt_secret -> JWT_SECRET). Type coercion and validation are built in.

Security notes:
  [S1] JWT_SECRET is mandatory. There is no dev-mode fallback: a missing,
       short (<32 bytes) or placeholder secret is a hard startup failure, so
       the process never serves traffic with a guessable signing key.

  [S2] The secret value never appears in log lines or exception messages.

Layer rule: core/ is the kernel. This module may not import from api/ or auth/.
"""

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("leetshare.config")

MIN_SECRET_BYTES = 32

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'leetshare_auth.db'}"

# Substrings that mark a copy-pasted sample value rather than a generated key.
_PLACEHOLDER_MARKERS = ("change", "example")


class ConfigurationError(ValueError):
    """Raised when startup configuration is unusable. Never caught at runtime."""


def validate_signing_secret(secret: str | None) -> str:
    """Return the secret unchanged if it is fit for HS256 signing [S1].

    Rejects:
      - missing / empty values,
      - values shorter than MIN_SECRET_BYTES once UTF-8 encoded,
      - the literal "secret" and anything containing "change" or "example"
        (case-insensitive), which are the tell-tale signs of a sample .env.
    """
    if not secret:
        raise ConfigurationError("JWT_SECRET must be set.")
    if len(secret.encode("utf-8")) < MIN_SECRET_BYTES:
        raise ConfigurationError(f"JWT_SECRET must be at least {MIN_SECRET_BYTES} bytes long.")
    lowered = secret.lower()
    if lowered == "secret" or any(marker in lowered for marker in _PLACEHOLDER_MARKERS):
        raise ConfigurationError(
            "JWT_SECRET appears to be a default/example value. Use a cryptographically secure random string."
        )
    return secret


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    Every field except jwt_secret has a default so tests only need to provide
    JWT_SECRET. Validation runs once, when get_settings() first builds the
    instance -- that is process start for the ASGI app.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    jwt_secret: str = ""
    database_url: str = _DEFAULT_DB_URL
    log_level: str = "INFO"

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    allowed_origins: str = "http://localhost:3000,http://127.0.0.1:3000"
    max_body_bytes: int = 2 * 1024 * 1024

    # ------------------------------------------------------------------
    # GitHub OAuth (optional -- empty string means the provider is disabled)
    # ------------------------------------------------------------------

    github_client_id: str = ""
    github_client_secret: str = ""
    github_redirect_uri: str = ""

    # ------------------------------------------------------------------
    # Rate limiting (slowapi limit strings)
    # ------------------------------------------------------------------

    register_rate_limit: str = "3/hour"
    login_rate_limit: str = "10/minute"
    api_rate_limit: str = "60/minute"

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def check_jwt_secret(self) -> "Settings":
        """Refuse to start without a usable signing secret [S1].

        A model validator (not a field validator) so the empty default is
        checked too.
        """
        validate_signing_secret(self.jwt_secret)
        return self

    @property
    def origins(self) -> list[str]:
        """ALLOWED_ORIGINS split on commas, blanks dropped."""
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]

    @property
    def github_enabled(self) -> bool:
        return bool(self.github_client_id and self.github_client_secret)


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    Uses lru_cache so Settings() is instantiated exactly once -- at first call.
    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    settings = Settings()
    logger.info("Security checks passed: JWT_SECRET is properly configured")
    return settings
