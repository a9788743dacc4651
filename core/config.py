"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for the boilerplate happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call. This is
      the official FastAPI dependency injection pattern for config.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. deployment_id -> DEPLOYMENT_ID). Type coercion and validation are
      built in.

  @model_validator(mode="after"): Runs cross-field validation after all fields
      are resolved from environment. Used for the two startup-fatal checks:
      the deployment identity (DEPLOYMENT_ID + SITE_URL) and SECRET_KEY.

Startup contract:
  DEPLOYMENT_ID and SITE_URL must be supplied at process start. A missing value
  raises ValueError from get_settings(), which aborts the server before the
  first request is accepted. There is no runtime fallback.

  SECRET_KEY shorter than 32 chars is rejected outright. In production mode
  (DEBUG not set or false) a missing SECRET_KEY is also fatal; in debug mode a
  random key is generated with a warning.

Layer rule: core/ is the kernel. This module may not import from api/, web/,
auth/, records/, or client/.
"""

import logging
import secrets
from functools import lru_cache
from pathlib import Path
from urllib.parse import urlparse

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("boilerplate.config")

_ROOT = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    Everything except DEPLOYMENT_ID and SITE_URL has a default, so tests only
    need to export those two (plus DEBUG=true to get a generated SECRET_KEY).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Deployment identity (required)
    # ------------------------------------------------------------------

    # Empty string is the sentinel for "not configured"; the validator below
    # turns it into a startup failure.
    deployment_id: str = ""
    site_url: str = ""

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    secret_key: str = ""
    log_level: str = "INFO"

    # ------------------------------------------------------------------
    # Session Store
    # ------------------------------------------------------------------

    auth_database_url: str = f"sqlite:///{_ROOT / 'auth' / 'boilerplate_auth.db'}"
    secure_cookies: bool = False
    # 7 days. Sessions outlive a browser restart and a page reload.
    token_expire_seconds: int = 7 * 24 * 3600
    password_min_length: int = 8
    auth_rate_limit: str = "10/minute"
    rate_limit_enabled: bool = True

    # ------------------------------------------------------------------
    # Data Store
    # ------------------------------------------------------------------

    records_database_url: str = f"sqlite:///{_ROOT / 'records' / 'boilerplate_records.db'}"

    # ------------------------------------------------------------------
    # Client timeouts (seconds)
    # ------------------------------------------------------------------

    # A session check that has not answered within this window resolves to
    # "unauthenticated" instead of leaving the UI in "loading".
    session_check_timeout: float = 5.0
    auth_call_timeout: float = 10.0

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_deployment(self) -> "Settings":
        """Refuse to start without a deployment id and an absolute site URL."""
        missing = [name for name in ("deployment_id", "site_url") if not getattr(self, name).strip()]
        if missing:
            raise ValueError(
                f"Missing required configuration: {', '.join(n.upper() for n in missing)}. "
                "Set them in your environment or .env file."
            )
        parsed = urlparse(self.site_url)
        if parsed.scheme not in ("http", "https") or not parsed.hostname:
            raise ValueError(f"SITE_URL must be an absolute http(s) URL, got {self.site_url!r}.")
        self.site_url = self.site_url.rstrip("/")
        return self

    @model_validator(mode="after")
    def validate_secret_key(self) -> "Settings":
        """Dev mode generates a throwaway key; production requires a real one."""
        if not self.secret_key:
            if self.debug:
                self.secret_key = secrets.token_hex(32)
                logger.warning("Using auto-generated SECRET_KEY. Sessions will not persist across restarts.")
            else:
                raise ValueError(
                    "SECRET_KEY is required in production mode. "
                    "Set SECRET_KEY in your environment or .env file. "
                    "To run in development mode, set DEBUG=true."
                )
        if len(self.secret_key) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters.")
        return self

    @property
    def site_host(self) -> str:
        return urlparse(self.site_url).hostname or "localhost"


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
