"""
visitor_identity.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for all layers.
- Hide secrets from repr/logging (cookie signing key).
- Offer a cached settings instance for dependency injection.
- Derive the immutable `IdentityPolicy` consumed by the identity services.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from visitor_identity.consts import DELEGATION_EXPIRY, REFRESH_EXPIRY, REFRESH_TOKEN_COOKIE


@dataclass(frozen=True, slots=True)
class IdentityPolicy:
    # Lifetimes run on independent clocks: a delegation may lapse many times
    # within a single refresh-token lifetime.
    cookie_name: str = REFRESH_TOKEN_COOKIE
    cookie_secure: bool = True
    refresh_expiry: timedelta = REFRESH_EXPIRY
    delegation_expiry: timedelta = DELEGATION_EXPIRY


class Settings(BaseSettings):
    """
    Env-driven, immutable once constructed. Build one at startup and pass it down.
    """

    model_config = SettingsConfigDict(env_prefix="VID_", case_sensitive=False, frozen=True)

    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "visitor-identity"
    log_level: str = "INFO"

    api_host: str = "0.0.0.0"
    api_port: int = 8080

    # Cookies
    cookie_signing_key: str = Field(
        default="dev-cookie-signing-key-change-me-0123456789",
        min_length=32,
        repr=False,
    )
    cookie_secure: bool = True

    # Lifetimes
    refresh_expiry: timedelta = REFRESH_EXPIRY
    delegation_expiry: timedelta = DELEGATION_EXPIRY

    # Persistence
    kv_backend: Literal["sql", "memory"] = "sql"
    database_url: str = "sqlite+aiosqlite:///./visitor_identity.db"

    def identity_policy(self) -> IdentityPolicy:
        return IdentityPolicy(
            cookie_secure=self.cookie_secure,
            refresh_expiry=self.refresh_expiry,
            delegation_expiry=self.delegation_expiry,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Cache avoids re-parsing env vars for each request dependency.
    return Settings()


# --- Module Notes -----------------------------------------------------------
# The signing key must be identical across replicas, otherwise refresh cookies
# issued by one process fail verification on another and visitors get new identities.
